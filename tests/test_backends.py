import time

import numpy as np
import pytest

from conftest import MIXED_WORDS, random_words
from entropy_solver.backends import (
    AcceleratorBackend,
    ScalarBackend,
    VectorBackend,
    get_backend,
)
from entropy_solver.backends import accelerator
from entropy_solver.backends.scalar import guess_histogram
from entropy_solver.backends.vector import lane_patterns, to_lanes
from entropy_solver.codec import EMPTY_CODE, WordList
from entropy_solver.errors import BackendAllocationError, BackendTimeoutError
from entropy_solver.patterns import feedback


def make_backends():
    return [
        VectorBackend(workers=1, lane_width=8),
        VectorBackend(workers=2, lane_width=4, chunk_size=5),
        AcceleratorBackend(
            threads_per_block=(4, 4),
            max_guesses_per_dispatch=7,
            max_answers_per_dispatch=5,
        ),
    ]


@pytest.fixture(scope="module")
def pool():
    guesses = WordList(MIXED_WORDS + random_words(14, seed=11))
    answers = WordList(MIXED_WORDS[::2] + random_words(9, seed=12))
    return guesses, answers


@pytest.fixture(scope="module")
def oracle(pool):
    guesses, answers = pool
    return ScalarBackend().score(guesses, answers)


@pytest.mark.parametrize("backend", make_backends(), ids=repr)
def test_backend_agrees_with_scalar(backend, pool, oracle):
    guesses, answers = pool
    table = backend.score(guesses, answers)

    assert table.words == oracle.words
    np.testing.assert_allclose(table.scores, oracle.scores, rtol=1e-6, atol=0)
    assert table.best() == oracle.best()


@pytest.mark.parametrize("backend", make_backends(), ids=repr)
def test_backend_handles_empty_candidates(backend, pool):
    guesses, _ = pool
    table = backend.score(guesses, WordList([]))
    assert np.all(table.scores == 0.0)


@pytest.mark.parametrize(
    "backend",
    [ScalarBackend(), VectorBackend(workers=1), AcceleratorBackend(threads_per_block=(4, 4))],
    ids=repr,
)
def test_timeout_raises_without_partial_scores(backend, pool):
    guesses, answers = pool
    with pytest.raises(BackendTimeoutError):
        backend.score(guesses, answers, timeout=0)


def test_word_length_mismatch(pool):
    guesses, _ = pool
    with pytest.raises(ValueError):
        ScalarBackend().score(guesses, WordList(["eel"], word_length=3))


def test_scalar_histogram_counts_every_answer(small_words):
    counts = guess_histogram(small_words.code_of("abide"), small_words.codes, 5)
    assert counts.sum() == 5
    assert sorted(counts[counts > 0]) == [1, 1, 1, 2]


def test_to_lanes_pads_partial_lane():
    codes = np.arange(1, 11, dtype=np.int64)
    lanes = to_lanes(codes, lane_width=4)

    assert lanes.shape == (3, 4)
    assert list(lanes.ravel()[:10]) == list(codes)
    assert list(lanes.ravel()[10:]) == [EMPTY_CODE, EMPTY_CODE]


def test_lane_patterns_match_feedback():
    guesses = WordList(MIXED_WORDS)
    answers = WordList(random_words(37, seed=5) + MIXED_WORDS)
    lanes = to_lanes(answers.codes, lane_width=16)

    for guess_code in guesses.codes:
        patterns = lane_patterns(int(guess_code), lanes, 5).ravel()[: len(answers)]
        expected = [feedback(int(guess_code), int(a)) for a in answers.codes]
        assert list(patterns) == expected


def test_padded_lanes_are_excluded_from_histograms():
    # one answer, lane width 64: 63 padding lanes must not be counted
    guesses = WordList(["crane", "slate"])
    answers = WordList(["crane"])
    table = VectorBackend(workers=1).score(guesses, answers)
    assert list(table.scores) == [0.0, 0.0]


def test_accelerator_reports_allocation_failure(pool):
    guesses, answers = pool
    backend = AcceleratorBackend(threads_per_block=(4, 4), memory_limit=1)
    with pytest.raises(BackendAllocationError):
        backend.score(guesses, answers)


def test_accelerator_without_device_raises_allocation_error(pool, monkeypatch):
    guesses, answers = pool
    monkeypatch.setattr(accelerator, "device_available", lambda: False)
    with pytest.raises(BackendAllocationError, match="no CUDA device"):
        AcceleratorBackend(threads_per_block=(4, 4)).score(guesses, answers)


def test_accelerator_driver_out_of_memory_releases_buffers(pool, monkeypatch):
    guesses, answers = pool
    real_to_device = accelerator.cuda.to_device
    uploads = []
    closed = []

    def to_device(array):
        # answers fit, the guess tile does not
        if uploads:
            raise accelerator.CudaAPIError(2, "CUDA_ERROR_OUT_OF_MEMORY")
        uploads.append(array)
        return real_to_device(array)

    real_close = accelerator.DeviceBuffers.close

    def close(self):
        real_close(self)
        closed.append(len(self._buffers))

    monkeypatch.setattr(accelerator.cuda, "to_device", to_device)
    monkeypatch.setattr(accelerator.DeviceBuffers, "close", close)

    with pytest.raises(BackendAllocationError, match="guesses"):
        AcceleratorBackend(threads_per_block=(4, 4)).score(guesses, answers)
    assert closed == [0]


def test_accelerator_timeout_checked_after_sync(monkeypatch):
    words = WordList(MIXED_WORDS[:6])
    real_synchronize = accelerator.cuda.synchronize

    def slow_synchronize():
        real_synchronize()
        time.sleep(0.5)

    monkeypatch.setattr(accelerator.cuda, "synchronize", slow_synchronize)
    with pytest.raises(BackendTimeoutError):
        AcceleratorBackend(threads_per_block=(4, 4)).score(words, words, timeout=0.25)


def test_accelerator_required_bytes_uses_guess_tile():
    backend = AcceleratorBackend(max_guesses_per_dispatch=10)
    needed = backend.required_bytes(1000, 50, 5)
    assert needed == 8 * (10 + 50) + 4 * 10 * 243


def test_get_backend():
    assert isinstance(get_backend("scalar"), ScalarBackend)
    backend = get_backend("vector", workers=3)
    assert isinstance(backend, VectorBackend)
    assert backend.workers == 3
    with pytest.raises(ValueError):
        get_backend("quantum")
