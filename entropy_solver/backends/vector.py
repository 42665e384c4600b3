"""
vector.py

Lane-parallel CPU backend.

Answer codes are padded to a whole number of fixed-width lanes and laid out
as a (blocks, lane_width) array. Each guess is compared against every lane at
once with numpy element-wise operations on the packed codes, so the duplicate
letter rule runs independently per lane. Padded lanes hold the empty code and
are dropped before the histogram is counted.

Guesses are split into contiguous chunks and spread over worker processes.
Each worker scores only its own chunk, so every guess's histogram has a single
writer and chunks land in disjoint slices of the result.
"""

import multiprocessing as mp
import os

import numpy as np
from tqdm import tqdm

from ..codec import CODE_DTYPE, EMPTY_CODE, FIELD_MASK, field_shift, letter_at
from ..entropy import entropy_rows
from ..errors import BackendTimeoutError
from ..patterns import pattern_count
from .base import Backend


LANE_WIDTH = 64
CHUNKS_PER_WORKER = 4


_VECTOR_WORKER_STATE = {}


def to_lanes(codes, lane_width=LANE_WIDTH):
    """Pad codes with the empty code and reshape to (blocks, lane_width)."""
    n_blocks = max(1, -(-len(codes) // lane_width))
    lanes = np.full(n_blocks * lane_width, EMPTY_CODE, dtype=CODE_DTYPE)
    lanes[: len(codes)] = codes
    return lanes.reshape(n_blocks, lane_width)


def lane_patterns(guess_code, lanes, word_length):
    """
    Feedback patterns of one guess against every lane.

    Same two-pass rule as patterns.feedback: greens first, then yellows left
    to right while the letter still has unmatched copies in that lane's
    answer.
    """
    guess = [letter_at(guess_code, i) + 1 for i in range(word_length)]
    fields = [(lanes >> field_shift(i)) & FIELD_MASK for i in range(word_length)]
    green = [fields[i] == guess[i] for i in range(word_length)]

    # Copies of each guessed letter sitting at non-green answer positions
    unmatched = {}
    for letter in set(guess):
        count = np.zeros(lanes.shape, dtype=np.int8)
        for j in range(word_length):
            count += (fields[j] == letter) & ~green[j]
        unmatched[letter] = count

    pattern = np.zeros(lanes.shape, dtype=np.int64)
    for i in range(word_length):
        available = unmatched[guess[i]]
        yellow = ~green[i] & (available > 0)
        available -= yellow
        pattern = pattern * 3 + 2 * green[i] + yellow
    return pattern


def _score_chunk(state, start, end):
    lanes = state["lanes"]
    guess_codes = state["guess_codes"]
    word_length = state["word_length"]
    n_answers = state["n_answers"]
    n_patterns = pattern_count(word_length)

    histograms = np.zeros((end - start, n_patterns), dtype=np.int64)
    for row, guess_code in enumerate(guess_codes[start:end]):
        patterns = lane_patterns(int(guess_code), lanes, word_length).ravel()[:n_answers]
        histograms[row] = np.bincount(patterns, minlength=n_patterns)

    return start, entropy_rows(histograms, n_answers)


def _init_vector_worker(lanes, guess_codes, word_length, n_answers):
    _VECTOR_WORKER_STATE["lanes"] = lanes
    _VECTOR_WORKER_STATE["guess_codes"] = guess_codes
    _VECTOR_WORKER_STATE["word_length"] = word_length
    _VECTOR_WORKER_STATE["n_answers"] = n_answers


def _worker_score_chunk(task):
    start, end = task
    return _score_chunk(_VECTOR_WORKER_STATE, start, end)


class VectorBackend(Backend):
    name = "vector"

    def __init__(self, workers=None, lane_width=LANE_WIDTH, chunk_size=None, progress=False):
        super().__init__(progress=progress)
        worker_count = workers if workers is not None else (os.cpu_count() or 1)
        self.workers = max(1, int(worker_count))
        self.lane_width = max(1, int(lane_width))
        self.chunk_size = chunk_size

    def __repr__(self):
        return f"VectorBackend(workers={self.workers}, lane_width={self.lane_width})"

    def _tasks(self, n_guesses):
        chunk_size = self.chunk_size
        if chunk_size is None:
            chunk_size = -(-n_guesses // (self.workers * CHUNKS_PER_WORKER))
        chunk_size = max(1, int(chunk_size))
        return [
            (start, min(start + chunk_size, n_guesses))
            for start in range(0, n_guesses, chunk_size)
        ]

    def _score_rows(self, guesses, candidates, deadline):
        state = {
            "lanes": to_lanes(candidates.codes, self.lane_width),
            "guess_codes": np.asarray(guesses.codes),
            "word_length": guesses.word_length,
            "n_answers": len(candidates),
        }
        scores = np.zeros(len(guesses), dtype=np.float64)
        tasks = self._tasks(len(guesses))
        bar = tqdm(total=len(tasks), desc="Scoring chunks", disable=not self.progress)

        with bar:
            if self.workers == 1 or len(tasks) <= 1:
                for start, end in tasks:
                    deadline.check("vector scoring")
                    _, chunk = _score_chunk(state, start, end)
                    scores[start:end] = chunk
                    bar.update()
                return scores

            start_methods = mp.get_all_start_methods()
            start_method = "fork" if "fork" in start_methods else "spawn"
            ctx = mp.get_context(start_method)

            with ctx.Pool(
                processes=min(self.workers, len(tasks)),
                initializer=_init_vector_worker,
                initargs=(
                    state["lanes"],
                    state["guess_codes"],
                    state["word_length"],
                    state["n_answers"],
                ),
            ) as pool:
                results = pool.imap_unordered(_worker_score_chunk, tasks, chunksize=1)
                for _ in tasks:
                    try:
                        start, chunk = results.next(timeout=deadline.remaining())
                    except mp.TimeoutError:
                        raise BackendTimeoutError(
                            f"vector scoring exceeded timeout of {deadline.timeout:.3f}s"
                        ) from None
                    scores[start : start + len(chunk)] = chunk
                    bar.update()

        return scores
