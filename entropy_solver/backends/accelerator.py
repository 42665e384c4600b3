"""
accelerator.py

CUDA backend built on numba.cuda.

One device thread per (guess, answer) pair over a 2-D grid: x indexes the
answer, y the guess. Each thread computes the feedback pattern with the
two-pass rule and bumps its guess's histogram bucket with an atomic add.
Raw histograms are read back and turned into entropies on the host.

Work larger than one dispatch is tiled. A guess tile's histograms stay on the
device while every answer tile is dispatched against it, then are copied back
once. All device buffers are sized up front and dropped when scoring ends,
whether it succeeded or not.
"""

import math
from contextlib import contextmanager

import numpy as np
from numba import cuda, int32
from numba.cuda.cudadrv.driver import CudaAPIError
from numba.cuda.cudadrv.error import CudaSupportError
from tqdm import tqdm

from ..codec import ALPHABET_SIZE, FIELD_BITS, FIELD_MASK, PRESENCE_BITS
from ..entropy import entropy_rows
from ..errors import BackendAllocationError
from ..patterns import pattern_count
from .base import Backend


THREADS_PER_BLOCK = (16, 16)
MAX_GUESSES_PER_DISPATCH = 4096
MAX_ANSWERS_PER_DISPATCH = 4096
HISTOGRAM_DTYPE = np.int32

# Letter fields hold letter index + 1, so slot 0 is the empty field
_LETTER_SLOTS = ALPHABET_SIZE + 1


@cuda.jit
def _histogram_kernel(guess_codes, answer_codes, histograms, word_length):
    col, row = cuda.grid(2)
    if row >= guess_codes.shape[0] or col >= answer_codes.shape[0]:
        return

    guess = guess_codes[row]
    answer = answer_codes[col]

    unmatched = cuda.local.array(_LETTER_SLOTS, int32)
    for slot in range(_LETTER_SLOTS):
        unmatched[slot] = 0

    # Greens, as a bit per position; tally answer letters they leave unused
    green = 0
    for i in range(word_length):
        shift = PRESENCE_BITS + FIELD_BITS * i
        guess_letter = (guess >> shift) & FIELD_MASK
        answer_letter = (answer >> shift) & FIELD_MASK
        if guess_letter == answer_letter:
            green |= 1 << i
        else:
            unmatched[answer_letter] += 1

    pattern = 0
    for i in range(word_length):
        digit = 0
        if (green >> i) & 1:
            digit = 2
        else:
            guess_letter = (guess >> (PRESENCE_BITS + FIELD_BITS * i)) & FIELD_MASK
            if unmatched[guess_letter] > 0:
                unmatched[guess_letter] -= 1
                digit = 1
        pattern = pattern * 3 + digit

    cuda.atomic.add(histograms, (row, pattern), 1)


def device_available():
    try:
        return cuda.is_available()
    except CudaSupportError:
        return False


class DeviceBuffers:
    """
    Device arrays for one score() call.

    Every allocation goes through here so that driver failures surface as
    BackendAllocationError and all references are dropped on close.
    """

    def __init__(self):
        self._buffers = {}

    def upload(self, name, host_array):
        try:
            self._buffers[name] = cuda.to_device(np.ascontiguousarray(host_array))
        except (CudaAPIError, CudaSupportError) as exc:
            raise BackendAllocationError(f"could not allocate device buffer {name!r}: {exc}") from exc
        return self._buffers[name]

    def zeros(self, name, shape, dtype):
        return self.upload(name, np.zeros(shape, dtype=dtype))

    def release(self, name):
        self._buffers.pop(name, None)

    def close(self):
        self._buffers.clear()


@contextmanager
def device_buffers():
    buffers = DeviceBuffers()
    try:
        yield buffers
    finally:
        buffers.close()


class AcceleratorBackend(Backend):
    name = "accelerator"

    def __init__(
        self,
        threads_per_block=THREADS_PER_BLOCK,
        max_guesses_per_dispatch=MAX_GUESSES_PER_DISPATCH,
        max_answers_per_dispatch=MAX_ANSWERS_PER_DISPATCH,
        memory_limit=None,
        progress=False,
    ):
        super().__init__(progress=progress)
        self.threads_per_block = tuple(int(t) for t in threads_per_block)
        self.max_guesses_per_dispatch = max(1, int(max_guesses_per_dispatch))
        self.max_answers_per_dispatch = max(1, int(max_answers_per_dispatch))
        self.memory_limit = memory_limit

    def __repr__(self):
        return (
            f"AcceleratorBackend(threads_per_block={self.threads_per_block}, "
            f"tile={self.max_guesses_per_dispatch}x{self.max_answers_per_dispatch})"
        )

    def required_bytes(self, n_guesses, n_answers, word_length):
        """Peak device memory for one guess tile plus all answer codes."""
        guess_tile = min(n_guesses, self.max_guesses_per_dispatch)
        code_bytes = np.dtype(np.int64).itemsize * (guess_tile + n_answers)
        histogram_bytes = (
            np.dtype(HISTOGRAM_DTYPE).itemsize * guess_tile * pattern_count(word_length)
        )
        return code_bytes + histogram_bytes

    def _check_memory(self, needed):
        if not device_available():
            raise BackendAllocationError("no CUDA device is available")
        try:
            free = cuda.current_context().get_memory_info().free
        except (CudaAPIError, CudaSupportError) as exc:
            raise BackendAllocationError(f"could not query device memory: {exc}") from exc
        if self.memory_limit is not None:
            free = min(free, self.memory_limit)
        if needed > free:
            raise BackendAllocationError(
                f"need {needed:,} bytes of device memory, only {free:,} available"
            )

    def _score_rows(self, guesses, candidates, deadline):
        word_length = guesses.word_length
        n_guesses = len(guesses)
        n_answers = len(candidates)
        n_patterns = pattern_count(word_length)
        histograms = np.zeros((n_guesses, n_patterns), dtype=np.int64)

        if n_guesses == 0 or n_answers == 0:
            return entropy_rows(histograms, n_answers)

        self._check_memory(self.required_bytes(n_guesses, n_answers, word_length))

        tpb_x, tpb_y = self.threads_per_block
        guess_tiles = range(0, n_guesses, self.max_guesses_per_dispatch)
        answer_tiles = range(0, n_answers, self.max_answers_per_dispatch)

        with device_buffers() as buffers:
            d_answers = buffers.upload("answers", candidates.codes)

            for g_start in tqdm(guess_tiles, desc="Dispatching tiles", disable=not self.progress):
                g_end = min(g_start + self.max_guesses_per_dispatch, n_guesses)
                d_guesses = buffers.upload("guesses", guesses.codes[g_start:g_end])
                d_hist = buffers.zeros("histograms", (g_end - g_start, n_patterns), HISTOGRAM_DTYPE)

                for a_start in answer_tiles:
                    deadline.check("accelerator scoring")
                    a_end = min(a_start + self.max_answers_per_dispatch, n_answers)
                    blocks = (
                        math.ceil((a_end - a_start) / tpb_x),
                        math.ceil((g_end - g_start) / tpb_y),
                    )
                    _histogram_kernel[blocks, (tpb_x, tpb_y)](
                        d_guesses, d_answers[a_start:a_end], d_hist, word_length
                    )

                cuda.synchronize()
                deadline.check("accelerator scoring")
                histograms[g_start:g_end] = d_hist.copy_to_host()
                buffers.release("guesses")
                buffers.release("histograms")

        return entropy_rows(histograms, n_answers)
