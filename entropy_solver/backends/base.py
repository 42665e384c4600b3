"""
base.py

Shared scoring contract for the scalar, vector and accelerator backends.
"""

import time

from ..entropy import ScoreTable
from ..errors import BackendTimeoutError


class Deadline:
    """Monotonic deadline checked between units of work."""

    def __init__(self, timeout):
        self.timeout = timeout
        self.expires = None if timeout is None else time.monotonic() + timeout

    def remaining(self):
        if self.expires is None:
            return None
        return max(0.0, self.expires - time.monotonic())

    def check(self, what="scoring"):
        if self.expires is not None and time.monotonic() >= self.expires:
            raise BackendTimeoutError(f"{what} exceeded timeout of {self.timeout:.3f}s")


class Backend:
    """
    Scores every guess in a pool against a candidate set.

    Subclasses implement _score_rows, returning one entropy per guess.
    score() blocks until every row is done; on error or timeout nothing
    partial is returned.
    """

    name = None

    def __init__(self, progress=False):
        self.progress = progress

    def score(self, guesses, candidates, timeout=None) -> ScoreTable:
        if guesses.word_length != candidates.word_length:
            raise ValueError(
                f"guess length {guesses.word_length} != "
                f"candidate length {candidates.word_length}"
            )
        deadline = Deadline(timeout)
        scores = self._score_rows(guesses, candidates, deadline)
        return ScoreTable(guesses.words, scores)

    def _score_rows(self, guesses, candidates, deadline):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"
