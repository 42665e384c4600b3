"""
errors.py

Exceptions raised by the solver core.
"""


class SolverError(Exception):
    """Base class for every error the solver core raises."""


class InvalidWordError(SolverError, ValueError):
    """A word has the wrong length or a character outside a-z."""

    def __init__(self, word, reason):
        self.word = word
        self.reason = reason
        super().__init__(f"invalid word {word!r}: {reason}")


class BackendAllocationError(SolverError):
    """The accelerator could not get the device buffers it needs."""


class BackendTimeoutError(SolverError):
    """A scoring call ran past its deadline. No partial scores are returned."""


class NoSolutionError(SolverError):
    """No candidate is consistent with the feedback observed so far."""
