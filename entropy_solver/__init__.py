"""
Entropy-maximising Wordle solver with scalar, vector and CUDA backends.
"""

from .backends import BACKENDS, get_backend
from .codec import WORD_LENGTH, WordList, encode
from .entropy import ScoreTable, entropy
from .errors import (
    BackendAllocationError,
    BackendTimeoutError,
    InvalidWordError,
    NoSolutionError,
    SolverError,
)
from .patterns import feedback, pattern_from_string, pattern_to_string
from .solver import Solver, SolverConfig, choose_guess, filter_candidates

__version__ = "0.1.0"
