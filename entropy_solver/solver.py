"""
solver.py

Picks the guess with the highest expected information and narrows the
candidate set with observed feedback.

The round loop is simple: choose_guess, play it, filter_candidates with the
feedback, repeat. Solver.play runs that loop against a known answer.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .backends import Deadline, get_backend
from .codec import WORD_LENGTH, encode, normalize
from .entropy import ScoreTable, entropy_from_counts
from .errors import NoSolutionError
from .patterns import all_correct, as_pattern, feedback, pattern_to_string


DEFAULT_BACKEND = "vector"
MAX_ROUNDS = 6
LOOKAHEAD_WIDTH = 10


@dataclass(frozen=True)
class SolverConfig:
    backend: str = DEFAULT_BACKEND
    max_rounds: int = MAX_ROUNDS
    timeout: Optional[float] = None
    lookahead: int = 1
    lookahead_width: int = LOOKAHEAD_WIDTH
    workers: Optional[int] = None
    progress: bool = False

    def __post_init__(self):
        if self.lookahead not in (1, 2):
            raise ValueError(f"lookahead must be 1 or 2, got {self.lookahead}")
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be positive, got {self.max_rounds}")

    def make_backend(self):
        options = {"progress": self.progress}
        if self.backend == "vector":
            options["workers"] = self.workers
        return get_backend(self.backend, **options)


@dataclass(frozen=True)
class Round:
    guess: str
    pattern: int
    remaining: int
    word_length: int = WORD_LENGTH
    bits: float = 0.0

    @property
    def feedback(self):
        return pattern_to_string(self.pattern, self.word_length)


@dataclass
class SolveResult:
    answer: str
    rounds: list[Round] = field(default_factory=list)
    solved: bool = False

    @property
    def guesses(self):
        return [r.guess for r in self.rounds]


def _bucket_patterns(guess_code, candidates):
    word_length = candidates.word_length
    return np.array(
        [feedback(guess_code, int(a), word_length) for a in candidates.codes],
        dtype=np.int64,
    )


def filter_candidates(candidates, guess, observed):
    """
    Keep only candidates consistent with the observed feedback.

    `observed` is a pattern integer or a feedback string such as 'BYBBG'.
    Returns a new WordList; raises NoSolutionError if nothing survives.
    """
    word_length = candidates.word_length
    pattern = as_pattern(observed, word_length)
    keep = _bucket_patterns(encode(guess, word_length), candidates) == pattern
    remaining = candidates.subset(keep)

    if len(remaining) == 0:
        raise NoSolutionError(
            f"no candidate matches {pattern_to_string(pattern, word_length)} "
            f"for guess {normalize(guess, word_length)!r}"
        )
    return remaining


def two_step_scores(table, guesses, candidates, backend, width, deadline):
    """
    Re-score the `width` best one-step guesses with a second adaptive step:

        H(g) + sum over buckets b of (n_b / N) * max_h H(h | b)
    """
    total = len(candidates)
    shortlist = [word for word, _ in table.top(width)]
    scores = []

    for word in shortlist:
        deadline.check("two-step scoring")
        patterns = _bucket_patterns(guesses.code_of(word), candidates)
        expected = table[word]
        for pattern in np.unique(patterns):
            in_bucket = patterns == pattern
            size = int(in_bucket.sum())
            if size < 2:
                continue
            inner = backend.score(
                guesses, candidates.subset(in_bucket), timeout=deadline.remaining()
            )
            expected += size / total * float(inner.scores.max())
        scores.append(expected)

    return ScoreTable(shortlist, scores)


def choose_guess(
    guesses,
    candidates,
    backend,
    lookahead=1,
    lookahead_width=LOOKAHEAD_WIDTH,
    timeout=None,
):
    """Best guess for the current candidates; ties go to the smallest word."""
    if len(candidates) == 0:
        raise NoSolutionError("candidate set is empty")
    if len(candidates) == 1:
        return candidates[0]

    deadline = Deadline(timeout)
    table = backend.score(guesses, candidates, timeout=deadline.remaining())
    if lookahead == 2:
        table = two_step_scores(table, guesses, candidates, backend, lookahead_width, deadline)
    return table.best()


class Solver:
    """
    Holds a guess pool and one backend; candidate sets are passed in and
    returned, never kept.
    """

    def __init__(self, guesses, config=None, backend=None):
        self.guesses = guesses
        self.config = config or SolverConfig()
        self.backend = backend if backend is not None else self.config.make_backend()

    def score(self, candidates) -> ScoreTable:
        return self.backend.score(self.guesses, candidates, timeout=self.config.timeout)

    def choose_guess(self, candidates) -> str:
        return choose_guess(
            self.guesses,
            candidates,
            self.backend,
            lookahead=self.config.lookahead,
            lookahead_width=self.config.lookahead_width,
            timeout=self.config.timeout,
        )

    def filter(self, candidates, guess, observed):
        return filter_candidates(candidates, guess, observed)

    def play(self, answer, candidates) -> SolveResult:
        """
        Play against a known answer until it is guessed or max_rounds runs out.
        """
        word_length = candidates.word_length
        answer = normalize(answer, word_length)
        answer_code = encode(answer, word_length)
        solved_pattern = all_correct(word_length)
        result = SolveResult(answer)

        for _ in range(self.config.max_rounds):
            guess = self.choose_guess(candidates)
            guess_code = encode(guess, word_length)
            # information the split was expected to give, before seeing feedback
            bits = entropy_from_counts(np.bincount(_bucket_patterns(guess_code, candidates)))
            pattern = feedback(guess_code, answer_code, word_length)
            candidates = self.filter(candidates, guess, pattern)
            result.rounds.append(Round(guess, pattern, len(candidates), word_length, bits))
            if pattern == solved_pattern:
                result.solved = True
                break

        return result
