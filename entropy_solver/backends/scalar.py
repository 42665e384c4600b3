"""
scalar.py

Sequential reference backend. One feedback() call per (guess, answer) pair;
the other backends are tested against this one.
"""

import numpy as np
from tqdm import tqdm

from ..entropy import entropy_rows
from ..patterns import feedback, pattern_count
from .base import Backend


def guess_histogram(guess_code, answer_codes, word_length):
    """Count how many answers fall into each pattern bucket for one guess."""
    counts = np.zeros(pattern_count(word_length), dtype=np.int64)
    for answer_code in answer_codes:
        counts[feedback(guess_code, answer_code, word_length)] += 1
    return counts


class ScalarBackend(Backend):
    name = "scalar"

    def _score_rows(self, guesses, candidates, deadline):
        word_length = guesses.word_length
        answer_codes = [int(c) for c in candidates.codes]
        histograms = np.zeros((len(guesses), pattern_count(word_length)), dtype=np.int64)

        for i, guess_code in enumerate(
            tqdm(guesses.codes, desc="Scoring guesses", disable=not self.progress)
        ):
            deadline.check("scalar scoring")
            histograms[i] = guess_histogram(int(guess_code), answer_codes, word_length)

        return entropy_rows(histograms, len(candidates))
