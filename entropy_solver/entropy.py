"""
entropy.py

Turns feedback-pattern histograms into Shannon entropy scores.

Every backend hands its full integer histograms (one row of 3^L buckets per
guess) to entropy_rows, so identical histograms always produce bit-identical
scores regardless of which backend counted them.
"""

import numpy as np


# Scores closer than this to the best score count as a tie.
TIE_TOLERANCE = 1e-9


def entropy_rows(histograms, total):
    """Row-wise entropy in bits of a (n_guesses, n_patterns) count array."""
    histograms = np.atleast_2d(np.asarray(histograms))
    if total <= 0:
        return np.zeros(histograms.shape[0], dtype=np.float64)

    probs = histograms / float(total)
    logs = np.zeros_like(probs)
    np.log2(probs, out=logs, where=probs > 0)
    return -np.sum(probs * logs, axis=1)


def entropy(histogram, total):
    """Shannon entropy of one histogram. Empty buckets contribute nothing."""
    return float(entropy_rows(histogram, total)[0])


def entropy_from_counts(counts):
    """Compute Shannon entropy from bucket counts."""
    counts = np.asarray(counts)
    return entropy(counts, int(counts.sum()))


class ScoreTable:
    """
    Expected information (bits) of every guess against one candidate set.

    Built fresh for each round and never updated in place.
    """

    def __init__(self, words, scores):
        scores = np.array(scores, dtype=np.float64)
        if len(words) != scores.shape[0]:
            raise ValueError(f"{len(words)} words but {scores.shape[0]} scores")
        scores.setflags(write=False)
        self.words = tuple(words)
        self.scores = scores
        self._index = {w: i for i, w in enumerate(self.words)}

    def __len__(self):
        return len(self.words)

    def __getitem__(self, word):
        return float(self.scores[self._index[word]])

    def __repr__(self):
        return f"ScoreTable(n={len(self)})"

    def as_dict(self):
        return {w: float(s) for w, s in zip(self.words, self.scores)}

    def top(self, k):
        """The k best (word, score) pairs, best first, ties in word order."""
        order = sorted(range(len(self.words)), key=lambda i: (-self.scores[i], self.words[i]))
        return [(self.words[i], float(self.scores[i])) for i in order[:k]]

    def best(self, tolerance=TIE_TOLERANCE):
        """Highest-scoring word; near-equal scores go to the smallest word."""
        if not self.words:
            raise ValueError("cannot pick a guess from an empty score table")
        cutoff = self.scores.max() - tolerance
        tied = np.flatnonzero(self.scores >= cutoff)
        return min(self.words[i] for i in tied)
