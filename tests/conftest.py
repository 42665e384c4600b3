import os

# Run the CUDA kernel on numba's simulator; must be set before numba loads.
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import random

import pytest

from entropy_solver.codec import WordList


SMALL_WORDS = ["abide", "about", "adieu", "crane", "slate"]

MIXED_WORDS = [
    "abbey", "abide", "about", "adieu", "allee", "alley", "array", "crane",
    "eerie", "geese", "hello", "kayak", "lemon", "level", "llama", "mamma",
    "puppy", "salsa", "sassy", "skill", "slate", "speed", "sweet", "teeth",
    "trace", "vivid",
]


def reference_pattern(guess, answer):
    """Independent string-based feedback, two-pass rule."""
    result = [0] * len(guess)
    counts = {}
    for ch in answer:
        counts[ch] = counts.get(ch, 0) + 1

    for i, (g, a) in enumerate(zip(guess, answer)):
        if g == a:
            result[i] = 2
            counts[g] -= 1

    for i, g in enumerate(guess):
        if result[i] == 0 and counts.get(g, 0) > 0:
            result[i] = 1
            counts[g] -= 1

    code = 0
    for r in result:
        code = code * 3 + r
    return code


def random_words(n, seed, alphabet="abcdeilnorst", length=5):
    rng = random.Random(seed)
    return ["".join(rng.choice(alphabet) for _ in range(length)) for _ in range(n)]


@pytest.fixture
def small_words():
    return WordList(SMALL_WORDS)


@pytest.fixture
def mixed_words():
    return WordList(MIXED_WORDS)
