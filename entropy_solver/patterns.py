"""
patterns.py

Computes Wordle feedback patterns from packed word codes.

Each pattern is an integer 0..3^L - 1 encoding the L-tile feedback in base-3,
first tile most significant:

    0 = gray   (absent)
    1 = yellow (present, wrong position)
    2 = green  (correct)

This is the reference rule. The vector and accelerator backends reimplement
it over their own data layouts and are tested against this module.
"""

from .codec import WORD_LENGTH, encode, letter_at, presence


ABSENT = 0
PRESENT = 1
CORRECT = 2

_SYMBOLS = {
    "G": CORRECT, "2": CORRECT,
    "Y": PRESENT, "1": PRESENT,
    "B": ABSENT, "0": ABSENT, "X": ABSENT, ".": ABSENT,
}
_RENDER = {CORRECT: "G", PRESENT: "Y", ABSENT: "B"}


def pattern_count(word_length=WORD_LENGTH):
    """Number of distinct patterns, 3^L."""
    return 3**word_length


def all_correct(word_length=WORD_LENGTH):
    """The all-green pattern."""
    return pattern_count(word_length) - 1


def feedback(guess_code: int, answer_code: int, word_length: int = WORD_LENGTH) -> int:
    """
    Encode Wordle feedback for a (guess, answer) pair as a base-3 integer.

    Duplicate letters follow the standard two-pass rule:

    1. First mark greens (correct letter in correct position).
       Each green consumes one instance of that letter from the answer.

    2. Then, left to right, mark yellows only while unused instances of
       that letter remain in the answer. Extra copies in the guess are gray.
    """
    # No shared letters means no greens and no yellows.
    if presence(guess_code) & presence(answer_code) == 0:
        return 0

    result = [ABSENT] * word_length
    guess = [letter_at(guess_code, i) for i in range(word_length)]
    remaining = {}

    # First pass: greens; tally the answer letters they don't consume
    for i in range(word_length):
        answer_letter = letter_at(answer_code, i)
        if guess[i] == answer_letter:
            result[i] = CORRECT
        else:
            remaining[answer_letter] = remaining.get(answer_letter, 0) + 1

    # Second pass: yellows where letters remain unused
    for i in range(word_length):
        if result[i] == ABSENT and remaining.get(guess[i], 0) > 0:
            result[i] = PRESENT
            remaining[guess[i]] -= 1

    code = 0
    for r in result:
        code = code * 3 + r
    return code


def pattern_for(guess: str, answer: str, word_length: int = WORD_LENGTH) -> int:
    """Feedback for two plain words."""
    return feedback(encode(guess, word_length), encode(answer, word_length), word_length)


def pattern_digits(pattern, word_length=WORD_LENGTH):
    """Split a pattern into its per-position digits, first position first."""
    if not 0 <= pattern < pattern_count(word_length):
        raise ValueError(f"pattern {pattern} out of range for {word_length} letters")
    digits = []
    for _ in range(word_length):
        pattern, digit = divmod(pattern, 3)
        digits.append(digit)
    return digits[::-1]


def pattern_from_string(text: str, word_length: int = WORD_LENGTH) -> int:
    """
    Convert a feedback string to the pattern integer.

    Accepts:
        'GYBBY'  (G = green, Y = yellow, B/X/. = gray)
        '21001'  (digits 2/1/0)
    """
    text = text.strip().upper().replace(" ", "")
    if len(text) != word_length:
        raise ValueError(f"Feedback must have exactly {word_length} symbols, got {text!r}.")

    code = 0
    for ch in text:
        try:
            code = code * 3 + _SYMBOLS[ch]
        except KeyError:
            raise ValueError(f"Bad feedback symbol: {ch!r}") from None
    return code


def pattern_to_string(pattern: int, word_length: int = WORD_LENGTH) -> str:
    return "".join(_RENDER[d] for d in pattern_digits(pattern, word_length))


def as_pattern(observed, word_length=WORD_LENGTH):
    """Accept either a pattern integer or a feedback string."""
    if isinstance(observed, str):
        return pattern_from_string(observed, word_length)
    pattern = int(observed)
    if not 0 <= pattern < pattern_count(word_length):
        raise ValueError(f"pattern {pattern} out of range for {word_length} letters")
    return pattern
