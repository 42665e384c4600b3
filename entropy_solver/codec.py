"""
codec.py

Packs fixed-length a-z words into single 64-bit integers.

Layout of a code:

    bits 0..25             presence set, bit i set when letter i occurs
    bits 26+5p..26+5p+4    letter index + 1 at position p (0 = empty field)

Per-letter counts are read back from the position fields, so nothing needs
the original string once a word is encoded. Codes are numpy int64; the sign
bit is never used for words of length up to MAX_WORD_LENGTH.
"""

import string

import numpy as np

from .errors import InvalidWordError


ALPHABET = string.ascii_lowercase
ALPHABET_SIZE = len(ALPHABET)
WORD_LENGTH = 5
MAX_WORD_LENGTH = 7

PRESENCE_BITS = ALPHABET_SIZE
PRESENCE_MASK = (1 << PRESENCE_BITS) - 1
FIELD_BITS = 5
FIELD_MASK = (1 << FIELD_BITS) - 1
EMPTY_CODE = 0

CODE_DTYPE = np.int64

_LETTER_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}


def field_shift(position):
    """Bit offset of the letter field for a position."""
    return PRESENCE_BITS + FIELD_BITS * position


def normalize(word, word_length=WORD_LENGTH):
    """Case-fold and validate a word, returning the lower-case form."""
    if not isinstance(word, str):
        raise InvalidWordError(word, "not a string")
    folded = word.strip().lower()
    if len(folded) != word_length:
        raise InvalidWordError(word, f"expected {word_length} letters, got {len(folded)}")
    for ch in folded:
        if ch not in _LETTER_INDEX:
            raise InvalidWordError(word, f"character {ch!r} is outside a-z")
    return folded


def encode(word: str, word_length: int = WORD_LENGTH) -> int:
    """Encode a word into its packed code."""
    if not 1 <= word_length <= MAX_WORD_LENGTH:
        raise ValueError(f"word length must be in 1..{MAX_WORD_LENGTH}, got {word_length}")

    code = 0
    for position, ch in enumerate(normalize(word, word_length)):
        letter = _LETTER_INDEX[ch]
        code |= 1 << letter
        code |= (letter + 1) << field_shift(position)
    return code


def encode_many(words, word_length: int = WORD_LENGTH) -> np.ndarray:
    """Encode a sequence of words into an int64 array."""
    return np.array([encode(w, word_length) for w in words], dtype=CODE_DTYPE)


def presence(code):
    return int(code) & PRESENCE_MASK


def letter_at(code, position):
    """Letter index (0..25) at a position, or -1 for an empty field."""
    return ((int(code) >> field_shift(position)) & FIELD_MASK) - 1


def letters(code, word_length=WORD_LENGTH):
    return [letter_at(code, p) for p in range(word_length)]


def letter_count(code, letter, word_length=WORD_LENGTH):
    """How many times a letter occurs, read from the position fields."""
    if not (presence(code) >> letter) & 1:
        return 0
    return sum(1 for p in range(word_length) if letter_at(code, p) == letter)


class WordList:
    """
    An ordered, immutable list of words together with their packed codes.

    Both the guess pool and every candidate set are WordLists. Narrowing a
    list always builds a new one; the codes array is marked read-only so it
    can be shared between backends and sessions without copying.
    """

    def __init__(self, words, word_length=WORD_LENGTH, codes=None):
        self.word_length = word_length
        self.words = tuple(normalize(w, word_length) for w in words)
        if codes is None:
            codes = encode_many(self.words, word_length)
        else:
            codes = np.array(codes, dtype=CODE_DTYPE)
        codes.setflags(write=False)
        self.codes = codes
        self._index = None

    def __len__(self):
        return len(self.words)

    def __iter__(self):
        return iter(self.words)

    def __getitem__(self, idx):
        return self.words[idx]

    def __contains__(self, word):
        try:
            return normalize(word, self.word_length) in self._lookup()
        except InvalidWordError:
            return False

    def __eq__(self, other):
        if not isinstance(other, WordList):
            return NotImplemented
        return self.word_length == other.word_length and self.words == other.words

    def __hash__(self):
        return hash((self.word_length, self.words))

    def __repr__(self):
        preview = ", ".join(self.words[:5])
        more = ", ..." if len(self.words) > 5 else ""
        return f"WordList([{preview}{more}], n={len(self.words)})"

    def _lookup(self):
        if self._index is None:
            self._index = {w: i for i, w in enumerate(self.words)}
        return self._index

    def index_of(self, word):
        """Position of a word in this list."""
        folded = normalize(word, self.word_length)
        try:
            return self._lookup()[folded]
        except KeyError as exc:
            raise ValueError(f"word not found in list: {folded}") from exc

    def code_of(self, word):
        return int(self.codes[self.index_of(word)])

    def subset(self, selector):
        """
        New WordList holding the selected entries, in the original order.

        `selector` is a boolean mask or an array of indices.
        """
        selector = np.asarray(selector)
        if selector.dtype == bool:
            indices = np.flatnonzero(selector)
        else:
            indices = np.sort(selector.astype(np.intp))
        return WordList(
            [self.words[i] for i in indices],
            self.word_length,
            codes=self.codes[indices],
        )
