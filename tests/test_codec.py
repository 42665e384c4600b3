import numpy as np
import pytest

from entropy_solver.codec import (
    PRESENCE_MASK,
    WordList,
    encode,
    encode_many,
    field_shift,
    letter_at,
    letter_count,
    letters,
    presence,
)
from entropy_solver.errors import InvalidWordError


def test_encode_layout():
    code = encode("abcde")

    assert presence(code) == 0b11111
    for position in range(5):
        assert (code >> field_shift(position)) & 0b11111 == position + 1


def test_presence_set_covers_whole_alphabet_edges():
    assert presence(encode("zyxwv")) == 0b11111 << 21
    assert presence(encode("aaaaa")) == 0b1


def test_encode_is_case_insensitive_and_pure():
    assert encode("CRANE") == encode("crane") == encode(" crane\n")


def test_codes_fit_in_signed_64_bits():
    code = encode("zzzzzzz", word_length=7)
    assert 0 < code < 2**63
    assert encode_many(["zzzzzzz"], word_length=7).dtype == np.int64


def test_letters_and_counts_come_from_position_fields():
    code = encode("geese")

    assert letters(code) == [6, 4, 4, 18, 4]
    assert letter_at(code, 3) == 18
    assert letter_count(code, 4) == 3
    assert letter_count(code, 6) == 1
    assert letter_count(code, 0) == 0


def test_presence_mask_excludes_position_fields():
    code = encode("speed")
    assert code & PRESENCE_MASK == presence(code)


@pytest.mark.parametrize("word", ["abcd", "abcdef", "", "ab-de", "cafés", "abc1e"])
def test_invalid_words_rejected(word):
    with pytest.raises(InvalidWordError):
        encode(word)


def test_invalid_word_error_is_value_error():
    with pytest.raises(ValueError) as excinfo:
        encode("toolong")
    assert excinfo.value.word == "toolong"


def test_word_length_limits():
    with pytest.raises(ValueError):
        encode("abcdefgh", word_length=8)
    assert encode("a", word_length=1) == (1 | (1 << field_shift(0)))


def test_wordlist_codes_are_read_only():
    words = WordList(["crane", "slate"])

    assert words.codes.flags.writeable is False
    with pytest.raises(ValueError):
        words.codes[0] = 0


def test_wordlist_lookup_and_subset():
    words = WordList(["Crane", "slate", "about", "adieu"])

    assert words.words == ("crane", "slate", "about", "adieu")
    assert "SLATE" in words
    assert "zzzzz" not in words
    assert "bad" not in words
    assert words.index_of("about") == 2
    assert words.code_of("adieu") == encode("adieu")
    with pytest.raises(ValueError):
        words.index_of("zzzzz")

    picked = words.subset(np.array([False, True, False, True]))
    assert picked.words == ("slate", "adieu")
    assert list(picked.codes) == [encode("slate"), encode("adieu")]

    by_index = words.subset([3, 0])
    assert by_index.words == ("crane", "adieu")

    # the original is untouched
    assert len(words) == 4


def test_empty_wordlist():
    words = WordList([])
    assert len(words) == 0
    assert words.codes.shape == (0,)
