"""
words.py

Handles loading and validating the Wordle word lists.
Every entry is checked here, so malformed words never reach the solver core.
"""

from pathlib import Path

from .codec import WORD_LENGTH, WordList, normalize
from .errors import InvalidWordError


DATA_DIR = Path(__file__).resolve().parent.parent / "data"
ANSWERS_PATH = DATA_DIR / "answers.txt"
ALLOWED_PATH = DATA_DIR / "allowed.txt"


def load_word_list(path, word_length=WORD_LENGTH):
    """
    Load a newline-separated word list.

    Blank lines are skipped and duplicates keep their first position.
    Raises InvalidWordError naming the file and line of a bad entry.
    """
    words = []
    seen = set()
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                word = normalize(line, word_length)
            except InvalidWordError as exc:
                raise InvalidWordError(exc.word, f"{path}:{lineno}: {exc.reason}") from exc
            if word not in seen:
                seen.add(word)
                words.append(word)
    return words


def load_words(answers_path=ANSWERS_PATH, allowed_path=ALLOWED_PATH, word_length=WORD_LENGTH):
    """
    Returns:
        answers: WordList of possible solution words
        allowed: WordList of valid guess words (answers are merged in)
    """
    answers = load_word_list(answers_path, word_length)
    allowed = load_word_list(allowed_path, word_length)

    known = set(allowed)
    allowed.extend(w for w in answers if w not in known)

    return WordList(answers, word_length), WordList(allowed, word_length)
