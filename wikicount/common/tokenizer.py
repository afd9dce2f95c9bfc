"""
Word tokenizer and the filter deciding which tokens get counted.
"""

import re
from typing import Iterator

# A word starts with a letter and may continue with letters, digits and
# apostrophes between word characters ("don't", "rock'n'roll").
WORD_RE = re.compile(r"[^\W\d_][^\W_]*(?:'[^\W_]+)*")

SINGLE_LETTER_WORDS = frozenset(("a", "I"))


def tokenize(text: str) -> Iterator[str]:
    """
    Split text into word tokens, lazily and case-preserving.

    Example:
        >>> list(tokenize("I don't know, 42 cats."))
        ['I', "don't", 'know', 'cats']
    """
    for match in WORD_RE.finditer(text):
        yield match.group(0)


def should_count(word: str) -> bool:
    """Single characters are noise, except the words 'a' and 'I'"""
    return len(word) > 1 or word in SINGLE_LETTER_WORDS
