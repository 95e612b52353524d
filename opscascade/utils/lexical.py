"""Shared lexical helpers for confidence scoring and conflict detection."""

from __future__ import annotations

import re
from functools import lru_cache


def word_set(text: str) -> set[str]:
    """Lower-cased, whitespace-tokenized word set."""
    return set(text.lower().split())


def jaccard_similarity(text_a: str, text_b: str) -> float:
    """Jaccard similarity between the word sets of two texts.

    Returns 0.0 when either side has no words.
    """
    words_a = word_set(text_a)
    words_b = word_set(text_b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


@lru_cache(maxsize=512)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    # Word boundaries on both ends; inner whitespace matches any run of spaces
    parts = [re.escape(p) for p in phrase.lower().split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(parts) + r"(?!\w)")


def contains_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive whole-word phrase match."""
    return _phrase_pattern(phrase).search(text.lower()) is not None


def count_phrases(text: str, phrases: list[str]) -> int:
    """Number of distinct phrases that occur in text."""
    lowered = text.lower()
    return sum(1 for p in phrases if _phrase_pattern(p).search(lowered))


def remove_phrase(text: str, phrase: str) -> str:
    """Blank out every occurrence of phrase in the lower-cased text."""
    return _phrase_pattern(phrase).sub(" ", text.lower())
