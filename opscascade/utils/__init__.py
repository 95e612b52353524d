"""Shared utilities."""

from opscascade.utils.lexical import (
    contains_phrase,
    count_phrases,
    jaccard_similarity,
    remove_phrase,
    word_set,
)

__all__ = [
    "word_set",
    "jaccard_similarity",
    "contains_phrase",
    "count_phrases",
    "remove_phrase",
]
