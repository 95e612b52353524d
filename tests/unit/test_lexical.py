"""Unit tests for lexical helpers."""

import pytest

from opscascade.utils.lexical import (
    contains_phrase,
    count_phrases,
    jaccard_similarity,
    remove_phrase,
    word_set,
)


class TestWordSet:
    def test_lowercases_and_splits_on_whitespace(self):
        assert word_set("Restart  the\tService") == {"restart", "the", "service"}

    def test_empty(self):
        assert word_set("   ") == set()


class TestJaccardSimilarity:
    def test_identical(self):
        assert jaccard_similarity("flush the cache", "Flush the cache") == 1.0

    def test_disjoint(self):
        assert jaccard_similarity("alpha beta", "gamma delta") == 0.0

    def test_partial_overlap(self):
        # {the, service, should, be, enabled} vs {..., not}: 5 / 6
        sim = jaccard_similarity(
            "The service should be enabled", "The service should not be enabled"
        )
        assert sim == pytest.approx(5 / 6)

    def test_empty_side(self):
        assert jaccard_similarity("", "anything") == 0.0
        assert jaccard_similarity("", "") == 0.0


class TestPhraseMatching:
    """Phrases match on word boundaries, case-insensitively."""

    def test_whole_word(self):
        assert contains_phrase("It might work", "might")
        assert contains_phrase("MIGHT.", "might")

    def test_no_substring_match(self):
        assert not contains_phrase("This is the mightiest fix", "might")
        assert not contains_phrase("Island", "is")

    def test_multi_word_phrase(self):
        assert contains_phrase("I am NOT  SURE about that", "not sure")
        assert not contains_phrase("notsure", "not sure")

    def test_apostrophe_phrase(self):
        assert contains_phrase("I don't know the answer", "don't know")

    def test_count_distinct_phrases(self):
        text = "Maybe it might work, maybe not"
        assert count_phrases(text, ["maybe", "might", "possibly"]) == 2

    def test_remove_phrase(self):
        remaining = remove_phrase("Restart is not required", "is not")
        assert not contains_phrase(remaining, "is")
        assert contains_phrase(remaining, "restart")
