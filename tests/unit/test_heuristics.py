"""Unit tests for Language Model heuristics."""

import pytest

from opscascade.configs.models import LexiconConfig
from opscascade.scoring import heuristics


class TestLengthScore:
    """U-shaped length score."""

    @pytest.mark.parametrize(
        "length,expected",
        [
            (0, 0.3),
            (49, 0.3),
            (50, 0.7),
            (199, 0.7),
            (200, 1.0),
            (2000, 1.0),
            (2001, 0.8),
            (4000, 0.8),
            (4001, 0.6),
        ],
    )
    def test_bands(self, length, expected):
        assert heuristics.length_score("x" * length) == expected


class TestCertaintyScore:
    def test_no_hedges(self, lexicons):
        assert heuristics.certainty_score("Restart the DNS Client service.", lexicons) == 1.0

    def test_each_hedge_costs_point_two(self, lexicons):
        answer = "I think the cache is stale, maybe the resolver too."
        assert heuristics.certainty_score(answer, lexicons) == pytest.approx(0.6)

    def test_repeated_hedge_counted_once(self, lexicons):
        assert heuristics.certainty_score("Maybe. Maybe not.", lexicons) == pytest.approx(0.8)

    def test_floor(self, lexicons):
        answer = "I think it might possibly be unclear, probably."
        assert heuristics.certainty_score(answer, lexicons) == 0.4

    def test_hedge_inside_word_ignored(self, lexicons):
        assert heuristics.certainty_score("The mightiest server wins.", lexicons) == 1.0

    def test_custom_lexicon(self):
        lexicons = LexiconConfig(hedge_phrases=["perhaps"])
        assert heuristics.certainty_score("Perhaps. I think so.", lexicons) == pytest.approx(0.8)


class TestSpecificityScore:
    def test_plain_text(self):
        assert heuristics.specificity_score("Restart the service") == 0.5

    def test_code(self):
        assert heuristics.specificity_score("Call restart() on the client") == pytest.approx(0.7)
        assert heuristics.specificity_score("```\nipconfig /flushdns\n```") == pytest.approx(0.7)

    def test_all_signals_capped(self):
        answer = (
            "For example, run flush_dns() on port 53, "
            "see https://docs.example.com/dns for details."
        )
        assert heuristics.specificity_score(answer) == 1.0

    def test_digits_and_url(self):
        answer = "Open port 53, docs at https://learn.contoso.com/dns"
        assert heuristics.specificity_score(answer) == pytest.approx(0.7)


class TestConversationalBonus:
    """Bonus for direct answers to memory/recall requests."""

    def test_memory_query_and_acknowledgment(self, lexicons):
        bonus = heuristics.conversational_bonus(
            "Remember that my server is called Atlas", "Got it, I'll remember that.", lexicons
        )
        assert bonus == 1.0

    def test_memory_query_and_short_specific(self, lexicons):
        bonus = heuristics.conversational_bonus(
            "What did I call my server?", "Your server is called Atlas.", lexicons
        )
        assert bonus == 0.9

    def test_acknowledgment_alone(self, lexicons):
        bonus = heuristics.conversational_bonus("The DNS is down", "Okay, noted.", lexicons)
        assert bonus == 0.8

    def test_no_bonus(self, lexicons):
        bonus = heuristics.conversational_bonus(
            "DNS not resolving", "Flush the resolver cache.", lexicons
        )
        assert bonus == 0.0

    def test_memory_query_with_long_answer(self, lexicons):
        answer = "the server name you gave was atlas " * 10
        assert heuristics.conversational_bonus("What did I name it?", answer, lexicons) == 0.0

    def test_short_and_specific(self):
        assert heuristics.is_short_and_specific("Port 53")
        assert heuristics.is_short_and_specific("It is Atlas")
        assert not heuristics.is_short_and_specific("it is atlas")
