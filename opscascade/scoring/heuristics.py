"""Heuristic sub-scores for Language Model answers.

No external calls: every sub-score is derived from the query and answer text
alone. Word lists come from LexiconConfig so deployments can tune them.
"""

from __future__ import annotations

import re

from opscascade.configs.models import LexiconConfig
from opscascade.utils.lexical import count_phrases

# Code fence, bare call syntax like restart() or Get-Service(...), or empty braces
_CODE_RE = re.compile(r"```|\w\([^()\n]*\)|\{\}")
_DIGIT_RE = re.compile(r"\d")
_URL_RE = re.compile(r"https?://", re.IGNORECASE)
_EXAMPLE_RE = re.compile(r"\bexample|\bfor instance\b", re.IGNORECASE)
_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+")

SHORT_ANSWER_CHARS = 150


def length_score(answer: str) -> float:
    """U-shaped: too short is vague, too long is rambling."""
    n = len(answer)
    if n < 50:
        return 0.3
    if n < 200:
        return 0.7
    if n <= 2000:
        return 1.0
    if n <= 4000:
        return 0.8
    return 0.6


def certainty_score(answer: str, lexicons: LexiconConfig) -> float:
    """1.0 minus 0.2 per distinct hedge phrase, floored at 0.4."""
    hedges = count_phrases(answer, lexicons.hedge_phrases)
    return max(0.4, round(1.0 - 0.2 * hedges, 3))


def specificity_score(answer: str) -> float:
    """Reward code, numbers, links and worked examples."""
    score = 0.5
    if _CODE_RE.search(answer):
        score += 0.2
    if _DIGIT_RE.search(answer):
        score += 0.1
    if _URL_RE.search(answer):
        score += 0.1
    if _EXAMPLE_RE.search(answer):
        score += 0.1
    return min(round(score, 3), 1.0)


def is_memory_query(query: str, lexicons: LexiconConfig) -> bool:
    """Query asks the assistant to store or recall conversation facts."""
    return count_phrases(query, lexicons.memory_phrases) > 0


def is_acknowledgment(answer: str, lexicons: LexiconConfig) -> bool:
    return count_phrases(answer, lexicons.acknowledgment_phrases) > 0


def is_short_and_specific(answer: str) -> bool:
    """Short answer naming a number or a proper-looking word."""
    return len(answer) < SHORT_ANSWER_CHARS and bool(
        _DIGIT_RE.search(answer) or _CAPITALIZED_RE.search(answer)
    )


def conversational_bonus(query: str, answer: str, lexicons: LexiconConfig) -> float:
    """Bonus for direct answers to memory/recall requests.

    Priority order:
    1. Memory query answered with an acknowledgment -> 1.0
    2. Memory query answered short and specific -> 0.9
    3. Acknowledgment on its own -> 0.8
    4. Otherwise -> 0.0
    """
    memory = is_memory_query(query, lexicons)
    ack = is_acknowledgment(answer, lexicons)
    if memory and ack:
        return 1.0
    if memory and is_short_and_specific(answer):
        return 0.9
    if ack:
        return 0.8
    return 0.0
