"""Conflict detection and resolution across stage answers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Sequence

import numpy as np

from opscascade.cascade.types import (
    ConflictAnalysis,
    ConflictSeverity,
    ResolutionStrategy,
    SourceType,
)
from opscascade.configs.models import LexiconConfig
from opscascade.utils.lexical import contains_phrase, jaccard_similarity, remove_phrase

logger = logging.getLogger(__name__)


@dataclass
class ConflictConfig:
    """Similarity cut-offs for conflict flagging and severity.

    - pair similarity < similarity_threshold -> pair flagged
    - any antonym conflict, or mean similarity < high_severity_similarity -> HIGH
    - mean similarity < similarity_threshold -> MEDIUM
    - otherwise -> LOW
    """

    similarity_threshold: float = 0.5
    high_severity_similarity: float = 0.3


def _has_positive(text: str, positive: str, negative: str) -> bool:
    # "should" inside "should not" is not a positive statement
    return contains_phrase(remove_phrase(text, negative), positive)


def antonym_conflict(
    text_a: str, text_b: str, pairs: Sequence[tuple[str, str]]
) -> tuple[str, str] | None:
    """Return the first antonym pair split across the two texts, if any.

    A pair is split when one text holds the positive form and not the
    negative, while the other holds the negative form and not the positive.
    """
    for positive, negative in pairs:
        pos_a = _has_positive(text_a, positive, negative)
        pos_b = _has_positive(text_b, positive, negative)
        neg_a = contains_phrase(text_a, negative)
        neg_b = contains_phrase(text_b, negative)
        if (pos_a and not pos_b and neg_b and not neg_a) or (
            pos_b and not pos_a and neg_a and not neg_b
        ):
            return positive, negative
    return None


class ConflictDetector:
    """Pairwise lexical disagreement between answers from different sources."""

    def __init__(
        self, lexicons: LexiconConfig | None = None, config: ConflictConfig | None = None
    ) -> None:
        self.lexicons = lexicons or LexiconConfig()
        self.config = config or ConflictConfig()

    def detect(self, responses: Sequence[tuple[SourceType, str]]) -> ConflictAnalysis:
        """Compare every unordered pair of (source, answer) tuples."""
        if len(responses) < 2:
            return ConflictAnalysis(
                has_conflicts=False,
                severity=ConflictSeverity.LOW,
                recommended_strategy=ResolutionStrategy.PREFER_HIGHEST_CONFIDENCE,
            )

        logger.debug("Detecting conflicts between %d source responses", len(responses))

        descriptions: list[str] = []
        conflicting: list[SourceType] = []
        similarities: dict[str, float] = {}
        explicit_contradiction = False

        for (source_a, text_a), (source_b, text_b) in combinations(responses, 2):
            similarity = jaccard_similarity(text_a, text_b)
            similarities[f"{source_a.value}-{source_b.value}"] = similarity
            flagged = False

            if similarity < self.config.similarity_threshold:
                descriptions.append(
                    f"Low similarity ({similarity:.2f}) between {source_a.value} and {source_b.value}"
                )
                flagged = True

            pair = antonym_conflict(text_a, text_b, self.lexicons.antonym_pairs)
            if pair is not None:
                descriptions.append(
                    f"Contradictory statements ('{pair[0]}' vs '{pair[1]}') between "
                    f"{source_a.value} and {source_b.value}"
                )
                explicit_contradiction = True
                flagged = True

            if flagged:
                for source in (source_a, source_b):
                    if source not in conflicting:
                        conflicting.append(source)

        has_conflicts = bool(descriptions)
        severity = self._severity(has_conflicts, explicit_contradiction, similarities)

        return ConflictAnalysis(
            has_conflicts=has_conflicts,
            severity=severity,
            conflicting_sources=conflicting,
            descriptions=descriptions,
            similarity_scores=similarities,
            recommended_strategy=(
                ResolutionStrategy.PREFER_AUTHORITATIVE_TIE_BREAKER
                if has_conflicts
                else ResolutionStrategy.PREFER_HIGHEST_CONFIDENCE
            ),
        )

    def _severity(
        self,
        has_conflicts: bool,
        explicit_contradiction: bool,
        similarities: dict[str, float],
    ) -> ConflictSeverity:
        if not has_conflicts:
            return ConflictSeverity.LOW
        mean_similarity = float(np.mean(list(similarities.values()))) if similarities else 1.0
        if explicit_contradiction or mean_similarity < self.config.high_severity_similarity:
            return ConflictSeverity.HIGH
        if mean_similarity < self.config.similarity_threshold:
            return ConflictSeverity.MEDIUM
        return ConflictSeverity.LOW

    def resolve(
        self, analysis: ConflictAnalysis, tie_breaker: tuple[SourceType, str]
    ) -> str:
        """Return the tie-breaker answer.

        The candidate is the caller's final authority whatever its source;
        only the log line depends on whether it is the authoritative docs.
        """
        source, answer = tie_breaker
        if not analysis.has_conflicts:
            logger.debug("No conflicts to resolve")
            return answer

        if source == SourceType.AUTHORITATIVE_DOCS:
            logger.info(
                "Resolving %s conflict with authoritative docs as tie-breaker",
                analysis.severity.value,
            )
        else:
            logger.info(
                "Resolving %s conflict with non-authoritative tie-breaker %s",
                analysis.severity.value,
                source.value,
            )
        return answer
