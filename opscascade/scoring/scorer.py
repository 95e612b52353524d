"""Confidence scoring for each source and cross-source conflict handling.

All scores are normalized to [0, 1] and rounded to 3 decimals. Every method is
a pure function of its inputs, so one scorer instance can be shared by any
number of concurrent cascade runs.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence

import numpy as np

from opscascade.cascade.types import ConfidenceScore, ConflictAnalysis, SourceType
from opscascade.configs.models import LexiconConfig
from opscascade.scoring import heuristics
from opscascade.scoring.conflicts import ConflictConfig, ConflictDetector
from opscascade.sources.base import DocsSearchResult, KnowledgeMatch, WebSearchResult

logger = logging.getLogger(__name__)

# Default thresholds when the caller does not pass a configured one
LOCAL_KNOWLEDGE_THRESHOLD = 0.85
LANGUAGE_MODEL_THRESHOLD = 0.75
AUTHORITATIVE_DOCS_THRESHOLD = 0.80
WEB_SEARCH_THRESHOLD = 0.70

HIGH_QUALITY_MATCH = 0.7
RECENT_WINDOW = timedelta(days=365)


def _empty_score(source: SourceType, threshold: float, reasoning: str) -> ConfidenceScore:
    return ConfidenceScore(
        source=source,
        score=0.0,
        reasoning=reasoning,
        threshold=threshold,
        meets_threshold=False,
    )


def _score(
    source: SourceType,
    confidence: float,
    threshold: float,
    reasoning: str,
    metrics: dict[str, float],
) -> ConfidenceScore:
    confidence = round(max(0.0, min(1.0, confidence)), 3)
    return ConfidenceScore(
        source=source,
        score=confidence,
        reasoning=reasoning,
        threshold=threshold,
        meets_threshold=confidence >= threshold,
        metrics=metrics,
    )


class ConfidenceScorer:
    """Source-specific confidence formulas plus conflict detection/resolution."""

    def __init__(
        self,
        lexicons: LexiconConfig | None = None,
        conflict_config: ConflictConfig | None = None,
    ) -> None:
        self.lexicons = lexicons or LexiconConfig()
        self._conflicts = ConflictDetector(self.lexicons, conflict_config)

    def score_local_knowledge(
        self,
        query: str,
        matches: Sequence[KnowledgeMatch],
        threshold: float = LOCAL_KNOWLEDGE_THRESHOLD,
    ) -> ConfidenceScore:
        """Score vector-similarity matches.

        confidence = 0.4 * top + 0.3 * mean(top 3)
                   + 0.2 * min(high_quality / 3, 1)
                   + 0.1 * (1 - min(variance, 0.3))
        """
        if not matches:
            return _empty_score(
                SourceType.LOCAL_KNOWLEDGE, threshold, "No local knowledge results found"
            )

        scores = np.array(sorted((m.score for m in matches), reverse=True), dtype=float)
        top_score = float(scores[0])
        top3_avg = float(np.mean(scores[:3]))
        variance = float(np.var(scores))  # population variance
        high_quality = int(np.sum(scores >= HIGH_QUALITY_MATCH))

        count_factor = min(high_quality / 3.0, 1.0)
        consistency_factor = 1.0 - min(variance, 0.3)
        confidence = (
            0.4 * top_score + 0.3 * top3_avg + 0.2 * count_factor + 0.1 * consistency_factor
        )

        return _score(
            SourceType.LOCAL_KNOWLEDGE,
            confidence,
            threshold,
            f"Local knowledge: {high_quality} high-quality results, "
            f"top score {top_score:.2f}, top-3 avg {top3_avg:.2f}",
            {
                "top_score": top_score,
                "top3_average": top3_avg,
                "high_quality_count": float(high_quality),
                "score_variance": variance,
            },
        )

    def score_authoritative_docs(
        self,
        query: str,
        docs: DocsSearchResult,
        threshold: float = AUTHORITATIVE_DOCS_THRESHOLD,
        now: datetime | None = None,
    ) -> ConfidenceScore:
        """Adapter confidence plus a recency bonus of up to 0.1."""
        if not docs.results:
            return _empty_score(
                SourceType.AUTHORITATIVE_DOCS, threshold, "No authoritative docs results found"
            )

        now = now or datetime.now(timezone.utc)
        cutoff = now - RECENT_WINDOW
        recent = sum(
            1
            for article in docs.results
            if article.last_modified is not None and _as_utc(article.last_modified) > cutoff
        )
        recency_bonus = min(recent / 3.0, 0.1)
        top_relevance = docs.results[0].relevance_score
        avg_relevance = float(np.mean([a.relevance_score for a in docs.results]))

        return _score(
            SourceType.AUTHORITATIVE_DOCS,
            min(docs.overall_confidence + recency_bonus, 1.0),
            threshold,
            f"Authoritative docs: {len(docs.results)} results, "
            f"top relevance {top_relevance:.2f}, {recent} updated within a year",
            {
                "result_count": float(len(docs.results)),
                "top_relevance": top_relevance,
                "avg_relevance": avg_relevance,
                "recency_bonus": recency_bonus,
            },
        )

    def score_web_search(
        self,
        query: str,
        web: WebSearchResult,
        threshold: float = WEB_SEARCH_THRESHOLD,
    ) -> ConfidenceScore:
        """Adapter confidence, unmodified."""
        if not web.results:
            return _empty_score(SourceType.WEB_SEARCH, threshold, "No web search results found")

        return _score(
            SourceType.WEB_SEARCH,
            web.overall_confidence,
            threshold,
            f"Web search: {len(web.results)} results from "
            f"{len({r.domain for r in web.results})} domains, lower authority",
            {
                "result_count": float(len(web.results)),
                "top_relevance": web.results[0].relevance_score,
            },
        )

    def score_language_model(
        self,
        query: str,
        answer: str,
        threshold: float = LANGUAGE_MODEL_THRESHOLD,
    ) -> ConfidenceScore:
        """Text heuristics only; no external call.

        Conversational answers (bonus > 0.5) weight the bonus in:
            0.2 * length + 0.4 * certainty + 0.1 * specificity + 0.3 * bonus
        otherwise:
            0.3 * length + 0.5 * certainty + 0.2 * specificity
        """
        length = heuristics.length_score(answer)
        certainty = heuristics.certainty_score(answer, self.lexicons)
        specificity = heuristics.specificity_score(answer)
        bonus = heuristics.conversational_bonus(query, answer, self.lexicons)

        if bonus > 0.5:
            confidence = min(
                0.2 * length + 0.4 * certainty + 0.1 * specificity + 0.3 * bonus, 1.0
            )
            reasoning = (
                f"Language model: conversational response (bonus {bonus:.2f}), "
                f"certainty {certainty:.2f}"
            )
        else:
            confidence = 0.3 * length + 0.5 * certainty + 0.2 * specificity
            reasoning = (
                f"Language model: certainty {certainty:.2f}, specificity {specificity:.2f}, "
                f"length {length:.2f}"
            )

        return _score(
            SourceType.LANGUAGE_MODEL,
            confidence,
            threshold,
            reasoning,
            {
                "length_score": length,
                "certainty_score": certainty,
                "specificity_score": specificity,
                "conversational_bonus": bonus,
                "response_length": float(len(answer)),
            },
        )

    def detect_conflicts(
        self, responses: Sequence[tuple[SourceType, str]]
    ) -> ConflictAnalysis:
        return self._conflicts.detect(responses)

    def resolve_conflict(
        self, analysis: ConflictAnalysis, tie_breaker: tuple[SourceType, str]
    ) -> str:
        return self._conflicts.resolve(analysis, tie_breaker)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from adapters are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
