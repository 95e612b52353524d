"""Core types for the cascading retrieval engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opscascade.configs.models import CascadeConfiguration


class SourceType(str, Enum):
    """Knowledge sources consulted by the cascade."""

    LOCAL_KNOWLEDGE = "local_knowledge"
    LANGUAGE_MODEL = "language_model"
    AUTHORITATIVE_DOCS = "authoritative_docs"
    WEB_SEARCH = "web_search"


class CascadeStage(str, Enum):
    """Where a cascade run stopped.

    The four source stages mirror SourceType. COMPLETED means every stage ran
    without an early stop; FAILED means nothing usable came back or the
    orchestrator itself failed.
    """

    LOCAL_KNOWLEDGE = "local_knowledge"
    LANGUAGE_MODEL = "language_model"
    AUTHORITATIVE_DOCS = "authoritative_docs"
    WEB_SEARCH = "web_search"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def for_source(cls, source: SourceType) -> CascadeStage:
        return cls(source.value)


# Cost-ascending order in which stages are invoked.
STAGE_ORDER: tuple[SourceType, ...] = (
    SourceType.LOCAL_KNOWLEDGE,
    SourceType.LANGUAGE_MODEL,
    SourceType.AUTHORITATIVE_DOCS,
    SourceType.WEB_SEARCH,
)


class ConflictSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResolutionStrategy(str, Enum):
    PREFER_HIGHEST_CONFIDENCE = "prefer_highest_confidence"
    PREFER_AUTHORITATIVE_TIE_BREAKER = "prefer_authoritative_tie_breaker"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConfidenceScore:
    """Normalized confidence for one stage's answer.

    Attributes:
        source: Source that produced the scored answer
        score: Confidence in [0, 1], rounded to 3 decimals
        reasoning: Human-readable explanation of how the score was reached
        threshold: Threshold the score was compared against
        meets_threshold: True if score >= threshold
        metrics: Named sub-metrics that contributed to the score
        timestamp: When the score was computed (UTC)
    """

    source: SourceType
    score: float
    reasoning: str
    threshold: float
    meets_threshold: bool
    metrics: dict[str, float] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class StageExecution:
    """Append-only record of one stage attempt within a run."""

    stage: SourceType
    executed: bool
    start_time: datetime
    end_time: datetime
    elapsed_ms: float
    result_count: int = 0
    answer: str = ""
    confidence: ConfidenceScore | None = None
    error: str | None = None
    triggered_early_stop: bool = False

    @property
    def succeeded(self) -> bool:
        return self.executed and self.error is None

    @property
    def has_answer(self) -> bool:
        return bool(self.answer.strip())


@dataclass(frozen=True)
class ConflictAnalysis:
    """Pairwise disagreement analysis across the non-empty answers of one run.

    Attributes:
        has_conflicts: True if any pair was flagged
        severity: LOW, MEDIUM or HIGH
        conflicting_sources: Sources implicated in at least one flagged pair
        descriptions: One line per flagged pair and reason
        similarity_scores: Jaccard similarity keyed by "source_a-source_b"
        recommended_strategy: How the caller should pick the final answer
    """

    has_conflicts: bool
    severity: ConflictSeverity
    conflicting_sources: list[SourceType] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    similarity_scores: dict[str, float] = field(default_factory=dict)
    recommended_strategy: ResolutionStrategy = ResolutionStrategy.PREFER_HIGHEST_CONFIDENCE


@dataclass(frozen=True)
class CascadeRequest:
    """Input to a cascade run."""

    query: str
    session_id: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    configuration: CascadeConfiguration | None = None

    def __post_init__(self) -> None:
        if not self.query or not self.query.strip():
            raise ValueError("CascadeRequest.query must be non-empty")


@dataclass
class CascadeResult:
    """Final outcome of one cascade run."""

    final_answer: str
    stopped_at: CascadeStage
    final_confidence: ConfidenceScore | None
    stage_executions: list[StageExecution]
    conflict_analysis: ConflictAnalysis | None
    total_elapsed_ms: float
    early_stopped: bool
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StageHealth:
    stage: SourceType
    status: HealthStatus
    avg_response_time_ms: float
    success_rate: float
    recent_failures: int
    circuit_state: CircuitState
    details: str = ""


@dataclass(frozen=True)
class CascadeHealthStatus:
    overall_status: HealthStatus
    stages: dict[SourceType, StageHealth]
    checked_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time copy of the process-wide cascade metrics."""

    total_runs: int
    stopped_at_stage_counts: dict[CascadeStage, int]
    avg_execution_time_by_stage: dict[SourceType, float]
    avg_confidence_by_stage: dict[SourceType, float]
    success_rate_by_stage: dict[SourceType, float]
    conflicts_detected: int
    tie_breaker_used_count: int
    failed_runs: int
    cancelled_runs: int
    success_rate: float
    collection_period_seconds: float
