"""Cascade types, stage ordering and errors."""

from opscascade.cascade.errors import (
    CascadeCancelledError,
    CascadeError,
    CircuitOpenError,
    ConfigurationError,
    StageTimeoutError,
)
from opscascade.cascade.types import (
    STAGE_ORDER,
    CascadeHealthStatus,
    CascadeRequest,
    CascadeResult,
    CascadeStage,
    CircuitState,
    ConfidenceScore,
    ConflictAnalysis,
    ConflictSeverity,
    HealthStatus,
    MetricsSnapshot,
    ResolutionStrategy,
    SourceType,
    StageExecution,
    StageHealth,
)

__all__ = [
    # Types
    "SourceType",
    "CascadeStage",
    "STAGE_ORDER",
    "ConflictSeverity",
    "ResolutionStrategy",
    "HealthStatus",
    "CircuitState",
    "ConfidenceScore",
    "StageExecution",
    "ConflictAnalysis",
    "CascadeRequest",
    "CascadeResult",
    "StageHealth",
    "CascadeHealthStatus",
    "MetricsSnapshot",
    # Errors
    "CascadeError",
    "ConfigurationError",
    "StageTimeoutError",
    "CircuitOpenError",
    "CascadeCancelledError",
]
