"""OpsCascade: confidence-scored cascading retrieval across knowledge sources."""

# Orchestration
from opscascade.stages import CascadeOrchestrator
from opscascade.factory import make_orchestrator
from opscascade.metrics import CascadeMetrics
from opscascade.scoring import ConfidenceScorer

# Core data structures
from opscascade.cascade import (
    CascadeCancelledError,
    CascadeError,
    CascadeHealthStatus,
    CascadeRequest,
    CascadeResult,
    CascadeStage,
    ConfidenceScore,
    ConfigurationError,
    ConflictAnalysis,
    SourceType,
    StageExecution,
)

# Configuration
from opscascade.configs import (
    CascadeConfiguration,
    CircuitBreakerConfig,
    LexiconConfig,
    DEFAULT_CASCADE,
    EXHAUSTIVE_CASCADE,
    FAST_CASCADE,
    NO_TIE_BREAKER,
    PRESETS,
)

__version__ = "0.1.0"

__all__ = [
    "CascadeOrchestrator",
    "make_orchestrator",
    "CascadeMetrics",
    "ConfidenceScorer",
    # Types
    "CascadeRequest",
    "CascadeResult",
    "CascadeStage",
    "ConfidenceScore",
    "ConflictAnalysis",
    "SourceType",
    "StageExecution",
    "CascadeHealthStatus",
    # Errors
    "CascadeError",
    "ConfigurationError",
    "CascadeCancelledError",
    # Configs
    "CascadeConfiguration",
    "CircuitBreakerConfig",
    "LexiconConfig",
    # Presets
    "DEFAULT_CASCADE",
    "EXHAUSTIVE_CASCADE",
    "FAST_CASCADE",
    "NO_TIE_BREAKER",
    "PRESETS",
]
