"""Configuration models and presets for the cascade."""

from opscascade.configs.models import (
    CascadeConfiguration,
    CircuitBreakerConfig,
    LexiconConfig,
)
from opscascade.configs.presets import (
    DEFAULT_CASCADE,
    EXHAUSTIVE_CASCADE,
    FAST_CASCADE,
    NO_TIE_BREAKER,
    PRESETS,
)

__all__ = [
    # Models
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
