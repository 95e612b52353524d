"""Preset configurations for common cascade use cases."""

from opscascade.configs.models import CascadeConfiguration, CircuitBreakerConfig

# Production defaults: early stop, conflict detection, docs tie-breaker
DEFAULT_CASCADE = CascadeConfiguration()

# Always consult every source (audits, threshold calibration)
EXHAUSTIVE_CASCADE = CascadeConfiguration(enable_early_stopping=False)

# Interactive use: short budgets, trip breakers quickly
FAST_CASCADE = CascadeConfiguration(
    stage_timeout_seconds=5.0,
    overall_timeout_seconds=15.0,
    max_results_per_stage=3,
    circuit_breaker=CircuitBreakerConfig(failure_threshold=3, reset_timeout_seconds=15.0),
)

# Resolve conflicts purely by confidence
NO_TIE_BREAKER = CascadeConfiguration(enable_authoritative_tie_breaker=False)

# All presets dict for easy access
PRESETS = {
    "default": DEFAULT_CASCADE,
    "exhaustive": EXHAUSTIVE_CASCADE,
    "fast": FAST_CASCADE,
    "no_tie_breaker": NO_TIE_BREAKER,
}
