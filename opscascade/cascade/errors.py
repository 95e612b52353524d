"""Exception taxonomy for the cascade."""

from __future__ import annotations


class CascadeError(Exception):
    """Base class for cascade errors."""


class ConfigurationError(CascadeError, ValueError):
    """Invalid thresholds, timeouts or lexicons."""


class StageTimeoutError(CascadeError, TimeoutError):
    """A stage adapter did not answer within its timeout."""

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Stage {stage} timed out after {timeout_seconds:.2f}s")


class CircuitOpenError(CascadeError):
    """The adapter's circuit breaker is open; the call was not attempted."""

    def __init__(self, name: str, retry_after_seconds: float) -> None:
        self.name = name
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Circuit open for {name}, retry in {retry_after_seconds:.1f}s"
        )


class CascadeCancelledError(CascadeError):
    """The caller signalled cancellation while the cascade was running."""
