"""Per-adapter circuit breaker.

CLOSED: calls pass through; consecutive failures are counted.
OPEN: after failure_threshold consecutive failures, calls are rejected until
      reset_timeout_seconds have passed.
HALF_OPEN: one trial call is let through. Success closes the circuit,
           failure re-opens it for another full timeout.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from opscascade.cascade.errors import CircuitOpenError
from opscascade.cascade.types import CircuitState
from opscascade.configs.models import CircuitBreakerConfig

logger = logging.getLogger(__name__)


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    def _maybe_half_open(self) -> None:
        if (
            self._state == CircuitState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self.config.reset_timeout_seconds
        ):
            self._state = CircuitState.HALF_OPEN
            self._trial_in_flight = False
            logger.info("Circuit %s half-open, allowing a trial call", self.name)

    def before_call(self) -> bool:
        """Raise CircuitOpenError if the call must not be attempted.

        Returns True if this call took the half-open trial slot.
        """
        if not self.config.enabled:
            return False
        with self._lock:
            self._maybe_half_open()
            if self._state == CircuitState.OPEN:
                retry_after = self.config.reset_timeout_seconds - (
                    self._clock() - (self._opened_at or 0.0)
                )
                raise CircuitOpenError(self.name, max(retry_after, 0.0))
            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitOpenError(self.name, 0.0)
                self._trial_in_flight = True
                return True
        return False

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info("Circuit %s closed after successful call", self.name)
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            self._opened_at = None
            self._trial_in_flight = False

    def release_trial(self, took_trial: bool) -> None:
        """Give back a half-open trial slot whose call never finished.

        took_trial is the value before_call returned; calls that never held
        the slot leave it alone.
        """
        if not took_trial:
            return
        with self._lock:
            self._trial_in_flight = False

    def record_failure(self) -> None:
        if not self.config.enabled:
            return
        with self._lock:
            self._consecutive_failures += 1
            if (
                self._state == CircuitState.HALF_OPEN
                or self._consecutive_failures >= self.config.failure_threshold
            ):
                if self._state != CircuitState.OPEN:
                    logger.warning(
                        "Circuit %s opened after %d consecutive failures",
                        self.name,
                        self._consecutive_failures,
                    )
                self._state = CircuitState.OPEN
                self._opened_at = self._clock()
                self._trial_in_flight = False
