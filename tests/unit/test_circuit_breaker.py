"""Unit tests for the per-adapter circuit breaker."""

import pytest

from opscascade.cascade.errors import CircuitOpenError
from opscascade.cascade.types import CircuitState
from opscascade.configs.models import CircuitBreakerConfig
from opscascade.stages.circuit_breaker import CircuitBreaker


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def breaker(clock):
    config = CircuitBreakerConfig(failure_threshold=3, reset_timeout_seconds=30.0)
    return CircuitBreaker("web_search", config, clock=clock)


def _fail(breaker, times):
    for _ in range(times):
        breaker.before_call()
        breaker.record_failure()


class TestCircuitBreaker:
    """closed -> open -> half-open -> closed/open."""

    def test_starts_closed(self, breaker):
        assert breaker.state == CircuitState.CLOSED
        breaker.before_call()

    def test_opens_after_threshold(self, breaker):
        _fail(breaker, 2)
        assert breaker.state == CircuitState.CLOSED
        _fail(breaker, 1)
        assert breaker.state == CircuitState.OPEN

    def test_open_rejects_calls(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 10
        with pytest.raises(CircuitOpenError, match="web_search") as exc_info:
            breaker.before_call()
        assert exc_info.value.retry_after_seconds == pytest.approx(20.0)

    def test_success_resets_failure_count(self, breaker):
        _fail(breaker, 2)
        breaker.before_call()
        breaker.record_success()
        _fail(breaker, 2)
        assert breaker.state == CircuitState.CLOSED

    def test_half_open_after_timeout(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 30
        assert breaker.state == CircuitState.HALF_OPEN

    def test_half_open_allows_single_trial(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 30
        breaker.before_call()
        with pytest.raises(CircuitOpenError):
            breaker.before_call()

    def test_trial_success_closes(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 30
        breaker.before_call()
        breaker.record_success()
        assert breaker.state == CircuitState.CLOSED

    def test_trial_failure_reopens(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 30
        breaker.before_call()
        breaker.record_failure()
        assert breaker.state == CircuitState.OPEN
        clock.now += 29
        assert breaker.state == CircuitState.OPEN

    def test_released_trial_can_be_retried(self, breaker, clock):
        _fail(breaker, 3)
        clock.now += 30
        took_trial = breaker.before_call()
        assert took_trial is True
        breaker.release_trial(took_trial)
        breaker.before_call()

    def test_closed_call_does_not_take_trial(self, breaker):
        assert breaker.before_call() is False

    def test_release_without_trial_keeps_slot(self, breaker, clock):
        """A call started while closed must not free another call's trial slot."""
        stale = breaker.before_call()
        _fail(breaker, 3)
        clock.now += 30
        assert breaker.before_call() is True

        breaker.release_trial(stale)

        with pytest.raises(CircuitOpenError):
            breaker.before_call()

    def test_disabled(self, clock):
        breaker = CircuitBreaker(
            "llm", CircuitBreakerConfig(enabled=False, failure_threshold=1), clock=clock
        )
        _fail(breaker, 10)
        assert breaker.state == CircuitState.CLOSED
