"""Process-wide cascade metrics.

One CascadeMetrics instance is owned by each orchestrator (or injected so that
several orchestrators can share one). All mutation goes through a single lock;
snapshots copy state under the same lock.
"""

from __future__ import annotations

import threading
import time
from collections import deque

import numpy as np

from opscascade.cascade.types import (
    STAGE_ORDER,
    CascadeStage,
    MetricsSnapshot,
    SourceType,
    StageExecution,
)

HISTORY_SIZE = 100


class CascadeMetrics:
    """Running counters plus bounded per-stage timing/confidence history."""

    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._total_runs = 0
        self._failed_runs = 0
        self._cancelled_runs = 0
        self._conflicts = 0
        self._tie_breaker_used = 0
        self._stopped_at: dict[CascadeStage, int] = {stage: 0 for stage in CascadeStage}
        self._elapsed: dict[SourceType, deque[float]] = {
            s: deque(maxlen=history_size) for s in STAGE_ORDER
        }
        self._confidence: dict[SourceType, deque[float]] = {
            s: deque(maxlen=history_size) for s in STAGE_ORDER
        }
        self._attempts: dict[SourceType, int] = {s: 0 for s in STAGE_ORDER}
        self._failures: dict[SourceType, int] = {s: 0 for s in STAGE_ORDER}
        self._recent_outcomes: dict[SourceType, deque[bool]] = {
            s: deque(maxlen=history_size) for s in STAGE_ORDER
        }

    def record_run(
        self,
        stopped_at: CascadeStage,
        executions: list[StageExecution],
        conflict_detected: bool = False,
        tie_breaker_used: bool = False,
    ) -> None:
        """Fold one finished run into the aggregate."""
        with self._lock:
            self._total_runs += 1
            self._stopped_at[stopped_at] += 1
            if stopped_at == CascadeStage.FAILED:
                self._failed_runs += 1
            if conflict_detected:
                self._conflicts += 1
            if tie_breaker_used:
                self._tie_breaker_used += 1
            for execution in executions:
                if not execution.executed:
                    continue
                stage = execution.stage
                self._attempts[stage] += 1
                self._elapsed[stage].append(execution.elapsed_ms)
                self._recent_outcomes[stage].append(execution.succeeded)
                if not execution.succeeded:
                    self._failures[stage] += 1
                if execution.confidence is not None:
                    self._confidence[stage].append(execution.confidence.score)

    def record_cancelled(self) -> None:
        with self._lock:
            self._cancelled_runs += 1

    @property
    def total_runs(self) -> int:
        with self._lock:
            return self._total_runs

    def average_elapsed_ms(self, stage: SourceType) -> float:
        with self._lock:
            return _mean(self._elapsed[stage])

    def success_rate(self, stage: SourceType) -> float:
        """Share of attempts that did not error; 1.0 before any attempt."""
        with self._lock:
            return self._stage_success_rate(stage)

    def recent_failures(self, stage: SourceType) -> int:
        with self._lock:
            return sum(1 for ok in self._recent_outcomes[stage] if not ok)

    def _stage_success_rate(self, stage: SourceType) -> float:
        attempts = self._attempts[stage]
        if attempts == 0:
            return 1.0
        return (attempts - self._failures[stage]) / attempts

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            total = self._total_runs
            return MetricsSnapshot(
                total_runs=total,
                stopped_at_stage_counts=dict(self._stopped_at),
                avg_execution_time_by_stage={s: _mean(v) for s, v in self._elapsed.items()},
                avg_confidence_by_stage={s: _mean(v) for s, v in self._confidence.items()},
                success_rate_by_stage={s: self._stage_success_rate(s) for s in STAGE_ORDER},
                conflicts_detected=self._conflicts,
                tie_breaker_used_count=self._tie_breaker_used,
                failed_runs=self._failed_runs,
                cancelled_runs=self._cancelled_runs,
                success_rate=(total - self._failed_runs) / total if total else 0.0,
                collection_period_seconds=time.monotonic() - self._started,
            )


def _mean(values: deque[float]) -> float:
    return float(np.mean(values)) if values else 0.0
