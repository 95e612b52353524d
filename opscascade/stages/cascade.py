"""Cascade orchestrator with cost-ordered, early-stopping stages."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Awaitable, Mapping

from opscascade.cascade.errors import (
    CascadeCancelledError,
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
    ConflictAnalysis,
    HealthStatus,
    MetricsSnapshot,
    SourceType,
    StageExecution,
    StageHealth,
    utcnow,
)
from opscascade.configs.models import CascadeConfiguration
from opscascade.metrics import CascadeMetrics
from opscascade.scoring.scorer import ConfidenceScorer
from opscascade.sources.base import (
    AuthoritativeDocsSource,
    LanguageModelSource,
    LocalKnowledgeSource,
    WebSearchSource,
)
from opscascade.stages.base import BaseStage, StageOutput
from opscascade.stages.circuit_breaker import CircuitBreaker
from opscascade.stages.sources import (
    AuthoritativeDocsStage,
    LanguageModelStage,
    LocalKnowledgeStage,
    WebSearchStage,
)

logger = logging.getLogger(__name__)

NO_INFORMATION_ANSWER = "No information could be retrieved for this query from any source."
FAILED_ANSWER = "An error occurred during the cascade search process."


class CascadeOrchestrator:
    """Runs the four stages in cost order and assembles one result.

    Stage order is fixed: Local Knowledge -> Language Model ->
    Authoritative Docs -> Web Search. Each stage runs under the stage
    timeout, capped by what is left of the overall budget, and behind its
    own circuit breaker. A stage whose score meets its threshold stops the
    run when early stopping is enabled.

    Runs share nothing but the metrics aggregate and the active
    configuration reference, so execute() may be awaited concurrently from
    any number of tasks.
    """

    def __init__(
        self,
        local_knowledge: LocalKnowledgeSource,
        language_model: LanguageModelSource,
        authoritative_docs: AuthoritativeDocsSource,
        web_search: WebSearchSource,
        scorer: ConfidenceScorer | None = None,
        configuration: CascadeConfiguration | None = None,
        metrics: CascadeMetrics | None = None,
    ) -> None:
        self.scorer = scorer or ConfidenceScorer()
        self.metrics = metrics or CascadeMetrics()
        self._config_lock = threading.Lock()
        self._configuration = configuration or CascadeConfiguration()

        self._stages: dict[SourceType, BaseStage] = {
            SourceType.LOCAL_KNOWLEDGE: LocalKnowledgeStage(local_knowledge, self.scorer),
            SourceType.LANGUAGE_MODEL: LanguageModelStage(language_model, self.scorer),
            SourceType.AUTHORITATIVE_DOCS: AuthoritativeDocsStage(authoritative_docs, self.scorer),
            SourceType.WEB_SEARCH: WebSearchStage(web_search, self.scorer),
        }
        self._breakers: dict[SourceType, CircuitBreaker] = {
            source: CircuitBreaker(source.value, self._configuration.circuit_breaker)
            for source in STAGE_ORDER
        }

    # Configuration

    def get_configuration(self) -> CascadeConfiguration:
        with self._config_lock:
            return self._configuration

    def update_configuration(
        self, configuration: CascadeConfiguration | Mapping[str, Any]
    ) -> CascadeConfiguration:
        """Validate and atomically swap the active configuration.

        Runs already in flight keep the configuration they captured. On
        validation failure ConfigurationError is raised and the previous
        configuration stays active.
        """
        if isinstance(configuration, CascadeConfiguration):
            data = configuration.model_dump()
        elif isinstance(configuration, Mapping):
            data = dict(configuration)
        else:
            raise ConfigurationError(
                f"Expected CascadeConfiguration or mapping, got {type(configuration).__name__}"
            )
        validated = CascadeConfiguration.parse(data)

        with self._config_lock:
            self._configuration = validated
            for breaker in self._breakers.values():
                breaker.config = validated.circuit_breaker
        logger.info(
            "Cascade configuration updated: thresholds kb=%.2f lm=%.2f docs=%.2f web=%.2f, "
            "early_stopping=%s",
            validated.local_knowledge_threshold,
            validated.language_model_threshold,
            validated.authoritative_docs_threshold,
            validated.web_search_threshold,
            validated.enable_early_stopping,
        )
        return validated

    # Execution

    async def execute(
        self,
        query: str,
        session_context: Mapping[str, Any] | None = None,
        config_override: CascadeConfiguration | None = None,
        *,
        session_id: str = "",
        cancel_event: asyncio.Event | None = None,
    ) -> CascadeResult:
        """Run the cascade for one query.

        Args:
            query: Non-empty question text.
            session_context: Free-form caller context. "recent_interactions"
                is handed to the language model as conversation history.
            config_override: Per-request configuration; the active one is
                used when None.
            session_id: Caller or session identifier, for logging.
            cancel_event: Setting this event aborts the in-flight stage and
                raises CascadeCancelledError.

        Returns:
            CascadeResult. Adapter failures never escape; an internal failure
            yields a result stopped at FAILED.

        Raises:
            ValueError: If the query is empty.
            CascadeCancelledError: If cancel_event was set during the run.
        """
        request = CascadeRequest(
            query=query,
            session_id=session_id,
            context=dict(session_context or {}),
            configuration=config_override,
        )
        return await self.run(request, cancel_event=cancel_event)

    async def run(
        self, request: CascadeRequest, cancel_event: asyncio.Event | None = None
    ) -> CascadeResult:
        """Run the cascade for a prepared request. See execute()."""
        config = request.configuration or self.get_configuration()
        start_time = time.perf_counter()
        executions: list[StageExecution] = []

        logger.info(
            "Starting cascade for session=%s query=%r", request.session_id or "-", request.query
        )

        try:
            overall_exceeded = await self._run_stages(
                request, config, executions, start_time, cancel_event
            )
            result = self._build_result(request, config, executions, start_time, overall_exceeded)
        except (CascadeCancelledError, asyncio.CancelledError):
            self.metrics.record_cancelled()
            logger.info(
                "Cascade cancelled for session=%s after %d stage(s)",
                request.session_id or "-",
                len(executions),
            )
            raise
        except Exception as e:
            logger.exception("Error during cascade execution for query %r", request.query)
            result = CascadeResult(
                final_answer=FAILED_ANSWER,
                stopped_at=CascadeStage.FAILED,
                final_confidence=None,
                stage_executions=executions,
                conflict_analysis=None,
                total_elapsed_ms=_elapsed_ms(start_time),
                early_stopped=False,
                metadata={
                    "query": request.query,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )

        self.metrics.record_run(
            result.stopped_at,
            executions,
            conflict_detected=bool(result.metadata.get("conflicts_detected")),
            tie_breaker_used=bool(result.metadata.get("tie_breaker_used")),
        )
        logger.info(
            "Cascade stopped at %s in %.1fms (early_stopped=%s)",
            result.stopped_at.value,
            result.total_elapsed_ms,
            result.early_stopped,
        )
        return result

    async def _run_stages(
        self,
        request: CascadeRequest,
        config: CascadeConfiguration,
        executions: list[StageExecution],
        start_time: float,
        cancel_event: asyncio.Event | None,
    ) -> bool:
        """Run stages in order, appending to executions.

        Returns True if the overall budget ran out before every stage ran.
        """
        for source in STAGE_ORDER:
            _raise_if_cancelled(cancel_event)

            remaining = config.overall_timeout_seconds - (time.perf_counter() - start_time)
            if remaining <= 0:
                logger.warning(
                    "Overall timeout of %.1fs exhausted before %s",
                    config.overall_timeout_seconds,
                    source.value,
                )
                return True

            execution = await self._execute_stage(
                self._stages[source],
                request,
                config,
                min(config.stage_timeout_seconds, remaining),
                cancel_event,
            )
            executions.append(execution)

            if execution.triggered_early_stop:
                logger.info(
                    "Early stop at %s with confidence %.3f",
                    source.value,
                    execution.confidence.score,
                )
                break
        return False

    async def _execute_stage(
        self,
        stage: BaseStage,
        request: CascadeRequest,
        config: CascadeConfiguration,
        timeout: float,
        cancel_event: asyncio.Event | None,
    ) -> StageExecution:
        """Fetch, then score. Adapter failures are recorded, not raised."""
        source = stage.source
        breaker = self._breakers[source]
        started_at = utcnow()
        stage_start = time.perf_counter()

        output: StageOutput | None = None
        error: str | None = None
        took_trial = False
        try:
            took_trial = breaker.before_call()
            output = await self._await_stage(
                stage.fetch(request, config), source, timeout, cancel_event
            )
        except CircuitOpenError as e:
            error = str(e)
            logger.warning("Skipping %s: %s", source.value, e)
        except (CascadeCancelledError, asyncio.CancelledError):
            breaker.release_trial(took_trial)
            raise
        except StageTimeoutError as e:
            breaker.record_failure()
            error = str(e)
            logger.warning("%s", e)
        except Exception as e:
            breaker.record_failure()
            error = f"{type(e).__name__}: {e}"
            logger.warning("Stage %s failed: %s", source.value, error)
        else:
            breaker.record_success()

        elapsed_ms = _elapsed_ms(stage_start)
        confidence = None
        early_stop = False
        if output is not None:
            confidence = stage.score(request.query, output, config.threshold_for(source))
            early_stop = (
                config.enable_early_stopping
                and confidence.meets_threshold
                and bool(output.answer.strip())
            )
            logger.debug(
                "Stage %s completed in %.2fms, results=%d, confidence=%.3f (threshold %.2f)",
                source.value,
                elapsed_ms,
                output.result_count,
                confidence.score,
                confidence.threshold,
            )

        return StageExecution(
            stage=source,
            executed=True,
            start_time=started_at,
            end_time=utcnow(),
            elapsed_ms=elapsed_ms,
            result_count=output.result_count if output else 0,
            answer=output.answer if output else "",
            confidence=confidence,
            error=error,
            triggered_early_stop=early_stop,
        )

    async def _await_stage(
        self,
        fetch: Awaitable[StageOutput],
        source: SourceType,
        timeout: float,
        cancel_event: asyncio.Event | None,
    ) -> StageOutput:
        """Await a stage fetch under a timeout, racing the cancel event."""
        if cancel_event is None:
            try:
                return await asyncio.wait_for(fetch, timeout)
            except asyncio.TimeoutError as e:
                raise StageTimeoutError(source.value, timeout) from e

        stage_task = asyncio.ensure_future(asyncio.wait_for(fetch, timeout))
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({stage_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (stage_task, cancel_task):
                if not task.done():
                    task.cancel()

        if cancel_event.is_set():
            await asyncio.gather(stage_task, return_exceptions=True)
            raise CascadeCancelledError(f"Cascade cancelled during {source.value}")

        await asyncio.gather(cancel_task, return_exceptions=True)
        try:
            return stage_task.result()
        except asyncio.TimeoutError as e:
            raise StageTimeoutError(source.value, timeout) from e

    def _build_result(
        self,
        request: CascadeRequest,
        config: CascadeConfiguration,
        executions: list[StageExecution],
        start_time: float,
        overall_exceeded: bool,
    ) -> CascadeResult:
        """Pick the final answer from the stage executions of one run."""
        answered = [e for e in executions if e.succeeded and e.has_answer]
        early = next((e for e in executions if e.triggered_early_stop), None)
        analysis: ConflictAnalysis | None = None
        tie_breaker_used = False

        if not answered:
            # Every attempted stage errored -> FAILED; otherwise nothing was found
            any_succeeded = any(e.succeeded for e in executions)
            stopped_at = CascadeStage.COMPLETED if any_succeeded else CascadeStage.FAILED
            winner = None
            final_answer = NO_INFORMATION_ANSWER
            logger.warning("No stage produced an answer (stopped at %s)", stopped_at.value)
        else:
            if config.enable_conflict_detection and len(answered) > 1:
                analysis = self.scorer.detect_conflicts([(e.stage, e.answer) for e in answered])

            if analysis is not None and analysis.has_conflicts:
                logger.warning(
                    "Conflicts detected between sources: %s (severity %s)",
                    ", ".join(s.value for s in analysis.conflicting_sources),
                    analysis.severity.value,
                )
                docs = next(
                    (e for e in answered if e.stage == SourceType.AUTHORITATIVE_DOCS), None
                )
                if config.enable_authoritative_tie_breaker and docs is not None:
                    winner = docs
                    final_answer = self.scorer.resolve_conflict(analysis, (docs.stage, docs.answer))
                    tie_breaker_used = True
                else:
                    scored = [e for e in answered if e.confidence is not None]
                    winner = max(scored, key=lambda e: e.confidence.score)
                    final_answer = winner.answer
            else:
                winner = early or answered[-1]
                final_answer = winner.answer

            stopped_at = (
                CascadeStage.for_source(early.stage) if early else CascadeStage.COMPLETED
            )

        metadata: dict[str, Any] = {
            "query": request.query,
            "stages_executed": [e.stage.value for e in executions],
            "response_count": len(answered),
            "conflicts_detected": bool(analysis and analysis.has_conflicts),
            "tie_breaker_used": tie_breaker_used,
        }
        if request.session_id:
            metadata["session_id"] = request.session_id
        if overall_exceeded:
            metadata["overall_timeout_exceeded"] = True

        return CascadeResult(
            final_answer=final_answer,
            stopped_at=stopped_at,
            final_confidence=winner.confidence if winner else None,
            stage_executions=executions,
            conflict_analysis=analysis,
            total_elapsed_ms=_elapsed_ms(start_time),
            early_stopped=early is not None,
            metadata=metadata,
        )

    # Health and metrics

    async def get_health_status(self) -> CascadeHealthStatus:
        """Probe each stage and combine with metrics and circuit state.

        Stages without a probe (Local Knowledge, Language Model) are taken as
        reachable. An open circuit or a failed, raising or slow probe marks a
        stage unhealthy; a half-open circuit marks it degraded.
        """
        timeout = self.get_configuration().stage_timeout_seconds
        probes = await asyncio.gather(
            *(self._probe(self._stages[source], timeout) for source in STAGE_ORDER)
        )

        stages: dict[SourceType, StageHealth] = {}
        for source, (reachable, details) in zip(STAGE_ORDER, probes):
            circuit = self._breakers[source].state
            if not reachable or circuit == CircuitState.OPEN:
                status = HealthStatus.UNHEALTHY
                if circuit == CircuitState.OPEN:
                    details = "Circuit open"
            elif circuit == CircuitState.HALF_OPEN:
                status = HealthStatus.DEGRADED
            else:
                status = HealthStatus.HEALTHY

            stages[source] = StageHealth(
                stage=source,
                status=status,
                avg_response_time_ms=self.metrics.average_elapsed_ms(source),
                success_rate=self.metrics.success_rate(source),
                recent_failures=self.metrics.recent_failures(source),
                circuit_state=circuit,
                details=details,
            )

        healthy = sum(1 for h in stages.values() if h.status == HealthStatus.HEALTHY)
        up = sum(1 for h in stages.values() if h.status != HealthStatus.UNHEALTHY)
        if healthy == len(stages):
            overall = HealthStatus.HEALTHY
        elif up == 0:
            overall = HealthStatus.UNHEALTHY
        else:
            overall = HealthStatus.DEGRADED

        if overall != HealthStatus.HEALTHY:
            logger.warning("Cascade health is %s", overall.value)
        return CascadeHealthStatus(overall_status=overall, stages=stages)

    async def _probe(self, stage: BaseStage, timeout: float) -> tuple[bool, str]:
        try:
            result = await asyncio.wait_for(stage.health_check(), timeout)
        except asyncio.TimeoutError:
            return False, f"Health probe timed out after {timeout:.1f}s"
        except Exception as e:
            logger.warning("Health probe for %s raised: %s", stage.source.value, e)
            return False, f"Health probe raised {type(e).__name__}: {e}"
        if result is None:
            return True, "No health probe; assumed reachable"
        return bool(result), "Health probe passed" if result else "Health probe failed"

    def get_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()


def _raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise CascadeCancelledError("Cascade cancelled")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
