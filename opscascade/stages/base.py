"""Abstract base class for cascade stages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opscascade.cascade.types import CascadeRequest, ConfidenceScore, SourceType
    from opscascade.configs.models import CascadeConfiguration
    from opscascade.scoring.scorer import ConfidenceScorer


@dataclass(frozen=True)
class StageOutput:
    """What one adapter call produced, before scoring.

    Attributes:
        answer: Rendered answer text (empty if the adapter found nothing)
        result_count: Number of hits behind the answer
        raw: The adapter's typed result, handed back to score()
    """

    answer: str
    result_count: int
    raw: Any


class BaseStage(ABC):
    """One source lookup in the cascade.

    A stage wraps a single adapter: fetch() performs the (possibly slow,
    possibly failing) external call, score() turns its output into a
    ConfidenceScore. The orchestrator owns timeouts, circuit breaking and
    early-stop decisions; stages only know their own source.
    """

    source: SourceType

    def __init__(self, scorer: ConfidenceScorer) -> None:
        self.scorer = scorer

    @abstractmethod
    async def fetch(
        self, request: CascadeRequest, config: CascadeConfiguration
    ) -> StageOutput:
        """Call the adapter and render its result.

        Args:
            request: The run's request (query and caller context).
            config: Configuration captured at the start of the run.

        Returns:
            StageOutput with the rendered answer and the typed raw result.

        Raises:
            Any exception the adapter raises; the orchestrator records it.
        """
        pass

    @abstractmethod
    def score(self, query: str, output: StageOutput, threshold: float) -> ConfidenceScore:
        """Score a fetched output against the configured threshold."""
        pass

    async def health_check(self) -> bool | None:
        """Probe the adapter. None means the adapter exposes no probe.

        Stages without a probe are reported as up by the health query.
        """
        return None
