"""Cascade stages, circuit breaking and orchestration."""

from opscascade.stages.base import BaseStage, StageOutput
from opscascade.stages.cascade import CascadeOrchestrator
from opscascade.stages.circuit_breaker import CircuitBreaker
from opscascade.stages.sources import (
    AuthoritativeDocsStage,
    LanguageModelStage,
    LocalKnowledgeStage,
    WebSearchStage,
)

__all__ = [
    "BaseStage",
    "StageOutput",
    "LocalKnowledgeStage",
    "LanguageModelStage",
    "AuthoritativeDocsStage",
    "WebSearchStage",
    "CircuitBreaker",
    "CascadeOrchestrator",
]
