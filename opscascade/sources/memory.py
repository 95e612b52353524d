"""In-memory source adapters.

Return canned answers and count calls. Used for wiring, offline replay of
recorded stage outputs, and tests.
"""

from __future__ import annotations

from typing import Any, Sequence

from opscascade.sources.base import (
    DocsSearchResult,
    KnowledgeMatch,
    WebSearchResult,
)


class _Static:
    """Shared call bookkeeping. `error` is raised on every call when set."""

    def __init__(self, error: Exception | None = None, healthy: bool = True) -> None:
        self.error = error
        self.healthy = healthy
        self.calls = 0
        self.queries: list[str] = []

    def _record(self, query: str) -> None:
        self.calls += 1
        self.queries.append(query)
        if self.error is not None:
            raise self.error

    async def health_check(self) -> bool:
        return self.healthy


class StaticLocalKnowledge(_Static):
    def __init__(
        self,
        matches: Sequence[KnowledgeMatch] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(error)
        self.matches = list(matches or [])
        self.last_top_k: int | None = None
        self.last_min_score: float | None = None

    async def search(
        self, query: str, top_k: int, min_score: float
    ) -> list[KnowledgeMatch]:
        self._record(query)
        self.last_top_k = top_k
        self.last_min_score = min_score
        return self.matches[:top_k]


class StaticLanguageModel(_Static):
    def __init__(self, answer: str = "", error: Exception | None = None) -> None:
        super().__init__(error)
        self.answer = answer
        self.last_context: Sequence[Any] | None = None

    async def complete(
        self, query: str, conversation_context: Sequence[Any] | None = None
    ) -> str:
        self._record(query)
        self.last_context = conversation_context
        return self.answer


class StaticAuthoritativeDocs(_Static):
    def __init__(
        self,
        result: DocsSearchResult | None = None,
        error: Exception | None = None,
        healthy: bool = True,
    ) -> None:
        super().__init__(error, healthy)
        self.result = result or DocsSearchResult()

    async def search(self, query: str, max_results: int) -> DocsSearchResult:
        self._record(query)
        return DocsSearchResult(
            results=self.result.results[:max_results],
            overall_confidence=self.result.overall_confidence,
        )


class StaticWebSearch(_Static):
    def __init__(
        self,
        result: WebSearchResult | None = None,
        error: Exception | None = None,
        healthy: bool = True,
    ) -> None:
        super().__init__(error, healthy)
        self.result = result or WebSearchResult()

    async def search(self, query: str, max_results: int) -> WebSearchResult:
        self._record(query)
        return WebSearchResult(
            results=self.result.results[:max_results],
            overall_confidence=self.result.overall_confidence,
        )
