"""Adapter contracts and result variants for the four knowledge sources.

Each source returns its own small result type carrying only the fields its
scorer reads; there are no free-form metadata lookups on the scoring path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, Sequence


@dataclass(frozen=True)
class KnowledgeMatch:
    """One hit from the local vector-similarity knowledge lookup."""

    text: str
    score: float  # similarity in [0, 1]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DocsArticle:
    title: str
    snippet: str
    url: str
    relevance_score: float
    last_modified: datetime | None = None


@dataclass(frozen=True)
class DocsSearchResult:
    """Authoritative documentation search response."""

    results: list[DocsArticle] = field(default_factory=list)
    overall_confidence: float = 0.0


@dataclass(frozen=True)
class WebArticle:
    title: str
    snippet: str
    url: str
    domain: str
    relevance_score: float


@dataclass(frozen=True)
class WebSearchResult:
    """General web search response."""

    results: list[WebArticle] = field(default_factory=list)
    overall_confidence: float = 0.0


class LocalKnowledgeSource(Protocol):
    async def search(
        self, query: str, top_k: int, min_score: float
    ) -> Sequence[KnowledgeMatch]:
        ...


class LanguageModelSource(Protocol):
    async def complete(
        self, query: str, conversation_context: Sequence[Any] | None
    ) -> str:
        ...


class AuthoritativeDocsSource(Protocol):
    async def search(self, query: str, max_results: int) -> DocsSearchResult:
        ...

    async def health_check(self) -> bool:
        ...


class WebSearchSource(Protocol):
    async def search(self, query: str, max_results: int) -> WebSearchResult:
        ...

    async def health_check(self) -> bool:
        ...
