"""Source adapter contracts, result variants and in-memory adapters."""

from opscascade.sources.base import (
    AuthoritativeDocsSource,
    DocsArticle,
    DocsSearchResult,
    KnowledgeMatch,
    LanguageModelSource,
    LocalKnowledgeSource,
    WebArticle,
    WebSearchResult,
    WebSearchSource,
)
from opscascade.sources.memory import (
    StaticAuthoritativeDocs,
    StaticLanguageModel,
    StaticLocalKnowledge,
    StaticWebSearch,
)

__all__ = [
    # Result variants
    "KnowledgeMatch",
    "DocsArticle",
    "DocsSearchResult",
    "WebArticle",
    "WebSearchResult",
    # Protocols
    "LocalKnowledgeSource",
    "LanguageModelSource",
    "AuthoritativeDocsSource",
    "WebSearchSource",
    # In-memory adapters
    "StaticLocalKnowledge",
    "StaticLanguageModel",
    "StaticAuthoritativeDocs",
    "StaticWebSearch",
]
