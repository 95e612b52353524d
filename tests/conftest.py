"""Shared fixtures for pytest tests."""

import pytest

from opscascade.configs.models import CascadeConfiguration, LexiconConfig
from opscascade.scoring.scorer import ConfidenceScorer
from opscascade.sources import (
    DocsArticle,
    DocsSearchResult,
    KnowledgeMatch,
    StaticAuthoritativeDocs,
    StaticLanguageModel,
    StaticLocalKnowledge,
    StaticWebSearch,
    WebArticle,
    WebSearchResult,
)
from opscascade.stages.cascade import CascadeOrchestrator


# =============================================================================
# Scoring Fixtures
# =============================================================================


@pytest.fixture
def lexicons():
    """Default lexicons."""
    return LexiconConfig()


@pytest.fixture
def scorer(lexicons):
    return ConfidenceScorer(lexicons=lexicons)


# =============================================================================
# Adapter Fixtures (empty unless a test fills them in)
# =============================================================================


@pytest.fixture
def local_knowledge():
    return StaticLocalKnowledge()


@pytest.fixture
def language_model():
    return StaticLanguageModel()


@pytest.fixture
def docs():
    return StaticAuthoritativeDocs()


@pytest.fixture
def web():
    return StaticWebSearch()


@pytest.fixture
def make_cascade(local_knowledge, language_model, docs, web):
    """Build an orchestrator over the adapter fixtures."""

    def _make(configuration=None, **overrides):
        adapters = {
            "local_knowledge": local_knowledge,
            "language_model": language_model,
            "authoritative_docs": docs,
            "web_search": web,
        }
        adapters.update(overrides)
        return CascadeOrchestrator(configuration=configuration, **adapters)

    return _make


# =============================================================================
# Sample Source Results
# =============================================================================


@pytest.fixture
def dns_docs_result():
    """Two DNS articles from the authoritative docs."""
    return DocsSearchResult(
        results=[
            DocsArticle(
                title="Troubleshoot DNS client",
                snippet="Run ipconfig /flushdns and restart the DNS Client service.",
                url="https://docs.example.com/dns/client",
                relevance_score=0.92,
            ),
            DocsArticle(
                title="DNS resolver settings",
                snippet="Verify the configured resolver addresses.",
                url="https://docs.example.com/dns/resolver",
                relevance_score=0.81,
            ),
        ],
        overall_confidence=0.86,
    )


@pytest.fixture
def dns_web_result():
    return WebSearchResult(
        results=[
            WebArticle(
                title="Fixing DNS on Windows",
                snippet="Flush the cache, then check the adapter settings.",
                url="https://forum.example.org/dns",
                domain="forum.example.org",
                relevance_score=0.74,
            )
        ],
        overall_confidence=0.72,
    )


@pytest.fixture
def strong_matches():
    """Three high-quality local knowledge matches."""
    return [
        KnowledgeMatch("Flush the DNS cache with ipconfig /flushdns.", 0.95),
        KnowledgeMatch("Restart the DNS Client service.", 0.92),
        KnowledgeMatch("Check the resolver address in adapter settings.", 0.9),
    ]


@pytest.fixture
def default_config():
    return CascadeConfiguration()
