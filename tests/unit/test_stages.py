"""Unit tests for the per-source stages."""

import pytest

from opscascade.cascade.types import CascadeRequest, SourceType
from opscascade.configs.models import CascadeConfiguration
from opscascade.sources import (
    KnowledgeMatch,
    StaticAuthoritativeDocs,
    StaticLanguageModel,
    StaticLocalKnowledge,
    StaticWebSearch,
)
from opscascade.stages.sources import (
    AuthoritativeDocsStage,
    LanguageModelStage,
    LocalKnowledgeStage,
    WebSearchStage,
)


@pytest.fixture
def request_():
    return CascadeRequest(
        query="DNS not resolving",
        context={"recent_interactions": [{"role": "user", "content": "hi"}]},
    )


@pytest.fixture
def config():
    return CascadeConfiguration(max_results_per_stage=1, local_knowledge_min_score=0.6)


class TestCascadeRequest:
    def test_empty_query_rejected(self):
        with pytest.raises(ValueError):
            CascadeRequest(query="   ")


class TestLocalKnowledgeStage:
    @pytest.mark.asyncio
    async def test_fetch_passes_limits(self, scorer, strong_matches, request_, config):
        adapter = StaticLocalKnowledge(strong_matches)
        stage = LocalKnowledgeStage(adapter, scorer)

        output = await stage.fetch(request_, config)

        assert adapter.last_top_k == 1
        assert adapter.last_min_score == 0.6
        assert output.result_count == 1
        assert output.answer == "[KB - Score: 0.95] Flush the DNS cache with ipconfig /flushdns."

    @pytest.mark.asyncio
    async def test_blocks_joined(self, scorer, request_):
        matches = [KnowledgeMatch("first", 0.9), KnowledgeMatch("second", 0.8)]
        stage = LocalKnowledgeStage(StaticLocalKnowledge(matches), scorer)
        output = await stage.fetch(request_, CascadeConfiguration())
        assert output.answer == "[KB - Score: 0.90] first\n\n[KB - Score: 0.80] second"

    @pytest.mark.asyncio
    async def test_no_matches(self, scorer, request_, config):
        stage = LocalKnowledgeStage(StaticLocalKnowledge(), scorer)
        output = await stage.fetch(request_, config)
        assert output.answer == ""
        assert stage.score(request_.query, output, 0.85).score == 0.0

    @pytest.mark.asyncio
    async def test_health_check_absent(self, scorer):
        stage = LocalKnowledgeStage(StaticLocalKnowledge(), scorer)
        assert await stage.health_check() is None


class TestLanguageModelStage:
    @pytest.mark.asyncio
    async def test_passes_recent_interactions(self, scorer, request_, config):
        adapter = StaticLanguageModel("Flush the cache.")
        stage = LanguageModelStage(adapter, scorer)

        output = await stage.fetch(request_, config)

        assert adapter.last_context == [{"role": "user", "content": "hi"}]
        assert output.answer == "Flush the cache."
        assert output.result_count == 1

    @pytest.mark.asyncio
    async def test_no_context(self, scorer, config):
        adapter = StaticLanguageModel("")
        stage = LanguageModelStage(adapter, scorer)
        output = await stage.fetch(CascadeRequest(query="q"), config)
        assert adapter.last_context is None
        assert output.result_count == 0

    @pytest.mark.asyncio
    async def test_blank_completion_has_no_results(self, scorer, request_, config):
        stage = LanguageModelStage(StaticLanguageModel("  \n\t"), scorer)
        output = await stage.fetch(request_, config)
        assert output.result_count == 0

    @pytest.mark.asyncio
    async def test_adapter_error_propagates(self, scorer, request_, config):
        stage = LanguageModelStage(StaticLanguageModel(error=RuntimeError("quota")), scorer)
        with pytest.raises(RuntimeError, match="quota"):
            await stage.fetch(request_, config)


class TestAuthoritativeDocsStage:
    @pytest.mark.asyncio
    async def test_render_and_score(self, scorer, dns_docs_result, request_):
        stage = AuthoritativeDocsStage(StaticAuthoritativeDocs(dns_docs_result), scorer)

        output = await stage.fetch(request_, CascadeConfiguration())

        assert output.result_count == 2
        assert output.answer.startswith(
            "[Docs - Troubleshoot DNS client]\n"
            "Run ipconfig /flushdns and restart the DNS Client service.\n"
            "URL: https://docs.example.com/dns/client\n\n[Docs - DNS resolver settings]"
        )
        score = stage.score(request_.query, output, 0.8)
        assert score.source == SourceType.AUTHORITATIVE_DOCS
        assert score.meets_threshold is True

    @pytest.mark.asyncio
    async def test_max_results(self, scorer, dns_docs_result, request_, config):
        stage = AuthoritativeDocsStage(StaticAuthoritativeDocs(dns_docs_result), scorer)
        output = await stage.fetch(request_, config)
        assert output.result_count == 1

    @pytest.mark.asyncio
    async def test_health_check(self, scorer):
        stage = AuthoritativeDocsStage(StaticAuthoritativeDocs(healthy=False), scorer)
        assert await stage.health_check() is False


class TestWebSearchStage:
    @pytest.mark.asyncio
    async def test_render(self, scorer, dns_web_result, request_):
        stage = WebSearchStage(StaticWebSearch(dns_web_result), scorer)
        output = await stage.fetch(request_, CascadeConfiguration())
        assert output.answer == (
            "[Web - Fixing DNS on Windows]\n"
            "Flush the cache, then check the adapter settings.\n"
            "Domain: forum.example.org\n"
            "URL: https://forum.example.org/dns"
        )
        assert stage.score(request_.query, output, 0.7).score == pytest.approx(0.72)

    @pytest.mark.asyncio
    async def test_health_check(self, scorer):
        stage = WebSearchStage(StaticWebSearch(), scorer)
        assert await stage.health_check() is True
