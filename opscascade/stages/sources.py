"""Concrete stages, one per knowledge source."""

from __future__ import annotations

import logging

from opscascade.cascade.types import CascadeRequest, ConfidenceScore, SourceType
from opscascade.configs.models import CascadeConfiguration
from opscascade.scoring.scorer import ConfidenceScorer
from opscascade.sources.base import (
    AuthoritativeDocsSource,
    DocsSearchResult,
    KnowledgeMatch,
    LanguageModelSource,
    LocalKnowledgeSource,
    WebSearchResult,
    WebSearchSource,
)
from opscascade.stages.base import BaseStage, StageOutput

logger = logging.getLogger(__name__)

CONVERSATION_CONTEXT_KEY = "recent_interactions"
BLOCK_SEPARATOR = "\n\n"


def render_knowledge(matches: list[KnowledgeMatch]) -> str:
    return BLOCK_SEPARATOR.join(f"[KB - Score: {m.score:.2f}] {m.text}" for m in matches)


def render_docs(result: DocsSearchResult) -> str:
    return BLOCK_SEPARATOR.join(
        f"[Docs - {a.title}]\n{a.snippet}\nURL: {a.url}" for a in result.results
    )


def render_web(result: WebSearchResult) -> str:
    return BLOCK_SEPARATOR.join(
        f"[Web - {a.title}]\n{a.snippet}\nDomain: {a.domain}\nURL: {a.url}"
        for a in result.results
    )


class LocalKnowledgeStage(BaseStage):
    source = SourceType.LOCAL_KNOWLEDGE

    def __init__(self, adapter: LocalKnowledgeSource, scorer: ConfidenceScorer) -> None:
        super().__init__(scorer)
        self.adapter = adapter

    async def fetch(
        self, request: CascadeRequest, config: CascadeConfiguration
    ) -> StageOutput:
        matches = list(
            await self.adapter.search(
                request.query,
                top_k=config.max_results_per_stage,
                min_score=config.local_knowledge_min_score,
            )
        )
        logger.debug("Local knowledge returned %d matches", len(matches))
        return StageOutput(render_knowledge(matches), len(matches), matches)

    def score(self, query: str, output: StageOutput, threshold: float) -> ConfidenceScore:
        return self.scorer.score_local_knowledge(query, output.raw, threshold)


class LanguageModelStage(BaseStage):
    """Completion from the language model, used verbatim as the answer."""

    source = SourceType.LANGUAGE_MODEL

    def __init__(self, adapter: LanguageModelSource, scorer: ConfidenceScorer) -> None:
        super().__init__(scorer)
        self.adapter = adapter

    async def fetch(
        self, request: CascadeRequest, config: CascadeConfiguration
    ) -> StageOutput:
        conversation = request.context.get(CONVERSATION_CONTEXT_KEY)
        answer = await self.adapter.complete(request.query, conversation) or ""
        return StageOutput(answer, 1 if answer.strip() else 0, answer)

    def score(self, query: str, output: StageOutput, threshold: float) -> ConfidenceScore:
        return self.scorer.score_language_model(query, output.raw, threshold)


class AuthoritativeDocsStage(BaseStage):
    source = SourceType.AUTHORITATIVE_DOCS

    def __init__(self, adapter: AuthoritativeDocsSource, scorer: ConfidenceScorer) -> None:
        super().__init__(scorer)
        self.adapter = adapter

    async def fetch(
        self, request: CascadeRequest, config: CascadeConfiguration
    ) -> StageOutput:
        result = await self.adapter.search(request.query, max_results=config.max_results_per_stage)
        return StageOutput(render_docs(result), len(result.results), result)

    def score(self, query: str, output: StageOutput, threshold: float) -> ConfidenceScore:
        return self.scorer.score_authoritative_docs(query, output.raw, threshold)

    async def health_check(self) -> bool | None:
        return await self.adapter.health_check()


class WebSearchStage(BaseStage):
    source = SourceType.WEB_SEARCH

    def __init__(self, adapter: WebSearchSource, scorer: ConfidenceScorer) -> None:
        super().__init__(scorer)
        self.adapter = adapter

    async def fetch(
        self, request: CascadeRequest, config: CascadeConfiguration
    ) -> StageOutput:
        result = await self.adapter.search(request.query, max_results=config.max_results_per_stage)
        return StageOutput(render_web(result), len(result.results), result)

    def score(self, query: str, output: StageOutput, threshold: float) -> ConfidenceScore:
        return self.scorer.score_web_search(query, output.raw, threshold)

    async def health_check(self) -> bool | None:
        return await self.adapter.health_check()
