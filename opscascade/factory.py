"""Factory function for creating orchestrator instances."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from opscascade.cascade.errors import ConfigurationError
from opscascade.configs.models import CascadeConfiguration, LexiconConfig
from opscascade.configs.presets import PRESETS
from opscascade.metrics import CascadeMetrics
from opscascade.scoring.scorer import ConfidenceScorer
from opscascade.sources.base import (
    AuthoritativeDocsSource,
    LanguageModelSource,
    LocalKnowledgeSource,
    WebSearchSource,
)
from opscascade.stages.cascade import CascadeOrchestrator

__all__ = ["make_orchestrator", "load_configuration"]

logger = logging.getLogger(__name__)


def load_configuration(
    config: CascadeConfiguration | Mapping[str, Any] | str | None = None,
    config_path: str | None = None,
    from_env: bool = False,
) -> CascadeConfiguration:
    """Resolve a configuration from the first source given.

    :param config: A CascadeConfiguration, a dict of fields, or a preset name.
    :param config_path: JSON file written by CascadeConfiguration.to_json().
    :param from_env: Read OPSCASCADE_* environment variables.
    :return: A validated CascadeConfiguration (defaults when nothing is given).
    :raises ConfigurationError: On invalid values or an unknown preset name.
    """
    if config_path:
        loaded = CascadeConfiguration.from_json(config_path)
        logger.info(f"Loaded cascade config from {config_path}")
        return loaded
    if from_env:
        loaded = CascadeConfiguration.from_env()
        logger.info("Loaded cascade config from environment")
        return loaded
    if isinstance(config, str):
        if config not in PRESETS:
            raise ConfigurationError(
                f"Unknown cascade preset: {config}. Valid: {', '.join(sorted(PRESETS))}"
            )
        return PRESETS[config]
    if isinstance(config, Mapping):
        return CascadeConfiguration.parse(config)
    if config is None:
        logger.debug("No cascade config provided, using defaults")
        return CascadeConfiguration()
    return config


def make_orchestrator(
    local_knowledge: LocalKnowledgeSource,
    language_model: LanguageModelSource,
    authoritative_docs: AuthoritativeDocsSource,
    web_search: WebSearchSource,
    config: CascadeConfiguration | Mapping[str, Any] | str | None = None,
    config_path: str | None = None,
    lexicons: LexiconConfig | str | None = None,
    metrics: CascadeMetrics | None = None,
    from_env: bool = False,
) -> CascadeOrchestrator:
    """Wire the four adapters into a CascadeOrchestrator.

    :param config: See load_configuration().
    :param config_path: See load_configuration().
    :param lexicons: A LexiconConfig or a path to a lexicon JSON file.
    :param metrics: Shared metrics aggregator; a fresh one when None.
    :param from_env: See load_configuration().
    :return: A ready orchestrator.
    """
    configuration = load_configuration(config, config_path, from_env)
    if isinstance(lexicons, str):
        lexicons = LexiconConfig.from_json(lexicons)
        logger.info("Loaded lexicons from file")

    return CascadeOrchestrator(
        local_knowledge=local_knowledge,
        language_model=language_model,
        authoritative_docs=authoritative_docs,
        web_search=web_search,
        scorer=ConfidenceScorer(lexicons=lexicons),
        configuration=configuration,
        metrics=metrics,
    )
