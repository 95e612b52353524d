"""Pydantic configuration models for the cascading retrieval engine."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from opscascade.cascade.errors import ConfigurationError
from opscascade.cascade.types import SourceType

logger = logging.getLogger(__name__)


class CircuitBreakerConfig(BaseModel):
    """Per-adapter circuit breaker settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    failure_threshold: int = Field(default=5, ge=1)
    reset_timeout_seconds: float = Field(default=30.0, gt=0)


class CascadeConfiguration(BaseModel):
    """Main configuration for a cascade run.

    One instance is built at startup and used as the process-wide default;
    callers may pass another instance per request. Instances are immutable,
    so a run keeps whatever configuration it captured when it started.
    """

    model_config = ConfigDict(frozen=True)

    # Early-stop thresholds, one per source
    local_knowledge_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    language_model_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    authoritative_docs_threshold: float = Field(default=0.80, ge=0.0, le=1.0)
    web_search_threshold: float = Field(default=0.70, ge=0.0, le=1.0)

    enable_early_stopping: bool = True
    enable_conflict_detection: bool = True
    enable_authoritative_tie_breaker: bool = True

    max_results_per_stage: int = Field(default=5, ge=1)
    local_knowledge_min_score: float = Field(default=0.7, ge=0.0, le=1.0)

    stage_timeout_seconds: float = Field(default=30.0, gt=0)
    overall_timeout_seconds: float = Field(default=120.0, gt=0)

    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)

    @model_validator(mode="after")
    def warn_on_short_budget(self) -> CascadeConfiguration:
        """Allowed, but the first stage will be cut to the overall budget."""
        if self.overall_timeout_seconds < self.stage_timeout_seconds:
            logger.warning(
                "overall_timeout_seconds (%.1f) is below stage_timeout_seconds (%.1f); "
                "stages will be capped by the overall budget",
                self.overall_timeout_seconds,
                self.stage_timeout_seconds,
            )
        return self

    def threshold_for(self, source: SourceType) -> float:
        """Return the early-stop threshold configured for a source."""
        return {
            SourceType.LOCAL_KNOWLEDGE: self.local_knowledge_threshold,
            SourceType.LANGUAGE_MODEL: self.language_model_threshold,
            SourceType.AUTHORITATIVE_DOCS: self.authoritative_docs_threshold,
            SourceType.WEB_SEARCH: self.web_search_threshold,
        }[source]

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> CascadeConfiguration:
        """Validate a mapping, raising ConfigurationError on bad values."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid cascade configuration: {e}") from e

    @classmethod
    def from_json(cls, path: str) -> CascadeConfiguration:
        """Load config from JSON file."""
        with open(path) as f:
            return cls.parse(json.load(f))

    def to_json(self, path: str) -> None:
        """Save config to JSON file."""
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    @classmethod
    def from_env(
        cls, prefix: str = "OPSCASCADE_", environ: Mapping[str, str] | None = None
    ) -> CascadeConfiguration:
        """Build config from environment variables.

        Keys are upper-cased field names after the prefix, e.g.
        OPSCASCADE_LANGUAGE_MODEL_THRESHOLD=0.8. Circuit breaker fields use a
        double underscore: OPSCASCADE_CIRCUIT_BREAKER__FAILURE_THRESHOLD=3.
        Unset keys keep their defaults.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for name in cls.model_fields:
            if name == "circuit_breaker":
                continue
            value = env.get(f"{prefix}{name.upper()}")
            if value is not None and value.strip():
                data[name] = value.strip()

        breaker: dict[str, str] = {}
        for name in CircuitBreakerConfig.model_fields:
            value = env.get(f"{prefix}CIRCUIT_BREAKER__{name.upper()}")
            if value is not None and value.strip():
                breaker[name] = value.strip()
        if breaker:
            data["circuit_breaker"] = breaker

        return cls.parse(data)


def _phrase_list(default: list[str]):
    return Field(default_factory=lambda: list(default))


DEFAULT_HEDGE_PHRASES = [
    "i think",
    "maybe",
    "probably",
    "might",
    "could be",
    "possibly",
    "not sure",
    "uncertain",
    "unclear",
    "don't know",
]

DEFAULT_MEMORY_PHRASES = [
    "remember",
    "what did i",
    "you said",
    "told you",
    "mentioned",
    "earlier",
    "my name",
]

DEFAULT_ACKNOWLEDGMENT_PHRASES = [
    "got it",
    "okay",
    "noted",
    "i'll remember",
    "i remember",
    "you told me",
    "you mentioned",
]

DEFAULT_ANTONYM_PAIRS = [
    ("should", "should not"),
    ("can", "cannot"),
    ("is", "is not"),
    ("will", "will not"),
    ("must", "must not"),
    ("true", "false"),
    ("yes", "no"),
    ("correct", "incorrect"),
]


class LexiconConfig(BaseModel):
    """Word lists used by the Language Model heuristics and conflict detection.

    Defaults reproduce the built-in behavior; deployments can swap lists
    without touching scoring code.
    """

    model_config = ConfigDict(frozen=True)

    hedge_phrases: list[str] = _phrase_list(DEFAULT_HEDGE_PHRASES)
    memory_phrases: list[str] = _phrase_list(DEFAULT_MEMORY_PHRASES)
    acknowledgment_phrases: list[str] = _phrase_list(DEFAULT_ACKNOWLEDGMENT_PHRASES)
    antonym_pairs: list[tuple[str, str]] = Field(
        default_factory=lambda: list(DEFAULT_ANTONYM_PAIRS)
    )

    @field_validator("hedge_phrases", "memory_phrases", "acknowledgment_phrases")
    @classmethod
    def normalize_phrases(cls, v: list[str]) -> list[str]:
        """Lower-case phrases and reject blanks."""
        cleaned = [p.strip().lower() for p in v]
        if any(not p for p in cleaned):
            raise ValueError("Lexicon phrases must be non-empty")
        return cleaned

    @field_validator("antonym_pairs")
    @classmethod
    def normalize_pairs(cls, v: list[tuple[str, str]]) -> list[tuple[str, str]]:
        """Lower-case pairs and reject blanks or identical members."""
        cleaned = []
        for positive, negative in v:
            positive, negative = positive.strip().lower(), negative.strip().lower()
            if not positive or not negative:
                raise ValueError("Antonym pair members must be non-empty")
            if positive == negative:
                raise ValueError(f"Antonym pair members must differ, got {positive!r} twice")
            cleaned.append((positive, negative))
        return cleaned

    @classmethod
    def from_json(cls, path: str) -> LexiconConfig:
        """Load lexicons from JSON file."""
        with open(path) as f:
            try:
                return cls.model_validate(json.load(f))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid lexicon configuration: {e}") from e
