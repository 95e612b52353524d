"""Confidence scoring and conflict detection."""

from opscascade.scoring.conflicts import ConflictConfig, ConflictDetector, antonym_conflict
from opscascade.scoring.scorer import ConfidenceScorer

__all__ = [
    "ConfidenceScorer",
    "ConflictDetector",
    "ConflictConfig",
    "antonym_conflict",
]
