"""Ranking module for the badminton rating engine.

Provides the Elo primitives, margin scaling strategies, tier classifiers,
the participant and match processors, and the rating system registry.
"""

from __future__ import annotations

from pathlib import Path

from badminton_elo.core.config import DEFAULT_SYSTEM, load_rating_systems
from badminton_elo.ranking.base import MarginScaler, MatchProcessor
from badminton_elo.ranking.engine import ParticipantRatingEngine
from badminton_elo.ranking.formulas import (
    adjust_k_factor,
    apply_delta,
    describe_margin,
    expected_score,
    opponent_strength_factor,
    round_half_away,
    score_weighted_actual,
)
from badminton_elo.ranking.margin import (
    LinearScaling,
    LogarithmicScaling,
    MarginScaling,
    NoScaling,
)
from badminton_elo.ranking.processor import MatchRatingProcessor, validate_match
from badminton_elo.ranking.registry import RatingSystemInfo, RatingSystemRegistry
from badminton_elo.ranking.tiers import SkillClassifier


def create_registry(
    systems_path: str | Path | None = None,
    default: str | None = None,
) -> RatingSystemRegistry:
    """Create a registry with the built-in systems plus optional custom ones.

    Custom systems from the YAML file replace built-ins of the same name.

    Args:
        systems_path: Optional YAML file with extra rating systems.
        default: Name of the initially active system. Falls back to the
            file's ``default`` entry, then to "standard".

    Returns:
        Configured registry.
    """
    registry = RatingSystemRegistry()
    file_default = None
    if systems_path is not None:
        systems_file = load_rating_systems(systems_path)
        for config in systems_file.systems:
            registry.register(config, replace=True)
        file_default = systems_file.default

    registry.select(default or file_default or DEFAULT_SYSTEM)
    return registry


__all__ = [
    "LinearScaling",
    "LogarithmicScaling",
    "MarginScaler",
    "MarginScaling",
    "MatchProcessor",
    "MatchRatingProcessor",
    "NoScaling",
    "ParticipantRatingEngine",
    "RatingSystemInfo",
    "RatingSystemRegistry",
    "SkillClassifier",
    "adjust_k_factor",
    "apply_delta",
    "create_registry",
    "describe_margin",
    "expected_score",
    "opponent_strength_factor",
    "round_half_away",
    "score_weighted_actual",
    "validate_match",
]
