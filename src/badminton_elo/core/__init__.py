"""Core configuration and utilities for the rating engine."""

from badminton_elo.core.config import (
    DEFAULT_SYSTEM,
    PLAYER_TIERS,
    TEAM_TIERS,
    EngineConfig,
    ExperienceSchedule,
    RatingSystemConfig,
    RatingSystemsFile,
    TierBand,
    TierScale,
    builtin_rating_systems,
    load_rating_systems,
)
from badminton_elo.core.errors import (
    ParticipantComputationError,
    RatingEngineError,
    RosterResolutionError,
    UnknownSystemError,
    ValidationError,
)
from badminton_elo.core.progress import ReplayProgress

__all__ = [
    "DEFAULT_SYSTEM",
    "PLAYER_TIERS",
    "TEAM_TIERS",
    "EngineConfig",
    "ExperienceSchedule",
    "RatingSystemConfig",
    "RatingSystemsFile",
    "ReplayProgress",
    "TierBand",
    "TierScale",
    "builtin_rating_systems",
    "load_rating_systems",
    "ParticipantComputationError",
    "RatingEngineError",
    "RosterResolutionError",
    "UnknownSystemError",
    "ValidationError",
]
