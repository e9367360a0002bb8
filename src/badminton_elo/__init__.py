"""Badminton Elo rating engine.

Rate players and teams after each match with pluggable margin-of-victory
scaling, adaptive K-factors and skill tiers, and rebuild rating history
deterministically from a match log.
"""

from badminton_elo.models import (
    MatchImportance,
    MatchOutcome,
    Participant,
    ParticipantKind,
    RatingBatch,
    RatingUpdate,
)
from badminton_elo.ranking import RatingSystemRegistry, create_registry
from badminton_elo.services import ReplayResult, SequentialReplayEngine

__version__ = "0.1.0"
__all__ = [
    "MatchImportance",
    "MatchOutcome",
    "Participant",
    "ParticipantKind",
    "RatingBatch",
    "RatingSystemRegistry",
    "RatingUpdate",
    "ReplayResult",
    "SequentialReplayEngine",
    "__version__",
    "create_registry",
]
