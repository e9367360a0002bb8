"""Data models for the rating engine."""

from badminton_elo.models.match import MatchImportance, MatchOutcome
from badminton_elo.models.participant import Participant, ParticipantKind
from badminton_elo.models.rating import ErrorRecord, RatingBatch, RatingUpdate

__all__ = [
    "ErrorRecord",
    "MatchImportance",
    "MatchOutcome",
    "Participant",
    "ParticipantKind",
    "RatingBatch",
    "RatingUpdate",
]
