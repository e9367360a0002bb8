"""Participant snapshots consumed by the rating engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ParticipantKind(StrEnum):
    """Kind of rated entity. Identifiers are unique within a kind."""

    PLAYER = "player"
    TEAM = "team"


@dataclass(frozen=True)
class Participant:
    """Immutable view of a player or team at one point in time.

    Attributes:
        id: Opaque identifier, unique within its kind.
        display_name: Human readable name, used in diagnostics only.
        rating: Current rating. None means unknown and is replaced by the
            default rating during normalization.
        games_played: Number of rated matches played so far.
        peak_rating: Highest rating observed so far.
        tier: Declared or derived skill tier label.
        kind: Whether this is a player or a team.
    """

    id: str
    display_name: str = ""
    rating: float | None = None
    games_played: int = 0
    peak_rating: float | None = None
    tier: str | None = None
    kind: ParticipantKind = ParticipantKind.PLAYER

    @property
    def label(self) -> str:
        """Name for log lines and reports."""
        return self.display_name or self.id
