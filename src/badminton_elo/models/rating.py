"""Rating update records produced by the engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from badminton_elo.models.participant import ParticipantKind


@dataclass(frozen=True)
class RatingUpdate:
    """Result of rating one participant for one match.

    ``rating_change`` is the rounded delta that was actually applied, so
    ``new_rating == clamp(old_rating + rating_change)`` always holds.

    Attributes:
        participant_id: Identifier of the rated participant.
        kind: Player or team.
        old_rating: Rating before the match.
        new_rating: Rating after the match.
        rating_change: Signed integer delta applied.
        old_tier: Tier before the match.
        new_tier: Tier classified from the new rating.
        expected_score: Expected score against the opposing side.
        actual_score: 1 or 0, or a value in [-0.5, 1.5] under the
            score-weighted model.
        effective_k_factor: K after experience, margin and importance scaling.
        margin_multiplier: Margin multiplier used (1.0 for the losing side).
        opponent_average_rating: Aggregate rating of the opposing side.
        won: Whether this participant's side won.
        games_played: Games played after this match.
        peak_rating: Peak rating after this match.
        match_id: Match the update belongs to.
        played_at: Timestamp of the match, if known.
        error: Error text when the computation failed and a zero-change
            update was substituted.
    """

    participant_id: str
    kind: ParticipantKind
    old_rating: int
    new_rating: int
    rating_change: int
    old_tier: str
    new_tier: str
    expected_score: float
    actual_score: float
    effective_k_factor: float
    margin_multiplier: float
    opponent_average_rating: int
    won: bool
    games_played: int = 0
    peak_rating: int = 0
    match_id: str = ""
    played_at: datetime | None = None
    error: str | None = None

    @property
    def tier_changed(self) -> bool:
        return self.old_tier != self.new_tier

    def tagged(self, match_id: str, played_at: datetime | None) -> RatingUpdate:
        """Return a copy tagged with the match it belongs to."""
        return replace(self, match_id=match_id, played_at=played_at)


@dataclass(frozen=True)
class ErrorRecord:
    """A recoverable error collected during batch or replay processing.

    Attributes:
        subject: Participant or match identifier the error refers to.
        message: Human readable error text.
    """

    subject: str
    message: str


@dataclass(frozen=True)
class RatingBatch:
    """All updates produced by processing one match."""

    participant_updates: tuple[RatingUpdate, ...] = ()
    team_updates: tuple[RatingUpdate, ...] = ()
    errors: tuple[ErrorRecord, ...] = ()
    system: str = ""

    @property
    def all_updates(self) -> tuple[RatingUpdate, ...]:
        return self.participant_updates + self.team_updates

    def update_for(self, participant_id: str, kind: ParticipantKind) -> RatingUpdate | None:
        """Find the update for a participant, or None if it was not rated."""
        for update in self.all_updates:
            if update.participant_id == participant_id and update.kind == kind:
                return update
        return None
