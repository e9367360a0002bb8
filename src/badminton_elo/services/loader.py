"""Loading rosters and match logs from YAML files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from badminton_elo.models import MatchImportance, MatchOutcome, Participant, ParticipantKind


class RosterEntry(BaseModel):
    """One player or team on the roster.

    ``rating``, ``games_played`` and ``peak_rating`` are the stored values
    used when rating a single match; replays ignore them and seed from
    ``tier``.
    """

    id: str = Field(..., min_length=1)
    name: str = ""
    kind: ParticipantKind = ParticipantKind.PLAYER
    tier: str | None = None
    rating: float | None = None
    games_played: int = 0
    peak_rating: float | None = None

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Participant IDs cannot be empty"
            raise ValueError(msg)
        return v

    def to_participant(self) -> Participant:
        return Participant(
            id=self.id,
            display_name=self.name,
            rating=self.rating,
            games_played=self.games_played,
            peak_rating=self.peak_rating,
            tier=self.tier,
            kind=self.kind,
        )


class MatchEntry(BaseModel):
    """One match in the log, referencing roster entries by id."""

    id: str = ""
    played_at: datetime | None = None
    side_a: list[str] = Field(..., min_length=1)
    side_b: list[str] = Field(..., min_length=1)
    team_a: str | None = None
    team_b: str | None = None
    score_a: int
    score_b: int
    importance: MatchImportance = MatchImportance.LEAGUE


class MatchLog(BaseModel):
    """Roster plus chronological match log."""

    roster: list[RosterEntry] = Field(default_factory=list)
    matches: list[MatchEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_ids(self) -> MatchLog:
        seen: set[tuple[ParticipantKind, str]] = set()
        for entry in self.roster:
            key = (entry.kind, entry.id)
            if key in seen:
                msg = f"Duplicate {entry.kind} id on roster: {entry.id}"
                raise ValueError(msg)
            seen.add(key)
        return self

    def participants(self) -> list[Participant]:
        """Roster as participant snapshots."""
        return [entry.to_participant() for entry in self.roster]

    def outcomes(self) -> list[MatchOutcome]:
        """Matches as outcomes with the roster's stored snapshots.

        Ids missing from the roster become bare snapshots with no rating.
        """
        index = {(entry.kind, entry.id): entry.to_participant() for entry in self.roster}

        def lookup(participant_id: str, kind: ParticipantKind) -> Participant:
            return index.get((kind, participant_id)) or Participant(id=participant_id, kind=kind)

        outcomes = []
        for position, entry in enumerate(self.matches, start=1):
            team_a = lookup(entry.team_a, ParticipantKind.TEAM) if entry.team_a else None
            team_b = lookup(entry.team_b, ParticipantKind.TEAM) if entry.team_b else None
            outcomes.append(
                MatchOutcome(
                    side_a_score=entry.score_a,
                    side_b_score=entry.score_b,
                    side_a=tuple(lookup(pid, ParticipantKind.PLAYER) for pid in entry.side_a),
                    side_b=tuple(lookup(pid, ParticipantKind.PLAYER) for pid in entry.side_b),
                    side_a_team=team_a,
                    side_b_team=team_b,
                    importance=entry.importance,
                    match_id=entry.id or f"match-{position}",
                    played_at=entry.played_at,
                )
            )
        return outcomes


def load_match_log(path: str | Path) -> MatchLog:
    """Load and validate a roster and match log from a YAML file.

    Args:
        path: Path to YAML file with ``roster`` and ``matches`` lists.

    Returns:
        Validated MatchLog instance.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValidationError: If the content is invalid.
    """
    log_path = Path(path)
    if not log_path.exists():
        msg = f"Match log not found: {log_path}"
        raise FileNotFoundError(msg)

    with log_path.open() as f:
        data = yaml.safe_load(f) or {}

    return MatchLog.model_validate(data)
