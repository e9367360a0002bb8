"""Match outcome records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from badminton_elo.models.participant import Participant


class MatchImportance(StrEnum):
    """Importance class of a match, mapped to a K multiplier by the config."""

    PRACTICE = "practice"
    LEAGUE = "league"
    TOURNAMENT = "tournament"
    CHAMPIONSHIP = "championship"


@dataclass(frozen=True)
class MatchOutcome:
    """Final score of a match together with the participant snapshots.

    Attributes:
        side_a_score: Points scored by side A.
        side_b_score: Points scored by side B.
        side_a: Participants on side A, in roster order.
        side_b: Participants on side B, in roster order.
        side_a_team: Optional team entity for side A.
        side_b_team: Optional team entity for side B.
        importance: Importance class, league when omitted.
        match_id: Identifier used for ordering and error reporting.
        played_at: When the match was played.
    """

    side_a_score: int
    side_b_score: int
    side_a: tuple[Participant, ...]
    side_b: tuple[Participant, ...]
    side_a_team: Participant | None = None
    side_b_team: Participant | None = None
    importance: MatchImportance = MatchImportance.LEAGUE
    match_id: str = ""
    played_at: datetime | None = None

    @property
    def side_a_won(self) -> bool:
        return self.side_a_score > self.side_b_score

    @property
    def winner_score(self) -> int:
        return max(self.side_a_score, self.side_b_score)

    @property
    def loser_score(self) -> int:
        return min(self.side_a_score, self.side_b_score)

    @property
    def margin(self) -> int:
        return self.winner_score - self.loser_score

    @property
    def has_teams(self) -> bool:
        return self.side_a_team is not None and self.side_b_team is not None
