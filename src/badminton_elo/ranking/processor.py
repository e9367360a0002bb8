"""Match-level orchestration of rating updates."""

from __future__ import annotations

from collections.abc import Sequence
from statistics import mean
from typing import TYPE_CHECKING

import structlog

from badminton_elo.core.errors import ParticipantComputationError, ValidationError
from badminton_elo.models import (
    ErrorRecord,
    MatchOutcome,
    Participant,
    ParticipantKind,
    RatingBatch,
    RatingUpdate,
)
from badminton_elo.ranking.engine import ParticipantRatingEngine
from badminton_elo.ranking.formulas import round_half_away, score_weighted_actual

if TYPE_CHECKING:
    from badminton_elo.core.config import RatingSystemConfig

logger = structlog.get_logger()

WINNING_SCORE = 21
SCORE_CEILING = 30
MIN_WIN_MARGIN = 2


def _is_score(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_match(match: MatchOutcome, side_size: int | None = None) -> None:
    """Check that a match outcome is complete and well formed.

    A game is won at 21 with a two point lead, or at 30 regardless of the
    lead.

    Args:
        match: Match to validate.
        side_size: Exact number of participants required per side, or None
            to accept any non-empty side.

    Raises:
        ValidationError: If the match is malformed.
    """
    for field, side in (("side_a", match.side_a), ("side_b", match.side_b)):
        if not side:
            raise ValidationError(field, "each side needs at least one participant")
        if side_size is not None and len(side) != side_size:
            raise ValidationError(field, f"expected {side_size} participants, got {len(side)}")
        if len({p.id for p in side}) != len(side):
            raise ValidationError(field, "duplicate participant on one side")

    ids_a = {p.id for p in match.side_a}
    overlap = ids_a.intersection(p.id for p in match.side_b)
    if overlap:
        raise ValidationError(
            "participants", f"appear on both sides: {', '.join(sorted(overlap))}"
        )

    scores = (("side_a_score", match.side_a_score), ("side_b_score", match.side_b_score))
    for field, score in scores:
        if not _is_score(score):
            raise ValidationError(field, f"score must be a non-negative integer, got {score!r}")

    if match.side_a_score == match.side_b_score:
        raise ValidationError("score", "scores cannot be equal")

    winner, loser = match.winner_score, match.loser_score
    if winner < WINNING_SCORE:
        raise ValidationError("score", f"winning score must be at least {WINNING_SCORE}")
    if winner > SCORE_CEILING:
        raise ValidationError("score", f"scores cannot exceed {SCORE_CEILING}")
    if winner < SCORE_CEILING and winner - loser < MIN_WIN_MARGIN:
        raise ValidationError(
            "score", f"must win by {MIN_WIN_MARGIN} points unless reaching {SCORE_CEILING}"
        )

    if (match.side_a_team is None) != (match.side_b_team is None):
        raise ValidationError("team", "team snapshots must be supplied for both sides or neither")
    if match.has_teams and match.side_a_team.id == match.side_b_team.id:
        raise ValidationError("team", "a team cannot play itself")


class MatchRatingProcessor:
    """Validate a match and rate every participant on both sides.

    Each participant is rated against the opposing side's average rating.
    The margin bonus goes to the winning side only.

    Attributes:
        config: Rating system used for all computations.
        player_engine: Engine rating individual players.
        team_engine: Engine rating team entities.
    """

    def __init__(
        self,
        config: RatingSystemConfig,
        player_engine: ParticipantRatingEngine | None = None,
        team_engine: ParticipantRatingEngine | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Rating system parameters.
            player_engine: Override for the player engine.
            team_engine: Override for the team engine.
        """
        self.config = config
        self.player_engine = player_engine or ParticipantRatingEngine(config)
        self.team_engine = team_engine or ParticipantRatingEngine(config, ParticipantKind.TEAM)

    def aggregate_rating(
        self,
        participants: Sequence[Participant],
        engine: ParticipantRatingEngine | None = None,
    ) -> int:
        """Integer-rounded mean rating of one side.

        Missing or invalid individual ratings count as the default rating.
        """
        engine = engine or self.player_engine
        return round_half_away(mean(engine.normalize(p).rating for p in participants))

    def process(self, match: MatchOutcome) -> RatingBatch:
        """Rate a match.

        Args:
            match: Outcome with participant snapshots.

        Returns:
            Batch with participant updates, team updates and per-participant errors.

        Raises:
            ValidationError: If the match is malformed. Nothing is rated.
        """
        validate_match(match)

        margin_multiplier = self.config.margin_scaling.multiplier(
            match.winner_score, match.loser_score
        )
        importance_multiplier = self.config.importance_multiplier(match.importance)
        errors: list[ErrorRecord] = []

        participant_updates = self._rate_sides(
            self.player_engine,
            match.side_a,
            match.side_b,
            match,
            margin_multiplier,
            importance_multiplier,
            errors,
        )

        team_updates: list[RatingUpdate] = []
        if match.has_teams:
            team_updates = self._rate_sides(
                self.team_engine,
                (match.side_a_team,),
                (match.side_b_team,),
                match,
                margin_multiplier,
                importance_multiplier,
                errors,
            )

        logger.debug(
            "match_processed",
            system=self.config.name,
            match_id=match.match_id or None,
            score=f"{match.side_a_score}-{match.side_b_score}",
            margin_multiplier=round(margin_multiplier, 4),
            participants=len(participant_updates),
            teams=len(team_updates),
            errors=len(errors),
        )

        return RatingBatch(
            participant_updates=tuple(participant_updates),
            team_updates=tuple(team_updates),
            errors=tuple(errors),
            system=self.config.name,
        )

    def _rate_sides(
        self,
        engine: ParticipantRatingEngine,
        side_a: Sequence[Participant],
        side_b: Sequence[Participant],
        match: MatchOutcome,
        margin_multiplier: float,
        importance_multiplier: float,
        errors: list[ErrorRecord],
    ) -> list[RatingUpdate]:
        rating_a = self.aggregate_rating(side_a, engine)
        rating_b = self.aggregate_rating(side_b, engine)

        winner_actual = loser_actual = None
        if self.config.outcome_model == "score_weighted":
            winner_actual, loser_actual = score_weighted_actual(
                match.winner_score, match.loser_score
            )

        updates: list[RatingUpdate] = []
        sides = ((side_a, rating_b, match.side_a_won), (side_b, rating_a, not match.side_a_won))
        for participants, opponent_rating, won in sides:
            for participant in participants:
                try:
                    update = engine.rate(
                        participant,
                        opponent_rating,
                        won,
                        margin_multiplier=margin_multiplier if won else 1.0,
                        importance_multiplier=importance_multiplier,
                        actual_score=winner_actual if won else loser_actual,
                    )
                except ParticipantComputationError as e:
                    logger.warning(
                        "participant_update_failed",
                        participant=participant.id,
                        kind=engine.kind.value,
                        reason=e.reason,
                    )
                    errors.append(ErrorRecord(subject=participant.id, message=e.message))
                    update = engine.unchanged(participant, opponent_rating, won, e.message)
                updates.append(update.tagged(match.match_id, match.played_at))
        return updates
