"""Single-participant rating updates."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import structlog

from badminton_elo.core.errors import ParticipantComputationError
from badminton_elo.models import Participant, ParticipantKind, RatingUpdate
from badminton_elo.ranking.formulas import (
    adjust_k_factor,
    apply_delta,
    clamp,
    clamp_rating,
    expected_score,
    is_finite,
    opponent_strength_factor,
)
from badminton_elo.ranking.tiers import SkillClassifier

if TYPE_CHECKING:
    from badminton_elo.core.config import RatingSystemConfig

logger = structlog.get_logger()


class ParticipantRatingEngine:
    """Compute one participant's rating update for one match.

    One engine instance serves one participant kind. Inputs are never
    mutated; every call returns a new record.

    Attributes:
        config: Rating system the engine computes for.
        kind: Participant kind this engine rates.
        classifier: Tier classifier for the kind.
    """

    def __init__(
        self,
        config: RatingSystemConfig,
        kind: ParticipantKind = ParticipantKind.PLAYER,
        classifier: SkillClassifier | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Rating system parameters.
            kind: Player or team.
            classifier: Tier classifier. Defaults to the config's scale for the kind.
        """
        self.config = config
        self.kind = kind
        self.settings = config.engine(kind)
        self.classifier = classifier or SkillClassifier(self.settings.tiers)

    def normalize(self, participant: Participant) -> Participant:
        """Return a corrected copy of a participant snapshot.

        Missing or non-finite ratings fall back to the default rating,
        ratings are rounded into bounds, negative experience becomes zero
        and the peak is never below the current rating. The tier is
        derived from the rating unless the snapshot declares a recognised
        tier label, which is kept as an override.

        Args:
            participant: Snapshot as supplied by the caller.

        Returns:
            Snapshot safe to compute with.
        """
        fixes: list[str] = []

        if is_finite(participant.rating):
            rating = clamp_rating(
                participant.rating, self.config.min_rating, self.config.max_rating
            )
            if rating != participant.rating:
                fixes.append("rating_clamped")
        else:
            rating = self.config.default_rating
            fixes.append("rating_defaulted")

        games = participant.games_played
        if not is_finite(games) or games < 0:
            games = 0
            fixes.append("games_reset")
        games = int(games)

        peak = rating
        if is_finite(participant.peak_rating):
            peak = clamp_rating(participant.peak_rating, rating, self.config.max_rating)

        tier = self.classifier.canonical(participant.tier) or self.classifier.classify(rating)

        if fixes:
            logger.debug("participant_normalized", participant=participant.id, fixes=fixes)

        return replace(
            participant,
            rating=rating,
            games_played=games,
            peak_rating=peak,
            tier=tier,
            kind=self.kind,
        )

    def seed_rating(self, tier: str | None) -> int:
        """Initial rating for a declared tier.

        Args:
            tier: Declared skill tier, matched case-insensitively.

        Returns:
            Seed rating for the tier, or the default rating.
        """
        if tier:
            seeded = self.settings.seed_ratings.get(tier.strip().lower())
            if seeded is not None:
                return clamp_rating(seeded, self.config.min_rating, self.config.max_rating)
        return self.config.default_rating

    def k_factor(self, participant: Participant) -> float:
        """Experience-adjusted K-factor for a normalized participant."""
        return adjust_k_factor(
            self.settings.k_factor,
            participant.games_played,
            participant.rating,
            self.settings.experience,
            self.settings.k_min,
            self.settings.k_max,
        )

    def rate(
        self,
        participant: Participant,
        opponent_rating: float | None,
        won: bool,
        margin_multiplier: float = 1.0,
        importance_multiplier: float = 1.0,
        actual_score: float | None = None,
    ) -> RatingUpdate:
        """Rate one participant against the opposing side's aggregate rating.

        Args:
            participant: Participant snapshot.
            opponent_rating: Aggregate rating of the opposing side. Missing
                values fall back to the default rating.
            won: Whether the participant's side won.
            margin_multiplier: Margin multiplier; callers pass 1.0 for losers.
            importance_multiplier: Multiplier for the match importance class.
            actual_score: Fractional actual score. Defaults to 1 for a win
                and 0 for a loss.

        Returns:
            Rating update for the participant.

        Raises:
            ParticipantComputationError: If the computation fails.
        """
        current = self.normalize(participant)

        if not is_finite(opponent_rating):
            logger.warning(
                "opponent_rating_defaulted",
                participant=current.id,
                opponent_rating=opponent_rating,
            )
            opponent_rating = self.config.default_rating

        try:
            k_base = self.k_factor(current)
            multiplier = margin_multiplier * importance_multiplier
            if self.config.opponent_strength:
                multiplier *= opponent_strength_factor(current.rating, opponent_rating)
            k_effective = clamp(
                k_base * multiplier,
                self.config.k_effective_min,
                self.config.k_effective_max,
            )

            expected = expected_score(current.rating, opponent_rating)
            actual = actual_score if actual_score is not None else (1.0 if won else 0.0)
            new_rating, delta = apply_delta(
                current.rating,
                expected,
                actual,
                k_effective,
                self.config.min_rating,
                self.config.max_rating,
                self.config.default_rating,
            )
            new_tier = self.classifier.classify(new_rating)
        except (ArithmeticError, ValueError, TypeError) as e:
            raise ParticipantComputationError(current.id, str(e)) from e

        return RatingUpdate(
            participant_id=current.id,
            kind=self.kind,
            old_rating=current.rating,
            new_rating=new_rating,
            rating_change=delta,
            old_tier=current.tier,
            new_tier=new_tier,
            expected_score=expected,
            actual_score=actual,
            effective_k_factor=k_effective,
            margin_multiplier=margin_multiplier,
            opponent_average_rating=clamp_rating(
                opponent_rating, self.config.min_rating, self.config.max_rating
            ),
            won=won,
            games_played=current.games_played + 1,
            peak_rating=max(current.peak_rating, new_rating),
        )

    def unchanged(
        self,
        participant: Participant,
        opponent_rating: float | None,
        won: bool,
        error: str,
    ) -> RatingUpdate:
        """Zero-change update substituted when rating a participant failed.

        Experience is not advanced, so applying this update leaves the
        participant exactly as it was.
        """
        current = self.normalize(participant)
        if not is_finite(opponent_rating):
            opponent_rating = self.config.default_rating
        return RatingUpdate(
            participant_id=current.id,
            kind=self.kind,
            old_rating=current.rating,
            new_rating=current.rating,
            rating_change=0,
            old_tier=current.tier,
            new_tier=current.tier,
            expected_score=0.5,
            actual_score=1.0 if won else 0.0,
            effective_k_factor=0.0,
            margin_multiplier=1.0,
            opponent_average_rating=clamp_rating(
                opponent_rating, self.config.min_rating, self.config.max_rating
            ),
            won=won,
            games_played=current.games_played,
            peak_rating=current.peak_rating,
            error=error,
        )
