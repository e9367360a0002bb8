"""Pure numeric primitives for Elo rating updates."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from badminton_elo.core.config import ExperienceSchedule

logger = structlog.get_logger()

DEFAULT_RATING = 1500
MIN_RATING = 800
MAX_RATING = 2800
# Keeps expected scores strictly inside (0, 1) for extreme rating gaps
EXPECTED_FLOOR = 1e-12


def is_finite(*values: float | None) -> bool:
    """Return True when every value is a real, finite number."""
    for value in values:
        if value is None or isinstance(value, bool):
            return False
        try:
            if not math.isfinite(value):
                return False
        except TypeError:
            return False
    return True


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Python's ``round`` uses banker's rounding, which would make a +16.5
    gain and a -16.5 loss round to different magnitudes.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into the closed interval [lower, upper]."""
    return max(lower, min(upper, value))


def clamp_rating(
    rating: float,
    min_rating: int = MIN_RATING,
    max_rating: int = MAX_RATING,
) -> int:
    """Round and clamp a rating into the valid rating band."""
    return int(clamp(round_half_away(rating), min_rating, max_rating))


def expected_score(rating_self: float, rating_opponent: float) -> float:
    """Calculate the expected score of one side against another.

    Uses the logistic Elo formula:
    E = 1 / (1 + 10^((R_opponent - R_self) / 400))

    Non-finite inputs are logged and treated as an even match.

    Args:
        rating_self: Rating of the side being evaluated.
        rating_opponent: Rating of the opposing side.

    Returns:
        Expected score in (0, 1).
    """
    if not is_finite(rating_self, rating_opponent):
        logger.warning(
            "non_finite_rating_input",
            rating_self=rating_self,
            rating_opponent=rating_opponent,
        )
        return 0.5
    try:
        expected = 1.0 / (1.0 + 10 ** ((rating_opponent - rating_self) / 400))
    except OverflowError:
        expected = 0.0
    return clamp(expected, EXPECTED_FLOOR, 1.0 - EXPECTED_FLOOR)


def apply_delta(
    current_rating: float,
    expected: float,
    actual: float,
    k_factor: float,
    min_rating: int = MIN_RATING,
    max_rating: int = MAX_RATING,
    default_rating: int = DEFAULT_RATING,
) -> tuple[int, int]:
    """Apply one Elo update to a rating.

    The delta is rounded exactly once here. The returned delta is the one
    applied before clamping, so replaying it reproduces the new rating.

    Args:
        current_rating: Rating before the match.
        expected: Expected score.
        actual: Actual score.
        k_factor: Effective K-factor.
        min_rating: Lower rating bound.
        max_rating: Upper rating bound.
        default_rating: Rating used when current_rating is not finite.

    Returns:
        Tuple of (new_rating, delta).
    """
    if not is_finite(current_rating):
        logger.warning("non_finite_rating_input", current_rating=current_rating)
        return clamp_rating(default_rating, min_rating, max_rating), 0

    base = clamp_rating(current_rating, min_rating, max_rating)
    if not is_finite(expected, actual, k_factor):
        logger.warning(
            "non_finite_delta_input",
            expected=expected,
            actual=actual,
            k_factor=k_factor,
        )
        return base, 0

    delta = round_half_away(k_factor * (actual - expected))
    new_rating = int(clamp(base + delta, min_rating, max_rating))
    return new_rating, delta


def adjust_k_factor(
    k_factor: float,
    games_played: int,
    rating: float,
    schedule: ExperienceSchedule,
    k_min: float,
    k_max: float,
) -> float:
    """Scale a base K-factor by the participant's experience.

    Adjustments are mutually exclusive and checked in order: provisional,
    new participant, high rated, experienced. The first that applies wins.

    Args:
        k_factor: Base K-factor of the rating system.
        games_played: Rated games played so far.
        rating: Current rating.
        schedule: Thresholds and factors for the experience bands.
        k_min: Lower bound for the adjusted K.
        k_max: Upper bound for the adjusted K.

    Returns:
        Adjusted and clamped K-factor.
    """
    if games_played < schedule.provisional_games:
        k_factor *= schedule.provisional_factor
    elif games_played < schedule.new_participant_games:
        k_factor *= schedule.new_participant_factor
    elif rating > schedule.high_rated_threshold:
        k_factor *= schedule.high_rated_factor
    elif games_played > schedule.experienced_games:
        k_factor *= schedule.experienced_factor
    return clamp(k_factor, k_min, k_max)


def opponent_strength_factor(rating_self: float, rating_opponent: float) -> float:
    """K multiplier rewarding results against stronger opponents.

    Beating or losing to a stronger side moves ratings a little more, a
    weaker side a little less. Bounded to [0.7, 1.3].
    """
    diff = rating_opponent - rating_self
    if diff > 0:
        factor = 1 + 0.1 * math.log(1 + diff / 100)
    elif diff < 0:
        factor = 1 - 0.05 * math.log(1 + abs(diff) / 100)
    else:
        factor = 1.0
    return clamp(factor, 0.7, 1.3)


def score_weighted_actual(winner_score: int, loser_score: int) -> tuple[float, float]:
    """Fractional actual scores that reward decisive wins.

    The winner's share is 0.5 plus the point difference relative to the
    winning score, so it runs from just over 0.5 for a two point win up to
    1.5 for a shutout. The loser gets the remainder, down to -0.5, which
    makes a rout cost more than a plain loss and a close loss cost less.

    Args:
        winner_score: Points scored by the winning side.
        loser_score: Points scored by the losing side.

    Returns:
        Tuple of (winner_actual, loser_actual), summing to 1.
    """
    if winner_score <= 0:
        return 1.0, 0.0
    normalized = clamp((winner_score - loser_score) / winner_score, 0.0, 1.0)
    winner_actual = min(1.5, 0.5 + normalized)
    return winner_actual, 1.0 - winner_actual


def describe_margin(margin: int) -> str:
    """Describe a points margin in words."""
    if margin >= 15:
        return "Crushing Victory"
    if margin >= 10:
        return "Dominant Win"
    if margin >= 6:
        return "Clear Victory"
    if margin >= 3:
        return "Comfortable Win"
    if margin >= 2:
        return "Close Win"
    return "Extremely Close"
