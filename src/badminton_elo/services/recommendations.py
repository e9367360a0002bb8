"""Skill tier recommendations derived from ratings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from badminton_elo.models import Participant, ParticipantKind
from badminton_elo.ranking.formulas import clamp, is_finite, round_half_away
from badminton_elo.ranking.tiers import SkillClassifier

if TYPE_CHECKING:
    from badminton_elo.core.config import RatingSystemConfig
    from badminton_elo.services.replay import ReplayResult

logger = structlog.get_logger()

MIN_TEAM_GAMES = 5
UNDECLARED_TEAM_TIER = "Mixed"


@dataclass(frozen=True)
class TierRecommendation:
    """Suggested tier change for one participant."""

    participant_id: str
    display_name: str
    kind: ParticipantKind
    current_tier: str | None
    recommended_tier: str
    rating: int
    games_played: int
    confidence: int


def player_confidence(
    games_played: int,
    rating: float,
    declared_tier: str | None,
    classifier: SkillClassifier,
) -> int:
    """Confidence (0-100) in a player tier recommendation.

    More games raise confidence, and so does a rating far from the edges of
    the declared tier.
    """
    confidence = min(100, games_played * 5)
    canonical = classifier.canonical(declared_tier)
    if canonical is not None:
        low, high = classifier.range_of(canonical)
        distance = min(abs(rating - low), abs(rating - high))
        confidence += min(30, distance / 10)
    return min(100, round_half_away(confidence))


def team_confidence(games_played: int, rating: float, initial_rating: int = 1500) -> int:
    """Confidence (0-100) in a team tier recommendation.

    Teams far from the initial rating need proportionally more games.
    """
    games_confidence = min(100, games_played / 10 * 100)
    distance = abs(rating - initial_rating)
    stability = min(100, games_played / max(1, distance / 100) * 100)
    return round_half_away(clamp((games_confidence + stability) / 2, 0, 100))


def recommend_tier_changes(
    participants: Iterable[Participant],
    config: RatingSystemConfig,
    min_team_games: int = MIN_TEAM_GAMES,
) -> list[TierRecommendation]:
    """Recommend tier changes where the declared tier disagrees with the rating.

    Args:
        participants: Snapshots whose ``tier`` holds the declared tier.
        config: Rating system providing the tier scales.
        min_team_games: Teams with fewer games are not considered.

    Returns:
        Recommendations sorted by confidence descending, then id.
    """
    classifiers = {
        ParticipantKind.PLAYER: SkillClassifier(config.players.tiers),
        ParticipantKind.TEAM: SkillClassifier(config.teams.tiers),
    }
    recommendations = []

    for participant in participants:
        classifier = classifiers[participant.kind]
        if participant.kind == ParticipantKind.TEAM:
            if not is_finite(participant.rating) or participant.games_played < min_team_games:
                continue
            rating = participant.rating
            current = participant.tier or UNDECLARED_TEAM_TIER
        else:
            rating = participant.rating if is_finite(participant.rating) else config.default_rating
            current = participant.tier

        recommended = classifier.classify(rating)
        if classifier.canonical(current) == recommended:
            continue

        if participant.kind == ParticipantKind.TEAM:
            confidence = team_confidence(participant.games_played, rating, config.default_rating)
        else:
            confidence = player_confidence(participant.games_played, rating, current, classifier)

        recommendations.append(
            TierRecommendation(
                participant_id=participant.id,
                display_name=participant.display_name,
                kind=participant.kind,
                current_tier=current,
                recommended_tier=recommended,
                rating=round_half_away(rating),
                games_played=participant.games_played,
                confidence=confidence,
            )
        )

    logger.debug("tier_recommendations", count=len(recommendations))
    return sorted(recommendations, key=lambda r: (-r.confidence, r.participant_id))


def recommendations_from_replay(
    result: ReplayResult, config: RatingSystemConfig
) -> list[TierRecommendation]:
    """Recommend tier changes from a replay's final ledger."""
    participants = [
        Participant(
            id=entry.participant_id,
            display_name=entry.display_name,
            rating=entry.rating,
            games_played=entry.games_played,
            peak_rating=entry.peak_rating,
            tier=entry.declared_tier,
            kind=entry.kind,
        )
        for entries in (result.ledger.players, result.ledger.teams)
        for entry in entries.values()
    ]
    return recommend_tier_changes(participants, config)
