"""Skill tier classification for players and teams."""

from __future__ import annotations

from badminton_elo.core.config import PLAYER_TIERS, TEAM_TIERS, TierScale
from badminton_elo.ranking.formulas import is_finite


class SkillClassifier:
    """Map ratings to tier labels using an ordered band scale.

    Player and team classifiers use different scales with overlapping
    labels, so keep one instance per kind.

    Attributes:
        scale: Tier scale with contiguous bands.
    """

    def __init__(self, scale: TierScale = PLAYER_TIERS) -> None:
        self.scale = scale
        self._ranges = {band.label: (band.min_rating, band.max_rating) for band in scale.bands}

    @classmethod
    def for_players(cls) -> SkillClassifier:
        return cls(PLAYER_TIERS)

    @classmethod
    def for_teams(cls) -> SkillClassifier:
        return cls(TEAM_TIERS)

    @property
    def labels(self) -> list[str]:
        """Tier labels from lowest to highest."""
        return [band.label for band in self.scale.bands]

    def classify(self, rating: float | None) -> str:
        """Classify a rating.

        Args:
            rating: Rating to classify.

        Returns:
            Tier label, or the fallback tier for missing or out-of-range ratings.
        """
        if not is_finite(rating):
            return self.scale.fallback
        for band in self.scale.bands:
            # Bands are closed integer intervals; fractional ratings belong
            # to the band whose upper edge they have not yet passed by a full point.
            if band.min_rating <= rating < band.max_rating + 1:
                return band.label
        return self.scale.fallback

    def range_of(self, label: str) -> tuple[int, int]:
        """Return the closed rating interval of a tier.

        Args:
            label: Tier label, matched case-insensitively.

        Returns:
            Tuple of (min_rating, max_rating).

        Raises:
            KeyError: If the label is not part of this scale.
        """
        for known, bounds in self._ranges.items():
            if known.lower() == label.lower():
                return bounds
        msg = f"Unknown tier '{label}'. Known tiers: {', '.join(self.labels)}"
        raise KeyError(msg)

    def canonical(self, label: str | None) -> str | None:
        """Return the label spelled as in the scale, or None if unknown."""
        if label is None:
            return None
        for known in self._ranges:
            if known.lower() == label.strip().lower():
                return known
        return None
