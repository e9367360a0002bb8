"""Protocols shared by the rating components."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from badminton_elo.models import MatchOutcome, RatingBatch


@runtime_checkable
class MarginScaler(Protocol):
    """Converts a final score into a K multiplier for the winning side.

    Implementations must be monotonically non-decreasing in the margin.
    """

    @property
    def supports_margin_scaling(self) -> bool:
        """Whether the margin can change the multiplier at all."""
        ...

    def multiplier(self, winner_score: int, loser_score: int) -> float:
        """Compute the multiplier for a final score.

        Args:
            winner_score: Points scored by the winner.
            loser_score: Points scored by the loser.

        Returns:
            Multiplier applied to the winners' K-factor.
        """
        ...


@runtime_checkable
class MatchProcessor(Protocol):
    """Anything that can turn a match outcome into a batch of rating updates."""

    def process(self, match: MatchOutcome) -> RatingBatch:
        """Rate every participant of a match.

        Args:
            match: Outcome with participant snapshots.

        Returns:
            Batch of per-participant and per-team updates.
        """
        ...
