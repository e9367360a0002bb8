"""Margin-of-victory scaling strategies.

Each strategy is a small immutable pydantic model tagged by ``kind`` so
rating system configs can select one from YAML:

    margin_scaling:
      kind: logarithmic
      scale_factor: 0.15
      baseline_margin: 2
      max_multiplier: 1.75
"""

from __future__ import annotations

import math
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from badminton_elo.ranking.formulas import clamp


class _BoundedScaling(BaseModel):
    """Shared parameters for strategies that scale with the margin."""

    model_config = ConfigDict(frozen=True)

    scale_factor: float = Field(..., ge=0)
    baseline_margin: int = Field(default=0, ge=0)
    min_multiplier: float = Field(default=1.0, gt=0)
    max_multiplier: float = Field(default=2.0, gt=0)

    @model_validator(mode="after")
    def check_bounds(self) -> _BoundedScaling:
        if self.min_multiplier > self.max_multiplier:
            msg = "min_multiplier must not exceed max_multiplier"
            raise ValueError(msg)
        return self

    @property
    def supports_margin_scaling(self) -> bool:
        return True

    def effective_margin(self, winner_score: int, loser_score: int) -> int:
        """Points won by beyond the baseline, never negative."""
        return max(0, (winner_score - loser_score) - self.baseline_margin)

    def _raw(self, effective_margin: int) -> float:
        raise NotImplementedError

    def multiplier(self, winner_score: int, loser_score: int) -> float:
        """K multiplier for the winning side.

        Args:
            winner_score: Points scored by the winner.
            loser_score: Points scored by the loser.

        Returns:
            Multiplier in [min_multiplier, max_multiplier].
        """
        effective = self.effective_margin(winner_score, loser_score)
        if effective == 0:
            return self.min_multiplier
        return clamp(self._raw(effective), self.min_multiplier, self.max_multiplier)


class NoScaling(BaseModel):
    """Binary outcome: the margin never changes the update."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"

    @property
    def supports_margin_scaling(self) -> bool:
        return False

    def multiplier(self, winner_score: int, loser_score: int) -> float:
        return 1.0


class LogarithmicScaling(_BoundedScaling):
    """Diminishing bonus for larger margins, as in international football rankings."""

    kind: Literal["logarithmic"] = "logarithmic"
    log_base: float = Field(default=math.e, gt=1)

    def _raw(self, effective_margin: int) -> float:
        return 1 + self.scale_factor * math.log(1 + effective_margin, self.log_base)


class LinearScaling(_BoundedScaling):
    """Constant bonus per point of margin beyond the baseline."""

    kind: Literal["linear"] = "linear"

    def _raw(self, effective_margin: int) -> float:
        return 1 + self.scale_factor * effective_margin


MarginScaling = Annotated[
    NoScaling | LogarithmicScaling | LinearScaling,
    Field(discriminator="kind"),
]
