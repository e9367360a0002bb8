"""Configuration schemas and loading for rating systems."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from badminton_elo.models import MatchImportance, ParticipantKind
from badminton_elo.ranking.margin import (
    LinearScaling,
    LogarithmicScaling,
    MarginScaling,
    NoScaling,
)

DEFAULT_SYSTEM = "standard"

DEFAULT_IMPORTANCE: dict[MatchImportance, float] = {
    MatchImportance.PRACTICE: 0.8,
    MatchImportance.LEAGUE: 1.0,
    MatchImportance.TOURNAMENT: 1.2,
    MatchImportance.CHAMPIONSHIP: 1.4,
}


class TierBand(BaseModel):
    """Closed rating interval mapped to a tier label."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1)
    min_rating: int
    max_rating: int

    @model_validator(mode="after")
    def check_order(self) -> TierBand:
        if self.min_rating > self.max_rating:
            msg = f"Tier '{self.label}' has min_rating above max_rating"
            raise ValueError(msg)
        return self


class TierScale(BaseModel):
    """Ordered, contiguous set of tier bands.

    Attributes:
        bands: Bands in ascending rating order, without gaps or overlaps.
        fallback: Label used for missing or out-of-range ratings.
    """

    model_config = ConfigDict(frozen=True)

    bands: tuple[TierBand, ...] = Field(..., min_length=1)
    fallback: str = "Intermediate"

    @field_validator("bands")
    @classmethod
    def validate_contiguous(cls, v: tuple[TierBand, ...]) -> tuple[TierBand, ...]:
        """Ensure each band starts right after the previous one ends."""
        for previous, band in zip(v, v[1:], strict=False):
            if band.min_rating != previous.max_rating + 1:
                msg = (
                    f"Tier '{band.label}' must start at {previous.max_rating + 1} "
                    f"to follow '{previous.label}'"
                )
                raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def check_fallback(self) -> TierScale:
        if self.fallback not in {band.label for band in self.bands}:
            msg = f"Fallback tier '{self.fallback}' is not one of the bands"
            raise ValueError(msg)
        return self


PLAYER_TIERS = TierScale(
    bands=(
        TierBand(label="Beginner", min_rating=800, max_rating=1399),
        TierBand(label="Intermediate", min_rating=1400, max_rating=1799),
        TierBand(label="Advanced", min_rating=1800, max_rating=2800),
    ),
)

TEAM_TIERS = TierScale(
    bands=(
        TierBand(label="Beginner", min_rating=800, max_rating=1199),
        TierBand(label="Developing", min_rating=1200, max_rating=1399),
        TierBand(label="Intermediate", min_rating=1400, max_rating=1599),
        TierBand(label="Advanced", min_rating=1600, max_rating=1799),
        TierBand(label="Elite", min_rating=1800, max_rating=2800),
    ),
)


class ExperienceSchedule(BaseModel):
    """Experience bands that scale the base K-factor.

    The first matching band applies: provisional, then new participant,
    then high rated, then experienced.
    """

    model_config = ConfigDict(frozen=True)

    provisional_games: int = Field(default=10, ge=0)
    provisional_factor: float = Field(default=2.0, gt=0)
    new_participant_games: int = Field(default=30, ge=0)
    new_participant_factor: float = Field(default=1.5, gt=0)
    high_rated_threshold: int = 2000
    high_rated_factor: float = Field(default=0.6, gt=0)
    experienced_games: int = Field(default=100, ge=0)
    experienced_factor: float = Field(default=0.8, gt=0)


class EngineConfig(BaseModel):
    """Per-kind parameters for the participant rating engine.

    Attributes:
        k_factor: Base K-factor before experience adjustment.
        k_min: Lower bound of the experience-adjusted K.
        k_max: Upper bound of the experience-adjusted K.
        experience: Experience bands.
        tiers: Tier scale used to classify ratings.
        seed_ratings: Initial rating per declared tier (case-insensitive).
            Tiers not listed seed at the system default rating.
    """

    model_config = ConfigDict(frozen=True)

    k_factor: float = Field(default=32.0, gt=0)
    k_min: float = Field(default=8.0, gt=0)
    k_max: float = Field(default=64.0, gt=0)
    experience: ExperienceSchedule = Field(default_factory=ExperienceSchedule)
    tiers: TierScale = PLAYER_TIERS
    seed_ratings: dict[str, int] = Field(
        default_factory=lambda: {"beginner": 1200, "intermediate": 1500, "advanced": 1800}
    )

    @field_validator("seed_ratings")
    @classmethod
    def lowercase_seed_keys(cls, v: dict[str, int]) -> dict[str, int]:
        return {key.lower(): value for key, value in v.items()}

    @model_validator(mode="after")
    def check_k_band(self) -> EngineConfig:
        if self.k_min > self.k_max:
            msg = "k_min must not exceed k_max"
            raise ValueError(msg)
        return self


def _team_engine() -> EngineConfig:
    return EngineConfig(
        k_factor=24.0,
        k_max=48.0,
        experience=ExperienceSchedule(
            provisional_games=5,
            new_participant_games=15,
            high_rated_threshold=1800,
            experienced_games=50,
        ),
        tiers=TEAM_TIERS,
        seed_ratings={},
    )


class RatingSystemConfig(BaseModel):
    """Immutable, named bundle of rating parameters.

    Attributes:
        name: Registry key.
        description: One-line description for listings.
        best_for: What the system suits best.
        margin_scaling: Strategy turning the score margin into a K multiplier.
        outcome_model: "binary" for 1/0 actual scores, "score_weighted" for
            fractional actual scores derived from the margin.
        opponent_strength: Scale K by the strength gap to the opponent.
        importance: K multiplier per match importance class.
        min_rating: Lower rating bound.
        max_rating: Upper rating bound.
        default_rating: Rating for unknown participants and missing values.
        k_effective_min: Lower safety bound for the fully scaled K.
        k_effective_max: Upper safety bound for the fully scaled K.
        players: Engine parameters for individual players.
        teams: Engine parameters for team entities.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    best_for: str = ""
    margin_scaling: MarginScaling = Field(default_factory=NoScaling)
    outcome_model: Literal["binary", "score_weighted"] = "binary"
    opponent_strength: bool = False
    importance: dict[MatchImportance, float] = Field(
        default_factory=lambda: dict(DEFAULT_IMPORTANCE)
    )
    min_rating: int = 800
    max_rating: int = 2800
    default_rating: int = 1500
    k_effective_min: float = Field(default=8.0, gt=0)
    k_effective_max: float = Field(default=80.0, gt=0)
    players: EngineConfig = Field(default_factory=EngineConfig)
    teams: EngineConfig = Field(default_factory=_team_engine)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Registry keys are stripped and lowercase."""
        name = v.strip().lower()
        if not name:
            msg = "Rating system name cannot be empty"
            raise ValueError(msg)
        return name

    @field_validator("importance")
    @classmethod
    def fill_importance(cls, v: dict[MatchImportance, float]) -> dict[MatchImportance, float]:
        """Importance classes left out keep their default multiplier."""
        for importance, multiplier in v.items():
            if multiplier <= 0:
                msg = f"Importance multiplier for '{importance}' must be positive"
                raise ValueError(msg)
        return {**DEFAULT_IMPORTANCE, **v}

    @model_validator(mode="after")
    def check_bounds(self) -> RatingSystemConfig:
        if self.min_rating >= self.max_rating:
            msg = "min_rating must be below max_rating"
            raise ValueError(msg)
        if not self.min_rating <= self.default_rating <= self.max_rating:
            msg = "default_rating must lie within [min_rating, max_rating]"
            raise ValueError(msg)
        if self.k_effective_min > self.k_effective_max:
            msg = "k_effective_min must not exceed k_effective_max"
            raise ValueError(msg)
        return self

    @property
    def supports_margin_scaling(self) -> bool:
        return self.margin_scaling.supports_margin_scaling or self.outcome_model == "score_weighted"

    def engine(self, kind: ParticipantKind) -> EngineConfig:
        """Engine parameters for a participant kind."""
        return self.teams if kind == ParticipantKind.TEAM else self.players

    def importance_multiplier(self, importance: MatchImportance) -> float:
        return self.importance.get(importance, 1.0)


def builtin_rating_systems() -> list[RatingSystemConfig]:
    """Return the rating systems shipped with the package."""
    return [
        RatingSystemConfig(
            name="standard",
            description="Traditional binary win/loss ELO rating system",
            best_for="Simple, predictable ratings",
        ),
        RatingSystemConfig(
            name="fifa",
            description="Logarithmic margin scaling used in international football rankings",
            best_for="Professional-grade ratings with margin consideration",
            margin_scaling=LogarithmicScaling(
                scale_factor=0.15, baseline_margin=2, max_multiplier=1.75
            ),
            opponent_strength=True,
        ),
        RatingSystemConfig(
            name="conservative",
            description="Gentle margin scaling - small bonuses for decisive wins",
            best_for="Balanced ratings with modest margin rewards",
            margin_scaling=LogarithmicScaling(
                scale_factor=0.08, baseline_margin=3, max_multiplier=1.4
            ),
        ),
        RatingSystemConfig(
            name="aggressive",
            description="Strong margin scaling - big bonuses for dominant victories",
            best_for="Emphasizing skill differences and dominance",
            margin_scaling=LogarithmicScaling(
                scale_factor=0.25, baseline_margin=1, max_multiplier=2.0
            ),
        ),
        RatingSystemConfig(
            name="linear",
            description="Constant per-point bonus for margin of victory",
            best_for="Predictable, proportional margin rewards",
            margin_scaling=LinearScaling(scale_factor=0.05, baseline_margin=2, max_multiplier=1.6),
        ),
        RatingSystemConfig(
            name="score_weighted",
            description="Fractional outcome weighted by the points margin",
            best_for="Separating narrow wins from routs without changing K",
            outcome_model="score_weighted",
        ),
    ]


class RatingSystemsFile(BaseModel):
    """Schema of a YAML file declaring custom rating systems."""

    systems: list[RatingSystemConfig] = Field(..., min_length=1)
    default: str | None = None

    @model_validator(mode="after")
    def check_unique_names(self) -> RatingSystemsFile:
        names = [system.name for system in self.systems]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"Duplicate rating system names: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self


def load_rating_systems(path: str | Path) -> RatingSystemsFile:
    """Load and validate custom rating systems from a YAML file.

    Args:
        path: Path to YAML file with a top-level ``systems`` list.

    Returns:
        Validated RatingSystemsFile instance.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValidationError: If the content is invalid.
    """
    systems_path = Path(path)
    if not systems_path.exists():
        msg = f"Rating systems file not found: {systems_path}"
        raise FileNotFoundError(msg)

    with systems_path.open() as f:
        data = yaml.safe_load(f)

    return RatingSystemsFile.model_validate(data)
