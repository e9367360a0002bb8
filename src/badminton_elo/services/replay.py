"""Chronological replay of a match log into a full rating history.

Ratings are rebuilt from each participant's declared tier and the match
log alone. The loop is a fold over :func:`replay_step`, which takes the
current ledger and one match and returns the next ledger plus the batch
of updates, without touching the input ledger.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

import structlog

from badminton_elo.core.errors import RosterResolutionError, ValidationError
from badminton_elo.models import (
    ErrorRecord,
    MatchOutcome,
    Participant,
    ParticipantKind,
    RatingBatch,
    RatingUpdate,
)
from badminton_elo.ranking.processor import MatchRatingProcessor
from badminton_elo.ranking.registry import RatingSystemRegistry

logger = structlog.get_logger()

RECENT_FORM_LENGTH = 5
POINTS_PER_WIN = 3
POINTS_PER_LOSS = 1

_EARLIEST = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class LedgerEntry:
    """Current state of one participant during a replay.

    Attributes:
        participant_id: Participant identifier.
        kind: Player or team.
        display_name: Name for reports.
        rating: Current rating.
        games_played: Rated matches played so far in the replay.
        tier: Tier classified from the current rating.
        peak_rating: Highest rating reached so far.
        declared_tier: Tier declared on the roster, used for seeding.
        wins: Matches won.
        losses: Matches lost.
        recent_form: Last results, oldest first, as "W" or "L".
    """

    participant_id: str
    kind: ParticipantKind
    display_name: str
    rating: int
    games_played: int
    tier: str
    peak_rating: int
    declared_tier: str | None = None
    wins: int = 0
    losses: int = 0
    recent_form: tuple[str, ...] = ()

    @property
    def league_points(self) -> int:
        return self.wins * POINTS_PER_WIN + self.losses * POINTS_PER_LOSS

    @property
    def win_rate(self) -> float:
        return self.wins / self.games_played if self.games_played else 0.0

    def snapshot(self) -> Participant:
        """Participant snapshot carrying the ledger's current values."""
        return Participant(
            id=self.participant_id,
            display_name=self.display_name,
            rating=self.rating,
            games_played=self.games_played,
            peak_rating=self.peak_rating,
            tier=self.tier,
            kind=self.kind,
        )

    def advance(self, update: RatingUpdate) -> LedgerEntry:
        """Apply a rating update and return the next entry."""
        return replace(
            self,
            rating=update.new_rating,
            games_played=self.games_played + 1,
            tier=update.new_tier,
            peak_rating=max(self.peak_rating, update.new_rating),
            wins=self.wins + int(update.won),
            losses=self.losses + int(not update.won),
            recent_form=(*self.recent_form, "W" if update.won else "L")[-RECENT_FORM_LENGTH:],
        )


@dataclass(frozen=True)
class Ledger:
    """Immutable map of current state per participant, split by kind."""

    players: Mapping[str, LedgerEntry] = field(default_factory=dict)
    teams: Mapping[str, LedgerEntry] = field(default_factory=dict)

    def entries(self, kind: ParticipantKind) -> Mapping[str, LedgerEntry]:
        return self.teams if kind == ParticipantKind.TEAM else self.players

    def get(
        self, participant_id: str, kind: ParticipantKind = ParticipantKind.PLAYER
    ) -> LedgerEntry | None:
        return self.entries(kind).get(participant_id)

    def apply(self, batch: RatingBatch) -> Ledger:
        """Return a new ledger with every successful update of a batch applied.

        Updates carrying an error leave their participant unchanged.
        """
        players = dict(self.players)
        teams = dict(self.teams)
        for update in batch.all_updates:
            if update.error is not None:
                continue
            target = teams if update.kind == ParticipantKind.TEAM else players
            target[update.participant_id] = target[update.participant_id].advance(update)
        return Ledger(players=players, teams=teams)


def seed_ledger(roster: Iterable[Participant], processor: MatchRatingProcessor) -> Ledger:
    """Build the initial ledger from declared tiers.

    Stored ratings on the roster are ignored.

    Args:
        roster: Players and teams taking part in the replay.
        processor: Processor whose config provides seed ratings and tiers.

    Returns:
        Ledger with one entry per roster participant.

    Raises:
        ValidationError: If an identifier appears twice within a kind.
    """
    players: dict[str, LedgerEntry] = {}
    teams: dict[str, LedgerEntry] = {}
    for participant in roster:
        if participant.kind == ParticipantKind.TEAM:
            engine, target = processor.team_engine, teams
        else:
            engine, target = processor.player_engine, players
        if participant.id in target:
            raise ValidationError("roster", f"duplicate {participant.kind} id '{participant.id}'")

        rating = engine.seed_rating(participant.tier)
        target[participant.id] = LedgerEntry(
            participant_id=participant.id,
            kind=participant.kind,
            display_name=participant.display_name,
            rating=rating,
            games_played=0,
            tier=engine.classifier.classify(rating),
            peak_rating=rating,
            declared_tier=participant.tier,
        )
    return Ledger(players=players, teams=teams)


def resolve_match(
    ledger: Ledger,
    match: MatchOutcome,
    side_size: int | None = None,
) -> MatchOutcome:
    """Replace a match's participant snapshots with the ledger's current values.

    Args:
        ledger: Current ledger.
        match: Historical match; only participant ids are used.
        side_size: Exact number of players required per side, if any.

    Returns:
        Match with snapshots built from the ledger.

    Raises:
        RosterResolutionError: If a participant is missing from the ledger
            or a side has the wrong number of players.
    """
    match_id = match.match_id or "<unnamed>"
    missing: list[str] = []

    def resolve(participant: Participant | None, kind: ParticipantKind) -> Participant | None:
        if participant is None:
            return None
        entry = ledger.get(participant.id, kind)
        if entry is None:
            missing.append(f"{kind}:{participant.id}")
            return None
        return entry.snapshot()

    side_a = [resolve(p, ParticipantKind.PLAYER) for p in match.side_a]
    side_b = [resolve(p, ParticipantKind.PLAYER) for p in match.side_b]
    team_a = resolve(match.side_a_team, ParticipantKind.TEAM)
    team_b = resolve(match.side_b_team, ParticipantKind.TEAM)

    if missing:
        raise RosterResolutionError(match_id, missing)
    if side_size is not None:
        short = [
            f"{label} has {len(side)} of {side_size} players"
            for label, side in (("side_a", side_a), ("side_b", side_b))
            if len(side) != side_size
        ]
        if short:
            raise RosterResolutionError(match_id, short)

    return replace(
        match,
        side_a=tuple(side_a),
        side_b=tuple(side_b),
        side_a_team=team_a,
        side_b_team=team_b,
    )


def replay_step(
    ledger: Ledger,
    match: MatchOutcome,
    processor: MatchRatingProcessor,
    side_size: int | None = None,
) -> tuple[Ledger, RatingBatch]:
    """Rate one historical match against the ledger.

    Args:
        ledger: Ledger before the match.
        match: Historical match.
        processor: Processor of the replayed rating system.
        side_size: Exact number of players required per side, if any.

    Returns:
        Tuple of (next_ledger, batch).

    Raises:
        RosterResolutionError: If the match cannot be resolved against the ledger.
        ValidationError: If the match itself is malformed.
    """
    resolved = resolve_match(ledger, match, side_size)
    batch = processor.process(resolved)
    return ledger.apply(batch), batch


def _timestamp_key(played_at: datetime | None) -> tuple[bool, datetime]:
    if played_at is None:
        return True, _EARLIEST
    if played_at.tzinfo is None:
        played_at = played_at.replace(tzinfo=UTC)
    return False, played_at


def order_matches(matches: Iterable[MatchOutcome]) -> list[MatchOutcome]:
    """Sort matches chronologically.

    Ties on the timestamp fall back to the match id, then to input order.
    Naive timestamps count as UTC; undated matches go last.
    """
    return sorted(matches, key=lambda m: (*_timestamp_key(m.played_at), m.match_id))


@dataclass
class ReplayResult:
    """Outcome of a replay.

    Attributes:
        system: Name of the replayed rating system.
        history: One update per participant per processed match, in order.
        ledger: Final ledger, the authoritative end state.
        errors: Skipped matches and per-participant failures.
        processed: Number of matches rated.
        skipped: Number of matches skipped.
        cancelled: Whether the replay stopped at a cancellation checkpoint.
    """

    system: str
    history: list[RatingUpdate] = field(default_factory=list)
    ledger: Ledger = field(default_factory=Ledger)
    errors: list[ErrorRecord] = field(default_factory=list)
    processed: int = 0
    skipped: int = 0
    cancelled: bool = False

    @property
    def final_ledger(self) -> Mapping[str, LedgerEntry]:
        return self.ledger.players

    @property
    def final_team_ledger(self) -> Mapping[str, LedgerEntry]:
        return self.ledger.teams

    def standings(self, kind: ParticipantKind = ParticipantKind.PLAYER) -> list[LedgerEntry]:
        """Ledger entries sorted by rating descending, ties by id."""
        return sorted(
            self.ledger.entries(kind).values(),
            key=lambda entry: (-entry.rating, entry.participant_id),
        )

    def history_of(
        self, participant_id: str, kind: ParticipantKind = ParticipantKind.PLAYER
    ) -> list[RatingUpdate]:
        """All updates of one participant in replay order."""
        return [u for u in self.history if u.participant_id == participant_id and u.kind == kind]


class SequentialReplayEngine:
    """Replay a match log match by match.

    Matches are applied strictly in chronological order; the replay is
    never parallelized across matches.

    Attributes:
        registry: Registry providing the rating systems.
        side_size: Exact number of players required per side, or None.
    """

    def __init__(
        self,
        registry: RatingSystemRegistry | None = None,
        side_size: int | None = None,
    ) -> None:
        self.registry = registry or RatingSystemRegistry()
        self.side_size = side_size

    def replay(
        self,
        matches: Sequence[MatchOutcome],
        roster: Iterable[Participant],
        system: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> ReplayResult:
        """Rebuild the rating history of a roster.

        Args:
            matches: Historical matches in any order; they are sorted first.
            roster: Players and teams with their declared tiers.
            system: Rating system name. The active selection is read once
                when omitted.
            should_cancel: Checked before each match; returning True stops
                the replay with the ledger as of the last completed match.
            on_progress: Called with (done, total) after each match.

        Returns:
            Replay result with history, final ledger and errors.

        Raises:
            UnknownSystemError: If ``system`` is not registered.
            ValidationError: If the roster has duplicate ids.
        """
        processor = self.registry.processor(system)
        ordered = order_matches(matches)
        result = ReplayResult(
            system=processor.config.name,
            ledger=seed_ledger(roster, processor),
        )

        logger.info(
            "replay_started",
            system=result.system,
            matches=len(ordered),
            players=len(result.ledger.players),
            teams=len(result.ledger.teams),
        )

        total = len(ordered)
        for index, match in enumerate(ordered):
            if should_cancel is not None and should_cancel():
                result.cancelled = True
                logger.info("replay_cancelled", processed=result.processed, remaining=total - index)
                break

            try:
                result.ledger, batch = replay_step(result.ledger, match, processor, self.side_size)
            except (RosterResolutionError, ValidationError) as e:
                result.skipped += 1
                subject = match.match_id or "<unnamed>"
                result.errors.append(ErrorRecord(subject=subject, message=e.message))
                logger.warning("replay_match_skipped", match_id=match.match_id, reason=e.message)
            else:
                result.processed += 1
                result.history.extend(batch.all_updates)
                result.errors.extend(batch.errors)

            if on_progress is not None:
                on_progress(index + 1, total)

        logger.info(
            "replay_complete",
            system=result.system,
            processed=result.processed,
            skipped=result.skipped,
            cancelled=result.cancelled,
        )
        return result
