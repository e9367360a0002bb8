"""Report generation for replays and system comparisons."""

from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from pathlib import Path

from tabulate import tabulate

from badminton_elo.models import ParticipantKind, RatingBatch, RatingUpdate
from badminton_elo.services.replay import ReplayResult

HISTORY_COLUMNS = (
    "match_id",
    "played_at",
    "kind",
    "participant_id",
    "old_rating",
    "new_rating",
    "rating_change",
    "old_tier",
    "new_tier",
    "expected_score",
    "actual_score",
    "effective_k_factor",
    "margin_multiplier",
    "opponent_average_rating",
    "won",
    "error",
)


def generate_standings_report(
    result: ReplayResult,
    title: str,
    kind: ParticipantKind = ParticipantKind.PLAYER,
    description: str | None = None,
) -> str:
    """Generate a markdown standings table from a replay.

    Args:
        result: Completed replay.
        title: Report title (markdown heading).
        kind: Whether to list players or teams.
        description: Optional description line below title.

    Returns:
        Markdown report content.
    """
    rows = [
        (
            position,
            entry.display_name or entry.participant_id,
            entry.rating,
            entry.tier,
            entry.peak_rating,
            f"{entry.wins}-{entry.losses}",
            entry.league_points,
            "".join(entry.recent_form) or "-",
        )
        for position, entry in enumerate(result.standings(kind), start=1)
    ]
    headers = ("#", "Name", "Rating", "Tier", "Peak", "W-L", "Points", "Form")

    lines = [f"# {title}", ""]
    if description:
        lines.extend([description, ""])
    lines.append(tabulate(rows, headers=headers, tablefmt="github"))
    if result.errors:
        lines.extend(["", "## Errors", ""])
        for error in result.errors:
            lines.append(f"- {error.subject}: {error.message.splitlines()[0]}")

    return "\n".join(lines)


def generate_comparison_report(batches: Mapping[str, RatingBatch]) -> str:
    """Tabulate the rating changes each system assigns to the same match.

    Args:
        batches: Mapping of system name to its batch for one match.

    Returns:
        Markdown table with one row per system and participant.
    """
    rows = [
        (
            name,
            update.participant_id,
            "W" if update.won else "L",
            update.old_rating,
            f"{update.rating_change:+d}",
            update.new_rating,
            f"{update.effective_k_factor:.1f}",
            f"{update.margin_multiplier:.3f}",
        )
        for name, batch in batches.items()
        for update in batch.all_updates
    ]
    headers = ("System", "Participant", "Result", "Old", "Change", "New", "K", "Margin x")
    return tabulate(rows, headers=headers, tablefmt="github")


def write_history_csv(history: Sequence[RatingUpdate], path: str | Path) -> Path:
    """Write a replay history to CSV.

    Args:
        history: Updates in replay order.
        path: Destination file; parent directories are created.

    Returns:
        Path of the written file.
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HISTORY_COLUMNS)
        for update in history:
            writer.writerow(
                [
                    update.match_id,
                    update.played_at.isoformat() if update.played_at else "",
                    update.kind.value,
                    update.participant_id,
                    update.old_rating,
                    update.new_rating,
                    update.rating_change,
                    update.old_tier,
                    update.new_tier,
                    f"{update.expected_score:.6f}",
                    f"{update.actual_score:.6f}",
                    f"{update.effective_k_factor:.4f}",
                    f"{update.margin_multiplier:.4f}",
                    update.opponent_average_rating,
                    int(update.won),
                    update.error or "",
                ]
            )
    return out_path
