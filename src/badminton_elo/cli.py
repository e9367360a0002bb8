"""CLI for the badminton Elo rating engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import pydantic
import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from badminton_elo import __version__
from badminton_elo.core.errors import RatingEngineError
from badminton_elo.core.progress import ReplayProgress
from badminton_elo.models import MatchOutcome, ParticipantKind, RatingBatch
from badminton_elo.ranking import RatingSystemRegistry, create_registry, describe_margin
from badminton_elo.services import (
    ReplayResult,
    SequentialReplayEngine,
    generate_comparison_report,
    generate_standings_report,
    load_match_log,
    recommendations_from_replay,
    write_history_csv,
)

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="badminton-elo",
    help="Badminton Elo - rate players and teams and replay match history",
    add_completion=False,
)
console = Console()

SystemsFileOption = Annotated[
    Path | None,
    typer.Option("--systems-file", help="YAML file with extra rating systems"),
]
SystemOption = Annotated[
    str | None,
    typer.Option("--system", "-s", help="Rating system name (default: active system)"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"badminton-elo v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Badminton Elo CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _fail(error: Exception, verbose: bool = False) -> typer.Exit:
    if isinstance(error, FileNotFoundError):
        console.print(f"[red]Error:[/red] {escape(str(error))}")
    elif isinstance(error, RatingEngineError):
        console.print(f"[red]{escape(str(error))}")
    elif isinstance(error, pydantic.ValidationError):
        console.print(f"[red]Invalid input:[/red] {escape(str(error))}")
    else:
        console.print(f"[red]Unexpected error:[/red] {escape(str(error))}")
        if verbose:
            console.print_exception()
    return typer.Exit(1)


def _pick_match(matches: list[MatchOutcome], match_id: str | None) -> MatchOutcome:
    if not matches:
        msg = "The file contains no matches"
        raise ValueError(msg)
    if match_id is None:
        return matches[0]
    for match in matches:
        if match.match_id == match_id:
            return match
    msg = f"No match with id '{match_id}'"
    raise ValueError(msg)


def _print_batch(batch: RatingBatch, match: MatchOutcome) -> None:
    console.print(
        f"[bold]{match.match_id}[/bold] {match.side_a_score}-{match.side_b_score} "
        f"({describe_margin(match.margin)}) with [cyan]{batch.system}[/cyan]"
    )
    table = Table()
    columns = ("Participant", "Kind", "Result", "Old", "Change", "New", "Tier", "Expected", "K")
    for column in columns:
        table.add_column(column)
    for update in batch.all_updates:
        change = f"{update.rating_change:+d}"
        table.add_row(
            update.participant_id,
            update.kind.value,
            "W" if update.won else "L",
            str(update.old_rating),
            f"[green]{change}[/green]" if update.rating_change > 0 else f"[red]{change}[/red]",
            str(update.new_rating),
            f"{update.old_tier} -> {update.new_tier}" if update.tier_changed else update.new_tier,
            f"{update.expected_score:.3f}",
            f"{update.effective_k_factor:.1f}",
        )
    console.print(table)
    for error in batch.errors:
        console.print(f"[yellow]Warning:[/yellow] {error.subject}: {error.message}")


@app.command()
def systems(systems_file: SystemsFileOption = None) -> None:
    """List available rating systems."""
    try:
        registry = create_registry(systems_file)
    except Exception as e:
        raise _fail(e) from e

    table = Table(title="Rating systems")
    table.add_column("Name", style="cyan")
    table.add_column("Margin scaling")
    table.add_column("Description")
    table.add_column("Best for")
    for info in registry.list_systems():
        name = f"{info.name} (active)" if info.name == registry.current() else info.name
        table.add_row(
            name,
            "yes" if info.supports_margin_scaling else "no",
            info.description,
            info.best_for,
        )
    console.print(table)


@app.command()
def process(
    log_path: Annotated[Path, typer.Argument(help="YAML file with roster and matches")],
    match_id: Annotated[
        str | None, typer.Option("--match", "-m", help="Match id (default: first match)")
    ] = None,
    system: SystemOption = None,
    systems_file: SystemsFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Rate one match using the stored ratings on the roster.

    Args:
        log_path: YAML file with roster and matches.
        match_id: Match to rate.
        system: Rating system name.
        systems_file: YAML file with extra rating systems.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)
    try:
        registry = create_registry(systems_file, default=system)
        match = _pick_match(load_match_log(log_path).outcomes(), match_id)
        batch = registry.process(match)
    except Exception as e:
        raise _fail(e, verbose) from e

    _print_batch(batch, match)


@app.command()
def compare(
    log_path: Annotated[Path, typer.Argument(help="YAML file with roster and matches")],
    match_id: Annotated[
        str | None, typer.Option("--match", "-m", help="Match id (default: first match)")
    ] = None,
    systems_file: SystemsFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show what every rating system would do with one match."""
    _configure_logging(verbose)
    try:
        registry = create_registry(systems_file)
        match = _pick_match(load_match_log(log_path).outcomes(), match_id)
        batches = registry.compare(match)
    except Exception as e:
        raise _fail(e, verbose) from e

    console.print(
        f"[bold]{match.match_id}[/bold] {match.side_a_score}-{match.side_b_score} "
        f"({describe_margin(match.margin)})\n"
    )
    console.print(generate_comparison_report(batches))


def _run_replay(
    registry: RatingSystemRegistry,
    log_path: Path,
    system: str | None,
    side_size: int | None,
) -> ReplayResult:
    log = load_match_log(log_path)
    matches = log.outcomes()
    engine = SequentialReplayEngine(registry, side_size=side_size)
    with ReplayProgress(console).track(len(matches)) as on_progress:
        return engine.replay(matches, log.participants(), system=system, on_progress=on_progress)


@app.command()
def replay(
    log_path: Annotated[Path, typer.Argument(help="YAML file with roster and matches")],
    system: SystemOption = None,
    systems_file: SystemsFileOption = None,
    side_size: Annotated[
        int | None,
        typer.Option("--side-size", min=1, help="Require exactly N players per side"),
    ] = None,
    report: Annotated[
        Path | None, typer.Option("--report", help="Write markdown standings to this file")
    ] = None,
    history: Annotated[
        Path | None, typer.Option("--history", help="Write the rating history CSV to this file")
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Rebuild all ratings from the match log, starting from declared tiers.

    Args:
        log_path: YAML file with roster and matches.
        system: Rating system name.
        systems_file: YAML file with extra rating systems.
        side_size: Exact number of players required per side.
        report: Optional markdown report destination.
        history: Optional CSV history destination.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)
    try:
        registry = create_registry(systems_file)
        result = _run_replay(registry, log_path, system, side_size)
    except Exception as e:
        raise _fail(e, verbose) from e

    title = f"Standings ({result.system})"
    summary = f"{result.processed} matches rated, {result.skipped} skipped"
    markdown = generate_standings_report(result, title=title, description=summary)
    console.print(markdown)
    if result.final_team_ledger:
        console.print()
        console.print(
            generate_standings_report(result, title="Team standings", kind=ParticipantKind.TEAM)
        )

    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(markdown + "\n")
        console.print(f"\nReport saved to: {report}")
    if history is not None:
        console.print(f"History saved to: {write_history_csv(result.history, history)}")


@app.command()
def recommend(
    log_path: Annotated[Path, typer.Argument(help="YAML file with roster and matches")],
    system: SystemOption = None,
    systems_file: SystemsFileOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Replay the log and suggest tier changes for the roster."""
    _configure_logging(verbose)
    try:
        registry = create_registry(systems_file)
        result = _run_replay(registry, log_path, system, None)
        recommendations = recommendations_from_replay(result, registry.get(result.system))
    except Exception as e:
        raise _fail(e, verbose) from e

    if not recommendations:
        console.print("[green]All declared tiers match the ratings.[/green]")
        return

    table = Table(title="Tier recommendations")
    columns = ("Participant", "Kind", "Declared", "Recommended", "Rating", "Games", "Confidence")
    for column in columns:
        table.add_column(column)
    for rec in recommendations:
        table.add_row(
            rec.display_name or rec.participant_id,
            rec.kind.value,
            rec.current_tier or "-",
            rec.recommended_tier,
            str(rec.rating),
            str(rec.games_played),
            f"{rec.confidence}%",
        )
    console.print(table)


@app.command()
def validate(
    log_path: Annotated[Path, typer.Argument(help="YAML file with roster and matches")],
    systems_file: SystemsFileOption = None,
) -> None:
    """Validate a match log (and optional systems file) without rating anything.

    Args:
        log_path: YAML file with roster and matches.
        systems_file: YAML file with extra rating systems.
    """
    try:
        registry = create_registry(systems_file)
        log = load_match_log(log_path)
        console.print("[green]Match log is valid![/green]")
        console.print(f"  Roster: {len(log.roster)}")
        console.print(f"  Matches: {len(log.matches)}")
        console.print(f"  Rating systems: {', '.join(registry.names)}")
    except Exception as e:
        raise _fail(e) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Badminton Elo[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # List rating systems")
    console.print("  badminton-elo systems\n")

    console.print("  # Rate the first match in a file with FIFA-style margin scaling")
    console.print("  badminton-elo process season.yaml --system fifa\n")

    console.print("  # Compare all systems on one match")
    console.print("  badminton-elo compare season.yaml --match m3\n")

    console.print("  # Rebuild ratings for doubles from the full log")
    console.print("  badminton-elo replay season.yaml --side-size 2 --report standings.md\n")

    console.print("  # Suggest tier changes")
    console.print("  badminton-elo recommend season.yaml")


if __name__ == "__main__":
    app()
