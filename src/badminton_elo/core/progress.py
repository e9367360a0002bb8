"""Progress display for long-running replays."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)


class ReplayProgress:
    """Rich progress bar fed by the replay engine's progress callback."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize progress tracker.

        Args:
            console: Optional console instance. If None, creates a new one.
        """
        self.console = console or Console()

    @contextmanager
    def track(
        self, total: int, description: str = "Replaying matches"
    ) -> Iterator[Callable[[int, int], None]]:
        """Show a progress bar while the block runs.

        Args:
            total: Number of matches to replay.
            description: Label shown next to the bar.

        Yields:
            Callback accepting (done, total), suitable as ``on_progress``.
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"[cyan]{description}...", total=total)

            def advance(done: int, total: int) -> None:
                progress.update(task, completed=done, total=total)

            yield advance
