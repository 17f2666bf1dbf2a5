"""Terminal progress for ingestion batches, rendered with Rich."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass
class ProgressState:
    total: int
    batches: int = 0
    added: int = 0
    skipped: int = 0


class BatchProgress:
    """Render batch progress and keep counters for CLI feedback.

    Falls back to counting silently when disabled or when the console is not
    a terminal.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]batches"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]+{task.fields[added]:>5}", justify="right"),
            TextColumn("[yellow]↺{task.fields[skipped]:>5}", justify="right"),
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            # Another live display owns the console
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task("ingest", total=total, added=0, skipped=0)

    def advance(self, added: int = 0, skipped: int = 0) -> None:
        if not self.state:
            raise RuntimeError("BatchProgress.start must be called before advance")
        self.state.batches += 1
        self.state.added += added
        self.state.skipped += skipped
        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id, advance=1, added=self.state.added, skipped=self.state.skipped
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"batches": 0, "added": 0, "skipped": 0}
        return {
            "batches": self.state.batches,
            "added": self.state.added,
            "skipped": self.state.skipped,
        }


__all__ = ["BatchProgress", "ProgressState"]
