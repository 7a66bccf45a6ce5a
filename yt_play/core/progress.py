"""
Download progress bar for yt-play using the Rich library.

Usage:
    from yt_play.core.progress import DownloadProgressBar

    with DownloadProgressBar(total=len(entries)) as progress:
        for outcome in outcomes:
            progress.update(success=outcome.ok, adopted=outcome.adopted)

Example output:
    Downloading     ✓ 12  ✗ 1  ⊘ 2        ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━  60%
"""

from typing import Optional

from rich import get_console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Column
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(204,0,0)",     # YouTube red
    "bar.finished": "rgb(114,156,31)",  # Green when done
    "bar.pulse": "rgb(204,0,0)",
    "progress.percentage": "white",
})


class DownloadProgressBar:
    """
    Progress bar for the download step of a sync.

    Displays:
    - Description (e.g., "Downloading")
    - Status: ✓ downloaded, ✗ failed, ⊘ already on disk
    - Progress bar and percentage

    Attributes:
        total: Number of tracks in this batch.
        downloaded: Tracks fetched by yt-dlp.
        failed: Tracks skipped after exhausting retries.
        adopted: Tracks whose file was already present at its track path.
    """

    def __init__(
        self,
        total: int,
        description: str = "Downloading",
        disable: bool = False
    ) -> None:
        self.total = total
        self.description = description
        self.completed = 0
        self.downloaded = 0
        self.failed = 0
        self.adopted = 0

        self.console = get_console()
        self.progress = Progress(
            TextColumn("[white]{task.description}", table_column=Column(width=15)),
            TextColumn("{task.fields[status]}", table_column=Column(width=30)),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
            disable=disable,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    def __enter__(self) -> "DownloadProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if not self._started:
            self.console.push_theme(PROGRESS_THEME)
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def update(self, success: bool, adopted: bool = False) -> None:
        """
        Record one finished track.

        Args:
            success: Whether the track is now on disk.
            adopted: Whether it was already there (no download happened).
        """
        self.completed += 1
        if not success:
            self.failed += 1
        elif adopted:
            self.adopted += 1
        else:
            self.downloaded += 1

        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )

    def _get_status_text(self) -> str:
        parts = [
            f"[green]✓ {self.downloaded}[/green]",
            f"[red]✗ {self.failed}[/red]",
        ]
        if self.adopted > 0:
            parts.append(f"[cyan]⊘ {self.adopted}[/cyan]")
        return "  ".join(parts)
