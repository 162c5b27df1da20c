"""
Rich progress display for the installer download, fed by fetcher progress events.
"""

import asyncio
import logging

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from ytdownloader.update.fetcher import ProgressEvent

log = logging.getLogger("ytdownloader")


class ProgressManager:
    """
    Shows one progress bar per sized download. Implements the fetcher's
    ProgressSink protocol.
    """

    def __init__(self, console: Console, description: str = "downloading"):
        self.console = console
        self.description = description
        self.progress = Progress(
            TextColumn("  [progress.description]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=False,
        )
        self._task_id: TaskID | None = None
        self.last_event: ProgressEvent | None = None

    def on_progress(self, event: ProgressEvent) -> None:
        if self._task_id is None:
            self._task_id = self.progress.add_task(
                self.description, total=event.expected_byte_count
            )
        self.progress.update(self._task_id, completed=event.bytes_written)
        self.last_event = event

    def stop(self) -> None:
        """Ends the live display; safe to call again from __aexit__."""
        if self.progress.live.is_started:
            self.progress.stop()

    async def __aenter__(self):
        self.progress.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await asyncio.sleep(0.1)
        self.stop()
