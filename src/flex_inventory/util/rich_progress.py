from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn


def _truncate_label(label: str, max_len: int = 40) -> str:
    if len(label) <= max_len:
        return label
    return label[: max_len - 3] + "..."


class ScanProgress:
    """Progress bar over subscriptions; inert when disabled."""

    def __init__(self, *, enabled: bool, console: Optional[Console] = None) -> None:
        self._enabled = bool(enabled)
        self._console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[int] = None
        self._started = False
        if self._enabled:
            self._progress = Progress(
                TextColumn("{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TextColumn("{task.fields[current]}", justify="left"),
                TimeElapsedColumn(),
                console=self._console,
                transient=True,
            )

    def __enter__(self) -> ScanProgress:
        if self._enabled and self._progress and not self._started:
            self._progress.start()
            self._started = True
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        if self._enabled and self._progress and self._started:
            self._progress.stop()
            self._started = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_scan(self, total: int) -> None:
        if not self._enabled or not self._progress:
            return
        self._task = self._progress.add_task("Subscriptions", total=total, current="")

    def set_current(self, label: str) -> None:
        if not self._enabled or not self._progress or self._task is None:
            return
        self._progress.update(self._task, current=_truncate_label(label))

    def advance(self, *, count: int = 1) -> None:
        if not self._enabled or not self._progress or self._task is None:
            return
        self._progress.update(self._task, advance=count)
