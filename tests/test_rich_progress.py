from __future__ import annotations

import io

from rich.console import Console

from flex_inventory.util.rich_progress import ScanProgress


def test_disabled_progress_is_inert() -> None:
    with ScanProgress(enabled=False) as progress:
        progress.start_scan(3)
        progress.set_current("Alpha")
        progress.advance()
    assert progress.enabled is False


def test_enabled_progress_tracks_subscriptions() -> None:
    console = Console(file=io.StringIO(), force_terminal=False, width=100)
    with ScanProgress(enabled=True, console=console) as progress:
        progress.start_scan(2)
        progress.set_current("a-very-long-subscription-name-that-needs-truncating-for-display")
        progress.advance()
        progress.advance()
        task = progress._progress.tasks[0]
        assert task.completed == 2
        assert task.total == 2
        assert len(task.fields["current"]) == 40
    assert progress.enabled is True
