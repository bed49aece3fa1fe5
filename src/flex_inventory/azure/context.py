from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterator, Optional

from ..logging import get_logger
from ..normalize.extract import extract_json
from ..normalize.schema import Subscription
from ..util.errors import AzCliError, NoJsonFound, SwitchFailed
from .cli import AzCli

LOG = get_logger(__name__)

SHOW_ARGS = ["account", "show", "--query", "{id:id, name:name}", "--output", "json", "--only-show-errors"]
SWITCH_TIMEOUT_S = 60


class ContextSwitcher:
    """
    Reads and writes the az CLI's current subscription.

    The current subscription is process-wide state for every later az call,
    so only one switcher may drive it at a time.
    """

    def __init__(self, az: AzCli, *, timeout: int = SWITCH_TIMEOUT_S) -> None:
        self._az = az
        self._timeout = timeout

    def capture_original(self) -> Optional[Subscription]:
        try:
            result = self._az.run(SHOW_ARGS, timeout=self._timeout)
        except AzCliError as e:
            LOG.warning("Could not read the current subscription", extra={"error": str(e)})
            return None
        if not result.ok:
            # No default subscription configured yet; nothing to restore later.
            LOG.info("No current subscription to restore", extra={"error": result.error_excerpt()})
            return None
        try:
            data = json.loads(extract_json(result.stdout))
        except (NoJsonFound, ValueError):
            return None
        if not isinstance(data, dict) or not data.get("id"):
            return None
        sub_id = str(data["id"])
        return Subscription(id=sub_id, name=str(data.get("name") or sub_id))

    def activate(self, subscription: Subscription) -> None:
        try:
            result = self._az.run(
                ["account", "set", "--subscription", subscription.id, "--only-show-errors"],
                timeout=self._timeout,
            )
        except AzCliError as e:
            raise SwitchFailed(subscription.id, f"Could not switch subscription: {e}") from e
        if not result.ok:
            raise SwitchFailed(subscription.id, f"Could not switch subscription: {result.error_excerpt()}")

    def restore(self, original: Optional[Subscription]) -> None:
        if original is None:
            return
        try:
            self.activate(original)
        except SwitchFailed as e:
            LOG.error(
                "Failed to restore the original subscription",
                extra={"subscription_id": original.id, "error": e.message},
            )
            return
        LOG.info("Restored original subscription", extra={"subscription_id": original.id})


@contextmanager
def active_subscription_scope(switcher: ContextSwitcher) -> Iterator[Optional[Subscription]]:
    """
    Capture the current subscription and put it back when the block exits,
    however it exits.
    """
    original = switcher.capture_original()
    try:
        yield original
    finally:
        switcher.restore(original)
