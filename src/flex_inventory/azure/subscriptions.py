from __future__ import annotations

import json
from typing import Iterable, List, Optional

from ..normalize.extract import extract_json
from ..normalize.schema import Subscription
from ..util.errors import AzCliError, NoJsonFound
from .cli import AzCli

LIST_ENABLED_ARGS = [
    "account",
    "list",
    "--query",
    "[?state=='Enabled']",
    "--output",
    "json",
    "--only-show-errors",
]


def list_enabled_subscriptions(az: AzCli, *, timeout: Optional[int] = None) -> List[Subscription]:
    """
    Return enabled subscriptions in the order the CLI lists them:
      [Subscription(id="...", name="...")]

    - Entries without an id are dropped; a missing name falls back to the id.
    - Duplicate ids keep their first occurrence.
    - A failing CLI call raises AzCliError; no subscriptions is an empty list.
    """
    result = az.run(LIST_ENABLED_ARGS, timeout=timeout)
    if not result.ok:
        raise AzCliError(f"Failed to list subscriptions: {result.error_excerpt()}")
    try:
        text = extract_json(result.stdout)
    except NoJsonFound:
        return []
    try:
        data = json.loads(text)
    except ValueError as e:
        raise AzCliError(f"Subscription list is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise AzCliError("Subscription list must be a JSON array")

    out: List[Subscription] = []
    seen = set()
    for item in data:
        if not isinstance(item, dict):
            continue
        sub_id = str(item.get("id") or "").strip()
        if not sub_id or sub_id in seen:
            continue
        seen.add(sub_id)
        name = str(item.get("name") or "").strip() or sub_id
        out.append(Subscription(id=sub_id, name=name))
    return out


def filter_subscriptions(subscriptions: Iterable[Subscription], wanted: Optional[Iterable[str]]) -> List[Subscription]:
    """
    Keep subscriptions whose id or name matches one of `wanted` (case-insensitive).
    Enumeration order is preserved. An empty or missing filter keeps everything.
    """
    subs = list(subscriptions)
    keys = {w.strip().lower() for w in (wanted or []) if w and w.strip()}
    if not keys:
        return subs
    return [s for s in subs if s.id.lower() in keys or s.name.lower() in keys]
