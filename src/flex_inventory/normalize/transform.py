from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional, Tuple

from ..util.errors import MalformedPayload
from .schema import AppEntry, Eligibility, EligibilityRecord, MigrationPayload, Subscription


def _get(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d:
            return d[k]
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list)):
        # Structured reasons are kept as JSON text
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def _parse_entries(
    raw: Any,
    field_name: str,
    *,
    with_reason: bool,
    subscription_id: Optional[str],
) -> Tuple[AppEntry, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise MalformedPayload(subscription_id, f"Field '{field_name}' must be a list")
    entries: List[AppEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise MalformedPayload(subscription_id, f"Entries of '{field_name}' must be objects")
        entries.append(
            AppEntry(
                name=_as_text(_get(item, "name")) or "",
                resource_group=_as_text(_get(item, "resource_group", "resourceGroup")) or "",
                reason=_as_text(_get(item, "reason")) if with_reason else None,
            )
        )
    return tuple(entries)


def parse_payload(text: str, subscription_id: Optional[str] = None) -> MigrationPayload:
    """
    Parse `flex-migration list` JSON into a MigrationPayload.

    Missing, null, or empty app lists become empty tuples. Anything that is
    not a JSON object with list-valued app fields raises MalformedPayload.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedPayload(subscription_id, f"Payload is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedPayload(subscription_id, f"Payload must be a JSON object, got {type(data).__name__}")
    return MigrationPayload(
        eligible_apps=_parse_entries(
            data.get("eligible_apps"),
            "eligible_apps",
            with_reason=False,
            subscription_id=subscription_id,
        ),
        ineligible_apps=_parse_entries(
            data.get("ineligible_apps"),
            "ineligible_apps",
            with_reason=True,
            subscription_id=subscription_id,
        ),
    )


def normalize_payload(payload: MigrationPayload, subscription: Subscription) -> List[EligibilityRecord]:
    """
    Flatten a payload into records: eligible apps first, then ineligible,
    each in source order.
    """
    records: List[EligibilityRecord] = []
    for app in payload.eligible_apps:
        records.append(
            EligibilityRecord(
                subscription_id=subscription.id,
                subscription_name=subscription.name,
                app_name=app.name,
                resource_group=app.resource_group,
                eligibility=Eligibility.ELIGIBLE,
                reason=None,
            )
        )
    for app in payload.ineligible_apps:
        records.append(
            EligibilityRecord(
                subscription_id=subscription.id,
                subscription_name=subscription.name,
                app_name=app.name,
                resource_group=app.resource_group,
                eligibility=Eligibility.INELIGIBLE,
                reason=app.reason,
            )
        )
    return records


def normalize_output(text: str, subscription: Subscription) -> List[EligibilityRecord]:
    """Parse and flatten one subscription's already-extracted JSON text."""
    return normalize_payload(parse_payload(text, subscription.id), subscription)


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)

