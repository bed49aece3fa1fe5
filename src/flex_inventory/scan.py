from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .aggregate import Aggregator
from .azure.cli import AzCli
from .azure.context import ContextSwitcher
from .azure.flex_migration import list_flex_migration
from .logging import get_logger
from .normalize.extract import extract_json
from .normalize.schema import ContextSummary, EligibilityRecord, Subscription
from .normalize.transform import normalize_output
from .util.errors import ContextSkipped
from .util.events import StepTimers, log_event
from .util.rich_progress import ScanProgress

LOG = get_logger(__name__)


@dataclass(frozen=True)
class SkippedSubscription:
    subscription_id: str
    subscription_name: str
    reason: str
    message: str


@dataclass
class ScanResult:
    records: List[EligibilityRecord] = field(default_factory=list)
    summaries: List[ContextSummary] = field(default_factory=list)
    skipped: List[SkippedSubscription] = field(default_factory=list)
    processed: int = 0


def scan_subscription(
    az: AzCli,
    switcher: ContextSwitcher,
    subscription: Subscription,
    *,
    timeout: Optional[int] = None,
) -> List[EligibilityRecord]:
    """
    Switch to one subscription and return its eligibility records.

    Raises a ContextSkipped subclass when the subscription has to be dropped.
    """
    switcher.activate(subscription)
    raw = list_flex_migration(az, subscription, timeout=timeout)
    payload_text = extract_json(raw, subscription.id)
    return normalize_output(payload_text, subscription)


def scan_subscriptions(
    az: AzCli,
    subscriptions: Sequence[Subscription],
    *,
    timeout: Optional[int] = None,
    switcher: Optional[ContextSwitcher] = None,
    progress: Optional[ScanProgress] = None,
) -> ScanResult:
    """
    Scan subscriptions one at a time and aggregate their records.

    Each scan changes the az current subscription; callers run this inside
    active_subscription_scope. A failing subscription is logged and skipped.
    """
    switcher = switcher or ContextSwitcher(az)
    aggregator = Aggregator()
    result = ScanResult()
    timers = StepTimers()

    if progress is not None:
        progress.start_scan(len(subscriptions))
    for idx, sub in enumerate(subscriptions, start=1):
        if progress is not None:
            progress.set_current(sub.name)
        log_event(
            LOG,
            logging.INFO,
            f"Scanning subscription {idx}/{len(subscriptions)}: {sub.name}",
            step="subscription",
            phase="start",
            timers=timers,
            timer_key=sub.id,
            subscription_id=sub.id,
        )
        try:
            records = scan_subscription(az, switcher, sub, timeout=timeout)
        except ContextSkipped as e:
            result.skipped.append(
                SkippedSubscription(
                    subscription_id=sub.id,
                    subscription_name=sub.name,
                    reason=e.reason,
                    message=e.message,
                )
            )
            log_event(
                LOG,
                logging.WARNING,
                f"Skipping subscription {sub.label}: {e.message}",
                step="subscription",
                phase="skipped",
                timers=timers,
                timer_key=sub.id,
                subscription_id=sub.id,
                reason=e.reason,
            )
        else:
            added = aggregator.append(records)
            log_event(
                LOG,
                logging.INFO,
                f"Collected {added} app(s) from {sub.name}",
                step="subscription",
                phase="complete",
                timers=timers,
                timer_key=sub.id,
                subscription_id=sub.id,
                app_count=added,
            )
        finally:
            result.processed += 1
            if progress is not None:
                progress.advance()

    result.records = list(aggregator.records)
    result.summaries = aggregator.summarize()
    return result
