from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .normalize.schema import ContextSummary, Eligibility, EligibilityRecord


@dataclass(frozen=True)
class RunTotals:
    subscriptions_with_apps: int
    total_apps: int
    eligible_apps: int
    ineligible_apps: int


class Aggregator:
    """
    Run-wide record accumulator.

    Records keep the order in which they were appended, which is the
    subscription processing order.
    """

    def __init__(self) -> None:
        self._records: List[EligibilityRecord] = []

    def append(self, records: Iterable[EligibilityRecord]) -> int:
        before = len(self._records)
        self._records.extend(records)
        return len(self._records) - before

    @property
    def records(self) -> Tuple[EligibilityRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def summarize(self) -> List[ContextSummary]:
        return summarize_records(self._records)


def summarize_records(records: Sequence[EligibilityRecord]) -> List[ContextSummary]:
    """
    One summary per subscription, most apps first.

    Subscriptions are grouped in first-seen order and `sorted` is stable, so
    ties keep that order.
    """
    names: Dict[str, str] = {}
    counts: Dict[str, List[int]] = {}
    for rec in records:
        if rec.subscription_id not in counts:
            names[rec.subscription_id] = rec.subscription_name
            counts[rec.subscription_id] = [0, 0]
        slot = 0 if rec.eligibility is Eligibility.ELIGIBLE else 1
        counts[rec.subscription_id][slot] += 1

    summaries = [
        ContextSummary(
            subscription_id=sub_id,
            subscription_name=names[sub_id],
            eligible_apps=eligible,
            ineligible_apps=ineligible,
        )
        for sub_id, (eligible, ineligible) in counts.items()
    ]
    return sorted(summaries, key=lambda s: s.total_apps, reverse=True)


def run_totals(summaries: Sequence[ContextSummary]) -> RunTotals:
    return RunTotals(
        subscriptions_with_apps=sum(1 for s in summaries if s.total_apps > 0),
        total_apps=sum(s.total_apps for s in summaries),
        eligible_apps=sum(s.eligible_apps for s in summaries),
        ineligible_apps=sum(s.ineligible_apps for s in summaries),
    )
