from __future__ import annotations

from flex_inventory.aggregate import Aggregator, run_totals, summarize_records
from flex_inventory.normalize.schema import Eligibility, EligibilityRecord


def _rec(sub_id: str, app: str, eligible: bool = True) -> EligibilityRecord:
    return EligibilityRecord(
        subscription_id=sub_id,
        subscription_name=f"name-{sub_id}",
        app_name=app,
        resource_group="rg",
        eligibility=Eligibility.ELIGIBLE if eligible else Eligibility.INELIGIBLE,
        reason=None if eligible else "blocked",
    )


def test_append_preserves_processing_order() -> None:
    agg = Aggregator()
    assert agg.append([_rec("a", "a1"), _rec("a", "a2")]) == 2
    assert agg.append([]) == 0
    agg.append([_rec("b", "b1")])

    assert [r.app_name for r in agg.records] == ["a1", "a2", "b1"]
    assert len(agg) == 3


def test_summaries_sorted_by_total_desc_with_stable_ties() -> None:
    records = [
        _rec("a", "a1"),
        _rec("b", "b1"),
        _rec("b", "b2", eligible=False),
        _rec("c", "c1", eligible=False),
        _rec("d", "d1"),
        _rec("d", "d2"),
        _rec("d", "d3", eligible=False),
    ]

    summaries = summarize_records(records)

    assert [s.subscription_id for s in summaries] == ["d", "b", "a", "c"]
    for s in summaries:
        assert s.total_apps == s.eligible_apps + s.ineligible_apps
    assert sum(s.total_apps for s in summaries) == len(records)
    assert summaries[0].to_dict() == {
        "subscriptionId": "d",
        "subscriptionName": "name-d",
        "totalApps": 3,
        "eligibleApps": 2,
        "ineligibleApps": 1,
    }


def test_summarize_is_repeatable() -> None:
    agg = Aggregator()
    agg.append([_rec("x", "x1"), _rec("y", "y1", eligible=False)])
    assert agg.summarize() == agg.summarize()


def test_summarize_empty() -> None:
    assert Aggregator().summarize() == []


def test_run_totals() -> None:
    summaries = summarize_records([_rec("a", "a1"), _rec("a", "a2", eligible=False), _rec("b", "b1")])
    totals = run_totals(summaries)
    assert totals.subscriptions_with_apps == 2
    assert totals.total_apps == 3
    assert totals.eligible_apps == 2
    assert totals.ineligible_apps == 1
