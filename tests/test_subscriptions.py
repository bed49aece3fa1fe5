from __future__ import annotations

import pytest

from flex_inventory.azure.cli import AzResult
from flex_inventory.azure.subscriptions import filter_subscriptions, list_enabled_subscriptions
from flex_inventory.normalize.schema import Subscription
from flex_inventory.util.errors import AzCliError


def test_list_enabled_subscriptions_keeps_order_and_dedupes(dummy_az_factory) -> None:
    az = dummy_az_factory(
        subscriptions=[
            {"id": "s2", "name": "Beta", "state": "Enabled"},
            {"id": "s1", "name": "Alpha", "state": "Enabled"},
            {"id": "s2", "name": "Beta again"},
            {"name": "no id"},
            {"id": "s3"},
        ]
    )

    subs = list_enabled_subscriptions(az)

    assert subs == [
        Subscription(id="s2", name="Beta"),
        Subscription(id="s1", name="Alpha"),
        Subscription(id="s3", name="s3"),
    ]
    assert az.calls[0][:2] == ["account", "list"]
    assert "[?state=='Enabled']" in az.calls[0]


def test_list_enabled_subscriptions_skips_preamble(dummy_az_factory) -> None:
    az = dummy_az_factory(list_output='WARNING: stale token\n[{"id": "s1", "name": "Alpha"}]')
    assert list_enabled_subscriptions(az) == [Subscription(id="s1", name="Alpha")]


@pytest.mark.parametrize("output", ["", "[]", "nothing\n"])
def test_list_enabled_subscriptions_empty(dummy_az_factory, output) -> None:
    az = dummy_az_factory(list_output=output)
    assert list_enabled_subscriptions(az) == []


def test_list_enabled_subscriptions_cli_failure_raises() -> None:
    class FailingAz:
        def run(self, args, *, timeout=None):
            return AzResult(args=list(args), returncode=1, stdout="", stderr="Please run 'az login'")

    with pytest.raises(AzCliError):
        list_enabled_subscriptions(FailingAz())


def test_filter_subscriptions_by_id_or_name() -> None:
    subs = [Subscription("s1", "Alpha"), Subscription("s2", "Beta"), Subscription("s3", "Gamma")]
    assert filter_subscriptions(subs, ["gamma", " S1 "]) == [subs[0], subs[2]]
    assert filter_subscriptions(subs, None) == subs
    assert filter_subscriptions(subs, []) == subs
