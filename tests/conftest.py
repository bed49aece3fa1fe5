from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from flex_inventory.azure.cli import AzResult

TIMEOUT = "<timeout>"


class DummyAz:
    """
    In-memory stand-in for the az executable.

    `current` mirrors the CLI's current subscription; `flex_outputs` maps a
    subscription id to stdout text, an AzResult, or TIMEOUT.
    """

    def __init__(
        self,
        *,
        subscriptions: Optional[List[Dict[str, Any]]] = None,
        current: Optional[Dict[str, str]] = None,
        flex_outputs: Optional[Dict[str, Union[str, AzResult, object]]] = None,
        fail_switch: Sequence[str] = (),
        list_output: Optional[str] = None,
        list_error: Optional[str] = None,
    ) -> None:
        self.subscriptions = subscriptions or []
        self.current = current
        self.flex_outputs = flex_outputs or {}
        self.fail_switch = set(fail_switch)
        self.list_output = list_output
        self.list_error = list_error
        self.default_timeout = 300
        self.calls: List[List[str]] = []
        self.switches: List[str] = []

    def _ok(self, args: Sequence[str], stdout: str) -> AzResult:
        return AzResult(args=list(args), returncode=0, stdout=stdout, stderr="")

    def _fail(self, args: Sequence[str], stderr: str) -> AzResult:
        return AzResult(args=list(args), returncode=1, stdout="", stderr=stderr)

    def run(self, args: Sequence[str], *, timeout: Optional[int] = None) -> AzResult:
        args = list(args)
        self.calls.append(args)
        if args[:2] == ["account", "show"]:
            if self.current is None:
                return self._fail(args, "ERROR: Please run 'az login' to setup account.")
            return self._ok(args, json.dumps(self.current))
        if args[:2] == ["account", "set"]:
            sub_id = args[args.index("--subscription") + 1]
            if sub_id in self.fail_switch:
                return self._fail(args, f"ERROR: The subscription '{sub_id}' doesn't exist in cloud 'AzureCloud'.")
            self.switches.append(sub_id)
            name = next((s.get("name") for s in self.subscriptions if s.get("id") == sub_id), sub_id)
            self.current = {"id": sub_id, "name": name}
            return self._ok(args, "")
        if args[:2] == ["account", "list"]:
            if self.list_error is not None:
                return self._fail(args, self.list_error)
            if self.list_output is not None:
                return self._ok(args, self.list_output)
            return self._ok(args, json.dumps(self.subscriptions))
        if args[:3] == ["functionapp", "flex-migration", "list"]:
            sub_id = args[args.index("--subscription") + 1]
            out = self.flex_outputs.get(sub_id, "")
            if out == TIMEOUT:
                return AzResult(args=args, returncode=-1, stdout="", stderr="", timed_out=True)
            if isinstance(out, AzResult):
                return out
            return self._ok(args, str(out))
        if args[:2] == ["config", "set"]:
            return self._ok(args, "")
        return self._fail(args, f"unexpected command: {' '.join(args)}")

    @property
    def current_id(self) -> Optional[str]:
        return self.current["id"] if self.current else None


@pytest.fixture
def dummy_az_factory():
    return DummyAz
