from __future__ import annotations

import json

import pytest

from flex_inventory.normalize.extract import extract_json
from flex_inventory.util.errors import NoJsonFound


def test_extract_returns_text_without_preamble() -> None:
    raw = 'Loading...\nWARNING: preview command\n{"eligible_apps": []}\n'

    text = extract_json(raw)

    assert text == '{"eligible_apps": []}\n'
    assert json.loads(text) == {"eligible_apps": []}


def test_extract_keeps_input_that_starts_with_json() -> None:
    raw = '[\n  {"id": "a"}\n]'
    assert extract_json(raw) == raw


def test_extract_accepts_indented_json_start_line() -> None:
    raw = 'info line\n   {"a": 1}'
    assert json.loads(extract_json(raw)) == {"a": 1}


def test_extract_passes_trailing_text_through() -> None:
    raw = 'preamble\n{"a": 1}\ntrailing noise\n'
    assert extract_json(raw) == '{"a": 1}\ntrailing noise\n'


def test_extract_takes_first_brace_line_even_inside_preamble() -> None:
    raw = 'Example: run with\n{not json at all}\n{"a": 1}\n'
    assert extract_json(raw).startswith("{not json at all}")


@pytest.mark.parametrize("raw", [None, "", "   \n\t\n", "Loading...\nDone.\n"])
def test_extract_without_json_raises(raw) -> None:
    with pytest.raises(NoJsonFound):
        extract_json(raw)


def test_extract_error_carries_subscription_id() -> None:
    with pytest.raises(NoJsonFound) as exc_info:
        extract_json("nothing here", "sub-1")
    assert exc_info.value.subscription_id == "sub-1"
    assert exc_info.value.reason == "no_json_found"
