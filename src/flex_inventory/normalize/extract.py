from __future__ import annotations

from typing import Optional

from ..util.errors import NoJsonFound

JSON_START_CHARS = ("{", "[")


def extract_json(text: Optional[str], subscription_id: Optional[str] = None) -> str:
    """
    Return the JSON part of mixed CLI output.

    The az CLI can print warnings and progress lines on stdout ahead of the
    payload. Everything before the first line whose stripped content starts
    with '{' or '[' is dropped; that line and everything after it is returned
    untouched, trailing text included.

    A preamble line that happens to start with a brace is taken as the start
    of the payload. No brace matching is attempted.
    """
    if not text or not text.strip():
        raise NoJsonFound(subscription_id, "Command produced no output")

    lines = text.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if line.strip().startswith(JSON_START_CHARS):
            return "".join(lines[idx:])
    raise NoJsonFound(subscription_id, f"No JSON payload found in {len(lines)} line(s) of output")
