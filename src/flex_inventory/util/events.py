from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Optional

# Phases that close a step and report how long it took
CLOSING_PHASES = frozenset({"complete", "error", "warning", "skipped"})


class StepTimers:
    """Wall-clock timers keyed by step name; each timer is read once."""

    def __init__(self) -> None:
        self._open: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._open[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        if key not in self._open:
            return None
        elapsed = perf_counter() - self._open.pop(key)
        return round(elapsed * 1000)


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[StepTimers] = None,
    timer_key: Optional[str] = None,
    **extra: Any,
) -> None:
    """
    Log `message` tagged with `step`, `phase` and `event` ("<step>.<phase>").

    With `timers`, a "start" phase opens the step's timer and any closing
    phase adds `duration_ms`.
    """
    fields: Dict[str, Any] = dict(extra, step=step, phase=phase, event=f"{step}.{phase}")
    if timers is not None:
        key = timer_key or step
        if phase == "start":
            timers.start(key)
        elif phase in CLOSING_PHASES:
            elapsed_ms = timers.finish(key)
            if elapsed_ms is not None:
                fields["duration_ms"] = elapsed_ms
    logger.log(level, message, extra=fields)
