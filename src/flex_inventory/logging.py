from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

ENV_LEVEL = "FLEX_INV_LOG_LEVEL"
ENV_JSON = "FLEX_INV_JSON_LOGS"
_TRUTHY = ("1", "true", "yes")

# Attributes every LogRecord carries; anything else arrived through `extra`
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


def _utc_timestamp(created: float, timespec: str) -> str:
    return datetime.fromtimestamp(created, timezone.utc).isoformat(timespec=timespec).replace("+00:00", "Z")


def _json_extra(value: object) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and v is not None}


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    json_logs: bool = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line; extras that cannot be encoded are dropped."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {k: v for k, v in _extras(record).items() if _json_extra(v)}
        payload.update(
            timestamp=_utc_timestamp(record.created, "milliseconds"),
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


class PlainFormatter(logging.Formatter):
    """
    Human-readable lines:

        2026-01-02T03:04:05Z WARNING flex_inventory.scan: [subscription:skipped] ... (subscription=<id>)
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        extras = _extras(record)
        parts: List[str] = []
        if "step" in extras or "phase" in extras:
            parts.append(f"[{extras.get('step', 'unknown')}:{extras.get('phase', 'unknown')}]")
        parts.append(record.getMessage())
        if extras.get("subscription_id"):
            parts.append(f"(subscription={extras['subscription_id']})")
        if "duration_ms" in extras:
            parts.append(f"(duration_ms={extras['duration_ms']})")
        line = f"{_utc_timestamp(record.created, 'seconds')} {record.levelname} {record.name}: {' '.join(parts)}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _resolve(config: Optional[LogConfig]) -> LogConfig:
    if config is not None:
        return config
    return LogConfig(
        level=os.getenv(ENV_LEVEL) or "INFO",
        json_logs=(os.getenv(ENV_JSON) or "").strip().lower() in _TRUTHY,
    )


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """
    Install the single stderr handler on the root logger. Only the first call
    has any effect.

    Without an explicit config, FLEX_INV_LOG_LEVEL and FLEX_INV_JSON_LOGS are
    read from the environment. Unknown level names fall back to INFO.
    """
    if getattr(setup_logging, "_configured", False):
        return
    resolved = _resolve(config)
    level = logging.getLevelName(resolved.level.upper())

    # stderr keeps stdout free for the summary table and list output
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter() if resolved.json_logs else PlainFormatter())

    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    root.handlers = [handler]
    setup_logging._configured = True  # type: ignore[attr-defined]


def add_run_log_file(log_path: Path) -> None:
    """Also write log lines to `log_path`, using the console's formatter. Repeat calls are ignored."""
    target = os.path.abspath(log_path)
    root = logging.getLogger()
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == target for h in root.handlers):
        return

    Path(target).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setLevel(root.level)
    console_formatter = root.handlers[0].formatter if root.handlers else None
    file_handler.setFormatter(console_formatter or PlainFormatter())
    root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
