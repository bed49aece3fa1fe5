from __future__ import annotations

import json
import logging

from flex_inventory.logging import JsonFormatter, LogConfig, PlainFormatter, add_run_log_file, setup_logging
from flex_inventory.util.events import StepTimers, log_event


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="unit",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_skips_non_serializable_extras() -> None:
    payload = json.loads(JsonFormatter().format(_record(good={"a": 1, "b": [1, None]}, bad={"obj": object()})))

    assert payload["message"] == "hello"
    assert payload["good"] == {"a": 1, "b": [1, None]}
    assert "bad" not in payload


def test_plain_formatter_includes_step_and_subscription() -> None:
    text = PlainFormatter().format(_record(step="subscription", phase="skipped", subscription_id="s1", duration_ms=12))
    assert "[subscription:skipped] hello" in text
    assert "(subscription=s1)" in text
    assert "(duration_ms=12)" in text


def test_log_event_records_duration(caplog) -> None:
    logger = logging.getLogger("unit.events")
    timers = StepTimers()
    with caplog.at_level(logging.INFO, logger="unit.events"):
        log_event(logger, logging.INFO, "begin", step="scan", phase="start", timers=timers)
        log_event(logger, logging.INFO, "done", step="scan", phase="complete", timers=timers, count=3)

    start, done = caplog.records
    assert start.event == "scan.start"
    assert not hasattr(start, "duration_ms")
    assert done.event == "scan.complete"
    assert done.duration_ms >= 0
    assert done.count == 3


def test_add_run_log_file_writes(tmp_path, monkeypatch) -> None:
    root = logging.getLogger()
    previous = root.handlers[:]
    monkeypatch.setattr(setup_logging, "_configured", False, raising=False)
    setup_logging(LogConfig(level="INFO", json_logs=False))

    log_path = tmp_path / "logs" / "run.log"
    add_run_log_file(log_path)
    add_run_log_file(log_path)

    logger = logging.getLogger("unit.test")
    logger.info("file log test")

    file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert "file log test" in log_path.read_text(encoding="utf-8")
    for h in file_handlers:
        root.removeHandler(h)
        h.close()
    root.handlers = previous


def test_formatters_emit_single_utc_suffix() -> None:
    plain = PlainFormatter().format(_record())
    stamp = plain.split(" ", 1)[0]
    assert stamp.endswith("Z")
    assert "+00:00" not in stamp

    payload = json.loads(JsonFormatter().format(_record()))
    assert payload["timestamp"].endswith("Z")
    assert "+00:00" not in payload["timestamp"]


def test_log_event_closing_phase_without_start_has_no_duration(caplog) -> None:
    logger = logging.getLogger("unit.events")
    with caplog.at_level(logging.INFO, logger="unit.events"):
        log_event(logger, logging.WARNING, "skip", step="export", phase="skipped", timers=StepTimers(), skipped=2)

    (record,) = caplog.records
    assert record.event == "export.skipped"
    assert record.skipped == 2
    assert not hasattr(record, "duration_ms")
