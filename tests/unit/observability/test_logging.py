"""
debugloop: unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate JSON-lines diagnostics on a dedicated stream, structlog routing, and
  bound context propagation.

What this test file should cover
- JSON line validity and the stable key set.
- structlog key/value pairs and bound context land under ``fields``.
- Level filtering and the plain-text format.
- Repeated setup replaces the handler instead of stacking duplicates.
"""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from uuid import uuid4

import pytest
import structlog

from debugloop.observability import route_structlog_to_stdlib, setup_logging
from debugloop.observability.logging import _parse_log_level


def _logger_name() -> str:
    return f"debugloop_tests_{uuid4().hex}"


def _json_lines(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_json_lines_carry_stable_keys_and_extra_fields() -> None:
    name = _logger_name()
    stream = io.StringIO()
    setup_logging({"log_level": "INFO", "log_format": "json"}, stream=stream, logger_name=name)

    logging.getLogger(name).info(
        "hello %s", "world", extra={"path": Path("/tmp/doc.md"), "ratio": float("inf")}
    )

    (record,) = _json_lines(stream)
    assert set(record) == {"timestamp", "level", "logger", "message", "fields"}
    assert record["message"] == "hello world"
    assert record["level"] == "INFO"
    assert record["logger"] == name
    assert str(record["timestamp"]).endswith("Z")
    assert record["fields"] == {"path": "/tmp/doc.md", "ratio": "inf"}


def test_structlog_events_route_through_stdlib_with_bound_context() -> None:
    name = _logger_name()
    stream = io.StringIO()
    setup_logging({"log_level": "DEBUG"}, stream=stream, logger_name=name)
    log = structlog.get_logger(f"{name}.engine")

    with structlog.contextvars.bound_contextvars(living_doc="/p/doc.md", phase="verify"):
        log.warning("phase stalled", iteration=6, limit=5)
    log.info("after scope")

    first, second = _json_lines(stream)
    assert first["message"] == "phase stalled"
    assert first["level"] == "WARNING"
    assert first["logger"] == f"{name}.engine"
    assert first["fields"] == {
        "iteration": 6,
        "limit": 5,
        "living_doc": "/p/doc.md",
        "phase": "verify",
    }
    assert second["message"] == "after scope"
    assert "fields" not in second


def test_level_filtering() -> None:
    name = _logger_name()
    stream = io.StringIO()
    setup_logging({"log_level": "warning"}, stream=stream, logger_name=name)
    log = structlog.get_logger(name)

    log.info("hidden")
    log.debug("hidden too")
    log.error("shown")

    assert [record["message"] for record in _json_lines(stream)] == ["shown"]


def test_exceptions_are_rendered() -> None:
    name = _logger_name()
    stream = io.StringIO()
    setup_logging(None, stream=stream, logger_name=name)

    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        structlog.get_logger(name).exception("hook failed")

    (record,) = _json_lines(stream)
    assert record["level"] == "ERROR"
    assert "RuntimeError: kaput" in str(record["exception"])


def test_text_format() -> None:
    name = _logger_name()
    stream = io.StringIO()
    setup_logging({"log_format": "text"}, stream=stream, logger_name=name)

    structlog.get_logger(name).warning("multiple living documents found", chosen="a.md")

    assert stream.getvalue() == (
        f'WARNING {name}: multiple living documents found chosen="a.md"\n'
    )


def test_repeated_setup_replaces_handler() -> None:
    name = _logger_name()
    first = io.StringIO()
    second = io.StringIO()

    setup_logging(None, stream=first, logger_name=name)
    logger = setup_logging(None, stream=second, logger_name=name)
    logger.warning("once")

    assert len(logger.handlers) == 1
    assert first.getvalue() == ""
    assert len(_json_lines(second)) == 1
    assert logger.propagate is False


@pytest.mark.parametrize(("value", "expected"), [("debug", 10), (" Error ", 40), (25, 25)])
def test_parse_log_level(value: object, expected: int) -> None:
    assert _parse_log_level(value) == expected


@pytest.mark.parametrize("value", ["LOUD", True, None])
def test_parse_log_level_rejects_unknown(value: object) -> None:
    with pytest.raises(ValueError):
        _parse_log_level(value)


def test_library_use_without_setup_keeps_stdout_clean(capsys: pytest.CaptureFixture[str]) -> None:
    structlog.reset_defaults()
    route_structlog_to_stdlib()
    log = structlog.get_logger(f"{_logger_name()}.engine")

    log.debug("phase evaluated", passed=False)
    log.info("phase transitioned", next_phase="verify")
    log.warning("phase stalled", iteration=6)

    assert capsys.readouterr().out == ""
