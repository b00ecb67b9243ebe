"""
debugloop: host stop-hook adapter

File: src/debugloop/hook.py

Purpose
- Bridge between the agent host and the phase engine: read the host's JSON event
  from stdin, run one engine step for the project's living document, and print
  the host's block response when the engine asks to block.

Functional requirements
- Prints nothing when progress should be allowed.
- Always exits 0. Malformed input, configuration errors and internal failures
  are logged to stderr and allow progress.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TextIO

import structlog

from debugloop.config import ConfigLoadError, ConfigValidationError, load_config
from debugloop.engine.phase_engine import Clock
from debugloop.observability import setup_logging
from debugloop.runtime import build_runtime

_LOGGER = structlog.get_logger(__name__)


def parse_event(raw: str) -> dict[str, Any] | None:
    try:
        payload = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as exc:
        _LOGGER.warning("hook input is not JSON", error=str(exc))
        return None
    if not isinstance(payload, dict):
        _LOGGER.warning("hook input is not a JSON object")
        return None
    return payload


def event_cwd(event: Mapping[str, Any]) -> Path:
    raw = event.get("cwd")
    if isinstance(raw, str) and raw.strip():
        return Path(raw)
    return Path.cwd()


def run_hook(
    stdin: TextIO,
    stdout: TextIO,
    *,
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    clock: Clock | None = None,
    log_stream: TextIO | None = None,
) -> int:
    """Run one hook invocation. Returns the process exit code, which is always 0."""

    setup_logging(None, stream=log_stream)
    event = parse_event(stdin.read())
    if event is None:
        return 0
    cwd = event_cwd(event)

    try:
        config = load_config(
            config_path,
            environ=dict(os.environ if environ is None else environ),
            base_dir=cwd,
        )
    except (ConfigLoadError, ConfigValidationError) as exc:
        _LOGGER.warning("configuration rejected; allowing progress", error=str(exc))
        return 0
    setup_logging(config.get("observability"), stream=log_stream)

    try:
        runtime = build_runtime(config, clock=clock)
        doc_path = runtime.find_doc(cwd)
        if doc_path is None:
            return 0
        report = runtime.engine.run(doc_path, cwd)
    except Exception:  # noqa: BLE001 - the hook must never block on its own failure
        _LOGGER.exception("hook failed; allowing progress")
        return 0

    if report is not None:
        stdout.write(json.dumps(report.to_hook_response(), ensure_ascii=False))
        stdout.write("\n")
    return 0


__all__ = ["event_cwd", "parse_event", "run_hook"]
