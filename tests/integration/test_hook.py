"""
debugloop: stop-hook adapter integration contracts

File: tests/integration/test_hook.py

Purpose
- Drive ``run_hook`` end to end: host JSON event in, block response out, living
  document updated on disk.
- Enforce the always-exit-0 contract for malformed input, bad configuration, and
  internal failures.
"""

from __future__ import annotations

import io
import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from debugloop.constants import DEFAULT_PHASE_TABLES
from debugloop.hook import event_cwd, parse_event, run_hook
from debugloop.living_doc import LivingDoc, new_front_matter, read_document, write_document

_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def _seed_doc(root: Path, *, directory: str = ".claude", **overrides: object) -> Path:
    tree = new_front_matter(
        "flaky-upload",
        phases=DEFAULT_PHASE_TABLES["standard"],
        depth="standard",
        max_phase_iterations=5,
        now="2024-06-01T00:00:00.000Z",
    )
    for key, value in overrides.items():
        LivingDoc(tree).set(key, value)
    path = root / directory / "debug-loop-flaky-upload.md"
    write_document(path, tree)
    return path


def _invoke(
    stdin_text: str, *, environ: dict[str, str] | None = None
) -> tuple[int, str, list[dict[str, object]]]:
    stdout = io.StringIO()
    logs = io.StringIO()
    code = run_hook(
        io.StringIO(stdin_text),
        stdout,
        environ=environ if environ is not None else {},
        clock=lambda: _NOW,
        log_stream=logs,
    )
    records = [json.loads(line) for line in logs.getvalue().splitlines()]
    return code, stdout.getvalue(), records


def _event(root: Path) -> str:
    return json.dumps({"session_id": "s-1", "stop_hook_active": False, "cwd": str(root)})


def test_no_living_document_allows_stop(tmp_path: Path) -> None:
    code, out, _ = _invoke(_event(tmp_path))

    assert code == 0
    assert out == ""


def test_failing_phase_blocks_with_host_response(tmp_path: Path) -> None:
    doc_path = _seed_doc(tmp_path)

    code, out, _ = _invoke(_event(tmp_path))

    assert code == 0
    response = json.loads(out)
    assert set(response) == {"decision", "reason", "hookSpecificOutput"}
    assert response["decision"] == "block"
    assert response["reason"] == "Phase systematic-debug criteria not met"
    context = response["hookSpecificOutput"]["additionalContext"]
    assert context.startswith("SYSTEM: Continue working on systematic-debug.")
    assert out.endswith("\n")

    document = read_document(doc_path)
    assert document is not None
    assert LivingDoc(document.front_matter).phase_iteration == 2


def test_passing_phase_transitions_and_blocks(tmp_path: Path) -> None:
    _seed_doc(tmp_path)
    findings = tmp_path / "docs" / "plans" / "flaky-upload-debug.md"
    findings.parent.mkdir(parents=True)
    findings.write_text("## Root Cause\nRetry loop swallows 409.\n", encoding="utf-8")

    _, out, _ = _invoke(_event(tmp_path))

    response = json.loads(out)
    assert response["reason"] == "Phase complete, transitioning"
    assert "Continuing to architecture." in response["hookSpecificOutput"]["additionalContext"]


def test_inactive_document_prints_nothing(tmp_path: Path) -> None:
    _seed_doc(tmp_path, active=False)

    code, out, _ = _invoke(_event(tmp_path))

    assert (code, out) == (0, "")


def test_paused_document_keeps_blocking(tmp_path: Path) -> None:
    doc_path = _seed_doc(tmp_path, awaiting_human_review=True, review_reason="Check logs")
    before = doc_path.read_bytes()

    for _ in range(3):
        _, out, _ = _invoke(_event(tmp_path))
        assert json.loads(out)["reason"] == "Awaiting human review for systematic-debug"

    assert doc_path.read_bytes() == before


@pytest.mark.parametrize("stdin_text", ["{not json", "[1, 2]", '"text"'])
def test_malformed_event_allows_stop_and_logs(tmp_path: Path, stdin_text: str) -> None:
    code, out, records = _invoke(stdin_text)

    assert (code, out) == (0, "")
    assert records[0]["level"] == "WARNING"
    assert str(records[0]["message"]).startswith("hook input is not")


def test_empty_stdin_uses_process_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _seed_doc(tmp_path)
    monkeypatch.chdir(tmp_path)

    code, out, _ = _invoke("")

    assert code == 0
    assert json.loads(out)["decision"] == "block"


def test_invalid_config_allows_stop_and_logs(tmp_path: Path) -> None:
    _seed_doc(tmp_path)
    (tmp_path / "debugloop.toml").write_text("[engine]\nmax_phase_iterations = 0\n")

    code, out, records = _invoke(_event(tmp_path))

    assert (code, out) == (0, "")
    assert any(record["message"] == "configuration rejected; allowing progress" for record in records)


def test_config_discovery_directory_is_honored(tmp_path: Path) -> None:
    _seed_doc(tmp_path, directory="notes")
    (tmp_path / "debugloop.toml").write_text('[discovery]\ndirectory = "notes"\n')

    _, out, _ = _invoke(_event(tmp_path))

    assert json.loads(out)["decision"] == "block"


def test_env_override_reaches_discovery(tmp_path: Path) -> None:
    _seed_doc(tmp_path, directory="loops")

    _, out, _ = _invoke(_event(tmp_path), environ={"DEBUGLOOP_DISCOVERY_DIRECTORY": "loops"})

    assert json.loads(out)["decision"] == "block"


def test_internal_failure_allows_stop_and_logs_exception(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _seed_doc(tmp_path)

    def _explode(*args: object, **kwargs: object) -> object:
        raise RuntimeError("engine exploded")

    monkeypatch.setattr("debugloop.hook.build_runtime", _explode)

    code, out, records = _invoke(_event(tmp_path))

    assert (code, out) == (0, "")
    failure = next(record for record in records if record["message"] == "hook failed; allowing progress")
    assert "RuntimeError: engine exploded" in str(failure["exception"])


def test_debug_logging_includes_bound_document_context(tmp_path: Path) -> None:
    doc_path = _seed_doc(tmp_path)
    (tmp_path / "debugloop.toml").write_text('[observability]\nlog_level = "DEBUG"\n')

    _, _, records = _invoke(_event(tmp_path))

    evaluated = next(record for record in records if record["message"] == "phase evaluated")
    fields = evaluated["fields"]
    assert isinstance(fields, dict)
    assert fields["living_doc"] == str(doc_path)
    assert fields["phase"] == "systematic-debug"
    assert fields["passed"] is False


def test_parse_event_and_cwd_helpers(tmp_path: Path) -> None:
    assert parse_event("") == {}
    assert parse_event("  \n") == {}
    assert parse_event('{"cwd": "/x"}') == {"cwd": "/x"}
    assert parse_event("nope") is None
    assert event_cwd({"cwd": str(tmp_path)}) == tmp_path
    assert event_cwd({"cwd": 5}) == Path.cwd()
