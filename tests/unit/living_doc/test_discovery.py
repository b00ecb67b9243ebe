"""
debugloop: unit tests for living document discovery

File: tests/unit/living_doc/test_discovery.py

Purpose
- Validate the name pattern and the explicit multi-candidate policies.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from debugloop.living_doc import (
    DiscoveryPolicy,
    DiscoverySettings,
    find_living_doc,
    list_candidates,
)


def _touch(path: Path, *, mtime_ns: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("---\nactive: true\n---\n", encoding="utf-8")
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("debug-loop-auth.md", True),
        ("debug-loop-.md", False),
        ("debug-loop-auth.txt", False),
        ("notes.md", False),
        ("xdebug-loop-auth.md", False),
    ],
)
def test_settings_match_prefix_and_suffix(name: str, expected: bool) -> None:
    assert DiscoverySettings().matches(name) is expected


def test_doc_name_uses_prefix_and_suffix() -> None:
    settings = DiscoverySettings(prefix="loop-", suffix=".markdown")
    assert settings.doc_name("auth") == "loop-auth.markdown"


def test_from_config_reads_section_and_defaults() -> None:
    settings = DiscoverySettings.from_config({"directory": "docs", "policy": "newest"})
    assert settings.directory == "docs"
    assert settings.prefix == "debug-loop-"
    assert settings.policy is DiscoveryPolicy.NEWEST
    assert DiscoverySettings.from_config(None) == DiscoverySettings()


def test_missing_directory_finds_nothing(tmp_path: Path) -> None:
    assert list_candidates(tmp_path) == []
    assert find_living_doc(tmp_path) is None


def test_non_matching_files_and_directories_are_ignored(tmp_path: Path) -> None:
    _touch(tmp_path / ".claude" / "notes.md")
    (tmp_path / ".claude" / "debug-loop-dir.md").mkdir()

    assert find_living_doc(tmp_path) is None


def test_first_by_name_policy_picks_smallest_name_and_warns(tmp_path: Path) -> None:
    _touch(tmp_path / ".claude" / "debug-loop-zeta.md", mtime_ns=3_000_000_000)
    _touch(tmp_path / ".claude" / "debug-loop-alpha.md", mtime_ns=1_000_000_000)

    with capture_logs() as logs:
        chosen = find_living_doc(tmp_path)

    assert chosen == tmp_path / ".claude" / "debug-loop-alpha.md"
    warnings = [entry for entry in logs if entry["event"] == "multiple living documents found"]
    assert len(warnings) == 1
    assert warnings[0]["log_level"] == "warning"
    assert warnings[0]["chosen"] == "debug-loop-alpha.md"
    assert warnings[0]["ignored"] == ["debug-loop-zeta.md"]


def test_newest_policy_picks_latest_mtime_with_name_tiebreak(tmp_path: Path) -> None:
    directory = tmp_path / ".claude"
    _touch(directory / "debug-loop-old.md", mtime_ns=1_000_000_000)
    _touch(directory / "debug-loop-b.md", mtime_ns=5_000_000_000)
    _touch(directory / "debug-loop-a.md", mtime_ns=5_000_000_000)
    settings = DiscoverySettings(policy=DiscoveryPolicy.NEWEST)

    ordered = [entry.name for entry in list_candidates(tmp_path, settings)]

    assert ordered == ["debug-loop-a.md", "debug-loop-b.md", "debug-loop-old.md"]
    assert find_living_doc(tmp_path, settings) == directory / "debug-loop-a.md"


def test_single_candidate_does_not_warn(tmp_path: Path) -> None:
    _touch(tmp_path / ".claude" / "debug-loop-only.md")

    with capture_logs() as logs:
        chosen = find_living_doc(tmp_path)

    assert chosen is not None
    assert logs == []
