"""
debugloop: built-in phase validators

File: src/debugloop/validators/builtins.py

Purpose
- File-system checks that decide whether a phase's exit criteria are met.

Functional requirements
- ``debug-findings``: the artifact carries a non-placeholder "Root Cause" section.
- ``reproduction-test``: the test file exists and is not a stub.
- ``implementation-checkpoint``: the reproduction test still exists. Tests are
  never executed here.
- ``generic-artifact``: the named artifact exists.
- ``no-criteria``: always passes.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from debugloop.utils.fs import resolve_under
from debugloop.validators.base import ValidationResult, register_builtin_validator

MIN_TEST_CONTENT_CHARS: Final[int] = 50
ROOT_CAUSE_HEADING: Final[str] = "Root Cause"

_PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(TBD|TODO|N/A|\.\.\.|-)$", re.IGNORECASE
)
_NEXT_HEADING_PATTERN: Final[re.Pattern[str]] = re.compile(r"^#+\s", re.MULTILINE)


def _artifact(criteria: Mapping[str, Any]) -> str | None:
    value = criteria.get("artifact")
    if isinstance(value, str) and value:
        return value
    return None


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def has_non_empty_section(content: str, heading: str) -> bool:
    """
    True when ``content`` has a markdown heading starting with ``heading`` (any
    ``#`` depth, case-insensitive) followed by real text before the next heading.
    """

    pattern = re.compile(rf"^#+\s*{re.escape(heading)}[^\n]*$", re.IGNORECASE | re.MULTILINE)
    match = pattern.search(content)
    if match is None:
        return False

    rest = content[match.end() :]
    next_heading = _NEXT_HEADING_PATTERN.search(rest)
    section = rest[: next_heading.start()] if next_heading is not None else rest
    trimmed = section.strip()
    return bool(trimmed) and _PLACEHOLDER_PATTERN.match(trimmed) is None


def _non_whitespace_length(text: str) -> int:
    return sum(1 for char in text if not char.isspace())


@register_builtin_validator("debug-findings")
class DebugFindingsValidator:
    """Debug findings document with a filled-in root cause."""

    validator_id = "debug-findings"

    def validate(
        self, working_dir: Path, criteria: Mapping[str, Any], paths: Mapping[str, str]
    ) -> ValidationResult:
        artifact = _artifact(criteria)
        if artifact is None:
            return ValidationResult.ok("No artifact required")

        target = resolve_under(working_dir, artifact)
        if not target.is_file():
            return ValidationResult.fail(f"Debug findings not found: {artifact}")

        heading = criteria.get("section")
        if not isinstance(heading, str) or not heading.strip():
            heading = ROOT_CAUSE_HEADING
        try:
            content = _read(target)
        except OSError:
            return ValidationResult.fail(f"Could not read debug findings: {artifact}")
        if not has_non_empty_section(content, heading):
            return ValidationResult.fail(
                f'Debug findings missing "{heading}" section or section is empty'
            )
        return ValidationResult.ok("Debug findings validated")


@register_builtin_validator("reproduction-test")
class ReproductionTestValidator:
    validator_id = "reproduction-test"

    def validate(
        self, working_dir: Path, criteria: Mapping[str, Any], paths: Mapping[str, str]
    ) -> ValidationResult:
        target_path = _artifact(criteria) or paths.get("reproduction_test")
        if not target_path:
            return ValidationResult.fail("No test path configured")

        target = resolve_under(working_dir, target_path)
        if not target.is_file():
            return ValidationResult.fail(f"Reproduction test not found: {target_path}")
        try:
            content = _read(target)
        except OSError:
            return ValidationResult.fail(f"Could not read test file: {target_path}")
        if _non_whitespace_length(content) < MIN_TEST_CONTENT_CHARS:
            return ValidationResult.fail("Test file appears to be empty or too short")
        return ValidationResult.ok("Reproduction test exists")


@register_builtin_validator("implementation-checkpoint")
class ImplementationCheckpointValidator:
    validator_id = "implementation-checkpoint"

    def validate(
        self, working_dir: Path, criteria: Mapping[str, Any], paths: Mapping[str, str]
    ) -> ValidationResult:
        test_path = paths.get("reproduction_test")
        if not test_path:
            return ValidationResult.ok("No test path to validate")
        if not resolve_under(working_dir, test_path).exists():
            return ValidationResult.fail(f"Reproduction test was deleted: {test_path}")
        return ValidationResult.ok("Implementation checkpoint passed (test file exists)")


@register_builtin_validator("generic-artifact")
class GenericArtifactValidator:
    validator_id = "generic-artifact"

    def validate(
        self, working_dir: Path, criteria: Mapping[str, Any], paths: Mapping[str, str]
    ) -> ValidationResult:
        artifact = _artifact(criteria)
        if artifact is None:
            return ValidationResult.ok("No artifact required")
        if not resolve_under(working_dir, artifact).exists():
            return ValidationResult.fail(f"Artifact not found: {artifact}")
        return ValidationResult.ok("Artifact exists")


@register_builtin_validator("no-criteria")
class NoCriteriaValidator:
    validator_id = "no-criteria"

    def validate(
        self, working_dir: Path, criteria: Mapping[str, Any], paths: Mapping[str, str]
    ) -> ValidationResult:
        return ValidationResult.ok("No artifact validation needed")


__all__ = [
    "MIN_TEST_CONTENT_CHARS",
    "ROOT_CAUSE_HEADING",
    "DebugFindingsValidator",
    "GenericArtifactValidator",
    "ImplementationCheckpointValidator",
    "NoCriteriaValidator",
    "ReproductionTestValidator",
    "has_non_empty_section",
]
