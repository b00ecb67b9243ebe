"""Front matter skeleton for a freshly started debugging workflow."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

from debugloop.frontmatter.values import MapValue, map_from_plain

_PHASE_DESCRIPTIONS: Final[dict[str, str]] = {
    "systematic-debug": "Find the root cause and document it under a Root Cause heading",
    "architecture": "Decide how the fix fits the existing design",
    "write-plan": "Write a step-by-step implementation plan",
    "write-tests": "Write a reproduction test that fails on the current code",
    "implement": "Make the reproduction test pass without deleting it",
    "verify": "Run the full test suite and record the results",
    "code-review": "Review the change",
    "fix-feedback": "Address review feedback",
    "update-docs": "Update documentation affected by the fix",
}

# Phases whose exit criteria name a markdown artifact under docs/plans/.
_ARTIFACT_SUFFIXES: Final[dict[str, str]] = {
    "systematic-debug": "debug",
    "architecture": "architecture",
    "write-plan": "plan",
    "verify": "verification",
}


def default_test_path(slug: str) -> str:
    return f"tests/test_{slug.replace('-', '_')}_regression.py"


def new_front_matter(
    slug: str,
    *,
    phases: Sequence[str],
    depth: str,
    max_phase_iterations: int,
    now: str,
    test_path: str | None = None,
) -> MapValue:
    """Build the initial front matter tree for ``slug``; the workflow starts active."""

    if not phases:
        raise ValueError("phases must not be empty")

    criteria: dict[str, Any] = {}
    for phase in phases:
        entry: dict[str, Any] = {
            "description": _PHASE_DESCRIPTIONS.get(phase, f"Complete {phase}")
        }
        suffix = _ARTIFACT_SUFFIXES.get(phase)
        entry["artifact"] = f"docs/plans/{slug}-{suffix}.md" if suffix is not None else None
        criteria[phase] = entry

    checkpoints = (
        [{"after": "verify", "reason": "Confirm the fix before code review"}]
        if "verify" in phases
        else []
    )

    return map_from_plain(
        {
            "bug_slug": slug,
            "created": now,
            "depth": depth,
            "active": True,
            "phase": phases[0],
            "phase_iteration": 1,
            "max_phase_iterations": max_phase_iterations,
            "total_iterations": 0,
            "phase_started": now,
            "awaiting_human_review": False,
            "exit_criteria": criteria,
            "human_checkpoints": checkpoints,
            "paths": {
                "debug_findings": f"docs/plans/{slug}-debug.md",
                "reproduction_test": test_path or default_test_path(slug),
            },
            "history": [],
        }
    )


__all__ = ["default_test_path", "new_front_matter"]
