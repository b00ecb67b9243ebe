"""Stable constants shared across the engine, store, and config layers."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Living document layout.
FRONT_MATTER_DELIMITER: Final[str] = "---"
DEFAULT_BODY: Final[str] = "## Current Phase Instructions\n\n## Phase Log\n"

# Loop control defaults.
DEFAULT_DEPTH: Final[str] = "standard"
DEFAULT_MAX_PHASE_ITERATIONS: Final[int] = 5
TERMINAL_PHASE: Final[str] = "complete"

DEFAULT_PHASE_TABLES: Final[dict[str, tuple[str, ...]]] = {
    "minimal": (
        "systematic-debug",
        "write-tests",
        "implement",
        "verify",
        "code-review",
        "update-docs",
    ),
    "standard": (
        "systematic-debug",
        "architecture",
        "write-plan",
        "write-tests",
        "implement",
        "verify",
        "code-review",
        "update-docs",
    ),
    "full": (
        "systematic-debug",
        "architecture",
        "write-plan",
        "write-tests",
        "implement",
        "verify",
        "code-review",
        "fix-feedback",
        "update-docs",
    ),
}

# Living document discovery.
DEFAULT_DOC_DIRECTORY: Final[str] = ".claude"
DEFAULT_DOC_PREFIX: Final[str] = "debug-loop-"
DEFAULT_DOC_SUFFIX: Final[str] = ".md"

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_BODY",
    "DEFAULT_DEPTH",
    "DEFAULT_DOC_DIRECTORY",
    "DEFAULT_DOC_PREFIX",
    "DEFAULT_DOC_SUFFIX",
    "DEFAULT_MAX_PHASE_ITERATIONS",
    "DEFAULT_PHASE_TABLES",
    "FRONT_MATTER_DELIMITER",
    "TERMINAL_PHASE",
]
