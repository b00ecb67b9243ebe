"""
debugloop: living document discovery

File: src/debugloop/living_doc/discovery.py

Purpose
- Find the living document for a project: a file in a known directory whose name
  matches a fixed prefix/suffix pattern.

Functional requirements
- The choice between several matching files is an explicit policy, never
  directory-listing order:
  - ``first-by-name``: lexicographically smallest file name wins.
  - ``newest``: most recent modification time wins; ties break by name.
- Ignored candidates are reported through a warning log.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import structlog

from debugloop.constants import DEFAULT_DOC_DIRECTORY, DEFAULT_DOC_PREFIX, DEFAULT_DOC_SUFFIX
from debugloop.utils.fs import PathLike

_LOGGER = structlog.get_logger(__name__)


class DiscoveryPolicy(StrEnum):
    FIRST_BY_NAME = "first-by-name"
    NEWEST = "newest"


@dataclass(frozen=True, slots=True)
class DiscoverySettings:
    directory: str = DEFAULT_DOC_DIRECTORY
    prefix: str = DEFAULT_DOC_PREFIX
    suffix: str = DEFAULT_DOC_SUFFIX
    policy: DiscoveryPolicy = DiscoveryPolicy.FIRST_BY_NAME

    @classmethod
    def from_config(cls, section: object) -> DiscoverySettings:
        if not isinstance(section, dict):
            return cls()
        defaults = cls()
        return cls(
            directory=str(section.get("directory", defaults.directory)),
            prefix=str(section.get("prefix", defaults.prefix)),
            suffix=str(section.get("suffix", defaults.suffix)),
            policy=DiscoveryPolicy(str(section.get("policy", defaults.policy.value))),
        )

    def matches(self, name: str) -> bool:
        return (
            name.startswith(self.prefix)
            and name.endswith(self.suffix)
            and len(name) > len(self.prefix) + len(self.suffix)
        )

    def doc_name(self, slug: str) -> str:
        return f"{self.prefix}{slug}{self.suffix}"


def list_candidates(project_root: PathLike, settings: DiscoverySettings | None = None) -> list[Path]:
    """All matching files, ordered by the active policy (winner first)."""

    active = settings if settings is not None else DiscoverySettings()
    directory = Path(project_root) / active.directory
    if not directory.is_dir():
        return []

    candidates = [
        entry for entry in directory.iterdir() if entry.is_file() and active.matches(entry.name)
    ]
    if active.policy is DiscoveryPolicy.NEWEST:
        return sorted(candidates, key=lambda entry: (-entry.stat().st_mtime_ns, entry.name))
    return sorted(candidates, key=lambda entry: entry.name)


def find_living_doc(
    project_root: PathLike, settings: DiscoverySettings | None = None
) -> Path | None:
    """Return the living document selected by the discovery policy, or ``None``."""

    active = settings if settings is not None else DiscoverySettings()
    try:
        candidates = list_candidates(project_root, active)
    except OSError as exc:
        _LOGGER.warning("living document discovery failed", error=str(exc))
        return None
    if not candidates:
        return None

    chosen = candidates[0]
    if len(candidates) > 1:
        _LOGGER.warning(
            "multiple living documents found",
            policy=active.policy.value,
            chosen=chosen.name,
            ignored=[entry.name for entry in candidates[1:]],
        )
    return chosen


__all__ = [
    "DiscoveryPolicy",
    "DiscoverySettings",
    "find_living_doc",
    "list_candidates",
]
