"""Depth profiles: the ordered phase list per depth and loop-control defaults."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from debugloop.constants import (
    DEFAULT_DEPTH,
    DEFAULT_MAX_PHASE_ITERATIONS,
    DEFAULT_PHASE_TABLES,
    TERMINAL_PHASE,
)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    phase_tables: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_PHASE_TABLES)
    )
    default_depth: str = DEFAULT_DEPTH
    default_max_phase_iterations: int = DEFAULT_MAX_PHASE_ITERATIONS
    terminal_phase: str = TERMINAL_PHASE

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> EngineConfig:
        """Build from an effective (already validated) configuration mapping."""

        engine = config.get("engine", {})
        phases = config.get("phases", {})
        tables = dict(DEFAULT_PHASE_TABLES)
        if isinstance(phases, Mapping):
            for depth, phase_list in phases.items():
                tables[str(depth)] = tuple(str(item) for item in phase_list)
        if not isinstance(engine, Mapping):
            engine = {}
        return cls(
            phase_tables=tables,
            default_depth=str(engine.get("default_depth", DEFAULT_DEPTH)),
            default_max_phase_iterations=int(
                engine.get("max_phase_iterations", DEFAULT_MAX_PHASE_ITERATIONS)
            ),
        )

    def knows_depth(self, depth: str | None) -> bool:
        return depth is not None and depth in self.phase_tables

    def effective_depth(self, depth: str | None) -> str:
        return depth if self.knows_depth(depth) else self.default_depth

    def phases_for(self, depth: str | None) -> tuple[str, ...]:
        return tuple(self.phase_tables.get(self.effective_depth(depth), ()))

    def next_phase(self, depth: str | None, phase: str) -> str | None:
        """
        Successor of ``phase`` in the depth's list.

        Returns the terminal phase after the last entry and ``None`` when ``phase``
        is not part of the list.
        """

        phases = self.phases_for(depth)
        if phase not in phases:
            return None
        index = phases.index(phase)
        if index + 1 < len(phases):
            return phases[index + 1]
        return self.terminal_phase


__all__ = ["EngineConfig"]
