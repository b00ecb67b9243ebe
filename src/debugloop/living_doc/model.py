"""Typed view over a living document's front matter tree."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from debugloop.frontmatter.values import (
    ArrayValue,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    NullValue,
    StrValue,
    Value,
    from_plain,
    to_plain,
)


def truthy(value: Value | None) -> bool:
    """Loose truthiness for flags written by hand (``active: yes`` counts as set)."""

    if value is None or isinstance(value, NullValue):
        return False
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, (IntValue, FloatValue)):
        return value.value != 0
    if isinstance(value, StrValue):
        return bool(value.value)
    return True


class LivingDoc:
    """
    Read/write accessors for the loop-control fields of a living document.

    All writes go straight into the wrapped ``MapValue`` so that unknown keys
    and key order survive the next serialization.
    """

    def __init__(self, front_matter: MapValue) -> None:
        self.tree = front_matter

    # -- reads -------------------------------------------------------------

    @property
    def active(self) -> bool:
        return truthy(self.tree.get("active"))

    @property
    def awaiting_human_review(self) -> bool:
        return truthy(self.tree.get("awaiting_human_review"))

    @property
    def stalled(self) -> bool:
        return truthy(self.tree.get("stalled"))

    @property
    def phase(self) -> str | None:
        return self.get_str("phase")

    @property
    def depth(self) -> str | None:
        return self.get_str("depth")

    @property
    def phase_iteration(self) -> int:
        value = self.get_int("phase_iteration")
        return value if value is not None and value >= 1 else 1

    @property
    def max_phase_iterations(self) -> int | None:
        return self.get_int("max_phase_iterations")

    @property
    def total_iterations(self) -> int:
        value = self.get_int("total_iterations")
        return value if value is not None and value >= 0 else 0

    @property
    def review_reason(self) -> str | None:
        return self.get_str("review_reason")

    @property
    def stalled_reason(self) -> str | None:
        return self.get_str("stalled_reason")

    @property
    def phase_started(self) -> str | None:
        return self.get_str("phase_started")

    def criteria_for(self, phase: str) -> Mapping[str, Any] | None:
        """Plain criteria for ``phase``; ``None`` when none are configured."""

        exit_criteria = self.tree.get("exit_criteria")
        if not isinstance(exit_criteria, MapValue):
            return None
        criteria = exit_criteria.get(phase)
        if criteria is None or isinstance(criteria, NullValue):
            return None
        if isinstance(criteria, MapValue):
            plain = to_plain(criteria)
            return plain if isinstance(plain, dict) else {}
        return {}

    def paths(self) -> dict[str, str]:
        raw = self.tree.get("paths")
        if not isinstance(raw, MapValue):
            return {}
        return {
            key: value.value for key, value in raw.entries.items() if isinstance(value, StrValue)
        }

    def human_checkpoints(self) -> list[dict[str, Any]]:
        raw = self.tree.get("human_checkpoints")
        if not isinstance(raw, ArrayValue):
            return []
        rules: list[dict[str, Any]] = []
        for item in raw.items:
            plain = to_plain(item)
            if isinstance(plain, dict):
                rules.append(plain)
        return rules

    def history(self) -> list[dict[str, Any]]:
        raw = self.tree.get("history")
        if not isinstance(raw, ArrayValue):
            return []
        return [plain for plain in (to_plain(item) for item in raw.items) if isinstance(plain, dict)]

    def get_str(self, key: str) -> str | None:
        value = self.tree.get(key)
        return value.value if isinstance(value, StrValue) else None

    def get_int(self, key: str) -> int | None:
        value = self.tree.get(key)
        return value.value if isinstance(value, IntValue) else None

    # -- writes ------------------------------------------------------------

    def set(self, key: str, value: object) -> None:
        self.tree.set(key, from_plain(value))

    def clear(self, key: str) -> None:
        self.tree.remove(key)

    def append_history(self, record: Mapping[str, object]) -> None:
        history = self.tree.get("history")
        if not isinstance(history, ArrayValue):
            # Only a missing or non-array history is replaced; arrays are append-only.
            history = ArrayValue()
            self.tree.set("history", history)
        history.append(from_plain(dict(record)))


__all__ = ["LivingDoc", "truthy"]
