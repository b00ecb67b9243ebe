"""Unit tests for the typed living document view."""

from __future__ import annotations

import pytest

from debugloop.frontmatter import (
    NULL,
    ArrayValue,
    BoolValue,
    IntValue,
    MapValue,
    StrValue,
    map_from_plain,
    to_plain,
)
from debugloop.living_doc import LivingDoc, truthy


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, False),
        (NULL, False),
        (BoolValue(False), False),
        (BoolValue(True), True),
        (IntValue(0), False),
        (IntValue(2), True),
        (StrValue(""), False),
        (StrValue("yes"), True),
        (MapValue(), True),
    ],
)
def test_truthy(value: object, expected: bool) -> None:
    assert truthy(value) is expected  # type: ignore[arg-type]


def test_defaults_for_missing_or_malformed_fields() -> None:
    doc = LivingDoc(map_from_plain({"phase_iteration": 0, "total_iterations": "many"}))

    assert doc.active is False
    assert doc.phase is None
    assert doc.phase_iteration == 1
    assert doc.total_iterations == 0
    assert doc.max_phase_iterations is None
    assert doc.paths() == {}
    assert doc.history() == []
    assert doc.human_checkpoints() == []


def test_criteria_for_distinguishes_missing_null_and_maps() -> None:
    doc = LivingDoc(
        map_from_plain(
            {
                "exit_criteria": {
                    "implement": {"artifact": "a.md"},
                    "verify": None,
                    "odd": "text",
                }
            }
        )
    )

    assert doc.criteria_for("implement") == {"artifact": "a.md"}
    assert doc.criteria_for("verify") is None
    assert doc.criteria_for("absent") is None
    assert doc.criteria_for("odd") == {}
    assert LivingDoc(MapValue()).criteria_for("implement") is None


def test_paths_keep_only_string_entries() -> None:
    doc = LivingDoc(map_from_plain({"paths": {"reproduction_test": "t.py", "count": 3}}))
    assert doc.paths() == {"reproduction_test": "t.py"}


def test_writes_keep_key_order_and_unknown_keys() -> None:
    tree = map_from_plain({"custom": "kept", "phase": "implement", "review_reason": "x"})
    doc = LivingDoc(tree)

    doc.set("phase", "verify")
    doc.set("phase_iteration", 1)
    doc.clear("review_reason")

    assert list(tree.entries) == ["custom", "phase", "phase_iteration"]
    assert to_plain(tree) == {"custom": "kept", "phase": "verify", "phase_iteration": 1}


def test_append_history_appends_and_replaces_non_arrays() -> None:
    doc = LivingDoc(map_from_plain({"history": "broken"}))

    doc.append_history({"phase": "implement", "iterations": 2})
    doc.append_history({"phase": "verify", "iterations": 1})

    history = doc.tree.get("history")
    assert isinstance(history, ArrayValue)
    assert doc.history() == [
        {"phase": "implement", "iterations": 2},
        {"phase": "verify", "iterations": 1},
    ]


def test_human_checkpoints_skip_non_map_items() -> None:
    doc = LivingDoc(
        map_from_plain({"human_checkpoints": [{"after": "verify"}, "stray", None]})
    )
    assert doc.human_checkpoints() == [{"after": "verify"}]
