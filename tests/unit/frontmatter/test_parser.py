"""
debugloop: unit tests for the front matter parser

File: tests/unit/frontmatter/test_parser.py

Purpose
- Pin scalar coercion priority, nesting rules, and the never-raise contract.

What this test file should cover
- Scalar coercion order (null, bool, int, float, quoted, inline array, empty map, string).
- Nested maps, block arrays, and arrays of objects.
- Comments and blank lines are ignored.
- Malformed input degrades instead of raising.
"""

from __future__ import annotations

import pytest

from debugloop.frontmatter import (
    NULL,
    ArrayValue,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    StrValue,
    coerce_scalar,
    parse_front_matter,
    parse_front_matter_text,
    to_plain,
)
from debugloop.frontmatter.parser import split_inline_items, split_lines


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", NULL),
        ("null", NULL),
        ("~", NULL),
        ("true", BoolValue(True)),
        ("false", BoolValue(False)),
        ("42", IntValue(42)),
        ("-7", IntValue(-7)),
        ("3.25", FloatValue(3.25)),
        ("-0.5", FloatValue(-0.5)),
        ("'x'", StrValue("x")),
        ('"5"', StrValue("5")),
        ('"true"', StrValue("true")),
        ("True", StrValue("True")),
        ("1.", StrValue("1.")),
        ("yes", StrValue("yes")),
        ("{}", MapValue()),
        ("{a: 1}", StrValue("{a: 1}")),
        ("plain text here", StrValue("plain text here")),
    ],
)
def test_coerce_scalar_priority(raw: str, expected: object) -> None:
    assert coerce_scalar(raw) == expected


def test_inline_arrays_coerce_each_item() -> None:
    assert coerce_scalar("[]") == ArrayValue()
    assert coerce_scalar("[ ]") == ArrayValue()
    assert coerce_scalar("[1, two, 'x, y', null, [3]]") == ArrayValue(
        [IntValue(1), StrValue("two"), StrValue("x, y"), NULL, ArrayValue([IntValue(3)])]
    )


def test_split_inline_items_respects_quotes_and_nesting() -> None:
    assert split_inline_items("a, [b, c], 'd, e'") == ["a", "[b, c]", "'d, e'"]
    assert split_inline_items("a") == ["a"]


def test_nested_maps_and_block_arrays() -> None:
    text = """
bug_slug: login-timeout
active: true
exit_criteria:
  systematic-debug:
    artifact: docs/plans/login-timeout-debug.md
    description: Find it
  write-tests:
    artifact: null
files:
  - src/app.py
  - src/db.py
"""
    tree = parse_front_matter_text(text)

    assert to_plain(tree) == {
        "bug_slug": "login-timeout",
        "active": True,
        "exit_criteria": {
            "systematic-debug": {
                "artifact": "docs/plans/login-timeout-debug.md",
                "description": "Find it",
            },
            "write-tests": {"artifact": None},
        },
        "files": ["src/app.py", "src/db.py"],
    }
    assert list(tree.entries) == ["bug_slug", "active", "exit_criteria", "files"]


def test_array_of_objects_keeps_continuation_keys() -> None:
    lines = [
        "history:",
        "  - phase: systematic-debug",
        "    started: 2024-01-01T00:00:00.000Z",
        "    iterations: 2",
        "  - phase: write-tests",
        "    iterations: 1",
        "depth: standard",
    ]
    tree = parse_front_matter(lines)

    assert to_plain(tree) == {
        "history": [
            {
                "phase": "systematic-debug",
                "started": "2024-01-01T00:00:00.000Z",
                "iterations": 2,
            },
            {"phase": "write-tests", "iterations": 1},
        ],
        "depth": "standard",
    }


def test_key_without_value_and_no_nested_block_is_null() -> None:
    tree = parse_front_matter(["review_reason:", "phase: implement"])
    assert tree.get("review_reason") == NULL
    assert tree.get("phase") == StrValue("implement")

    trailing = parse_front_matter(["stalled_reason:"])
    assert trailing.get("stalled_reason") == NULL


def test_comments_and_blank_lines_are_ignored() -> None:
    tree = parse_front_matter(
        [
            "# Identity",
            "bug_slug: x",
            "",
            "   # indented comment",
            "# Loop control",
            "phase_iteration: 3",
        ]
    )
    assert to_plain(tree) == {"bug_slug": "x", "phase_iteration": 3}


def test_value_with_colons_keeps_everything_after_first_colon() -> None:
    tree = parse_front_matter(["created: 2024-05-01T10:11:12.000Z"])
    assert tree.get("created") == StrValue("2024-05-01T10:11:12.000Z")


@pytest.mark.parametrize(
    "lines",
    [
        ["no colon on this line"],
        ["- stray dash", "key: 1"],
        ["key: |", "  block scalar text"],
        ["a:", "    deep: 1", "  shallow: 2"],
        ["&anchor value", "*alias", "!tag x"],
        ["key:", "  - a", "      - too deep"],
        [":", "::", ": :"],
    ],
)
def test_malformed_input_never_raises(lines: list[str]) -> None:
    result = parse_front_matter(lines)
    assert isinstance(result, MapValue)


def test_malformed_lines_are_skipped_around_valid_keys() -> None:
    tree = parse_front_matter(["garbage line", "phase: verify", "- orphan"])
    assert to_plain(tree) == {"phase": "verify"}


def test_empty_input_yields_empty_map() -> None:
    assert parse_front_matter([]) == MapValue()
    assert parse_front_matter_text("") == MapValue()


def test_integer_past_digit_limit_stays_text() -> None:
    digits = "9" * 5000

    tree = parse_front_matter(["active: true", f"ticket: {digits}"])

    assert tree.get("active") == BoolValue(True)
    assert tree.get("ticket") == StrValue(digits)


@pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\x85", "\x0b", "\x0c", "\x1e"])
def test_text_splits_on_line_feeds_only(separator: str) -> None:
    tree = parse_front_matter_text(f"title: Crash on login{separator}after upgrade\r\nphase: verify\n")

    assert tree.get("title") == StrValue(f"Crash on login{separator}after upgrade")
    assert tree.get("phase") == StrValue("verify")


def test_split_lines_strips_carriage_returns() -> None:
    assert split_lines("a: 1\r\nb: 2\n\nc: 3") == ["a: 1", "b: 2", "", "c: 3"]
    assert split_lines("") == []
