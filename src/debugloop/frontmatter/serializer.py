"""
debugloop: front matter serializer

File: src/debugloop/frontmatter/serializer.py

Purpose
- Render a ``MapValue`` tree back into the restricted structured-text subset,
  grouped into labelled sections and formatted deterministically.

Functional requirements
- ``parse_front_matter(serialize_front_matter(tree))`` reproduces every tree the
  parser can produce, with top-level keys stably regrouped by section.
- Grouping changes presentation only: no value is dropped, duplicated, or
  reordered within its group.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from debugloop.frontmatter.parser import FLOAT_PATTERN, INT_PATTERN
from debugloop.frontmatter.values import (
    ArrayValue,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    NullValue,
    StrValue,
    Value,
    is_scalar,
)

INLINE_ARRAY_MAX_ITEMS: Final[int] = 3
INLINE_ARRAY_MAX_WIDTH: Final[int] = 60
INDENT_STEP: Final[int] = 2

_RESERVED_LEADING: Final[frozenset[str]] = frozenset("-[]{}&*!|>'\"%@`,?")
_RESERVED_WORDS: Final[frozenset[str]] = frozenset({"true", "false", "null", "~"})
_FLOW_UNSAFE: Final[frozenset[str]] = frozenset(",[]'\"")
# Smallest power of ten past the largest finite double.
_OVERFLOW_DIGITS: Final[str] = "1" + "0" * 309 + ".0"


@dataclass(frozen=True, slots=True)
class SectionGroup:
    name: str
    title: str
    keys: tuple[str, ...]


SECTION_GROUPS: Final[tuple[SectionGroup, ...]] = (
    SectionGroup(
        "identity",
        "Identity",
        (
            "bug_slug",
            "bug_id",
            "title",
            "summary",
            "description",
            "backlog_item",
            "created",
            "created_at",
            "depth",
        ),
    ),
    SectionGroup(
        "loop_control",
        "Loop control",
        (
            "active",
            "phase",
            "phase_iteration",
            "max_phase_iterations",
            "total_iterations",
            "phase_started",
            "awaiting_human_review",
            "review_reason",
            "stalled",
            "stalled_reason",
            "completed_at",
        ),
    ),
    SectionGroup("exit_criteria", "Exit criteria", ("exit_criteria",)),
    SectionGroup("human_checkpoints", "Human checkpoints", ("human_checkpoints",)),
    SectionGroup("artifact_paths", "Artifact paths", ("paths",)),
    SectionGroup("modified_files", "Modified files", ("modified_files",)),
    SectionGroup("decisions", "Decisions", ("decisions",)),
    SectionGroup("history", "History", ("history",)),
)
OTHER_GROUP: Final[SectionGroup] = SectionGroup("other", "Other", ())

_GROUP_BY_KEY: Final[dict[str, int]] = {
    key: position for position, group in enumerate(SECTION_GROUPS) for key in group.keys
}


def serialize_front_matter(root: MapValue) -> str:
    """Render the full front matter block (without delimiters)."""

    chunks: list[str] = []
    for group, keys in group_keys(root):
        lines = [f"# {group.title}"]
        for key in keys:
            lines.extend(render_entry(key, root.entries[key], 0))
        chunks.append("\n".join(lines))
    if not chunks:
        return ""
    return "\n\n".join(chunks) + "\n"


def group_keys(root: MapValue) -> list[tuple[SectionGroup, list[str]]]:
    """Bucket top-level keys into section groups; empty groups are omitted."""

    buckets: list[list[str]] = [[] for _ in range(len(SECTION_GROUPS) + 1)]
    for key in root.entries:
        buckets[_GROUP_BY_KEY.get(key, len(SECTION_GROUPS))].append(key)

    groups = (*SECTION_GROUPS, OTHER_GROUP)
    return [(group, keys) for group, keys in zip(groups, buckets, strict=True) if keys]


def regrouped(root: MapValue) -> MapValue:
    """Return ``root`` with top-level keys in the order ``serialize_front_matter`` emits."""

    ordered = MapValue()
    for _, keys in group_keys(root):
        for key in keys:
            ordered.set(key, root.entries[key])
    return ordered


def render_entry(key: str, value: Value, indent: int) -> list[str]:
    pad = " " * indent
    if isinstance(value, MapValue):
        if not value.entries:
            return [f"{pad}{key}: {{}}"]
        lines = [f"{pad}{key}:"]
        for child_key, child in value.entries.items():
            lines.extend(render_entry(child_key, child, indent + INDENT_STEP))
        return lines
    if isinstance(value, ArrayValue):
        inline = _inline_array(value)
        if inline is not None:
            return [f"{pad}{key}: {inline}"]
        return [f"{pad}{key}:", *_render_block_items(value, indent + INDENT_STEP)]
    return [f"{pad}{key}: {render_scalar(value)}"]


def _render_block_items(array: ArrayValue, indent: int) -> list[str]:
    pad = " " * indent
    lines: list[str] = []
    for item in array.items:
        if isinstance(item, MapValue) and item.entries:
            item_lines: list[str] = []
            for child_key, child in item.entries.items():
                item_lines.extend(render_entry(child_key, child, indent + INDENT_STEP))
            item_lines[0] = f"{pad}- {item_lines[0][indent + INDENT_STEP :]}"
            lines.extend(item_lines)
        elif isinstance(item, (ArrayValue, MapValue)):
            lines.append(f"{pad}- {_render_flow(item)}")
        else:
            lines.append(f"{pad}- {render_scalar(item)}")
    return lines


def _inline_array(array: ArrayValue) -> str | None:
    if not array.items:
        return "[]"
    if len(array.items) > INLINE_ARRAY_MAX_ITEMS:
        return None
    if not all(is_scalar(item) for item in array.items):
        return None
    if any(
        isinstance(item, StrValue) and any(char in _FLOW_UNSAFE for char in item.value)
        for item in array.items
    ):
        return None
    text = "[" + ", ".join(render_scalar(item) for item in array.items) + "]"
    if len(text) > INLINE_ARRAY_MAX_WIDTH:
        return None
    return text


def _render_flow(value: Value) -> str:
    if isinstance(value, ArrayValue):
        return "[" + ", ".join(_render_flow(item) for item in value.items) + "]"
    if isinstance(value, MapValue):
        if not value.entries:
            return "{}"
        # Non-empty flow maps are outside the parsed subset; emit YAML-style text.
        inner = ", ".join(f"{key}: {_render_flow(item)}" for key, item in value.entries.items())
        return "{" + inner + "}"
    if isinstance(value, StrValue) and any(char in _FLOW_UNSAFE for char in value.value):
        return quote(value.value)
    return render_scalar(value)


def render_scalar(value: Value) -> str:
    if isinstance(value, NullValue):
        return "null"
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, IntValue):
        return str(value.value)
    if isinstance(value, FloatValue):
        return format_float(value.value)
    if isinstance(value, StrValue):
        return quote(value.value) if needs_quotes(value.value) else value.value
    raise TypeError(f"not a scalar value: {value!r}")


def needs_quotes(text: str) -> bool:
    if not text:
        return True
    if ":" in text or "#" in text or "\n" in text or "\r" in text:
        return True
    if text != text.strip():
        return True
    if text[0] in _RESERVED_LEADING:
        return True
    if text in _RESERVED_WORDS:
        return True
    return bool(INT_PATTERN.match(text) or FLOAT_PATTERN.match(text))


def quote(text: str) -> str:
    if '"' in text and "'" not in text:
        return f"'{text}'"
    return f'"{text}"'


def format_float(value: float) -> str:
    """Render a float positionally so it re-parses as a float."""

    if math.isinf(value):
        # Overflows back to infinity when re-read.
        return ("-" if value < 0 else "") + _OVERFLOW_DIGITS
    if math.isnan(value):
        return str(value)
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


__all__ = [
    "INLINE_ARRAY_MAX_ITEMS",
    "INLINE_ARRAY_MAX_WIDTH",
    "OTHER_GROUP",
    "SECTION_GROUPS",
    "SectionGroup",
    "format_float",
    "group_keys",
    "needs_quotes",
    "quote",
    "regrouped",
    "render_entry",
    "render_scalar",
    "serialize_front_matter",
]
