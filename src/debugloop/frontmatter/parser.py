"""
debugloop: front matter parser

File: src/debugloop/frontmatter/parser.py

Purpose
- Parse the restricted structured-text subset used in living document front matter
  into a ``MapValue`` tree.

Supported grammar
- ``key: <inline-scalar>``
- ``key:`` followed by a more-indented nested map or block array
- inline arrays ``[a, b, c]``, quoted strings, ``#`` comments, blank lines

Functional requirements
- Never raises. Malformed input degrades to a partial or empty result.
- Unsupported constructs (block scalars, flow maps, anchors, tags) pass through
  as plain text or are skipped.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Final

from debugloop.frontmatter.values import (
    NULL,
    ArrayValue,
    BoolValue,
    FloatValue,
    IntValue,
    MapValue,
    StrValue,
    Value,
)

INT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^-?\d+$")
FLOAT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^-?\d+\.\d+$")

# ``- key: value`` / ``- key:`` items open an object; the key may not start
# with a quote, bracket, or other indicator character.
_ITEM_KEY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^[^\s'\"\[\]{}#,&*!|>%@`?-][^:]*:(?:\s|$)"
)

_NULL_TOKENS: Final[frozenset[str]] = frozenset({"", "null", "~"})


def parse_front_matter(lines: Sequence[str]) -> MapValue:
    """Parse front matter lines (without delimiters) into a map."""

    try:
        result, _ = parse_block(list(lines), 0, 0)
    except RecursionError:
        return MapValue()
    return result


def parse_front_matter_text(text: str) -> MapValue:
    return parse_front_matter(split_lines(text))


def parse_block(lines: list[str], start: int, base_indent: int) -> tuple[MapValue, int]:
    """Parse a map whose keys sit at ``base_indent``; return it and the next index."""

    result = MapValue()
    index = start

    while index < len(lines):
        line = lines[index]
        stripped = line.strip()

        if not stripped or stripped.startswith("#"):
            index += 1
            continue

        indent = indent_of(line)
        if indent < base_indent:
            break

        if indent != base_indent and not (index == start and indent >= base_indent):
            # Stray over-indented line outside a recognised nested structure.
            index += 1
            continue

        if stripped.startswith("- ") or stripped == "-":
            index += 1
            continue

        colon = stripped.find(":")
        if colon == -1:
            index += 1
            continue

        key = stripped[:colon].strip()
        after_colon = stripped[colon + 1 :].strip()

        if after_colon and not after_colon.startswith("#"):
            result.set(key, coerce_scalar(after_colon))
            index += 1
            continue

        index += 1
        next_index = _next_content_line(lines, index)
        if next_index >= len(lines):
            result.set(key, NULL)
            index = next_index
            break

        next_line = lines[next_index]
        next_indent = indent_of(next_line)
        if next_indent <= indent:
            result.set(key, NULL)
            continue

        if _is_dash_line(next_line.strip()):
            array, index = _parse_block_array(lines, next_index, next_indent)
            result.set(key, array)
        else:
            nested, index = parse_block(lines, next_index, next_indent)
            result.set(key, nested)

    return result, index


def _parse_block_array(lines: list[str], start: int, dash_indent: int) -> tuple[ArrayValue, int]:
    array = ArrayValue()
    index = start

    while index < len(lines):
        line = lines[index]
        stripped = line.strip()

        if not stripped or stripped.startswith("#"):
            index += 1
            continue

        indent = indent_of(line)
        if indent < dash_indent or not _is_dash_line(stripped):
            break
        if indent > dash_indent:
            # A dash nested deeper than the array itself belongs to nothing we parse.
            break

        item_text = stripped[1:].strip()
        if _ITEM_KEY_PATTERN.match(item_text):
            # Re-read the item as a map whose first key sits where the text
            # after the dash starts; continuation keys share that column.
            key_indent = indent + (len(line.rstrip()) - indent - len(item_text))
            patched = list(lines)
            patched[index] = " " * key_indent + item_text
            item, index = parse_block(patched, index, key_indent)
            array.append(item)
            continue

        array.append(coerce_scalar(item_text))
        index += 1

    return array, index


def coerce_scalar(raw: str) -> Value:
    """Coerce one inline scalar using the fixed priority order."""

    text = raw.strip()
    if text in _NULL_TOKENS:
        return NULL
    if text == "true":
        return BoolValue(True)
    if text == "false":
        return BoolValue(False)
    if INT_PATTERN.match(text):
        try:
            return IntValue(int(text))
        except ValueError:
            # Past the interpreter's int/str digit limit.
            return StrValue(text)
    if FLOAT_PATTERN.match(text):
        return FloatValue(float(text))
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return StrValue(text[1:-1])
    if text.startswith("[") and text.endswith("]"):
        inner = text[1:-1].strip()
        if not inner:
            return ArrayValue()
        return ArrayValue([coerce_scalar(part) for part in split_inline_items(inner)])
    if text == "{}":
        return MapValue()
    return StrValue(text)


def split_inline_items(inner: str) -> list[str]:
    """Split inline array content on commas outside quotes and nested brackets."""

    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None

    for char in inner:
        if quote is not None:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in {'"', "'"} and not "".join(current).strip():
            quote = char
            current.append(char)
            continue
        if char == "[":
            depth += 1
        elif char == "]" and depth > 0:
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    parts.append("".join(current).strip())
    return parts


def split_lines(text: str) -> list[str]:
    """Split on line feeds only, dropping a trailing carriage return from each line."""

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _is_dash_line(stripped: str) -> bool:
    return stripped.startswith("- ") or stripped == "-"


def _next_content_line(lines: list[str], index: int) -> int:
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped and not stripped.startswith("#"):
            return index
        index += 1
    return index


__all__ = [
    "FLOAT_PATTERN",
    "INT_PATTERN",
    "coerce_scalar",
    "indent_of",
    "parse_block",
    "parse_front_matter",
    "parse_front_matter_text",
    "split_inline_items",
    "split_lines",
]
