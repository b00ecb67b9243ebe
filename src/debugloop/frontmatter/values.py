"""
debugloop: front matter value model

File: src/debugloop/frontmatter/values.py

Purpose
- Tagged union for the values a front matter block can hold:
  null, bool, integer, float, string, array, and ordered map.

Functional requirements
- Map key insertion order is preserved.
- Conversion to and from plain Python values is lossless for every variant.

Notes
- Scalars are frozen; ``ArrayValue`` and ``MapValue`` are mutable containers
  because the phase engine edits the tree in place before writing it back.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


@dataclass(frozen=True, slots=True)
class NullValue:
    pass


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool


@dataclass(frozen=True, slots=True)
class IntValue:
    value: int


@dataclass(frozen=True, slots=True)
class FloatValue:
    value: float


@dataclass(frozen=True, slots=True)
class StrValue:
    value: str


@dataclass(slots=True)
class ArrayValue:
    items: list[Value] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def append(self, item: Value) -> None:
        self.items.append(item)


@dataclass(slots=True)
class MapValue:
    entries: dict[str, Value] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def get(self, key: str) -> Value | None:
        return self.entries.get(key)

    def set(self, key: str, value: Value) -> None:
        """Assign ``key``; existing keys keep their position."""

        self.entries[key] = value

    def remove(self, key: str) -> None:
        self.entries.pop(key, None)

    def items(self) -> list[tuple[str, Value]]:
        return list(self.entries.items())


ScalarValue = NullValue | BoolValue | IntValue | FloatValue | StrValue
Value = ScalarValue | ArrayValue | MapValue

NULL = NullValue()


def is_scalar(value: Value) -> bool:
    return isinstance(value, (NullValue, BoolValue, IntValue, FloatValue, StrValue))


def from_plain(raw: object) -> Value:
    """Build a tagged value from plain Python data (dicts, lists, scalars)."""

    if raw is None:
        return NULL
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int):
        return IntValue(raw)
    if isinstance(raw, float):
        return FloatValue(raw)
    if isinstance(raw, str):
        return StrValue(raw)
    if isinstance(raw, (NullValue, BoolValue, IntValue, FloatValue, StrValue)):
        return raw
    if isinstance(raw, (ArrayValue, MapValue)):
        return raw
    if isinstance(raw, Mapping):
        return MapValue({str(key): from_plain(item) for key, item in raw.items()})
    if isinstance(raw, (list, tuple)):
        return ArrayValue([from_plain(item) for item in raw])
    raise TypeError(f"unsupported front matter value type: {type(raw).__name__}")


def to_plain(value: Value) -> JSONValue:
    """Convert a tagged value back to plain Python data."""

    if isinstance(value, NullValue):
        return None
    if isinstance(value, (BoolValue, IntValue, FloatValue, StrValue)):
        return value.value
    if isinstance(value, ArrayValue):
        return [to_plain(item) for item in value.items]
    if isinstance(value, MapValue):
        return {key: to_plain(item) for key, item in value.entries.items()}
    raise TypeError(f"unsupported front matter value: {value!r}")


def map_from_plain(raw: Mapping[str, object]) -> MapValue:
    converted = from_plain(raw)
    if not isinstance(converted, MapValue):
        raise TypeError("front matter root must be a mapping")
    return converted


def same_structure(left: Value, right: Value) -> bool:
    """Strict structural equality: same variants, same values, same key order."""

    if type(left) is not type(right):
        return False
    if isinstance(left, ArrayValue) and isinstance(right, ArrayValue):
        return len(left.items) == len(right.items) and all(
            same_structure(a, b) for a, b in zip(left.items, right.items, strict=True)
        )
    if isinstance(left, MapValue) and isinstance(right, MapValue):
        if list(left.entries) != list(right.entries):
            return False
        return all(same_structure(left.entries[key], right.entries[key]) for key in left.entries)
    return left == right


__all__ = [
    "NULL",
    "ArrayValue",
    "BoolValue",
    "FloatValue",
    "IntValue",
    "JSONScalar",
    "JSONValue",
    "MapValue",
    "NullValue",
    "ScalarValue",
    "StrValue",
    "Value",
    "from_plain",
    "is_scalar",
    "map_from_plain",
    "same_structure",
    "to_plain",
]
