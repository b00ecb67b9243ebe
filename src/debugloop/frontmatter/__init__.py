"""Front matter value model, parser, and serializer."""

from debugloop.frontmatter.parser import (
    coerce_scalar,
    parse_block,
    parse_front_matter,
    parse_front_matter_text,
)
from debugloop.frontmatter.serializer import (
    SECTION_GROUPS,
    SectionGroup,
    group_keys,
    regrouped,
    serialize_front_matter,
)
from debugloop.frontmatter.values import (
    NULL,
    ArrayValue,
    BoolValue,
    FloatValue,
    IntValue,
    JSONValue,
    MapValue,
    NullValue,
    StrValue,
    Value,
    from_plain,
    map_from_plain,
    same_structure,
    to_plain,
)

__all__ = [
    "NULL",
    "SECTION_GROUPS",
    "ArrayValue",
    "BoolValue",
    "FloatValue",
    "IntValue",
    "JSONValue",
    "MapValue",
    "NullValue",
    "SectionGroup",
    "StrValue",
    "Value",
    "coerce_scalar",
    "from_plain",
    "group_keys",
    "map_from_plain",
    "parse_block",
    "parse_front_matter",
    "parse_front_matter_text",
    "regrouped",
    "same_structure",
    "serialize_front_matter",
    "to_plain",
]
