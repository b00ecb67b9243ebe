"""
Human checkpoint rules.

A rule ``{after, condition?, reason?}`` matches when ``after`` names the phase
that just completed and the optional condition holds. The only condition form
understood is ``depth == <token>``; anything else never matches.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Final

_DEPTH_CONDITION: Final[re.Pattern[str]] = re.compile(r"^\s*depth\s*==\s*(\S+)\s*$")
_QUOTES: Final[str] = "'\""


def default_reason(phase: str) -> str:
    return f"Human review required after {phase}"


def condition_holds(condition: object, depth: str) -> bool:
    if condition is None:
        return True
    if not isinstance(condition, str):
        return False
    match = _DEPTH_CONDITION.match(condition)
    if match is None:
        return False
    token = match.group(1).strip(_QUOTES)
    return token == depth


def match_checkpoint(
    rules: Iterable[Mapping[str, Any]], phase: str, depth: str
) -> str | None:
    """Return the pause reason of the first matching rule, or ``None``."""

    for rule in rules:
        if rule.get("after") != phase:
            continue
        if not condition_holds(rule.get("condition"), depth):
            continue
        reason = rule.get("reason")
        if isinstance(reason, str) and reason.strip():
            return reason
        return default_reason(phase)
    return None


__all__ = ["condition_holds", "default_reason", "match_checkpoint"]
