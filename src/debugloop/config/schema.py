"""
debugloop: configuration schema and validation.

File: src/debugloop/config/schema.py

Purpose
- Define configuration defaults and strict validation rules.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject unknown fields so typos surface instead of being ignored.
- Cross-field rules: ``engine.default_depth`` must name a configured phase table.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from debugloop.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_DEPTH,
    DEFAULT_DOC_DIRECTORY,
    DEFAULT_DOC_PREFIX,
    DEFAULT_DOC_SUFFIX,
    DEFAULT_MAX_PHASE_ITERATIONS,
    DEFAULT_PHASE_TABLES,
    TERMINAL_PHASE,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")
DISCOVERY_POLICIES: Final[tuple[str, ...]] = ("first-by-name", "newest")

_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class MetaConfig(TypedDict):
    schema_version: int


class EngineSettings(TypedDict):
    default_depth: str
    max_phase_iterations: int


class DiscoveryConfig(TypedDict):
    directory: str
    prefix: str
    suffix: str
    policy: Literal["first-by-name", "newest"]


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]


class DebugLoopConfig(TypedDict):
    meta: MetaConfig
    engine: EngineSettings
    phases: dict[str, list[str]]
    validators: dict[str, str]
    discovery: DiscoveryConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[DebugLoopConfig] = {
    "meta": {"schema_version": CONFIG_SCHEMA_VERSION},
    "engine": {
        "default_depth": DEFAULT_DEPTH,
        "max_phase_iterations": DEFAULT_MAX_PHASE_ITERATIONS,
    },
    "phases": {depth: list(phases) for depth, phases in DEFAULT_PHASE_TABLES.items()},
    "validators": {},
    "discovery": {
        "directory": DEFAULT_DOC_DIRECTORY,
        "prefix": DEFAULT_DOC_PREFIX,
        "suffix": DEFAULT_DOC_SUFFIX,
        "policy": "first-by-name",
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "json",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> DebugLoopConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade debugloop.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade debugloop"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base``. Lists are replaced, not concatenated."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with dotted field paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    required = {"meta", "engine", "phases", "validators", "discovery", "observability"}
    _reject_unknown_keys(payload, required, "", issues)
    _require_keys(payload, required, "", issues)

    out: dict[str, Any] = {}
    _section(payload, key="meta", issues=issues, validator=_validate_meta, out=out)
    _section(payload, key="phases", issues=issues, validator=_validate_phases, out=out)
    _section(payload, key="engine", issues=issues, validator=_validate_engine, out=out)
    _section(payload, key="validators", issues=issues, validator=_validate_validators, out=out)
    _section(payload, key="discovery", issues=issues, validator=_validate_discovery, out=out)
    _section(
        payload, key="observability", issues=issues, validator=_validate_observability, out=out
    )

    phases = out.get("phases")
    default_depth = out.get("engine", {}).get("default_depth")
    if isinstance(phases, dict) and isinstance(default_depth, str) and default_depth not in phases:
        known = ", ".join(sorted(phases))
        issues.add(
            "engine.default_depth",
            f"unknown depth {default_depth!r}; configured depths: {known}",
        )
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    issues: _IssueCollector,
    validator: Callable[[dict[str, object], str, _IssueCollector], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_obj = _as_object(raw, key, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, key, issues)


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(payload["schema_version"], _join(path, "schema_version"), issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_engine(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"default_depth", "max_phase_iterations"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "default_depth" in payload:
        parsed_depth = _as_str(payload["default_depth"], _join(path, "default_depth"), issues)
        if parsed_depth is not None:
            out["default_depth"] = parsed_depth
    if "max_phase_iterations" in payload:
        parsed_max = _as_int(
            payload["max_phase_iterations"],
            _join(path, "max_phase_iterations"),
            issues,
            minimum=1,
        )
        if parsed_max is not None:
            out["max_phase_iterations"] = parsed_max
    return out


def _validate_phases(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if not payload:
        issues.add(path, "at least one phase table is required")
        return out

    for depth in sorted(payload):
        depth_path = _join(path, depth)
        if not _NAME_PATTERN.fullmatch(depth):
            issues.add(depth_path, "depth names must be lowercase letters, digits, '-' or '_'")
            continue
        raw = payload[depth]
        if not isinstance(raw, list):
            issues.add(depth_path, f"expected list of phase names, got {type(raw).__name__}")
            continue
        if not raw:
            issues.add(depth_path, "must list at least one phase")
            continue

        phases: list[str] = []
        for index, item in enumerate(raw):
            item_path = f"{depth_path}[{index}]"
            parsed = _as_str(item, item_path, issues)
            if parsed is None:
                continue
            if parsed == TERMINAL_PHASE:
                issues.add(item_path, f"{TERMINAL_PHASE!r} is reserved for the terminal state")
                continue
            if parsed in phases:
                issues.add(item_path, f"duplicate phase {parsed!r}")
                continue
            phases.append(parsed)
        out[depth] = phases
    return out


def _validate_validators(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for phase in sorted(payload):
        parsed = _as_str(payload[phase], _join(path, phase), issues)
        if parsed is not None:
            out[phase] = parsed
    return out


def _validate_discovery(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"directory", "prefix", "suffix", "policy"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in ("directory", "prefix", "suffix"):
        if key in payload:
            parsed = _as_str(payload[key], _join(path, key), issues)
            if parsed is None:
                continue
            if "\x00" in parsed:
                issues.add(_join(path, key), "must not contain NUL bytes")
                continue
            out[key] = parsed
    if "policy" in payload:
        parsed_policy = _as_enum(
            payload["policy"], _join(path, "policy"), issues, allowed_values=DISCOVERY_POLICIES
        )
        if parsed_policy is not None:
            out["policy"] = parsed_policy
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        raw_level = payload["log_level"]
        if isinstance(raw_level, str):
            raw_level = raw_level.upper()
        parsed_level = _as_enum(
            raw_level, _join(path, "log_level"), issues, allowed_values=LOG_LEVELS
        )
        if parsed_level is not None:
            out["log_level"] = parsed_level
    if "log_format" in payload:
        parsed_format = _as_enum(
            payload["log_format"], _join(path, "log_format"), issues, allowed_values=LOG_FORMATS
        )
        if parsed_format is not None:
            out["log_format"] = parsed_format
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = _deep_copy_value(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        out[key] = _deep_copy_value(value[key])
    return out


def _deep_copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        return {key: _deep_copy_value(item) for key, item in value.items() if isinstance(key, str)}
    if isinstance(value, (list, tuple)):
        return [_deep_copy_value(item) for item in value]
    return copy.deepcopy(value)


__all__ = [
    "DEFAULT_CONFIG",
    "DISCOVERY_POLICIES",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DebugLoopConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
