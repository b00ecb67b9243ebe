"""
debugloop config package public API.

File: src/debugloop/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``debugloop.toml`` + ``DEBUGLOOP_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from debugloop.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    env_bindings,
    load_config,
)
from debugloop.config.schema import (
    DEFAULT_CONFIG,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    DebugLoopConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "DebugLoopConfig",
    "ENV_PREFIX",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_bindings",
    "load_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
