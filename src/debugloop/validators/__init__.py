"""
Phase validators: each validator decides whether one phase's exit criteria are met.

Importing this package registers the built-in validators in
``DEFAULT_VALIDATOR_REGISTRY``.
"""

from debugloop.validators import builtins as _builtins  # noqa: F401
from debugloop.validators.base import (
    DEFAULT_PHASE_BINDINGS,
    DEFAULT_VALIDATOR_REGISTRY,
    FALLBACK_VALIDATOR_ID,
    PhaseValidator,
    ValidationResult,
    ValidatorFactory,
    ValidatorRegistration,
    ValidatorRegistry,
    ValidatorRegistryError,
    register_builtin_validator,
    register_external_validator,
)
from debugloop.validators.builtins import has_non_empty_section

__all__ = [
    "DEFAULT_PHASE_BINDINGS",
    "DEFAULT_VALIDATOR_REGISTRY",
    "FALLBACK_VALIDATOR_ID",
    "PhaseValidator",
    "ValidationResult",
    "ValidatorFactory",
    "ValidatorRegistration",
    "ValidatorRegistry",
    "ValidatorRegistryError",
    "has_non_empty_section",
    "register_builtin_validator",
    "register_external_validator",
]
