"""
debugloop: validator interface and registry

File: src/debugloop/validators/base.py

Purpose
- Defines the phase validator interface: inputs (working directory, phase
  criteria, artifact paths) and output (``ValidationResult``).
- Maps validator ids to validators and phase ids to validator ids.

Functional requirements
- Validators are total: ``evaluate`` never raises. Unexpected exceptions inside a
  validator become a failed result with a generic reason.
- Missing criteria pass automatically; a missing phase fails.
- Phases without a binding fall back to ``generic-artifact``.
- New validators and bindings can be registered without touching the engine.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal, Protocol, TypeVar, runtime_checkable

import structlog

_LOGGER = structlog.get_logger(__name__)

ValidatorSource = Literal["builtin", "external"]
ValidatorFactory = Callable[[], "PhaseValidator"]

FALLBACK_VALIDATOR_ID: Final[str] = "generic-artifact"

DEFAULT_PHASE_BINDINGS: Final[dict[str, str]] = {
    "systematic-debug": "debug-findings",
    "write-tests": "reproduction-test",
    "implement": "implementation-checkpoint",
    "architecture": "generic-artifact",
    "write-plan": "generic-artifact",
    "uat": "generic-artifact",
    "verify": "generic-artifact",
    "code-review": "no-criteria",
    "fix-feedback": "no-criteria",
    "update-docs": "no-criteria",
}


class ValidatorRegistryError(ValueError):
    """Raised for registry misuse (duplicate or unknown ids)."""


@dataclass(frozen=True, slots=True)
class ValidationResult:
    passed: bool
    reason: str

    @classmethod
    def ok(cls, reason: str) -> ValidationResult:
        return cls(passed=True, reason=reason)

    @classmethod
    def fail(cls, reason: str) -> ValidationResult:
        return cls(passed=False, reason=reason)

    def to_dict(self) -> dict[str, object]:
        return {"passed": self.passed, "reason": self.reason}


@runtime_checkable
class PhaseValidator(Protocol):
    """Validator protocol implemented by built-ins and external plugins."""

    validator_id: str

    def validate(
        self,
        working_dir: Path,
        criteria: Mapping[str, Any],
        paths: Mapping[str, str],
    ) -> ValidationResult: ...


@dataclass(frozen=True, slots=True)
class ValidatorRegistration:
    validator_id: str
    source: ValidatorSource
    factory: ValidatorFactory


class ValidatorRegistry:
    """Deterministic validator registry with phase bindings."""

    def __init__(self, bindings: Mapping[str, str] | None = None) -> None:
        self._registrations: dict[str, ValidatorRegistration] = {}
        self._bindings: dict[str, str] = dict(
            DEFAULT_PHASE_BINDINGS if bindings is None else bindings
        )

    # -- registration ------------------------------------------------------

    def register(
        self, validator_id: str, factory: ValidatorFactory, *, source: ValidatorSource
    ) -> None:
        if not isinstance(validator_id, str) or not validator_id.strip():
            raise ValidatorRegistryError("validator_id must be a non-empty string")
        if not callable(factory):
            raise ValidatorRegistryError("factory must be callable")

        existing = self._registrations.get(validator_id)
        if existing is not None:
            raise ValidatorRegistryError(
                f"validator {validator_id!r} already registered by {existing.source} source"
            )
        self._registrations[validator_id] = ValidatorRegistration(
            validator_id=validator_id, source=source, factory=factory
        )

    def register_builtin(self, validator_id: str, factory: ValidatorFactory) -> None:
        self.register(validator_id, factory, source="builtin")

    def register_external(self, validator_id: str, factory: ValidatorFactory) -> None:
        self.register(validator_id, factory, source="external")

    def bind(self, phase: str, validator_id: str) -> None:
        """Route ``phase`` to ``validator_id``; the validator may be registered later."""

        if not isinstance(phase, str) or not phase.strip():
            raise ValidatorRegistryError("phase must be a non-empty string")
        self._bindings[phase] = validator_id

    def bind_all(self, bindings: Mapping[str, str]) -> None:
        for phase in sorted(bindings):
            self.bind(phase, bindings[phase])

    def copy(self) -> ValidatorRegistry:
        clone = ValidatorRegistry(self._bindings)
        clone._registrations = dict(self._registrations)
        return clone

    # -- lookup ------------------------------------------------------------

    def contains(self, validator_id: str) -> bool:
        return validator_id in self._registrations

    def registered_ids(self) -> tuple[str, ...]:
        return tuple(sorted(self._registrations))

    def registrations(self) -> tuple[ValidatorRegistration, ...]:
        return tuple(self._registrations[key] for key in sorted(self._registrations))

    def bindings(self) -> dict[str, str]:
        return {phase: self._bindings[phase] for phase in sorted(self._bindings)}

    def validator_id_for(self, phase: str) -> str:
        return self._bindings.get(phase, FALLBACK_VALIDATOR_ID)

    def create(self, validator_id: str) -> PhaseValidator:
        registration = self._registrations.get(validator_id)
        if registration is None:
            known = ", ".join(self.registered_ids())
            raise ValidatorRegistryError(
                f"unknown validator {validator_id!r}; registered: [{known}]"
            )
        validator = registration.factory()
        if not isinstance(validator, PhaseValidator):
            raise ValidatorRegistryError(
                f"{validator_id!r} factory did not return a PhaseValidator"
            )
        return validator

    def resolve(self, phase: str) -> PhaseValidator:
        return self.create(self.validator_id_for(phase))

    # -- evaluation --------------------------------------------------------

    def evaluate(
        self,
        phase: str | None,
        criteria: Mapping[str, Any] | None,
        working_dir: Path,
        paths: Mapping[str, str],
    ) -> ValidationResult:
        """Evaluate the exit criteria for ``phase``. Never raises."""

        if not phase:
            return ValidationResult.fail("No phase defined in living doc")
        if criteria is None:
            return ValidationResult.ok(f"No criteria defined for phase: {phase}")

        validator_id = self.validator_id_for(phase)
        try:
            validator = self.create(validator_id)
            result = validator.validate(working_dir, criteria, paths)
        except Exception as exc:  # noqa: BLE001 - validators must stay total
            _LOGGER.warning(
                "validator raised",
                phase=phase,
                validator_id=validator_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            return ValidationResult.fail(f"Validator error while checking phase: {phase}")
        if not isinstance(result, ValidationResult):
            _LOGGER.warning("validator returned an invalid result", validator_id=validator_id)
            return ValidationResult.fail(f"Validator error while checking phase: {phase}")
        return result


ValidatorType = TypeVar("ValidatorType", bound=PhaseValidator)

DEFAULT_VALIDATOR_REGISTRY = ValidatorRegistry()


def register_builtin_validator(
    validator_id: str,
    *,
    registry: ValidatorRegistry | None = None,
) -> Callable[[type[ValidatorType]], type[ValidatorType]]:
    """Decorator that registers a zero-argument validator class."""

    target = registry if registry is not None else DEFAULT_VALIDATOR_REGISTRY

    def decorator(validator_cls: type[ValidatorType]) -> type[ValidatorType]:
        target.register_builtin(validator_id, factory=lambda: validator_cls())
        return validator_cls

    return decorator


def register_external_validator(
    validator_id: str,
    factory: ValidatorFactory,
    *,
    phases: tuple[str, ...] = (),
    registry: ValidatorRegistry | None = None,
) -> None:
    """External plugin surface: register a validator and optionally bind phases to it."""

    target = registry if registry is not None else DEFAULT_VALIDATOR_REGISTRY
    target.register_external(validator_id, factory)
    for phase in phases:
        target.bind(phase, validator_id)


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
    "ValidatorSource",
    "register_builtin_validator",
    "register_external_validator",
]
