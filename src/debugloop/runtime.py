"""Wiring from an effective configuration to a ready engine and discovery settings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from debugloop.engine import EngineConfig, PhaseEngine
from debugloop.engine.phase_engine import Clock
from debugloop.living_doc import DiscoverySettings, find_living_doc
from debugloop.utils.fs import PathLike
from debugloop.validators import DEFAULT_VALIDATOR_REGISTRY, ValidatorRegistry


@dataclass(frozen=True, slots=True)
class Runtime:
    engine: PhaseEngine
    discovery: DiscoverySettings

    def find_doc(self, project_root: PathLike) -> Path | None:
        return find_living_doc(project_root, self.discovery)


def build_registry(
    config: Mapping[str, Any], base: ValidatorRegistry | None = None
) -> ValidatorRegistry:
    """Copy of ``base`` with the configured phase bindings applied on top."""

    registry = (base if base is not None else DEFAULT_VALIDATOR_REGISTRY).copy()
    overrides = config.get("validators", {})
    if isinstance(overrides, Mapping):
        registry.bind_all({str(phase): str(validator) for phase, validator in overrides.items()})
    return registry


def build_runtime(
    config: Mapping[str, Any],
    *,
    registry: ValidatorRegistry | None = None,
    clock: Clock | None = None,
) -> Runtime:
    engine = PhaseEngine(
        EngineConfig.from_config(config),
        registry=build_registry(config, registry),
        clock=clock,
    )
    return Runtime(engine=engine, discovery=DiscoverySettings.from_config(config.get("discovery")))


__all__ = ["Runtime", "build_registry", "build_runtime"]
