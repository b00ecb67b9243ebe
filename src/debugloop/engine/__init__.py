"""Phase engine: depth profiles, checkpoint rules, guidance rendering, and the state machine."""

from debugloop.engine.checkpoints import match_checkpoint
from debugloop.engine.guidance import GuidanceRenderer, GuidanceTemplateError
from debugloop.engine.phase_engine import (
    EngineOutcome,
    EngineReport,
    LivingDocNotFoundError,
    PhaseEngine,
    ResumeReport,
    ResumeStatus,
    format_timestamp,
)
from debugloop.engine.profiles import EngineConfig

__all__ = [
    "EngineConfig",
    "EngineOutcome",
    "EngineReport",
    "GuidanceRenderer",
    "GuidanceTemplateError",
    "LivingDocNotFoundError",
    "PhaseEngine",
    "ResumeReport",
    "ResumeStatus",
    "format_timestamp",
    "match_checkpoint",
]
