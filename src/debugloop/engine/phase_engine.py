"""
debugloop: phase engine

File: src/debugloop/engine/phase_engine.py

Purpose
- Drives one step of the debugging workflow recorded in a living document:
  load, evaluate the current phase's exit criteria, then retry, stall, pause at
  a human checkpoint, or advance, and write the updated front matter back.

Functional requirements
- No in-memory session state: every invocation is a full read-mutate-write cycle.
- A failing phase accumulates ``phase_iteration`` by exactly one per invocation
  and stalls on the invocation where it first exceeds ``max_phase_iterations``.
- ``history`` is append-only; one record per completed phase.
- The engine never clears ``awaiting_human_review`` on its own; ``resume`` is the
  only operation that does.

Non-functional requirements
- Engine-level I/O and decode failures degrade to "no active workflow" with a
  warning. Diagnostics never change control flow.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog

from debugloop.engine.checkpoints import match_checkpoint
from debugloop.engine.guidance import GuidanceRenderer
from debugloop.engine.profiles import EngineConfig
from debugloop.living_doc.model import LivingDoc
from debugloop.living_doc.store import Document, read_document, write_document
from debugloop.utils.fs import PathLike
from debugloop.validators import DEFAULT_VALIDATOR_REGISTRY, ValidatorRegistry

Clock = Callable[[], datetime]

_UNKNOWN_PHASE = "unknown"


class EngineOutcome(StrEnum):
    PAUSED = "paused"
    RETRY = "retry"
    STALLED = "stalled"
    CHECKPOINT = "checkpoint"
    TRANSITIONED = "transitioned"
    COMPLETED = "completed"


class ResumeStatus(StrEnum):
    NOT_PAUSED = "not-paused"
    STALL_CLEARED = "stall-cleared"
    RELEASED = "released"
    TRANSITIONED = "transitioned"
    COMPLETED = "completed"


class LivingDocNotFoundError(FileNotFoundError):
    """Raised by operator commands when the path holds no living document."""


@dataclass(frozen=True, slots=True)
class EngineReport:
    """Block decision handed back to the host."""

    outcome: EngineOutcome
    reason: str
    context: str
    phase: str | None = None
    next_phase: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "decision": "block",
            "reason": self.reason,
            "context": self.context,
            "outcome": self.outcome.value,
            "phase": self.phase,
            "next_phase": self.next_phase,
        }

    def to_hook_response(self) -> dict[str, object]:
        return {
            "decision": "block",
            "reason": self.reason,
            "hookSpecificOutput": {"additionalContext": self.context},
        }


@dataclass(frozen=True, slots=True)
class ResumeReport:
    status: ResumeStatus
    phase: str | None
    message: str
    next_phase: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "phase": self.phase,
            "next_phase": self.next_phase,
            "message": self.message,
        }


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PhaseEngine:
    """Phase-gated state machine over a living document."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        registry: ValidatorRegistry | None = None,
        guidance: GuidanceRenderer | None = None,
        clock: Clock | None = None,
        logger: Any | None = None,
    ) -> None:
        self._config = config if config is not None else EngineConfig()
        self._registry = registry if registry is not None else DEFAULT_VALIDATOR_REGISTRY
        self._guidance = guidance if guidance is not None else GuidanceRenderer()
        self._clock = clock if clock is not None else utc_now
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def config(self) -> EngineConfig:
        return self._config

    # -- per-invocation step -----------------------------------------------

    def run(self, doc_path: PathLike, working_dir: PathLike | None = None) -> EngineReport | None:
        """
        Run one engine step. Returns ``None`` when progress should be allowed
        (no workflow, inactive workflow, or degraded input).
        """

        path = Path(doc_path)
        working = Path(working_dir) if working_dir is not None else Path.cwd()
        with structlog.contextvars.bound_contextvars(living_doc=str(path)):
            document = self._load(path)
            if document is None:
                return None
            doc = LivingDoc(document.front_matter)
            if not doc.active:
                self._logger.debug("workflow inactive")
                return None

            with structlog.contextvars.bound_contextvars(phase=doc.phase):
                return self._step(document, doc, working)

    def _step(self, document: Document, doc: LivingDoc, working: Path) -> EngineReport | None:
        phase = doc.phase
        label = phase or _UNKNOWN_PHASE

        if doc.awaiting_human_review:
            return self._report(
                EngineOutcome.PAUSED,
                f"Awaiting human review for {label}",
                phase=phase,
                variables={"review_reason": doc.review_reason or doc.stalled_reason or ""},
            )

        depth = self._effective_depth(doc)
        if phase is not None and phase not in self._config.phases_for(depth):
            if phase != self._config.terminal_phase:
                self._logger.warning("phase not in depth profile", depth=depth)
            return None

        result = self._registry.evaluate(
            phase,
            doc.criteria_for(phase) if phase is not None else None,
            working,
            doc.paths(),
        )
        self._logger.debug("phase evaluated", passed=result.passed, reason=result.reason)

        if not result.passed:
            return self._on_failure(document, doc, label, result.reason)
        return self._on_success(document, doc, phase or label, depth)

    def _on_failure(
        self, document: Document, doc: LivingDoc, phase: str, reason: str
    ) -> EngineReport | None:
        iteration = doc.phase_iteration + 1
        limit = self._max_iterations(doc)
        doc.set("phase_iteration", iteration)
        doc.set("total_iterations", doc.total_iterations + 1)

        if iteration > limit:
            doc.set("stalled", True)
            doc.set("awaiting_human_review", True)
            doc.set("stalled_reason", f"Exceeded {limit} iterations on {phase}: {reason}")
            if not self._persist(document):
                return None
            self._logger.warning("phase stalled", iteration=iteration, limit=limit)
            return self._report(
                EngineOutcome.STALLED,
                f"Phase {phase} stalled after {limit} iterations",
                phase=phase,
                variables={"reason": reason, "max_iterations": limit},
            )

        if not self._persist(document):
            return None
        return self._report(
            EngineOutcome.RETRY,
            f"Phase {phase} criteria not met",
            phase=phase,
            variables={
                "reason": reason,
                "description": _description(doc.criteria_for(phase)),
                "iteration": iteration,
                "max_iterations": limit,
            },
        )

    def _on_success(
        self, document: Document, doc: LivingDoc, phase: str, depth: str
    ) -> EngineReport | None:
        now = format_timestamp(self._clock())
        doc.append_history(
            {
                "phase": phase,
                "started": doc.phase_started,
                "completed": now,
                "iterations": doc.phase_iteration,
                "outcome": "completed",
            }
        )

        review_reason = match_checkpoint(doc.human_checkpoints(), phase, depth)
        if review_reason is not None:
            doc.set("awaiting_human_review", True)
            doc.set("review_reason", review_reason)
            if not self._persist(document):
                return None
            self._logger.info("human checkpoint reached", review_reason=review_reason)
            return self._report(
                EngineOutcome.CHECKPOINT,
                review_reason,
                phase=phase,
                variables={"review_reason": review_reason},
            )

        next_phase = self._advance(doc, phase, depth, now)
        if not self._persist(document):
            return None
        self._logger.info("phase transitioned", next_phase=next_phase)
        if next_phase == self._config.terminal_phase:
            return self._report(
                EngineOutcome.COMPLETED,
                "Debug loop complete",
                phase=phase,
                next_phase=next_phase,
                variables={},
            )
        return self._report(
            EngineOutcome.TRANSITIONED,
            "Phase complete, transitioning",
            phase=phase,
            next_phase=next_phase,
            variables={"description": _description(doc.criteria_for(next_phase))},
        )

    # -- resume --------------------------------------------------------------

    def resume(self, doc_path: PathLike, *, max_iterations: int | None = None) -> ResumeReport:
        """
        Clear a human-review pause.

        A stall resets the phase's iteration counter (optionally raising the
        limit). A checkpoint pause performs the transition it deferred; its
        history record was written when the checkpoint fired.
        """

        if max_iterations is not None and max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")

        path = Path(doc_path)
        with structlog.contextvars.bound_contextvars(living_doc=str(path)):
            document = read_document(path)
            if document is None:
                raise LivingDocNotFoundError(f"no living document at {path}")
            doc = LivingDoc(document.front_matter)
            phase = doc.phase

            if not doc.awaiting_human_review:
                return ResumeReport(ResumeStatus.NOT_PAUSED, phase, "Workflow is not paused")

            if max_iterations is not None:
                doc.set("max_phase_iterations", max_iterations)

            if doc.stalled:
                for key in ("stalled", "stalled_reason", "review_reason", "awaiting_human_review"):
                    doc.clear(key)
                doc.set("phase_iteration", 1)
                write_document(path, document.front_matter, document=document)
                self._logger.info("stall cleared", phase=phase)
                return ResumeReport(
                    ResumeStatus.STALL_CLEARED, phase, f"Stall cleared; retrying {phase}"
                )

            doc.clear("awaiting_human_review")
            doc.clear("review_reason")
            depth = self._effective_depth(doc)
            if phase is None or not _completed_last(doc, phase) or (
                phase not in self._config.phases_for(depth)
            ):
                write_document(path, document.front_matter, document=document)
                self._logger.info("pause released", phase=phase)
                return ResumeReport(ResumeStatus.RELEASED, phase, "Pause released")

            next_phase = self._advance(doc, phase, depth, format_timestamp(self._clock()))
            write_document(path, document.front_matter, document=document)
            self._logger.info("checkpoint released", phase=phase, next_phase=next_phase)
            if next_phase == self._config.terminal_phase:
                return ResumeReport(
                    ResumeStatus.COMPLETED, phase, "Debug loop complete", next_phase=next_phase
                )
            return ResumeReport(
                ResumeStatus.TRANSITIONED,
                phase,
                f"Checkpoint released; continuing to {next_phase}",
                next_phase=next_phase,
            )

    # -- helpers -------------------------------------------------------------

    def _load(self, path: Path) -> Document | None:
        try:
            return read_document(path)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            self._logger.warning("living document unreadable", error=str(exc))
            return None

    def _persist(self, document: Document) -> bool:
        try:
            write_document(document.path, document.front_matter, document=document)
        except OSError as exc:
            self._logger.warning("living document write failed", error=str(exc))
            return False
        return True

    def _effective_depth(self, doc: LivingDoc) -> str:
        depth = doc.depth
        if depth is not None and not self._config.knows_depth(depth):
            self._logger.warning(
                "unknown depth, using default", depth=depth, default=self._config.default_depth
            )
        return self._config.effective_depth(depth)

    def _max_iterations(self, doc: LivingDoc) -> int:
        configured = doc.max_phase_iterations
        if configured is None or configured < 1:
            return self._config.default_max_phase_iterations
        return configured

    def _advance(self, doc: LivingDoc, phase: str, depth: str, now: str) -> str:
        next_phase = self._config.next_phase(depth, phase) or self._config.terminal_phase
        doc.set("total_iterations", doc.total_iterations + 1)
        if next_phase == self._config.terminal_phase:
            doc.set("active", False)
            doc.set("phase", next_phase)
            doc.set("completed_at", now)
        else:
            doc.set("phase", next_phase)
            doc.set("phase_iteration", 1)
            doc.set("phase_started", now)
        return next_phase

    def _report(
        self,
        outcome: EngineOutcome,
        reason: str,
        *,
        phase: str | None,
        variables: Mapping[str, object],
        next_phase: str | None = None,
    ) -> EngineReport:
        context = self._guidance.render(
            outcome.value,
            {
                "phase": phase or _UNKNOWN_PHASE,
                "next_phase": next_phase or "",
                **variables,
            },
        )
        return EngineReport(
            outcome=outcome, reason=reason, context=context, phase=phase, next_phase=next_phase
        )


def _description(criteria: Mapping[str, Any] | None) -> str:
    if not criteria:
        return ""
    value = criteria.get("description")
    return value.strip() if isinstance(value, str) else ""


def _completed_last(doc: LivingDoc, phase: str) -> bool:
    history = doc.history()
    return bool(history) and history[-1].get("phase") == phase


__all__ = [
    "Clock",
    "EngineOutcome",
    "EngineReport",
    "LivingDocNotFoundError",
    "PhaseEngine",
    "ResumeReport",
    "ResumeStatus",
    "format_timestamp",
    "utc_now",
]
