"""Command-line interface router for debugloop."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from debugloop import __version__
from debugloop.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from debugloop.constants import DEFAULT_BODY, TERMINAL_PHASE
from debugloop.engine import EngineOutcome, LivingDocNotFoundError, format_timestamp
from debugloop.engine.phase_engine import utc_now
from debugloop.hook import run_hook
from debugloop.living_doc import (
    LivingDoc,
    new_front_matter,
    read_document,
    render_document,
)
from debugloop.observability import setup_logging
from debugloop.runtime import Runtime, build_runtime
from debugloop.ui.render import CLIRenderer, create_renderer
from debugloop.utils.fs import atomic_write

EXIT_NOT_FOUND = 1
EXIT_CONFIG_ERROR = 2


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="debugloop",
        description=(
            "debugloop: phase-gated debugging workflow driven by a living document.\n\n"
            "Common workflows:\n"
            "  debugloop init login-timeout     Start a workflow for a bug\n"
            "  debugloop status                 Show phase, counters and history\n"
            "  debugloop evaluate               Run one engine step by hand\n"
            "  debugloop resume                 Clear a checkpoint or stall pause\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project-root",
        default=".",
        help="Project root holding the living document directory (default: cwd).",
    )
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./debugloop.toml under the project root if present).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Override observability.log_level.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Also show the current phase criteria and artifact paths (status).",
    )

    doc_parent = argparse.ArgumentParser(add_help=False)
    doc_parent.add_argument(
        "--doc",
        default=None,
        help="Living document path (default: discovered under the project root).",
    )
    doc_parent.add_argument("--json", action="store_true", default=False, help="Emit JSON.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    hook = subparsers.add_parser(
        "hook",
        parents=[common],
        help="Host stop-hook adapter: JSON event on stdin, block response on stdout.",
    )
    hook.set_defaults(handler=_cmd_hook)

    evaluate = subparsers.add_parser(
        "evaluate", parents=[common, doc_parent], help="Run one engine step."
    )
    evaluate.set_defaults(handler=_cmd_evaluate)

    status = subparsers.add_parser(
        "status", parents=[common, doc_parent], help="Show workflow state and history."
    )
    status.set_defaults(handler=_cmd_status)

    resume = subparsers.add_parser(
        "resume", parents=[common, doc_parent], help="Clear a human-review pause."
    )
    resume.add_argument(
        "--max-iterations",
        type=_positive_int,
        default=None,
        help="Raise max_phase_iterations while resuming.",
    )
    resume.set_defaults(handler=_cmd_resume)

    init = subparsers.add_parser(
        "init", parents=[common], help="Create a living document for a new bug."
    )
    init.add_argument("slug", help="Short identifier for the bug (used in file names).")
    init.add_argument("--depth", default=None, help="Phase depth (default: engine.default_depth).")
    init.add_argument("--test-path", default=None, help="Reproduction test path.")
    init.add_argument(
        "--force", action="store_true", default=False, help="Overwrite an existing document."
    )
    init.add_argument("--json", action="store_true", default=False, help="Emit JSON.")
    init.set_defaults(handler=_cmd_init)

    config = subparsers.add_parser(
        "config", parents=[common], help="Print the effective configuration."
    )
    config.add_argument("--json", action="store_true", default=False, help="Emit JSON.")
    config.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    setup_logging({"log_level": namespace.log_level or "WARNING"})
    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_hook(args: argparse.Namespace) -> int:
    return run_hook(sys.stdin, sys.stdout, config_path=_optional_str(args.config_path))


def _cmd_evaluate(args: argparse.Namespace) -> int:
    root = _project_root(args)
    runtime = _runtime(args)
    doc_path = _resolve_doc(args, runtime, root)
    report = runtime.engine.run(doc_path, root)

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "evaluate",
                "doc": str(doc_path),
                "report": report.to_dict() if report is not None else None,
            }
        )
        return 0

    renderer = _get_renderer(args)
    if report is None:
        renderer.text("No action: workflow inactive, finished, or not evaluable.")
        return 0
    renderer.kv("Outcome", report.outcome.value)
    renderer.kv("Reason", report.reason)
    if report.next_phase:
        renderer.kv("Next phase", report.next_phase)
    renderer.section("Guidance:")
    renderer.text(report.context)
    if report.outcome in (EngineOutcome.STALLED, EngineOutcome.CHECKPOINT):
        renderer.next_steps(["debugloop resume"])
    return 0


def _cmd_status(args: argparse.Namespace) -> int:
    root = _project_root(args)
    runtime = _runtime(args)
    doc_path = _resolve_doc(args, runtime, root)
    document = read_document(doc_path)
    if document is None:
        raise CLIError(f"not a living document (no front matter): {doc_path}", EXIT_NOT_FOUND)

    doc = LivingDoc(document.front_matter)
    engine_config = runtime.engine.config
    depth = engine_config.effective_depth(doc.depth)
    phases = engine_config.phases_for(depth)
    max_iterations = doc.max_phase_iterations or engine_config.default_max_phase_iterations
    payload: dict[str, Any] = {
        "command": "status",
        "doc": str(doc_path),
        "active": doc.active,
        "phase": doc.phase,
        "depth": depth,
        "phases": list(phases),
        "phase_iteration": doc.phase_iteration,
        "max_phase_iterations": max_iterations,
        "total_iterations": doc.total_iterations,
        "awaiting_human_review": doc.awaiting_human_review,
        "review_reason": doc.review_reason,
        "stalled": doc.stalled,
        "stalled_reason": doc.stalled_reason,
        "history": doc.history(),
    }

    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Document", doc_path)
    renderer.kv("State", _state_text(doc))
    renderer.kv("Depth", depth)
    renderer.kv("Phase", doc.phase or "(none)")
    renderer.kv("Iteration", f"{doc.phase_iteration} of {max_iterations}")
    renderer.kv("Total iterations", doc.total_iterations)
    if doc.review_reason:
        renderer.kv("Review reason", doc.review_reason)
    if doc.stalled_reason:
        renderer.kv("Stalled reason", doc.stalled_reason)

    renderer.section("Phases:")
    renderer.items([_phase_marker(phase, doc, phases) for phase in phases], prefix="")
    if renderer.verbose:
        criteria = doc.criteria_for(doc.phase) if doc.phase else None
        renderer.section("Exit criteria:")
        renderer.items(_pairs(criteria or {}) or ["(none)"])
        renderer.section("Paths:")
        renderer.items(_pairs(doc.paths()) or ["(none)"])
    history = doc.history()
    renderer.table(
        ("Phase", "Iterations", "Completed"),
        [
            (
                str(record.get("phase", "")),
                str(record.get("iterations", "")),
                str(record.get("completed", "")),
            )
            for record in history
        ],
        title="History:",
    )
    if doc.awaiting_human_review:
        renderer.next_steps(["debugloop resume"])
    return 0


def _cmd_resume(args: argparse.Namespace) -> int:
    root = _project_root(args)
    runtime = _runtime(args)
    doc_path = _resolve_doc(args, runtime, root)
    try:
        result = runtime.engine.resume(doc_path, max_iterations=args.max_iterations)
    except LivingDocNotFoundError as exc:
        raise CLIError(str(exc), EXIT_NOT_FOUND) from exc

    if _flag(args, "json"):
        _emit_json({"command": "resume", "doc": str(doc_path), **result.to_dict()})
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Status", result.status.value)
    renderer.text(result.message)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    root = _project_root(args)
    config = _load_effective_config(args)
    runtime = build_runtime(config)
    engine_config = runtime.engine.config

    slug = _require_slug(args.slug)
    depth = args.depth or engine_config.default_depth
    if not engine_config.knows_depth(depth):
        known = ", ".join(sorted(engine_config.phase_tables))
        raise CLIError(f"unknown depth {depth!r}; configured depths: {known}", EXIT_CONFIG_ERROR)

    target = root / runtime.discovery.directory / runtime.discovery.doc_name(slug)
    if target.exists() and not _flag(args, "force"):
        raise CLIError(f"living document already exists: {target} (use --force)", EXIT_CONFIG_ERROR)

    now = format_timestamp(utc_now())
    front_matter = new_front_matter(
        slug,
        phases=engine_config.phases_for(depth),
        depth=depth,
        max_phase_iterations=engine_config.default_max_phase_iterations,
        now=now,
        test_path=_optional_str(args.test_path),
    )
    body = f"\n# Debug loop: {slug}\n\n{DEFAULT_BODY}"
    atomic_write(target, render_document(front_matter, body), create_parents=True)

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "init",
                "doc": str(target),
                "depth": depth,
                "phase": engine_config.phases_for(depth)[0],
            }
        )
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Created", target)
    renderer.kv("Depth", depth)
    renderer.kv("First phase", engine_config.phases_for(depth)[0])
    renderer.next_steps(["debugloop status"])
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    if _flag(args, "json"):
        _emit_json({"command": "config", "config": config})
        return 0
    _get_renderer(args).text(dump_effective_config(config, pretty=True))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=_flag(args, "verbose"))


def _project_root(args: argparse.Namespace) -> Path:
    raw = _optional_str(getattr(args, "project_root", None)) or "."
    candidate = Path(raw).expanduser().resolve()
    if not candidate.is_dir():
        raise CLIError(f"project root is not a directory: {candidate}", EXIT_CONFIG_ERROR)
    return candidate


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {}
    if getattr(args, "log_level", None):
        overrides["observability.log_level"] = args.log_level
    try:
        config = load_config(
            _optional_str(getattr(args, "config_path", None)),
            cli_overrides=overrides,
            base_dir=_project_root(args),
        )
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=EXIT_CONFIG_ERROR) from exc
    setup_logging(config.get("observability"))
    return config


def _runtime(args: argparse.Namespace) -> Runtime:
    return build_runtime(_load_effective_config(args))


def _resolve_doc(args: argparse.Namespace, runtime: Runtime, root: Path) -> Path:
    explicit = _optional_str(getattr(args, "doc", None))
    if explicit is not None:
        candidate = Path(explicit).expanduser()
        resolved = candidate if candidate.is_absolute() else root / candidate
        if not resolved.is_file():
            raise CLIError(f"living document not found: {resolved}", EXIT_NOT_FOUND)
        return resolved

    found = runtime.find_doc(root)
    if found is None:
        pattern = runtime.discovery.doc_name("*")
        raise CLIError(
            f"no living document found under {root / runtime.discovery.directory} "
            f"(expected {pattern})",
            EXIT_NOT_FOUND,
        )
    return found


def _state_text(doc: LivingDoc) -> str:
    if doc.stalled:
        return "stalled (awaiting human review)"
    if doc.awaiting_human_review:
        return "paused (awaiting human review)"
    if doc.active:
        return "active"
    if doc.phase == TERMINAL_PHASE:
        return "complete"
    return "inactive"


def _phase_marker(phase: str, doc: LivingDoc, phases: Sequence[str]) -> str:
    current = doc.phase
    if current == TERMINAL_PHASE:
        return f"[x] {phase}"
    if current == phase:
        return f"[>] {phase}"
    if current in phases and phases.index(phase) < phases.index(current):
        return f"[x] {phase}"
    return f"[ ] {phase}"


def _pairs(values: Mapping[str, object]) -> list[str]:
    return [f"{key}: {value}" for key, value in values.items()]


def _require_slug(raw: object) -> str:
    slug = _optional_str(raw)
    if slug is None or any(char in slug for char in "/\\") or slug.startswith("."):
        raise CLIError(f"invalid slug: {raw!r}", EXIT_CONFIG_ERROR)
    return slug


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
