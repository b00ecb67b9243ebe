"""
debugloop: guidance text rendering

File: src/debugloop/engine/guidance.py

Purpose
- Renders the ``context`` text the host injects into the agent's conversation,
  one Jinja2 template per engine outcome.

Functional requirements
- Rendering is strict: a template referencing an unknown variable fails loudly.
- Output is a single trimmed string with ``\\n`` line endings.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from jinja2 import Environment, StrictUndefined, meta

from debugloop.utils.fs import PathLike


class GuidanceTemplateError(RuntimeError):
    """Raised when a guidance template is missing or cannot be rendered."""


class GuidanceRenderer:
    """Loads ``<outcome>.j2`` templates from a directory and renders them."""

    def __init__(self, template_root: PathLike | None = None) -> None:
        root = Path(template_root) if template_root is not None else _default_template_root()
        resolved_root = root.resolve()
        if not resolved_root.is_dir():
            raise GuidanceTemplateError(f"template root is not a directory: {resolved_root}")
        self._template_root = resolved_root
        self._environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            newline_sequence="\n",
            keep_trailing_newline=True,
        )
        self._sources: dict[str, str] = {}

    @property
    def template_root(self) -> Path:
        return self._template_root

    def declared_variables(self, name: str) -> tuple[str, ...]:
        source = self._source(name)
        return tuple(sorted(meta.find_undeclared_variables(self._environment.parse(source))))

    def render(self, name: str, variables: Mapping[str, object]) -> str:
        source = self._source(name)
        missing = sorted(set(self.declared_variables(name)) - set(variables))
        if missing:
            raise GuidanceTemplateError(
                f"template {name!r} is missing variables: " + ", ".join(missing)
            )
        rendered = self._environment.from_string(source).render(**dict(variables))
        return rendered.replace("\r\n", "\n").strip()

    def _source(self, name: str) -> str:
        cached = self._sources.get(name)
        if cached is not None:
            return cached
        path = self._template_root / f"{name}.j2"
        if not path.is_file():
            raise GuidanceTemplateError(f"guidance template not found: {path}")
        source = path.read_text(encoding="utf-8")
        self._sources[name] = source
        return source


def _default_template_root() -> Path:
    return Path(__file__).resolve().parents[1] / "templates"


__all__ = ["GuidanceRenderer", "GuidanceTemplateError"]
