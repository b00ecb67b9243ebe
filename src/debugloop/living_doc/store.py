"""
debugloop: living document store

File: src/debugloop/living_doc/store.py

Purpose
- Locate the front matter block at the top of a living document, hand it to the
  parser, and swap a re-serialized block back in.

Functional requirements
- The body after the closing delimiter is reproduced byte-for-byte, including
  its line endings.
- A document without a block reads as ``None`` (no workflow present).
- Writing a document that had no block installs a default body skeleton; any
  text already in the file is kept after it.
- Writes are atomic whole-file replacements.

Non-functional requirements
- No locking. Callers serialize access per document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import structlog

from debugloop.constants import DEFAULT_BODY, FRONT_MATTER_DELIMITER
from debugloop.frontmatter.parser import parse_front_matter
from debugloop.frontmatter.serializer import serialize_front_matter
from debugloop.frontmatter.values import MapValue
from debugloop.utils.fs import PathLike, atomic_write

_LOGGER = structlog.get_logger(__name__)

_LINE_ENDINGS: Final[str] = "\r\n"
# Split after each line feed only; other Unicode separators belong to values.
_LINE_SPLIT: Final[re.Pattern[str]] = re.compile(r"(?<=\n)")


@dataclass(frozen=True, slots=True)
class SplitDocument:
    """Raw pieces of a document that carries a front matter block."""

    block_lines: tuple[str, ...]
    body: str
    newline: str


@dataclass(slots=True)
class Document:
    path: Path
    front_matter: MapValue
    body: str
    newline: str = "\n"


def split_document(content: str) -> SplitDocument | None:
    """Split raw text into block lines and body; ``None`` when no block is present."""

    lines = [line for line in _LINE_SPLIT.split(content) if line]
    if not lines or lines[0].rstrip(_LINE_ENDINGS) != FRONT_MATTER_DELIMITER:
        return None

    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    for index in range(1, len(lines)):
        if lines[index].rstrip(_LINE_ENDINGS) == FRONT_MATTER_DELIMITER:
            return SplitDocument(
                block_lines=tuple(line.rstrip(_LINE_ENDINGS) for line in lines[1:index]),
                body="".join(lines[index + 1 :]),
                newline=newline,
            )
    return None


def read_text(path: PathLike) -> str:
    with Path(path).open(encoding="utf-8", newline="") as handle:
        return handle.read()


def read_document(path: PathLike) -> Document | None:
    """
    Read and parse a living document.

    Returns ``None`` when the file has no leading front matter block. I/O and
    decoding errors propagate; the engine decides how to degrade.
    """

    target = Path(path)
    split = split_document(read_text(target))
    if split is None:
        return None
    return Document(
        path=target,
        front_matter=parse_front_matter(split.block_lines),
        body=split.body,
        newline=split.newline,
    )


def render_document(front_matter: MapValue, body: str, *, newline: str = "\n") -> str:
    block = serialize_front_matter(front_matter)
    if newline != "\n":
        block = block.replace("\n", newline)
    return f"{FRONT_MATTER_DELIMITER}{newline}{block}{FRONT_MATTER_DELIMITER}{newline}{body}"


def write_document(
    path: PathLike,
    front_matter: MapValue,
    *,
    document: Document | None = None,
) -> None:
    """
    Re-serialize the front matter block of ``path``.

    When ``document`` is given its captured body is reused; otherwise the body is
    captured from the file on disk right before the write.
    """

    target = Path(path)
    if document is not None:
        body, newline = document.body, document.newline
    else:
        body, newline = _capture_body(target)
    atomic_write(target, render_document(front_matter, body, newline=newline), create_parents=True)


def _capture_body(target: Path) -> tuple[str, str]:
    existing = read_text(target) if target.exists() else ""
    split = split_document(existing)
    if split is not None:
        return split.body, split.newline

    _LOGGER.debug("installing default living document body", path=str(target))
    body = DEFAULT_BODY
    if existing.strip():
        body += "\n" + existing
    return body, "\n"


__all__ = [
    "Document",
    "SplitDocument",
    "read_document",
    "read_text",
    "render_document",
    "split_document",
    "write_document",
]
