"""
debugloop: filesystem utilities

File: src/debugloop/utils/fs.py

Purpose
- Atomic whole-file replacement for living documents and path helpers shared by
  the store and the validators.

Functional requirements
- Atomic writes use a temp file in the destination directory and replace the
  target in a single step, so readers see either the old or the new document.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]

__all__ = [
    "PathLike",
    "atomic_write",
    "resolve_under",
]


def atomic_write(
    path: PathLike,
    data: str,
    *,
    encoding: str = "utf-8",
    create_parents: bool = False,
) -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    if create_parents:
        target.parent.mkdir(parents=True, exist_ok=True)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        # newline="" keeps the caller's line endings byte-for-byte.
        with os.fdopen(fd, "w", encoding=encoding, newline="") as file_handle:
            file_handle.write(data)
            file_handle.flush()
            os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def resolve_under(base: PathLike, relative: str) -> Path:
    """Resolve ``relative`` against ``base``; absolute inputs are returned as-is."""

    candidate = Path(relative).expanduser()
    if candidate.is_absolute():
        return candidate
    return Path(base) / candidate


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
