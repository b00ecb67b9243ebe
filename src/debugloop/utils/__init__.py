"""Utility exports for filesystem helpers."""

from debugloop.utils.fs import atomic_write, resolve_under

__all__ = [
    "atomic_write",
    "resolve_under",
]
