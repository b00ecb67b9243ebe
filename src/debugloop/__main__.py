"""Module entrypoint for ``python -m debugloop``."""

from __future__ import annotations

from debugloop.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
