"""UI package exports for the CLI and its plain-text renderer."""

from debugloop.ui.cli import CLIError, build_parser, main, run_cli
from debugloop.ui.render import CLIRenderer, create_renderer

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "create_renderer",
    "main",
    "run_cli",
]
