"""
debugloop: phase-gated debugging workflow engine.

A living document (markdown with a front matter block) records a multi-phase
debugging procedure. Each engine step checks the current phase's exit criteria,
then retries, stalls, pauses at a human checkpoint, or advances, and writes the
updated front matter back while leaving the document body untouched.

Diagnostics never go to stdout. Until ``setup_logging`` runs, structlog events
from the package are handled by stdlib logging.
"""

import structlog

from debugloop.observability.logging import route_structlog_to_stdlib

__version__ = "0.1.0"

if not structlog.is_configured():
    route_structlog_to_stdlib()

__all__ = ["__version__"]
