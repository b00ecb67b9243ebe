"""Observability surface: diagnostic logging to stderr."""

from debugloop.observability.logging import (
    DEFAULT_LOGGER_NAME,
    route_structlog_to_stdlib,
    setup_logging,
)

__all__ = ["DEFAULT_LOGGER_NAME", "route_structlog_to_stdlib", "setup_logging"]
