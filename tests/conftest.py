from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from debugloop.observability import DEFAULT_LOGGER_NAME, route_structlog_to_stdlib


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    route_structlog_to_stdlib()
    structlog.contextvars.clear_contextvars()
    logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_debugloop_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
