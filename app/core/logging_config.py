# app/core/logging_config.py
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


def setup_logging(level: str = "INFO") -> None:
    """
    Configure structlog + standard logging.
    Logs go to stdout as JSON, one event per line.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind fields (policy_number, quote_number, ...) to every log event in the block."""
    tokens = structlog.contextvars.bind_contextvars(**fields)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


# Global logger for the app entrypoint
logger = structlog.get_logger("vsc-contracts")
