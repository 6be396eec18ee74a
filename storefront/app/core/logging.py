"""
structlog setup.

JSON lines in production, coloured console output in development. Request
handlers bind the client session id with bind_session_context(); every log
line written while that request runs carries it.
"""
import logging
import sys
from typing import Any

import structlog

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def setup_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_session_context(session_id: str) -> None:
    """Attach the client session id to log lines of the current request."""
    structlog.contextvars.bind_contextvars(session_id=session_id)
