"""
Structured logging for the document ingestion service.

Log lines are rendered as JSON (``LOG_FORMAT=json``) or as coloured console
output. Per-run values such as the correlation id, the CLI command and the
file being ingested live in structlog's context variables, so every line
emitted while a command runs carries them without being passed around.
"""

import logging
import sys
from typing import Any
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor

CORRELATION_ID_KEY = "correlation_id"

# Libraries whose INFO output drowns out ingestion progress
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "psycopg")

_app_name = "docingest"


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind a correlation id to the current context.

    The CLI calls this once per command so that every line logged while
    ingesting a file or a directory can be grouped back into one run.

    Args:
        correlation_id: Id to bind. A new UUID4 is generated when omitted.

    Returns:
        The bound id.
    """
    cid = correlation_id or str(uuid4())
    structlog.contextvars.bind_contextvars(**{CORRELATION_ID_KEY: cid})
    return cid


def get_correlation_id() -> str | None:
    """Return the correlation id bound to the current context, if any."""
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


def bind_log_context(**values: Any) -> None:
    """Bind key/value pairs to every log line emitted in the current context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_log_context() -> None:
    """Drop every bound value, the correlation id included."""
    structlog.contextvars.clear_contextvars()


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Structlog processor adding the application name."""
    event_dict["app"] = _app_name
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    app_name: str = "docingest",
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_format: ``json`` for machine-readable lines, ``console`` for humans.
        app_name: Value of the ``app`` key on every line.
    """
    global _app_name
    _app_name = app_name

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    if log_format == "json":
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
        stdlib_format = "%(message)s"
    else:
        renderer = [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]
        stdlib_format = "%(levelname)s %(name)s %(message)s"

    # stdout is reserved for command output
    logging.basicConfig(
        format=stdlib_format,
        stream=sys.stderr,
        level=getattr(logging, log_level),
    )

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, named after ``name`` when given."""
    return structlog.get_logger(name)


class LoggerMixin:
    """
    Give a class a ``logger`` property bound to its class name.

    Usage:
        class DocumentManager(LoggerMixin):
            async def replace_chunks(self, document_id, chunks):
                self.logger.info("Chunks replaced", document_id=document_id)
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
