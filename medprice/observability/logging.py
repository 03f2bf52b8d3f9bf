"""
structlog setup and per-report log context.

Every event emitted while a report is being processed carries its
report_id (and the job id when running under the worker) through
structlog's contextvars, so pipeline modules never pass it around by hand.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog

from medprice.config import settings

# Third-party loggers and the level they are held at
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "rq.worker": logging.INFO,
    "asyncio": logging.WARNING,
}


def _renderer():
    if settings.DEBUG:
        return structlog.dev.ConsoleRenderer()
    # Report content is mostly Korean; keep it readable in the JSON lines
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging() -> None:
    """Route structlog and stdlib logging through one stdout handler."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )


@contextmanager
def report_log_context(report_id: int, **extra) -> Iterator[None]:
    """Bind report_id (plus any extra keys) to every log event inside the block."""
    with structlog.contextvars.bound_contextvars(report_id=report_id, **extra):
        yield
