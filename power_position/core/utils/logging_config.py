"""Structured logging configuration for the Power Position service.

Uses structlog with context variables, ISO timestamps and console rendering.
Records are routed through the standard library so that the same stream can
go to stdout and, optionally, to a daily rotating log file. Modules log
through ``structlog.get_logger(__name__)``; the entry point calls
configure_logging() once at startup.
"""

import logging
import logging.handlers
import sys
from pathlib import Path

import structlog

LOG_FILE_NAME = "power_position.log"
LOG_RETENTION_DAYS = 30

_configured = False


def configure_logging(
    level: str = "INFO",
    log_dir: str | Path | None = None,
    force: bool = False,
) -> None:
    """Configure structlog processors and output handlers once.

    Safe to call multiple times -- only the first invocation takes effect
    unless ``force`` is set.

    Args:
        level: Minimum level name (``"DEBUG"``, ``"INFO"``, ...).
        log_dir: If given, also write to ``power_position.log`` in this
            directory, rotated at midnight and kept for 30 days.
        force: Reconfigure even if logging was already set up.
    """
    global _configured
    if _configured and not force:
        return

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_path = Path(log_dir).resolve()
        log_path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.TimedRotatingFileHandler(
                log_path / LOG_FILE_NAME,
                when="midnight",
                backupCount=LOG_RETENTION_DAYS,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
