"""Logging configuration with trace_id support and file rotation.

- Daily rotated log files, info and error kept apart
- trace_id injected into every record
- Output goes to both files and the console
"""
from __future__ import annotations

import logging
import logging.handlers
import re
from pathlib import Path

from app.core.config import get_settings
from app.core.trace_context import get_trace_id

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [trace_id=%(trace_id)s] "
    "%(name)s:%(lineno)d - %(message)s"
)
_ROTATED_NAME = re.compile(r"(.+)\.log\.(\d{4}-\d{2}-\d{2})$")


class TraceIdFilter(logging.Filter):
    """Inject the current trace_id into each LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        trace_id = get_trace_id()
        record.trace_id = trace_id if trace_id else "N/A"
        return True


class ErrorOnlyFilter(logging.Filter):
    """Let only ERROR and above through."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def rotated_log_namer(name: str) -> str:
    """Rename ``app-info.log.2026-10-19`` to ``app-info-2026-10-19.log``."""
    match = _ROTATED_NAME.match(name)
    if match:
        base, date = match.groups()
        return f"{base}-{date}.log"
    return name


def _build_file_handler(
    path: Path, level: int, backup_count: int, formatter: logging.Formatter
) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        interval=1,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(TraceIdFilter())
    handler.namer = rotated_log_namer
    return handler


def init_logging() -> None:
    """
    Initialise the logging system.

    Handlers:
    - logs/app-info.log: INFO and above, rotated at midnight
    - logs/app-error.log: ERROR and above, rotated at midnight
    - console: LOG_LEVEL and above, DEBUG when DEBUG=true
    """
    settings = get_settings()
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    console_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        console_level = logging.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers decide the level
    root_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger.addHandler(
        _build_file_handler(
            log_dir / "app-info.log", logging.INFO, settings.log_backup_count, formatter
        )
    )

    error_handler = _build_file_handler(
        log_dir / "app-error.log", logging.ERROR, settings.log_backup_count, formatter
    )
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TraceIdFilter())
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO; our clients already do
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialized: log_dir=%s, backup_count=%s, console_level=%s",
        log_dir,
        settings.log_backup_count,
        logging.getLevelName(console_level),
    )
