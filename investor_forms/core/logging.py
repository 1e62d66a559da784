"""
Logging configuration.

- **Rotating file handler**: ``RotatingFileHandler`` with configurable max size
  and backup count, so log files never consume all disk space.
- **JSON structured logging**: Machine-parsable JSON log lines in the file log.
- **Console handler**: Human-readable coloured output for local development.
- **Debug toggle**: ``DEBUG=true`` switches all loggers to DEBUG level.
- **Request-ID correlation**: ``RequestIDMiddleware`` stores the current
  request ID in :data:`request_id_var`; :class:`RequestContextFilter` copies it
  onto every record emitted while that request is being served.

Usage:
    Call ``setup_logging()`` once during application startup (in ``main.py``).
    Modules log through ``logging.getLogger(__name__)``.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from investor_forms.core.config import settings

# ── Log directory, relative to the project root ──
LOG_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs"
)
LOG_FILE = "investor-forms.log"
ERROR_LOG_FILE = "investor-forms-error.log"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Extra attributes copied into JSON lines when a call site passes them via ``extra=``.
EXTRA_FIELDS = (
    "form_id",
    "investor_id",
    "slot",
    "status_code",
    "method",
    "path",
    "elapsed_ms",
)


class RequestContextFilter(logging.Filter):
    """Attach the in-flight request ID (if any) to each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Output example::

        {"timestamp": "2025-02-17T10:30:00.123Z", "level": "INFO",
         "logger": "investor_forms.services.submission",
         "message": "Submitted create form ...", "form_id": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with ANSI-coloured levels."""

    COLOURS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )

        request_id = getattr(record, "request_id", None)
        rid_str = f" [{request_id[:8]}]" if request_id else ""

        base = (
            f"{timestamp} | {colour}{record.levelname:<8}{self.RESET} | "
            f"{record.name}{rid_str} | {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def setup_logging() -> None:
    """
    Configure the root logger with console + rotating file handlers.

    Subsequent calls are no-ops once the root logger has handlers.

    Configuration (via ``Settings``):
    - ``DEBUG=true`` → all loggers at DEBUG.
    - ``LOG_LEVEL`` → root level otherwise (default: INFO).
    - ``LOG_TO_FILE`` → disable file handlers (e.g. read-only containers).
    - ``LOG_FILE_MAX_BYTES`` / ``LOG_FILE_BACKUP_COUNT`` → rotation policy.
    """
    root_logger = logging.getLogger()

    if root_logger.handlers:
        return

    level = (
        logging.DEBUG
        if settings.DEBUG
        else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    root_logger.setLevel(level)
    context_filter = RequestContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(LOG_DIR, LOG_FILE),
            maxBytes=settings.LOG_FILE_MAX_BYTES,
            backupCount=settings.LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)

        # Error-only file for alerting
        error_handler = RotatingFileHandler(
            filename=os.path.join(LOG_DIR, ERROR_LOG_FILE),
            maxBytes=settings.LOG_FILE_MAX_BYTES,
            backupCount=settings.LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        error_handler.addFilter(context_filter)
        root_logger.addHandler(error_handler)

    # ── Suppress noisy third-party loggers ──
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.DEBUG else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized: level=%s, file_logging=%s, backups=%d",
        logging.getLevelName(level),
        settings.LOG_TO_FILE,
        settings.LOG_FILE_BACKUP_COUNT,
    )
