# escala/core/logging_config.py
"""
Logging configuration for Escala.

Production writes JSON lines to rotating files; development gets a colored
console plus a plain rotating file. Structured context travels in
``extra={"extra_fields": {...}}``.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from escala.core.config import IS_PRODUCTION

LOG_DIR = Path(os.getenv("ESCALA_LOG_DIR", "logs"))

APP_LOG_FILE = LOG_DIR / "app.log"
ERROR_LOG_FILE = LOG_DIR / "error.log"

# Record attributes copied verbatim into JSON output when present.
_CONTEXT_ATTRS = ("request_id", "user_id", "username", "employee_id")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation tools."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for attr in _CONTEXT_ATTRS:
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored level names for the development console."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # Work on a copy so other handlers keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _rotating_handler(path: Path, level: int, max_bytes: int, backups: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_logging(production: bool = IS_PRODUCTION, log_to_file: bool = True) -> None:
    """
    Configure the root logger.

    In production:
    - JSON format
    - INFO to app.log, ERROR to error.log, WARNING to stdout

    In development:
    - Colored console output at DEBUG
    - Plain rotating app.log
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO if production else logging.DEBUG)
    root_logger.handlers.clear()

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

    if production:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)

        if log_to_file:
            app_handler = _rotating_handler(APP_LOG_FILE, logging.INFO, 10_000_000, 5)
            app_handler.setFormatter(JSONFormatter())
            root_logger.addHandler(app_handler)

            error_handler = _rotating_handler(ERROR_LOG_FILE, logging.ERROR, 10_000_000, 10)
            error_handler.setFormatter(JSONFormatter())
            root_logger.addHandler(error_handler)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(levelname)-8s %(asctime)s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

        if log_to_file:
            file_handler = _rotating_handler(APP_LOG_FILE, logging.DEBUG, 5_000_000, 2)
            file_handler.setFormatter(
                logging.Formatter("%(levelname)s %(asctime)s [%(name)s:%(lineno)d] %(message)s")
            )
            root_logger.addHandler(file_handler)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(logging.INFO)

    logging.getLogger("watchfiles").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    get_logger(__name__).info(
        "Logging configured (production=%s)",
        production,
        extra={"extra_fields": {"log_dir": str(LOG_DIR.absolute()), "production": production}},
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)
