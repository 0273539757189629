"""
Logging setup: plain text in development, one JSON object per line in
production.

Every entry logged while a request is being served carries that request's
id, taken from ``request_id_context`` (set by ``RequestLoggingMiddleware``).
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from assessment.core.config import settings

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# LogRecord extras promoted to top-level JSON keys
_EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "session_id",
    "goal",
    "error_id",
)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Structured formatter for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (name, getattr(record, name)) for name in _EXTRA_FIELDS if hasattr(record, name)
        )

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def build_logging_config(
    level_name: str, json_output: bool, debug: bool = False
) -> Dict[str, Any]:
    """
    ``dictConfig`` payload for the given level and output style.

    Engine loggers live under ``assessment`` and do not propagate to root, so
    third-party libraries can be tuned independently.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    def _console_logger(logger_level: int) -> Dict[str, Any]:
        return {"level": logger_level, "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"format": TEXT_FORMAT, "datefmt": TEXT_DATEFMT},
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if json_output else "text",
                "stream": sys.stdout,
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "assessment": _console_logger(level),
            # Request lines already come from RequestLoggingMiddleware
            "uvicorn.access": _console_logger(logging.WARNING if debug else logging.INFO),
            "sqlalchemy.engine": _console_logger(logging.WARNING),
        },
    }


def setup_logging() -> None:
    """Apply the configuration derived from ``settings``."""
    logging.config.dictConfig(
        build_logging_config(
            settings.LOG_LEVEL,
            json_output=settings.ENV == "production",
            debug=settings.DEBUG,
        )
    )
