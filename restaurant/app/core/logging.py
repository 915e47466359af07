"""Logging setup for the restaurant backend.

Standard library logging configured through dictConfig. Three output formats
are available through ``LOG_FORMAT``:

- ``text``: human readable lines (default)
- ``structured``: text lines with request and rate limit context appended
- ``json``: one JSON object per line for log shippers

Records written while a request is being handled carry its request ID; the
request ID middleware binds it to ``request_id_var``.
"""

import json
import logging
import logging.config
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from restaurant.app.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Context attributes every record is guaranteed to have after ContextFilter.
CONTEXT_FIELDS = (
    "request_id",
    "client_id",    # rate limit client identifier
    "endpoint",     # rate limit endpoint name
    "path",
    "method",
    "status_code",
    "duration_ms",
)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STRUCTURED_FORMAT = (
    TEXT_FORMAT + " - request_id=%(request_id)s client_id=%(client_id)s endpoint=%(endpoint)s"
)

# Attributes of a bare LogRecord, plus the ones this module adds itself.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Context fields are emitted at the top level when set; any other
    attribute passed through ``extra`` is collected under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        entry: Dict[str, Any] = {
            "timestamp": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra: Dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in CONTEXT_FIELDS:
                if value is not None:
                    entry[key] = value
            elif key not in _RECORD_ATTRS:
                extra[key] = value
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Fill in missing context attributes so format strings never fail.

    ``request_id`` falls back to the ID of the request being handled.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, request_id_var.get() if name == "request_id" else None)
        return True


def _formatter(log_format: str) -> Dict[str, Any]:
    if log_format == "json":
        return {"()": "restaurant.app.core.logging.JSONFormatter"}
    if log_format == "structured":
        return {"format": STRUCTURED_FORMAT}
    return {"format": TEXT_FORMAT}


def get_logging_config() -> Dict[str, Any]:
    """Build the dictConfig for the current settings."""
    level = settings.log_level.upper()
    formatter = _formatter(settings.log_format.lower())

    def stream_handler(stream, handler_level: str) -> Dict[str, Any]:
        return {
            "class": "logging.StreamHandler",
            "level": handler_level,
            "formatter": "default",
            "stream": stream,
            "filters": ["context"],
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "filters": {"context": {"()": "restaurant.app.core.logging.ContextFilter"}},
        "handlers": {
            "console": stream_handler(sys.stdout, level),
            "error_console": stream_handler(sys.stderr, "ERROR"),
        },
        "loggers": {
            "restaurant": {
                "level": level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging() -> None:
    """Configure logging for the application."""
    logging.config.dictConfig(get_logging_config())

    # Quieter third-party loggers
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "restaurant") -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    client_id: Optional[str] = None,
    endpoint: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build an ``extra`` mapping, leaving out unset values.

    Example:
        logger.warning(
            "Rate limit exceeded",
            extra=get_log_context(client_id="1.2.3.4", endpoint="reservations"),
        )
    """
    context: Dict[str, Any] = {
        "request_id": request_id,
        "client_id": client_id,
        "endpoint": endpoint,
        **extra,
    }
    return {k: v for k, v in context.items() if v is not None}
