"""
Structured JSON logging

One JSON object per line on stdout, in logs/app.log and (ERROR and above)
in logs/error.log. The correlation ID bound to the current request or
background job is added to every line, together with the engine fields a
caller passes through ``extra=``.
"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from ..config.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Record attributes copied into the JSON line when a caller sets them via extra=
ENGINE_FIELDS = (
    "execution_id", "case_id", "workflow_id", "step_id", "step_type",
    "task_id", "status", "trigger", "error_code",
)

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5
_QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "pymongo": logging.WARNING,
    "openai": logging.WARNING,
}


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        for field in ENGINE_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Enums and datetimes in extras fall back to str()
        return json.dumps(entry, default=str)


def _rotating_handler(path: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Replace the root handlers with the JSON console and file handlers"""
    os.makedirs(settings.logs_path, exist_ok=True)
    formatter = JsonFormatter()

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)
    root.addHandler(_rotating_handler(os.path.join(settings.logs_path, "app.log"), formatter))
    root.addHandler(_rotating_handler(os.path.join(settings.logs_path, "error.log"), formatter, logging.ERROR))

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
