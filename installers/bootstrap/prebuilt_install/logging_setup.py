"""Console and optional JSON file logging for installer runs."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


_LOGGER_NAME = "prebuilt_install"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        if hasattr(record, "event"):
            payload["event"] = getattr(record, "event")
        return json.dumps(payload, ensure_ascii=True)


# The CLI prints these failures itself; keep them out of the console.
CONSOLE_SILENT_EVENTS = frozenset({"install_failed"})


class ConsoleFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "event", None) not in CONSOLE_SILENT_EVENTS


def configure_logging(level: int = logging.INFO, console: bool = True) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        stream_handler.addFilter(ConsoleFilter())
        logger.addHandler(stream_handler)

    logger.debug("logging configured", extra={"event": "logging_configured"})
    return logger


def add_file_handler(log_file: Path, keep_files: int = 7) -> logging.Handler:
    """Attach a JSON file handler, reusing one already writing to ``log_file``."""
    logger = logging.getLogger(_LOGGER_NAME)
    target = str(log_file.resolve())
    for existing in logger.handlers:
        if isinstance(existing, logging.FileHandler) and existing.baseFilename == target:
            return existing

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=target,
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return handler


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)
