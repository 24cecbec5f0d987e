"""Logging setup: one stdout handler on the root logger, JSON by default."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from letters_rag.core.config import Settings

CONTEXT_PREFIX = "ctx_"
_DEFAULT_LEVEL = os.environ.get("LRAG_LOG_LEVEL", "INFO")
# HTTP client loggers emit a line per request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects.

    ``extra`` attributes named ``ctx_<key>`` are gathered under ``context``
    without the prefix, so ``logger.info("stored", extra={"ctx_chunk_index": 3})``
    yields ``{"message": "stored", "context": {"chunk_index": 3}, ...}``.
    Values orjson cannot encode are rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key[len(CONTEXT_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True, stream: IO[str] | None = None) -> None:
    """Replace root handlers with a single stream handler."""
    logging.captureWarnings(True)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(_TEXT_FORMAT))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: "Settings") -> None:
    configure_logging(level=settings.log_level.upper(), use_json=settings.log_json)


def get_logger(name: str = "letters_rag") -> logging.Logger:
    """Return a named logger, configuring the root logger on first use."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["CONTEXT_PREFIX", "JsonFormatter", "configure_logging", "configure_from_settings", "get_logger"]
