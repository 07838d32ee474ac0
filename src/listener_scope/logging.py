"""JSON logging for listener scopes and emitters."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging import Logger
from typing import Dict

_ROOT = "listener_scope"

# Record attributes copied into the JSON line when callers supply them
# through ``extra``.
CONTEXT_FIELDS = ("event", "payload", "scope_id", "event_name")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        line: Dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(
            (key, getattr(record, key)) for key in CONTEXT_FIELDS if hasattr(record, key)
        )
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=repr)


def _level_from_env() -> int:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str | None = None) -> Logger:
    """Return the ``listener_scope`` logger (or a child) emitting JSON lines.

    The handler is attached once per logger; ``LOG_LEVEL`` picks the level.
    """

    logger = logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
    return logger


def log_event(
    logger: Logger, event: str, payload: Dict[str, object] | None = None
) -> None:
    """Log a lifecycle event with its payload at INFO."""

    logger.info("event=%s", event, extra={"event": event, "payload": payload or {}})
