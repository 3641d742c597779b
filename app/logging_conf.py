"""JSON-line logging for the API and its tooling.

One JSON object per line on stdout. Structured fields are passed through
``extra`` and merged into the event; ``setup_logging()`` is safe to call more
than once.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import Any

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else came in through `extra`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object.

    Core keys are ``ts``, ``level``, ``logger`` and ``message``; structured
    extras never overwrite them.
    """

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in event:
                continue
            event[key] = value

        if record.exc_info:
            event["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(event, ensure_ascii=False, default=str)


def _stdout_handler(level: int) -> Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Attach the JSON handler to the root logger and fold uvicorn into it.

    Does nothing if the root logger already has handlers (reloads, pytest).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root.setLevel(level)
    root.addHandler(_stdout_handler(level))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True
        lg.handlers.clear()


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger, e.g. ``get_logger("service.users")``."""
    return logging.getLogger(name or "app")
