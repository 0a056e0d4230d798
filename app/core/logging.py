# app/core/logging.py
"""Logging setup.

Console logging with an optional JSON formatter. A contextvar carries the
current request id so every record emitted while serving a request can be
correlated with the access log line.
"""
from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_ctx.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        for extra in ("method", "path", "status_code", "duration_ms", "user_id", "course_id", "quiz_id"):
            if hasattr(record, extra):
                data[extra] = getattr(record, extra)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, use_json: Optional[bool] = None) -> None:
    """Configure the root logger once; calling again replaces the handler."""
    level = (level or settings.LOG_LEVEL).upper()
    use_json = settings.LOG_JSON if use_json is None else use_json

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(_PLAIN_FORMAT))

    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_learnlite", False):
            root.removeHandler(h)
    handler._learnlite = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    # uvicorn keeps its own access log; ours comes from the request middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
