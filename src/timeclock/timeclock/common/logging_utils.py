"""JSON log lines, tagged with the HTTP request they were emitted under."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from flask import has_request_context, request

from .http import USER_HEADER

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


class RequestContextFilter(logging.Filter):
    """Stamp records logged inside a Flask request with its method, path and caller."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.http_method = request.method
            record.http_path = request.path
            record.acting_user = request.headers.get(USER_HEADER) or None
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
