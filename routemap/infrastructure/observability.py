"""Structured Logging — JSON formatter, request-scoped adapter, setup.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (request_id, method, path, step, status, error_code,
      error_category, failure)
      surfaced when present
    - Non-JSON values in extras (ORM rows, exceptions) are stringified, never dropped
    - JSON format in production, human-readable in development

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - RequestLogAdapter merges per-call extras with the request_id instead of
      replacing them (stdlib LoggerAdapter discards call-site extras)
    - setup_logging called once on startup via lifespan
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, MutableMapping

EXTRA_FIELDS = (
    "request_id", "method", "path", "step", "status", "error_code",
    "error_category", "failure",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class RequestLogAdapter(logging.LoggerAdapter):
    """Logger handed to each RouteMap; stamps every record with its request_id."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def request_logger(request_id: str, name: str = "routemap.request") -> RequestLogAdapter:
    return RequestLogAdapter(logging.getLogger(name), {"request_id": request_id})


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
