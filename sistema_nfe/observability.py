from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Dict

from flask import g, has_request_context, request


_access_logger = logging.getLogger("sistema_nfe.access")

# attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line with the request id, route and any ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if has_request_context():
            payload["request_id"] = getattr(g, "request_id", None) or "n/a"
            payload["path"] = request.path
            payload["method"] = request.method
            if request.url_rule is not None:
                payload["route"] = request.url_rule.rule

        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = value
        payload.setdefault("request_id", "n/a")

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # default=str keeps Decimal/date extras from breaking the log line
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def configure_json_logging(app) -> None:
    if not bool(app.config.get("LOG_JSON", True)):
        return
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    app.logger.handlers = []
    app.logger.propagate = True


def ensure_request_id() -> str:
    """Reuse the caller's ``X-Request-Id`` or mint one, once per request."""
    if not getattr(g, "request_id", None):
        incoming = str(request.headers.get("X-Request-Id") or "").strip()
        g.request_id = incoming or str(uuid.uuid4())
    return g.request_id


def mark_request_start() -> None:
    g.request_started_at = time.perf_counter()


def observe_response(response):
    started = getattr(g, "request_started_at", None)
    elapsed_ms = (time.perf_counter() - started) * 1000.0 if started is not None else 0.0
    _access_logger.info(
        "request_completed",
        extra={"status_code": response.status_code, "duration_ms": round(elapsed_ms, 2)},
    )
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    return response
