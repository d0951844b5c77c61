"""Structured logging configuration.

JSON lines when ENABLE_JSON_LOGS=1 (default), otherwise a compact human
formatter. Request-scoped fields (request_id, path, method, status,
duration_ms) and pipeline counters (rows, points, source) are emitted when a
log call passes them through ``extra``.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from time import time

_EXTRA_FIELDS = ("request_id", "path", "method", "status", "duration_ms", "rows", "points", "source", "cache")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        base = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        for attr in _EXTRA_FIELDS:
            if hasattr(record, attr):
                base[attr] = getattr(record, attr)
        if record.exc_info:
            base["exc_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
        return json.dumps(base, ensure_ascii=False, default=str)


class _PlainFormatter(logging.Formatter):  # pragma: no cover - formatting
    def format(self, record: logging.LogRecord) -> str:
        parts = [
            self.formatTime(record, datefmt="%H:%M:%S"),
            record.levelname[0],
            record.name + ":",
            record.getMessage(),
        ]
        for attr in _EXTRA_FIELDS:
            if hasattr(record, attr):
                parts.append(f"{attr}={getattr(record, attr)}")
        return " ".join(parts)


def configure_logging() -> None:
    if getattr(configure_logging, "_configured", False):  # idempotent
        return
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    json_enabled = os.getenv("ENABLE_JSON_LOGS", "1") == "1"
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):  # drop uvicorn's default handlers for consistency
        root.removeHandler(h)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_enabled else _PlainFormatter())
    root.addHandler(handler)
    configure_logging._configured = True  # type: ignore[attr-defined]


async def logging_middleware(request, call_next):  # pragma: no cover - thin wrapper
    rid = uuid.uuid4().hex[:8]
    start = time()
    request.state.request_id = rid
    logger = logging.getLogger("request")
    logger.info("request.start", extra={"request_id": rid, "path": request.url.path, "method": request.method})
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur = (time() - start) * 1000.0
        logger.info(
            "request.end",
            extra={
                "request_id": rid,
                "path": request.url.path,
                "method": request.method,
                "status": getattr(response, "status_code", None),
                "duration_ms": round(dur, 2),
            },
        )
