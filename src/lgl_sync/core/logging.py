"""Structured JSON logging for the service and its jobs."""

from __future__ import annotations

import json
import logging
import sys
from logging import LogRecord
from typing import Any, Dict

from loguru import logger
from opentelemetry import trace

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class InterceptHandler(logging.Handler):
    """Route stdlib logging (uvicorn, sqlalchemy, httpx, alembic) into Loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        try:
            message = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover - malformed format strings
            message = str(record.msg)

        extra = {key: value for key, value in vars(record).items() if key not in _STANDARD_RECORD_FIELDS}
        bound = logger.bind(stdlib_logger=record.name, **extra)
        bound.opt(depth=6, exception=record.exc_info).log(level, message.replace("{", "{{").replace("}", "}}"))


def _render(message: "logger.Message", metadata: Dict[str, Any]) -> None:
    record = message.record
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["name"],
        **metadata,
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    payload.update(record["extra"])
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)

    sys.stdout.write(json.dumps(payload, default=str) + "\n")


def configure_logging(*, service_name: str, environment: str, version: str, level: str = "INFO") -> None:
    """Send Loguru and stdlib logging to stdout as one JSON object per line."""

    metadata = {"service": service_name, "environment": environment, "version": version}
    logger.remove()
    logger.add(lambda message: _render(message, metadata), level=level.upper(), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)
