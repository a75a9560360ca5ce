# transcript_gateway/logging_core/logger.py
"""
Centralized structured logging setup for the transcript gateway.

Provides a pre-configured logger that emits JSON lines with mandatory fields:
- timestamp (ISO)
- run_id
- component / technique (optional, filled by caller)
- event_type (request_start/attempt_start/attempt_failure/...)
- level
- message
- metadata (dict)

All logs in the gateway core MUST use the logger obtained from get_logger().
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from logging import Logger


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
        }

        if hasattr(record, "run_id"):
            log_record["run_id"] = str(record.run_id)

        extra_fields = ["component", "technique", "event_type", "metadata"]
        for field in extra_fields:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class RunIdFilter(logging.Filter):
    """Stamps every record with the run id of the owning request."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id  # type: ignore[attr-defined]
        return True


# One logger per run_id
_loggers: Dict[str, Logger] = {}


def get_logger(run_id: UUID | str, level: int | str = logging.INFO) -> Logger:
    """
    Return a configured logger for the given request run.

    Logs are emitted as JSON lines to stdout.
    One logger instance per run_id (idempotent); a later call may lower or
    raise the level.
    """
    run_id_str = str(run_id)

    logger = _loggers.get(run_id_str)
    if logger is None:
        logger = logging.getLogger(f"transcript_gateway.run.{run_id_str}")
        logger.propagate = False

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)

        logger.addFilter(RunIdFilter(run_id_str))
        _loggers[run_id_str] = logger

    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def release_logger(run_id: UUID | str) -> None:
    """Drop the cached logger of a finished run so request loggers do not accumulate."""
    logger = _loggers.pop(str(run_id), None)
    if logger is None:
        return
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for log_filter in list(logger.filters):
        logger.removeFilter(log_filter)
    # Unregistered from logging's manager as well.
    logger.manager.loggerDict.pop(logger.name, None)


def log_event(
    logger: Logger,
    level: int,
    message: str,
    *,
    component: str | None = None,
    technique: str | None = None,
    event_type: str,
    metadata: Dict[str, Any] | None = None,
) -> None:
    """
    Convenience wrapper for structured logging.

    Use this inside the core for consistency.
    """
    extra: Dict[str, Any] = {"event_type": event_type}
    if component:
        extra["component"] = component
    if technique:
        extra["technique"] = technique
    if metadata:
        extra["metadata"] = metadata

    logger.log(level, message, extra=extra)
