"""
mrbeans/core/logging.py — loguru structured JSON logging setup
One helper per mandatory log event so every record carries the same keys.
"""
from __future__ import annotations

import json
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

from loguru import logger


def setup_logging(log_level: str = "INFO", serialize: bool = True) -> None:
    """
    Configure loguru for structured JSON output to stdout.
    The hosting platform captures stdout; nothing is written to disk.
    """
    # Remove default loguru handler
    logger.remove()

    logger.add(
        sys.stdout,
        level=log_level.upper(),
        format="{message}",
        serialize=serialize,
        backtrace=True,
        diagnose=False,  # never dump local variables (secrets) into logs
        colorize=False,
    )


def _build_log_record(
    component: str,
    operation: str,
    extra: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a base structured log record."""
    record: dict[str, Any] = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "component": component,
        "operation": operation,
    }
    if extra:
        record.update(extra)
    return record


# ──────────────────────────────────────────────────────────────────────────────
# Event helpers
# ──────────────────────────────────────────────────────────────────────────────

def log_auth_event(
    operation: str,  # login | verify
    success: bool,
    client: str,
    reason: Optional[str] = None,
) -> None:
    """Every login attempt and every rejected token is logged."""
    record = _build_log_record("auth", operation, {
        "success": success,
        "client": client,
        "reason": reason,
    })
    if success:
        logger.info(json.dumps(record))
    else:
        logger.warning(json.dumps(record))


def log_cors_rejection(origin: str, allowed_origins: list[str]) -> None:
    """Rejected origins are logged together with the allow-list for diagnosis."""
    record = _build_log_record("cors", "reject_origin", {
        "origin": origin,
        "allowed_origins": allowed_origins,
    })
    logger.warning(json.dumps(record))


def log_rate_limited(category: str, client: str, limit: int, reset_after: int) -> None:
    record = _build_log_record("rate_limiter", "limit_exceeded", {
        "category": category,
        "client": client,
        "limit": limit,
        "reset_after_s": reset_after,
    })
    logger.warning(json.dumps(record))


def log_store_operation(
    filename: str,
    operation: str,  # read | write | seed
    success: bool,
    latency_ms: float,
    error: Optional[str] = None,
) -> None:
    """Every JSON data file read/write is logged."""
    record = _build_log_record("json_store", operation, {
        "filename": filename,
        "success": success,
        "latency_ms": round(latency_ms, 2),
        "error": error,
    })
    if success:
        logger.debug(json.dumps(record))
    else:
        logger.error(json.dumps(record))


def log_data_change(
    entity: str,
    action: str,  # create | update | delete
    record_id: str,
    label: str = "",
) -> None:
    """Every successful admin write is logged."""
    record = _build_log_record("data", action, {
        "entity": entity,
        "record_id": record_id,
        "label": label,
    })
    logger.info(json.dumps(record))


def log_error(
    component: str,
    operation: str,
    error: Exception,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Every unexpected error is logged with full context."""
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    record = _build_log_record(component, operation, {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "stack_trace": tb[:2000] if tb else "",
        "context": context or {},
    })
    logger.error(json.dumps(record))
