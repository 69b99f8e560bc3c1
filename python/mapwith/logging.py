"""Structured logging for mapwith.

Thin structured-field wrappers over the standard ``logging`` module. Every
message goes to the ``"mapwith"`` logger; fields are attached to the record
as ``record.fields`` and appended to the message as ``key=value`` pairs so
they stay visible with a plain formatter.

Example:
    >>> from mapwith import log_info, log_warn
    >>>
    >>> log_info("Profile built", {"profile": "app.dto", "registrations": 12})
    >>>
    >>> log_warn("Override unavailable, using default mapping", {
    ...     "subject": "app.dto.OrderDto",
    ...     "partner": "app.models.Order",
    ... })
"""

from __future__ import annotations

import logging
from typing import Any

from .types import LogContext

LOGGER_NAME = "mapwith"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger(LOGGER_NAME)


def log_error(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log an ERROR level message with structured fields.

    Args:
        message: The log message.
        fields: Optional structured fields for context. Can be a dict
                or a LogContext instance.
    """
    _emit(logging.ERROR, message, fields)


def log_warn(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a WARN level message with structured fields.

    Use this for configuration decisions the host should know about, such
    as an override being replaced by the default registration.
    """
    _emit(logging.WARNING, message, fields)


def log_info(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log an INFO level message with structured fields.

    Use this for pass-level events (profile built, package scanned).
    """
    _emit(logging.INFO, message, fields)


def log_debug(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a DEBUG level message with structured fields.

    Use this for individual resolution decisions.
    """
    _emit(logging.DEBUG, message, fields)


def log_trace(message: str, fields: dict[str, Any] | LogContext | None = None) -> None:
    """Log a TRACE level message with structured fields.

    Use this for very verbose logging, like every registration call.
    """
    _emit(TRACE, message, fields)


def _emit(
    level: int,
    message: str,
    fields: dict[str, Any] | LogContext | None,
) -> None:
    if not logger.isEnabledFor(level):
        return

    fields_dict = _normalize_fields(fields) or {}
    if fields_dict:
        rendered = " ".join(f"{k}={v}" for k, v in fields_dict.items())
        message = f"{message} [{rendered}]"

    logger.log(level, message, extra={"fields": fields_dict})


def _normalize_fields(
    fields: dict[str, Any] | LogContext | None,
) -> dict[str, str] | None:
    """Normalize fields to a dict of strings.

    Args:
        fields: Input fields as dict, LogContext, or None.

    Returns:
        Dict with string values, or None if no fields.
    """
    if fields is None:
        return None

    if isinstance(fields, LogContext):
        # Convert LogContext to dict, excluding None values
        return {k: str(v) for k, v in fields.model_dump().items() if v is not None}

    return {k: str(v) for k, v in fields.items()}


__all__ = [
    "LOGGER_NAME",
    "TRACE",
    "log_error",
    "log_warn",
    "log_info",
    "log_debug",
    "log_trace",
]
