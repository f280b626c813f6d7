"""Structured JSON logging helpers.

Exceptions are logged as one JSON line (message + stack trace) so log
collectors keep them as a single entry.
"""

import json
import logging
import traceback
from typing import Any

_SEVERITY_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def log_exception_json(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    severity: str = "ERROR",
    **extra_fields: Any
) -> None:
    """
    Log an exception as a single structured JSON entry.

    Args:
        logger: Logger instance to use
        message: Human-readable error message
        exc: The exception to log
        severity: Log severity (ERROR, WARNING, etc.)
        **extra_fields: Additional fields to include in the payload

    Example:
        log_exception_json(
            logger,
            "Failed to record search analytics",
            exc,
            severity="WARNING",
            query="photosynthesis",
        )
    """
    stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    log_entry = {
        "severity": severity,
        "message": f"{message}: {exc!s}",
        "stack_trace": stack_trace,
        "exception": {
            "type": type(exc).__name__,
            "message": str(exc),
        },
        **extra_fields
    }

    logger.log(_SEVERITY_LEVELS.get(severity.upper(), logging.ERROR), json.dumps(log_entry, default=str))
