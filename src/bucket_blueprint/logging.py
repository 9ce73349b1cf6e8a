"""Structured logging configuration for the bucket blueprint."""

import json
import logging
import sys
from typing import Any

from .constants import PROJECT_NAME
from .utils.errors import sanitize_dict


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def log_validation_event(
    logger: logging.Logger,
    source: str,
    phase: str,
    event: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured validation event."""
    log_data = {
        "controller": PROJECT_NAME,
        "source": source,
        "phase": phase,
        "event": event,
        "message": message,
    }
    log_data.update(sanitize_dict(kwargs))
    logger.log(level, json.dumps(log_data, default=str))
