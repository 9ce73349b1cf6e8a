"""Utility functions for the bucket blueprint."""

from .errors import sanitize_dict, sanitize_error_message, sanitize_exception

__all__ = [
    "sanitize_dict",
    "sanitize_error_message",
    "sanitize_exception",
]
