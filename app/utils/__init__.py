"""
Utility modules for the application.

This package contains reusable utility functions that can be used across
different parts of the application.
"""

from .logging import (
    configure_logging,
    log_operation,
    log_error,
    log_success,
    log_warning,
)

__all__ = [
    "configure_logging",
    "log_operation",
    "log_error",
    "log_success",
    "log_warning",
]
