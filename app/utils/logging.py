"""
Logging utilities for consistent log formatting across the application.

This module provides the logging setup used at startup and standardized
helpers that any component can call so transcript acquisition, refinement and
article generation all log in the same shape.
"""

import logging
from typing import Optional, Dict, Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging with console output and an optional log file.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG")
        log_file: Optional path of a file that should receive the same records
    """
    handlers: list = [logging.StreamHandler()]  # Console output
    if log_file:
        handlers.append(logging.FileHandler(log_file))  # File output

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def log_operation(
    logger: logging.Logger, operation: str, details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log operations with consistent formatting.

    Args:
        logger: The logger instance to use for logging
        operation: Name of the operation being performed
        details: Optional dictionary containing additional details about the operation

    Example:
        log_operation(logger, "fetch_transcript", {"video_id": "dQw4w9WgXcQ", "language": "en"})
    """
    log_message = f"Operation: {operation}"
    if details:
        log_message += f" - Details: {details}"
    logger.info(log_message)


def log_error(
    logger: logging.Logger,
    operation: str,
    error: Exception,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log errors with consistent formatting.

    Args:
        logger: The logger instance to use for logging
        operation: Name of the operation that failed
        error: The exception that occurred
        details: Optional dictionary containing additional details about the operation

    Example:
        log_error(logger, "compose_article", e, {"video_id": "dQw4w9WgXcQ"})
    """
    log_message = f"Operation failed: {operation} - Error: {str(error)}"
    if details:
        log_message += f" - Details: {details}"
    logger.error(log_message)


def log_success(
    logger: logging.Logger, operation: str, details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log successful operations with consistent formatting.

    Example:
        log_success(logger, "acquire_transcript", {"video_id": "dQw4w9WgXcQ", "segments": 42})
    """
    log_message = f"Success: {operation}"
    if details:
        log_message += f" - Details: {details}"
    logger.info(log_message)


def log_warning(
    logger: logging.Logger,
    operation: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log warnings with consistent formatting.

    Example:
        log_warning(logger, "refine_batch", "Response contained no JSON array", {"batch": 3})
    """
    log_message = f"Warning in {operation}: {message}"
    if details:
        log_message += f" - Details: {details}"
    logger.warning(log_message)
