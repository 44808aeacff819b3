"""
Centralized logging utility for the toggle registry.

Log level follows the deployment environment:
- INFO+ logs for non-production environments
- WARNING+ logs for production environments

Request handlers log with ``log_structured`` so that every line carries the
method, path and toggle key it concerns.
"""
import os
import logging
import json
from enum import Enum
from typing import Any, Dict

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogLevel(Enum):
    """Enum for log levels to use with log_structured function."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _is_prod() -> bool:
    return os.environ.get("ENVIRONMENT", "dev").lower() == "prod"


def _log_level() -> int:
    return logging.WARNING if _is_prod() else logging.INFO


def get_logger(name):
    """
    Get a logger with the specified name, configured for the current environment.

    Args:
        name (str): Name for the logger, typically __name__

    Returns:
        logging.Logger: Configured logger
    """
    log_level = _log_level()
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Only add handler if not already added to avoid duplicate logs
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def log_structured(logger: logging.Logger, level: LogLevel, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context fields.

    In development the context is appended as JSON; in production only the
    message is logged.

    Args:
        logger (logging.Logger): The logger to use
        level (LogLevel): Log level enum value
        message (str): The log message
        **kwargs: Context fields, e.g. method, path, key
    """
    log_method = getattr(logger, level.value)

    if _is_prod():
        log_method(message)
        return

    log_data: Dict[str, Any] = {"message": message, **kwargs}
    try:
        log_method(f"{message} | Context: {json.dumps(log_data, default=str)}")
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to serialize log data: {str(e)}")
        log_method(message)
