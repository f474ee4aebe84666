"""Utility functions and helpers."""

from media_toolkit.utils.errors import (
    ConfigurationError,
    ExecutionCancelledError,
    MediaToolkitError,
    SpawnError,
    ToolExecutionError,
)
from media_toolkit.utils.helpers import (
    extract_error_message,
    format_duration,
    parse_time_to_seconds,
    split_arguments,
)
from media_toolkit.utils.logger import get_logger, setup_logger

__all__ = [
    # Errors
    "ConfigurationError",
    "ExecutionCancelledError",
    "MediaToolkitError",
    "SpawnError",
    "ToolExecutionError",
    # Helpers
    "extract_error_message",
    "format_duration",
    "parse_time_to_seconds",
    "split_arguments",
    # Logging
    "get_logger",
    "setup_logger",
]
