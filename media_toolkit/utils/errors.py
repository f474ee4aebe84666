"""
Custom exceptions for media toolkit.

This module defines the exception hierarchy used throughout the application.
"""

from typing import Optional


class MediaToolkitError(Exception):
    """Base exception for all media toolkit errors."""

    pass


class ConfigurationError(MediaToolkitError):
    """Configuration is invalid or missing."""

    pass


class SpawnError(MediaToolkitError):
    """The operating system failed to create the external process."""

    def __init__(self, message: str, program: str, cause: Optional[BaseException] = None):
        """
        Initialize spawn error with program details.

        Args:
            message: Error message
            program: Executable that could not be started
            cause: Underlying OS error, if any
        """
        super().__init__(message)
        self.program = program
        self.cause = cause


class ExecutionCancelledError(MediaToolkitError):
    """Invocation was cancelled by the caller before the process finished."""

    def __init__(self, message: str, program: str):
        """
        Initialize cancellation error.

        Args:
            message: Error message
            program: Executable whose invocation was cancelled
        """
        super().__init__(message)
        self.program = program


class ToolExecutionError(MediaToolkitError):
    """External tool ran to completion but exited with a nonzero code."""

    def __init__(self, message: str, exit_code: int, stderr: str | None = None):
        """
        Initialize tool error with exit details.

        Args:
            message: Error message
            exit_code: Exit code reported by the tool
            stderr: Aggregated standard error output
        """
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr
