"""
Data models for process execution results.

This module contains dataclasses for the values an invocation produces:
the final tool result, the individual output lines and progress events.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from ..utils import ToolExecutionError, extract_error_message


class StreamName(str, Enum):
    """Output channel a line was read from."""

    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class OutputLine:
    """One newline-delimited record read from a process output stream."""

    stream: StreamName
    text: str

    @property
    def is_stderr(self) -> bool:
        """Check if line came from standard error."""
        return self.stream is StreamName.STDERR


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of an external tool that ran to completion.

    A nonzero exit code is not an error of the runner; callers decide
    what the code means for their tool.
    """

    exit_code: int
    output: str
    error: str

    @property
    def succeeded(self) -> bool:
        """Check if the tool exited with code 0."""
        return self.exit_code == 0

    def check(self) -> "ToolResult":
        """
        Raise if the tool exited with a nonzero code.

        Returns:
            Self, for chaining

        Raises:
            ToolExecutionError: If exit code is nonzero
        """
        if self.exit_code != 0:
            raise ToolExecutionError(
                f"Tool failed with code {self.exit_code}: {extract_error_message(self.error)}",
                exit_code=self.exit_code,
                stderr=self.error,
            )
        return self


@runtime_checkable
class ProgressReport(Protocol):
    """Anything exposing a completion fraction, nominally 0.0 to 1.0."""

    @property
    def progress(self) -> float: ...


@dataclass(frozen=True)
class ProgressEvent:
    """Progress derived from a processed/total duration pair (in seconds)."""

    processed: float
    total: float

    @property
    def progress(self) -> float:
        """
        Completion fraction.

        Not clamped: tools may report positions slightly past the nominal
        duration, which consumers should treat as complete.
        """
        return self.processed / self.total if self.total > 0 else 0.0


@dataclass(frozen=True)
class CounterProgressEvent:
    """Progress derived from a current/total counter (e.g. segments written)."""

    current: int
    total: int

    @property
    def progress(self) -> float:
        """Completion fraction."""
        return self.current / self.total if self.total > 0 else 0.0
