"""Data models for media toolkit."""

from media_toolkit.models.results import (
    CounterProgressEvent,
    OutputLine,
    ProgressEvent,
    ProgressReport,
    StreamName,
    ToolResult,
)

__all__ = [
    "CounterProgressEvent",
    "OutputLine",
    "ProgressEvent",
    "ProgressReport",
    "StreamName",
    "ToolResult",
]
