"""
Media Toolkit

Asynchronous execution of external command-line media tools with streamed
output, cooperative cancellation, bulk process termination and log-driven
progress parsing.
"""

__version__ = "0.1.0"

from media_toolkit.executor import (
    OwnedProcess,
    ProcessRegistry,
    ProcessRunner,
    get_process_registry,
    install_shutdown_hook,
    kill_all_processes,
    run_tool,
)
from media_toolkit.models import (
    CounterProgressEvent,
    OutputLine,
    ProgressEvent,
    ProgressReport,
    StreamName,
    ToolResult,
)
from media_toolkit.progress import (
    CounterProgressParser,
    ProgressParser,
    ffmpeg_progress_parser,
    regex_counter_matcher,
    regex_time_matcher,
)
from media_toolkit.utils import (
    ConfigurationError,
    ExecutionCancelledError,
    MediaToolkitError,
    SpawnError,
    ToolExecutionError,
    get_logger,
    setup_logger,
)

__all__ = [
    "__version__",
    # Execution
    "OwnedProcess",
    "ProcessRegistry",
    "ProcessRunner",
    "get_process_registry",
    "install_shutdown_hook",
    "kill_all_processes",
    "run_tool",
    # Models
    "CounterProgressEvent",
    "OutputLine",
    "ProgressEvent",
    "ProgressReport",
    "StreamName",
    "ToolResult",
    # Progress
    "CounterProgressParser",
    "ProgressParser",
    "ffmpeg_progress_parser",
    "regex_counter_matcher",
    "regex_time_matcher",
    # Utils
    "ConfigurationError",
    "ExecutionCancelledError",
    "MediaToolkitError",
    "SpawnError",
    "ToolExecutionError",
    "get_logger",
    "setup_logger",
]
