"""Process execution and management."""

from media_toolkit.executor.handle import OwnedProcess
from media_toolkit.executor.registry import (
    ProcessRegistry,
    get_process_registry,
    install_shutdown_hook,
    kill_all_processes,
)
from media_toolkit.executor.subprocess import ProcessRunner, run_tool

__all__ = [
    "OwnedProcess",
    "ProcessRegistry",
    "ProcessRunner",
    "get_process_registry",
    "install_shutdown_hook",
    "kill_all_processes",
    "run_tool",
]
