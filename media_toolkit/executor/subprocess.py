"""
Async subprocess execution for external command-line tools.

This module runs one external program per invocation and provides:
- Concurrent line-by-line streaming of stdout and stderr
- Per-invocation line and progress notifications
- Cooperative cancellation that kills the process
- Registration of every spawned process for bulk termination
"""

import asyncio
import codecs
import re
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence, Union

from ..config import RunnerConfig, get_config
from ..models import OutputLine, ProgressReport, StreamName, ToolResult
from ..utils import ExecutionCancelledError, SpawnError, get_logger, split_arguments
from .handle import OwnedProcess
from .registry import ProcessRegistry, get_process_registry

logger = get_logger(__name__)

IS_WINDOWS = sys.platform == "win32"

# Tools such as FFmpeg rewrite their status line with a bare carriage return
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

LineHandler = Callable[[OutputLine], None]
ProgressHandler = Callable[[ProgressReport], None]
Arguments = Union[str, Sequence[str], None]


class ProgressObserver(Protocol):
    """Per-invocation progress state machine fed with output lines."""

    def reset(self) -> None: ...

    def observe(self, line: str) -> Optional[ProgressReport]: ...


class _LineSplitter:
    """Incrementally decodes a byte stream and splits it into lines."""

    def __init__(self, encoding: str):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        # Last break was a bare \r; a leading \n in the next read belongs to it
        self._pending_cr = False

    def feed(self, data: bytes) -> list[str]:
        self._buffer += self._decoder.decode(data)
        return self._drain(final=False)

    def close(self) -> list[str]:
        self._buffer += self._decoder.decode(b"", final=True)
        return self._drain(final=True)

    def _drain(self, final: bool) -> list[str]:
        text = self._buffer
        if self._pending_cr and text:
            if text.startswith("\n"):
                text = text[1:]
            self._pending_cr = False

        lines = _LINE_BREAK.split(text)
        self._buffer = lines.pop()
        if text.endswith("\r"):
            self._pending_cr = True

        if final and self._buffer:
            lines.append(self._buffer)
            self._buffer = ""
        return lines


class _LineDispatcher:
    """Single notification point for the lines of one invocation."""

    def __init__(
        self,
        tool_name: str,
        handlers: Sequence[LineHandler],
        progress_parser: Optional[ProgressObserver],
        on_progress: Optional[ProgressHandler],
        log_lines: bool,
    ):
        self.tool_name = tool_name
        self.handlers = list(handlers)
        self.progress_parser = progress_parser
        self.on_progress = on_progress
        self.log_lines = log_lines
        self.active = True

    def dispatch(self, line: OutputLine) -> None:
        # No notifications once the invocation has resolved
        if not self.active:
            return

        if self.log_lines:
            logger.debug(f"[{self.tool_name}:{line.stream.value}] {line.text}")

        if self.progress_parser is not None:
            try:
                event = self.progress_parser.observe(line.text)
                if event is not None and self.on_progress is not None:
                    self.on_progress(event)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        for handler in self.handlers:
            try:
                handler(line)
            except Exception as e:
                logger.warning(f"Line handler failed: {e}")


class ProcessRunner:
    """
    Runs an external tool and collects its output asynchronously.

    Each call to execute() is an independent invocation: it spawns one
    process, streams both output channels to the given handlers, and
    resolves exactly once with a ToolResult, ExecutionCancelledError or
    SpawnError.

    Example:
        runner = ProcessRunner("/usr/bin/ffmpeg")
        result = await runner.execute(
            "-y -i input.mp4 output.mkv",
            progress_parser=ffmpeg_progress_parser(),
            on_progress=lambda event: print(f"{event.progress:.0%}"),
        )
    """

    def __init__(
        self,
        executable_path: Union[str, Path],
        registry: Optional[ProcessRegistry] = None,
        config: Optional[RunnerConfig] = None,
        tool_name: Optional[str] = None,
    ):
        """
        Initialize runner.

        Args:
            executable_path: Resolved path to the tool executable
            registry: Registry to track processes in (process-wide if None)
            config: Runner configuration (loaded from config files if None)
            tool_name: Name used in logs (executable stem if None)
        """
        self.executable_path = str(executable_path)
        self.tool_name = tool_name or Path(self.executable_path).stem
        self.registry = registry if registry is not None else get_process_registry()
        self.config = config if config is not None else get_config()

    async def execute(
        self,
        arguments: Arguments = "",
        cancel_event: Optional[asyncio.Event] = None,
        working_directory: Optional[Union[str, Path]] = None,
        *,
        on_line: Optional[Union[LineHandler, Sequence[LineHandler]]] = None,
        progress_parser: Optional[ProgressObserver] = None,
        on_progress: Optional[ProgressHandler] = None,
    ) -> ToolResult:
        """
        Run the tool to completion.

        Args:
            arguments: Pre-formatted argument string, passed through without quoting
            cancel_event: Setting this event kills the process and cancels the call
            working_directory: Directory to run in (config default or temp dir if None)
            on_line: Handler(s) called with every output line as it arrives
            progress_parser: Progress state machine, reset before the process starts
            on_progress: Called with every event the progress parser produces

        Returns:
            ToolResult with exit code and aggregated output (nonzero codes included)

        Raises:
            SpawnError: If the argument string is malformed or the process could not be started
            ExecutionCancelledError: If cancel_event was set before the process finished
            asyncio.CancelledError: If the awaiting task was cancelled (process is killed)
        """
        cwd = self._resolve_working_directory(working_directory)
        try:
            argv = [self.executable_path, *split_arguments(arguments)]
        except ValueError as e:
            logger.error(f"Cannot parse arguments for {self.tool_name}: {e}")
            raise SpawnError(
                f"Invalid argument string for {self.executable_path}: {e}",
                program=self.executable_path,
                cause=e,
            ) from e

        if progress_parser is not None:
            progress_parser.reset()

        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"{self.tool_name} cancelled before start")
            raise ExecutionCancelledError(
                f"{self.tool_name} was cancelled", program=self.executable_path
            )

        handle = await self._spawn(argv, arguments, cwd)
        self.registry.register(handle)

        if callable(on_line):
            handlers: Sequence[LineHandler] = [on_line]
        else:
            handlers = on_line or []
        dispatcher = _LineDispatcher(
            self.tool_name,
            handlers,
            progress_parser,
            on_progress,
            self.config.log_output_lines,
        )

        outcome: asyncio.Future[ToolResult] = asyncio.get_running_loop().create_future()
        pump = asyncio.create_task(self._pump(handle, dispatcher, outcome))
        watcher: Optional[asyncio.Task[None]] = None
        if cancel_event is not None:
            watcher = asyncio.create_task(self._watch_cancel(handle, cancel_event, outcome))

        try:
            return await outcome
        except asyncio.CancelledError:
            logger.info(f"{self.tool_name} task cancelled, killing pid={handle.pid}")
            handle.kill()
            raise
        finally:
            dispatcher.active = False
            if watcher is not None:
                watcher.cancel()
            await self._reap(handle, pump)

    def _resolve_working_directory(self, working_directory: Optional[Union[str, Path]]) -> str:
        if working_directory is not None:
            return str(working_directory)
        if self.config.working_directory is not None:
            return str(self.config.working_directory)
        return tempfile.gettempdir()

    def _build_subprocess_kwargs(self) -> dict:
        kwargs: dict = {}
        if IS_WINDOWS and self.config.hide_console_window:
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        return kwargs

    async def _spawn(self, argv: list[str], arguments: Arguments, cwd: str) -> OwnedProcess:
        """
        Start the process with both output streams redirected.

        Raises:
            SpawnError: If the OS refuses to create the process
        """
        logger.debug(f"Running {self.tool_name}: {' '.join(argv)} (cwd={cwd})")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                **self._build_subprocess_kwargs(),
            )
        except (OSError, ValueError) as e:
            logger.error(f"Failed to start {self.executable_path}: {e}")
            raise SpawnError(
                f"Failed to start {self.executable_path}: {e}",
                program=self.executable_path,
                cause=e,
            ) from e

        if isinstance(arguments, str) or arguments is None:
            argument_string = arguments or ""
        else:
            argument_string = subprocess.list2cmdline(list(arguments))

        handle = OwnedProcess(self.executable_path, argument_string, cwd, process)
        logger.debug(f"Started {self.tool_name} pid={handle.pid}")
        return handle

    async def _pump(
        self,
        handle: OwnedProcess,
        dispatcher: _LineDispatcher,
        outcome: "asyncio.Future[ToolResult]",
    ) -> None:
        """Drain both streams, wait for exit, then complete the outcome."""
        try:
            stdout_lines, stderr_lines, returncode = await asyncio.gather(
                self._read_stream(handle.stdout, StreamName.STDOUT, dispatcher),
                self._read_stream(handle.stderr, StreamName.STDERR, dispatcher),
                handle.wait(),
            )
        except Exception as e:
            logger.error(f"{self.tool_name} output collection failed: {e}")
            handle.kill()
            if not outcome.done():
                outcome.set_exception(e)
            return

        logger.debug(f"{self.tool_name} pid={handle.pid} exited with code {returncode}")

        if not outcome.done():
            outcome.set_result(
                ToolResult(
                    exit_code=returncode,
                    output="".join(f"{line}\n" for line in stdout_lines),
                    error="".join(f"{line}\n" for line in stderr_lines),
                )
            )

    async def _read_stream(
        self,
        stream: Optional[asyncio.StreamReader],
        name: StreamName,
        dispatcher: _LineDispatcher,
    ) -> list[str]:
        """
        Read a stream to EOF, dispatching each line as it completes.

        Returns:
            All lines read, in order
        """
        if stream is None:
            return []

        splitter = _LineSplitter(self.config.encoding)
        lines: list[str] = []

        while True:
            chunk = await stream.read(self.config.read_chunk_size)
            texts = splitter.feed(chunk) if chunk else splitter.close()
            for text in texts:
                lines.append(text)
                dispatcher.dispatch(OutputLine(stream=name, text=text))
            if not chunk:
                return lines

    async def _watch_cancel(
        self,
        handle: OwnedProcess,
        cancel_event: asyncio.Event,
        outcome: "asyncio.Future[ToolResult]",
    ) -> None:
        await cancel_event.wait()
        if outcome.done():
            return

        logger.info(f"Cancelling {self.tool_name} pid={handle.pid}")
        handle.kill()
        outcome.set_exception(
            ExecutionCancelledError(f"{self.tool_name} was cancelled", program=self.executable_path)
        )

    async def _reap(self, handle: OwnedProcess, pump: "asyncio.Task[None]") -> None:
        """Make sure the process is gone and its exit has been observed."""
        if pump.done():
            return

        handle.kill()
        try:
            await asyncio.wait_for(asyncio.shield(pump), timeout=self.config.kill_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.tool_name} pid={handle.pid} did not exit within {self.config.kill_timeout}s"
            )
            pump.cancel()
            self.registry.unregister(handle)


async def run_tool(
    executable_path: Union[str, Path],
    arguments: Arguments = "",
    cancel_event: Optional[asyncio.Event] = None,
    working_directory: Optional[Union[str, Path]] = None,
    **kwargs,
) -> ToolResult:
    """
    Convenience function to run a tool once.

    Args:
        executable_path: Resolved path to the tool executable
        arguments: Pre-formatted argument string
        cancel_event: Optional cancellation signal
        working_directory: Directory to run in
        **kwargs: on_line, progress_parser and on_progress, as for ProcessRunner.execute

    Returns:
        ToolResult of the invocation
    """
    runner = ProcessRunner(executable_path)
    return await runner.execute(arguments, cancel_event, working_directory, **kwargs)
