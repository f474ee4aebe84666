"""
Owned handle for one spawned tool process.
"""

import asyncio
import threading
from typing import Callable, Optional

from ..utils import get_logger

logger = get_logger(__name__)

ExitCallback = Callable[["OwnedProcess"], None]


class OwnedProcess:
    """
    One live or exited OS process with redirected output streams.

    Owned by the ProcessRunner invocation that spawned it; other parties
    (the process registry) only hold references to it for termination.
    """

    def __init__(
        self,
        program: str,
        arguments: str,
        working_directory: str,
        process: asyncio.subprocess.Process,
    ):
        """
        Initialize handle.

        Args:
            program: Executable path
            arguments: Argument string as given by the caller
            working_directory: Directory the process runs in
            process: Spawned asyncio subprocess
        """
        self.program = program
        self.arguments = arguments
        self.working_directory = working_directory
        self._process = process
        self._exited = False
        self._exit_callbacks: list[ExitCallback] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"OwnedProcess(program={self.program!r}, pid={self.pid}, returncode={self.returncode})"

    @property
    def pid(self) -> int:
        """OS process id."""
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        """Exit code, or None while the process is running."""
        return self._process.returncode

    @property
    def stdout(self) -> Optional[asyncio.StreamReader]:
        return self._process.stdout

    @property
    def stderr(self) -> Optional[asyncio.StreamReader]:
        return self._process.stderr

    @property
    def redirects_stdout(self) -> bool:
        return self._process.stdout is not None

    @property
    def redirects_stderr(self) -> bool:
        return self._process.stderr is not None

    @property
    def has_exited(self) -> bool:
        """Check if exit has been observed."""
        return self._exited

    @property
    def is_running(self) -> bool:
        """Check if process is currently running."""
        return not self._exited and self._process.returncode is None

    def add_exit_callback(self, callback: ExitCallback) -> None:
        """
        Run callback once the process exit is observed.

        If exit was already observed the callback runs immediately.

        Args:
            callback: Called with this handle
        """
        with self._lock:
            if not self._exited:
                self._exit_callbacks.append(callback)
                return
        callback(self)

    async def wait(self) -> int:
        """
        Wait for the process to exit and notify exit callbacks.

        Returns:
            Process exit code
        """
        returncode = await self._process.wait()
        self._notify_exited()
        return returncode

    def _notify_exited(self) -> None:
        with self._lock:
            if self._exited:
                return
            self._exited = True
            callbacks, self._exit_callbacks = self._exit_callbacks, []

        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.warning(f"Exit callback failed for pid={self.pid}: {e}")

    def kill(self) -> bool:
        """
        Forcibly terminate the process.

        A process that has already exited is not an error.

        Returns:
            True if a kill signal was sent
        """
        if not self.is_running:
            return False

        try:
            self._process.kill()
        except ProcessLookupError:
            # Exited between the check and the signal
            return False

        logger.debug(f"Sent kill to pid={self.pid}")
        return True
