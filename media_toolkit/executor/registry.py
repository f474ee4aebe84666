"""
Process-wide registry of running tool processes.

Every process spawned by a ProcessRunner is registered here until its exit
is observed, so a host application can terminate all of them at once,
for example on shutdown.
"""

import atexit
import threading
from typing import Optional

from ..utils import get_logger
from .handle import OwnedProcess

logger = get_logger(__name__)


class ProcessRegistry:
    """
    Thread-safe set of live process handles supporting bulk termination.

    All membership reads and writes are serialized by a single lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tracked: set[OwnedProcess] = set()
        self._shutdown_hook_installed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracked)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._tracked

    @property
    def tracked(self) -> list[OwnedProcess]:
        """Snapshot of the currently tracked handles."""
        with self._lock:
            return list(self._tracked)

    def register(self, handle: OwnedProcess) -> None:
        """
        Track a live process until its exit is observed.

        Removal happens automatically, whether the process exits on its
        own or is killed by kill_all().

        Args:
            handle: Freshly spawned process handle
        """
        with self._lock:
            self._tracked.add(handle)

        handle.add_exit_callback(self.unregister)

    def unregister(self, handle: OwnedProcess) -> None:
        """Stop tracking a process. Unknown handles are ignored."""
        with self._lock:
            self._tracked.discard(handle)

    def kill_all(self) -> None:
        """
        Forcibly terminate every tracked process and clear the registry.

        Failures for individual processes (already exited, access denied)
        are logged and skipped so the remaining processes are still killed.
        """
        with self._lock:
            snapshot = list(self._tracked)
            killed = 0

            for handle in snapshot:
                try:
                    if handle.kill():
                        killed += 1
                except Exception as e:
                    logger.debug(f"Could not kill {handle!r}: {e}")

            self._tracked.clear()

        if snapshot:
            logger.info(f"Killed {killed} of {len(snapshot)} tracked processes")

    def install_shutdown_hook(self) -> None:
        """Kill all tracked processes when the interpreter exits."""
        with self._lock:
            if self._shutdown_hook_installed:
                return
            self._shutdown_hook_installed = True

        atexit.register(self.kill_all)


# Global registry instance
_process_registry: Optional[ProcessRegistry] = None
_registry_lock = threading.Lock()


def get_process_registry() -> ProcessRegistry:
    """
    Get the process-wide registry instance.

    Returns:
        ProcessRegistry shared by all runners that are not given their own
    """
    global _process_registry

    with _registry_lock:
        if _process_registry is None:
            _process_registry = ProcessRegistry()

    return _process_registry


def kill_all_processes() -> None:
    """Kill every process tracked by the process-wide registry."""
    get_process_registry().kill_all()


def install_shutdown_hook(registry: Optional[ProcessRegistry] = None) -> None:
    """
    Register bulk termination to run at interpreter exit.

    Args:
        registry: Registry to drain (process-wide registry if None)
    """
    (registry if registry is not None else get_process_registry()).install_shutdown_hook()
