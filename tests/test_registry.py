"""
Tests for the process registry.
"""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import fake_tool_args, wait_until
from media_toolkit.executor import (
    OwnedProcess,
    ProcessRegistry,
    get_process_registry,
    install_shutdown_hook,
)


def make_handle(returncode=None, kill_side_effect=None) -> OwnedProcess:
    """Create a handle around a mocked asyncio process."""
    process = MagicMock()
    process.pid = 4242
    process.returncode = returncode
    process.kill = MagicMock(side_effect=kill_side_effect)
    process.wait = AsyncMock(return_value=0)
    return OwnedProcess("/usr/bin/tool", "-v", "/tmp", process)


class TestOwnedProcess:
    """Test the process handle."""

    def test_kill_running(self):
        """Test kill sends a signal to a running process."""
        handle = make_handle()
        assert handle.is_running
        assert handle.kill() is True
        handle._process.kill.assert_called_once()

    def test_kill_exited(self):
        """Test kill is a no-op once the process has exited."""
        handle = make_handle(returncode=0)
        assert handle.kill() is False
        handle._process.kill.assert_not_called()

    def test_kill_race_with_exit(self):
        """Test ProcessLookupError from a just-exited process is ignored."""
        handle = make_handle(kill_side_effect=ProcessLookupError())
        assert handle.kill() is False

    @pytest.mark.asyncio
    async def test_exit_callbacks_fire_once(self):
        """Test exit callbacks run once when exit is observed."""
        handle = make_handle()
        callback = MagicMock()
        handle.add_exit_callback(callback)

        handle._process.returncode = 0
        assert await handle.wait() == 0
        await handle.wait()

        callback.assert_called_once_with(handle)
        assert handle.has_exited
        assert not handle.is_running

    @pytest.mark.asyncio
    async def test_callback_after_exit_runs_immediately(self):
        """Test a callback added after exit runs right away."""
        handle = make_handle()
        await handle.wait()

        callback = MagicMock()
        handle.add_exit_callback(callback)
        callback.assert_called_once_with(handle)

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_block_others(self):
        """Test one failing exit callback does not stop the rest."""
        handle = make_handle()
        second = MagicMock()
        handle.add_exit_callback(MagicMock(side_effect=RuntimeError("boom")))
        handle.add_exit_callback(second)

        await handle.wait()

        second.assert_called_once_with(handle)


class TestProcessRegistry:
    """Test registration and bulk termination."""

    def test_register(self, registry):
        """Test a registered handle is tracked."""
        handle = make_handle()
        registry.register(handle)

        assert len(registry) == 1
        assert handle in registry
        assert registry.tracked == [handle]

    @pytest.mark.asyncio
    async def test_removed_on_exit(self, registry):
        """Test a handle is removed once its exit is observed."""
        handle = make_handle()
        registry.register(handle)

        await handle.wait()

        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_register_already_exited(self, registry):
        """Test registering a handle whose exit was already observed leaves no entry."""
        handle = make_handle()
        await handle.wait()

        registry.register(handle)

        assert len(registry) == 0

    def test_kill_all(self, registry):
        """Test kill_all kills running members and clears the registry."""
        running = make_handle()
        exited = make_handle(returncode=1)
        registry.register(running)
        registry.register(exited)

        registry.kill_all()

        running._process.kill.assert_called_once()
        exited._process.kill.assert_not_called()
        assert len(registry) == 0

    def test_kill_all_swallows_failures(self, registry):
        """Test one unkillable process does not stop the others."""
        denied = make_handle(kill_side_effect=PermissionError("access denied"))
        other = make_handle()
        registry.register(denied)
        registry.register(other)

        registry.kill_all()

        denied._process.kill.assert_called_once()
        other._process.kill.assert_called_once()
        assert len(registry) == 0

    def test_kill_all_twice(self, registry):
        """Test kill_all is idempotent."""
        handle = make_handle()
        registry.register(handle)

        registry.kill_all()
        registry.kill_all()

        handle._process.kill.assert_called_once()
        assert len(registry) == 0

    def test_kill_all_empty(self, registry):
        """Test kill_all on an empty registry does nothing."""
        registry.kill_all()
        assert len(registry) == 0

    def test_unregister_unknown(self, registry):
        """Test unregistering an unknown handle is ignored."""
        registry.unregister(make_handle())
        assert len(registry) == 0

    def test_concurrent_register_and_kill_all(self, registry):
        """Test concurrent registration and bulk kills neither crash nor leak."""
        errors: list[BaseException] = []
        handles: list[OwnedProcess] = []
        handles_lock = threading.Lock()

        def register_many() -> None:
            try:
                for _ in range(200):
                    handle = make_handle()
                    with handles_lock:
                        handles.append(handle)
                    registry.register(handle)
            except BaseException as e:
                errors.append(e)

        def kill_repeatedly() -> None:
            try:
                for _ in range(50):
                    registry.kill_all()
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=register_many) for _ in range(4)]
        threads.append(threading.Thread(target=kill_repeatedly))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        registry.kill_all()

        assert errors == []
        assert len(registry) == 0
        assert all(handle._process.kill.call_count <= 1 for handle in handles)

    def test_install_shutdown_hook_once(self, registry):
        """Test the atexit hook is installed only once per registry."""
        with patch("media_toolkit.executor.registry.atexit.register") as register:
            install_shutdown_hook(registry)
            install_shutdown_hook(registry)

        register.assert_called_once_with(registry.kill_all)

    def test_global_registry(self):
        """Test the process-wide registry is a singleton."""
        assert get_process_registry() is get_process_registry()


class TestRegistryWithRealProcesses:
    """Test bulk termination of real running processes."""

    @pytest.mark.asyncio
    async def test_kill_all_terminates_running_tools(self, runner, registry):
        """Test kill_all reaches every in-flight process."""
        tasks = [
            asyncio.create_task(runner.execute(fake_tool_args("--sleep 30")))
            for _ in range(3)
        ]
        await wait_until(lambda: len(registry) == 3)
        handles = registry.tracked

        registry.kill_all()
        assert len(registry) == 0

        results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=10)

        assert all(result.exit_code != 0 for result in results)
        assert all(handle.has_exited for handle in handles)
        assert len(registry) == 0

        registry.kill_all()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_kill_all_from_another_thread(self, runner, registry):
        """Test kill_all can be called from a non-event-loop thread."""
        task = asyncio.create_task(runner.execute(fake_tool_args("--sleep 30")))
        await wait_until(lambda: len(registry) == 1)

        await asyncio.to_thread(registry.kill_all)

        result = await asyncio.wait_for(task, timeout=10)
        assert result.exit_code != 0
        assert len(registry) == 0
