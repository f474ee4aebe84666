"""
Shared fixtures for media toolkit tests.
"""

import asyncio
import shlex
import sys
from pathlib import Path
from typing import Callable

import pytest

from media_toolkit.config import RunnerConfig
from media_toolkit.executor import ProcessRegistry, ProcessRunner

FAKE_TOOL = Path(__file__).parent / "fixtures" / "fake_tool.py"


def fake_tool_args(*options: str) -> str:
    """Build an argument string running the fake tool with the given options."""
    return " ".join([shlex.quote(str(FAKE_TOOL)), *options])


async def wait_until(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    """Poll predicate until it holds or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def registry() -> ProcessRegistry:
    """Isolated process registry."""
    return ProcessRegistry()


@pytest.fixture
def config() -> RunnerConfig:
    """Runner configuration with a short reap timeout."""
    return RunnerConfig(kill_timeout=5.0)


@pytest.fixture
def runner(registry: ProcessRegistry, config: RunnerConfig) -> ProcessRunner:
    """Runner executing the current Python interpreter."""
    return ProcessRunner(sys.executable, registry=registry, config=config, tool_name="fake")
