"""Configuration management for media toolkit."""

from media_toolkit.config.manager import (
    ConfigManager,
    get_config,
    get_config_manager,
)
from media_toolkit.config.models import RunnerConfig

__all__ = [
    "ConfigManager",
    "RunnerConfig",
    "get_config",
    "get_config_manager",
]
