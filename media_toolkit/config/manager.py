"""
Configuration management for media toolkit.

This module handles loading, validating, and writing configuration YAML files.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from media_toolkit.config.models import RunnerConfig
from media_toolkit.utils import ConfigurationError, get_logger

logger = get_logger(__name__)


class ConfigManager:
    """Manages runner configuration."""

    DEFAULT_CONFIG_LOCATIONS = [
        Path.home() / ".media-toolkit.yaml",
        Path.home() / ".config" / "media-toolkit" / "config.yaml",
        Path.cwd() / ".media-toolkit.yaml",
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file
        """
        self.config_path = config_path
        self._config: Optional[RunnerConfig] = None

    @property
    def config(self) -> RunnerConfig:
        """
        Get current configuration, loading it if necessary.

        Raises:
            ConfigurationError: If configuration cannot be loaded
        """
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self, config_path: Optional[Path] = None) -> RunnerConfig:
        """
        Load configuration from file or create default.

        Args:
            config_path: Optional path to configuration file

        Returns:
            Loaded RunnerConfig

        Raises:
            ConfigurationError: If configuration file is invalid
        """
        path = config_path or self.config_path

        if path:
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            return self._load_from_file(path)

        for default_path in self.DEFAULT_CONFIG_LOCATIONS:
            if default_path.exists():
                logger.info(f"Loading configuration from {default_path}")
                return self._load_from_file(default_path)

        logger.debug("No configuration file found, using defaults")
        return RunnerConfig.create_default()

    def _load_from_file(self, path: Path) -> RunnerConfig:
        """
        Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded RunnerConfig

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}")

        if data is None:
            raise ConfigurationError(f"Configuration file is empty: {path}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

        try:
            config = RunnerConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        logger.debug(f"Successfully loaded configuration from {path}")
        return config

    def save(self, path: Path, config: RunnerConfig) -> None:
        """
        Write a configuration to a YAML file, creating parent directories.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False),
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")

        logger.info(f"Configuration saved to {path}")


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Get global configuration manager instance.

    Args:
        config_path: Optional path to configuration file

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager


def get_config(config_path: Optional[Path] = None) -> RunnerConfig:
    """
    Get runner configuration.

    Args:
        config_path: Optional path to configuration file

    Returns:
        RunnerConfig instance
    """
    return get_config_manager(config_path).config
