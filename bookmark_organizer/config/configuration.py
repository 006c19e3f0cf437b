"""
Configuration management for the Bookmark Organizer.

Wraps the Pydantic-based system with the accessors the rest of the
application uses.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from .pydantic_config import (
    ConfigurationManager,
    OrganizerConfig,
    RemoteConfig,
    format_config_error,
)
from bookmark_organizer.utils.error_handler import ConfigurationError


class Configuration:
    """
    Application configuration.

    Loads configuration through ``ConfigurationManager`` and exposes the
    values other components need.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[OrganizerConfig] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to user configuration file (TOML/JSON)
            config: Already validated configuration model to wrap

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        try:
            self._manager = ConfigurationManager(config_path, config=config)
        except FileNotFoundError as e:
            raise ConfigurationError(format_config_error(e)) from e
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self._config = self._manager.config

    @property
    def config(self) -> OrganizerConfig:
        """Get the underlying Pydantic configuration."""
        return self._config

    @property
    def storage(self):
        return self._config.storage

    @property
    def remote(self) -> RemoteConfig:
        return self._config.remote

    @property
    def network(self):
        return self._config.network

    @property
    def logging(self):
        return self._config.logging

    def update_from_args(self, args: Dict[str, Any]) -> None:
        """
        Update configuration from command-line arguments.

        Args:
            args: Dictionary of validated arguments
        """
        try:
            self._manager.update_from_cli_args(args)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self._config = self._manager.config

    def get_data_dir(self) -> Path:
        """Get the local data directory."""
        return self._config.storage.data_dir

    def has_remote_repository(self) -> bool:
        """Check whether a remote repository is configured."""
        return self._config.remote.is_configured

    def get_remote_description(self) -> str:
        """Short ``owner/repo:path`` label for messages."""
        if not self.has_remote_repository():
            return "(no remote repository configured)"
        remote = self._config.remote
        label = f"{remote.owner}/{remote.repo}:{remote.file_path}"
        if remote.branch:
            label += f"@{remote.branch}"
        return label

    @staticmethod
    def create_sample_config(output_path: Path, format: str = "toml") -> None:
        """Write a sample configuration file."""
        ConfigurationManager.create_sample_config(output_path, format)
