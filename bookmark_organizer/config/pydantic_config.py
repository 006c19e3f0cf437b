"""
Pydantic-based configuration system for Bookmark Organizer.

Configuration is read from a TOML or JSON file, completed from environment
variables and validated by the models below.
"""

import json
import os
import sys
import warnings
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import toml
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

DEFAULT_CONFIG_FILENAMES = ("bookmark_organizer.toml", "bookmark_organizer.json")


class StorageConfig(BaseModel):
    """Local snapshot storage settings."""

    data_dir: Path = Field(
        default=Path(".bookmark_organizer"),
        description="Directory holding the stored tree, credential and logs",
        json_schema_extra={
            "error_msg": "Data directory must be a valid directory path. "
            "Will be created if it doesn't exist."
        },
    )
    tree_key: str = Field(
        default="linksData",
        min_length=1,
        pattern=r"^[A-Za-z0-9_.\-]+$",
        description="Storage key of the bookmark tree snapshot",
    )
    credential_key: str = Field(
        default="github_token",
        min_length=1,
        pattern=r"^[A-Za-z0-9_.\-]+$",
        description="Storage key of the remote credential",
    )

    @field_validator("data_dir", mode="before")
    @classmethod
    def validate_data_dir(cls, v):
        """Expand ``~`` and environment variables in the data directory."""
        if isinstance(v, str):
            v = Path(os.path.expandvars(os.path.expanduser(v)))
        return v

    @model_validator(mode="after")
    def validate_distinct_keys(self):
        """The tree and the credential must not share a storage key."""
        if self.tree_key == self.credential_key:
            raise ValueError("tree_key and credential_key must be different")
        return self


class RemoteConfig(BaseModel):
    """Remote bookmark file location (GitHub contents API)."""

    owner: Optional[str] = Field(
        default=None,
        description="Repository owner",
        json_schema_extra={
            "error_msg": "Owner must be a GitHub user or organization name."
        },
    )
    repo: Optional[str] = Field(
        default=None,
        description="Repository name",
    )
    file_path: str = Field(
        default="src/data/links.json",
        min_length=1,
        description="Path of the bookmark file inside the repository",
    )
    branch: Optional[str] = Field(
        default=None,
        description="Branch to read and commit to (repository default if unset)",
    )
    api_base: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )

    @field_validator("owner", "repo", "branch", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, v):
        """Store the file path without leading or trailing slashes."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("file_path must name a file in the repository")
        return v

    @field_validator("api_base")
    @classmethod
    def validate_api_base(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base must be an http(s) URL")
        if v.startswith("http://"):
            warnings.warn(
                f"api_base ({v}) is not HTTPS; your token will be sent in clear text.",
                UserWarning,
            )
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_repository_pair(self):
        """Owner and repository are only meaningful together."""
        if bool(self.owner) != bool(self.repo):
            raise ValueError("remote owner and repo must be configured together")
        return self

    @property
    def is_configured(self) -> bool:
        return bool(self.owner and self.repo)


class NetworkConfig(BaseModel):
    """Network settings for the remote API."""

    timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Request timeout in seconds",
        json_schema_extra={
            "error_msg": "Timeout must be between 5 and 300 seconds. "
            "Recommended: 30 seconds."
        },
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Retries for failed reads (writes are never retried)",
    )
    retry_delay: float = Field(
        default=0.5,
        ge=0.0,
        le=30.0,
        description="Base delay between read retries in seconds",
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    log_to_file: bool = Field(
        default=True,
        description="Write a timestamped log file under <data_dir>/logs",
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class OrganizerConfig(BaseModel):
    """Main configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigurationManager:
    """Manages loading and validation of configuration from multiple sources."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[OrganizerConfig] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file (TOML or JSON)
            config: Already validated configuration; skips file loading
        """
        self._config: Optional[OrganizerConfig] = config
        if config is None:
            self._load_configuration(config_path)

    def _get_default_config_paths(self) -> list[Path]:
        """Get list of default configuration file paths to try."""
        if getattr(sys, "frozen", False):
            # Running as PyInstaller executable
            app_dir = Path(sys.executable).parent
        else:
            app_dir = Path(__file__).parent

        cwd = Path.cwd()
        return [cwd / name for name in DEFAULT_CONFIG_FILENAMES] + [
            app_dir / "user_config.toml",
            app_dir / "user_config.json",
        ]

    def _load_configuration(self, config_path: Optional[Path] = None) -> None:
        """Load configuration from file or use defaults."""
        config_data: Dict[str, Any] = {}

        if config_path:
            config_data = self._load_config_file(Path(config_path))
        else:
            for path in self._get_default_config_paths():
                if path.exists():
                    config_data = self._load_config_file(path)
                    break

        self._load_remote_from_env(config_data)

        try:
            self._config = OrganizerConfig(**config_data)
        except ValidationError as e:
            raise ValueError(format_config_error(e))

    def _load_config_file(self, config_path: Path) -> Dict:
        """Load configuration from TOML or JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(
                2, f"Configuration file not found: {config_path}", str(config_path)
            )

        try:
            if config_path.suffix.lower() == ".toml":
                return toml.load(config_path)
            elif config_path.suffix.lower() == ".json":
                with open(config_path, "r", encoding="utf-8") as f:
                    return json.load(f)
            else:
                raise ValueError(
                    f"Unsupported configuration file format: {config_path.suffix}"
                )
        except (toml.TomlDecodeError, json.JSONDecodeError, OSError, ValueError) as e:
            raise ValueError(f"Failed to load configuration from {config_path}: {e}")

    def _load_remote_from_env(self, config_data: Dict) -> None:
        """Fill the remote repository from GITHUB_REPOSITORY (owner/repo)."""
        remote = config_data.setdefault("remote", {})
        if remote.get("owner") or remote.get("repo"):
            return

        repository = os.getenv("GITHUB_REPOSITORY", "").strip()
        if repository.count("/") == 1:
            owner, repo = repository.split("/")
            if owner and repo:
                remote["owner"] = owner
                remote["repo"] = repo

    def update_from_cli_args(self, args: Dict) -> None:
        """Update configuration from command-line arguments."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")

        config_dict = self._config.model_dump()

        if args.get("data_dir"):
            config_dict["storage"]["data_dir"] = args["data_dir"]

        if args.get("verbose"):
            config_dict["logging"]["level"] = "DEBUG"

        try:
            self._config = OrganizerConfig(**config_dict)
        except ValidationError as e:
            raise ValueError(format_config_error(e))

    @property
    def config(self) -> OrganizerConfig:
        """Get the current configuration."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")
        return self._config

    @staticmethod
    def create_sample_config(output_path: Path, format: str = "toml") -> None:
        """Create a sample configuration file."""
        sample_config = {
            "storage": {
                "data_dir": ".bookmark_organizer",
                "tree_key": "linksData",
                "credential_key": "github_token",
            },
            "remote": {
                "owner": "your-github-user",
                "repo": "links",
                "file_path": "src/data/links.json",
                "api_base": "https://api.github.com",
            },
            "network": {"timeout": 30, "max_retries": 2, "retry_delay": 0.5},
            "logging": {"level": "INFO", "log_to_file": True},
        }

        if format.lower() == "toml":
            with open(output_path, "w", encoding="utf-8") as f:
                toml.dump(sample_config, f)
        elif format.lower() == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(sample_config, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")


class ConfigurationErrorFormatter:
    """Formats Pydantic validation errors into user-friendly messages."""

    @staticmethod
    def format_validation_error(error: ValidationError) -> str:
        """
        Convert Pydantic ValidationError into a user-friendly error message.

        Args:
            error: Pydantic ValidationError instance

        Returns:
            Formatted error message with helpful guidance
        """
        error_messages = []

        for error_detail in error.errors():
            location = ConfigurationErrorFormatter._format_error_location(
                error_detail["loc"]
            )
            error_messages.append(
                ConfigurationErrorFormatter._format_by_error_type(
                    location,
                    error_detail["type"],
                    error_detail,
                    error_detail.get("input", "N/A"),
                )
            )

        header = "Configuration Validation Failed:\n"
        separator = "-" * 60 + "\n"
        footer = (
            "\n\nTips:\n"
            "- Check the configuration file format (TOML or JSON)\n"
            "- Configure remote owner and repo together\n"
            "- Use 'bookmark-organizer create-config' to generate a sample file"
        )

        return header + separator + "\n".join(error_messages) + footer

    @staticmethod
    def _format_error_location(location: tuple) -> str:
        """Format the error location path."""
        if not location:
            return "Configuration"

        path_parts = []
        for part in location:
            if isinstance(part, str):
                path_parts.append(part)
            else:
                path_parts.append(f"[{part}]")

        return " -> ".join(path_parts)

    @staticmethod
    def _format_by_error_type(
        location: str, error_type: str, error_detail: dict, input_value
    ) -> str:
        """Format error message based on Pydantic error type."""
        if error_type == "missing":
            return f"x {location}: Required field is missing"

        elif error_type == "value_error":
            msg = error_detail.get("msg", "Invalid value")
            return f"x {location}: {msg}"

        elif error_type in (
            "greater_than_equal",
            "less_than_equal",
            "greater_than",
            "less_than",
        ):
            ctx = error_detail.get("ctx", {})
            limit = next(iter(ctx.values()), "limit")
            operator = {
                "greater_than_equal": ">=",
                "less_than_equal": "<=",
                "greater_than": ">",
                "less_than": "<",
            }[error_type]
            return f"x {location}: Value must be {operator} {limit} (got: {input_value})"

        elif error_type == "literal_error":
            expected = error_detail.get("ctx", {}).get("expected", "valid option")
            return f"x {location}: Must be one of {expected} (got: {input_value})"

        elif error_type == "string_pattern_mismatch":
            return (
                f"x {location}: Only letters, digits, '.', '_' and '-' "
                f"are allowed (got: {input_value})"
            )

        else:
            msg = error_detail.get("msg", "Invalid configuration value")
            return f"x {location}: {msg} (got: {input_value})"


def format_config_error(error: Exception) -> str:
    """
    Format any configuration-related error into a user-friendly message.

    Args:
        error: Exception that occurred during configuration

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        return ConfigurationErrorFormatter.format_validation_error(error)

    elif isinstance(error, FileNotFoundError):
        return (
            f"Configuration File Not Found:\n"
            f"x Could not find configuration file: {error.filename}\n\n"
            f"Solutions:\n"
            f"- Create a configuration file using: bookmark-organizer create-config\n"
            f"- Use default configuration by omitting the --config parameter"
        )

    else:
        return f"Configuration Error:\nx {error}"
