"""Configuration loading and validation."""

from .configuration import Configuration
from .pydantic_config import ConfigurationManager, OrganizerConfig

__all__ = ["Configuration", "ConfigurationManager", "OrganizerConfig"]
