"""
Utility modules for the bookmark organizer.

This package contains the error hierarchy, credential helpers and logging
setup.
"""

from .api_key_validator import GitHubTokenValidator
from .error_handler import BookmarkOrganizerError, recovery_hint
from .logging_setup import setup_logging

__all__ = [
    "BookmarkOrganizerError",
    "GitHubTokenValidator",
    "recovery_hint",
    "setup_logging",
]
