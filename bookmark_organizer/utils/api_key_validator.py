"""
Credential Validation Module

Checks GitHub token formats and masks tokens so they never appear in logs
or error messages.
"""

import hashlib
import logging
import re
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class GitHubTokenValidator:
    """Validates and masks GitHub access tokens."""

    # Known token prefixes and the shape of what follows them
    TOKEN_PATTERNS = {
        "classic": r"^ghp_[A-Za-z0-9]{36,}$",
        "fine_grained": r"^github_pat_[A-Za-z0-9_]{22,}$",
        "oauth": r"^gho_[A-Za-z0-9]{36,}$",
        "app_user": r"^ghu_[A-Za-z0-9]{36,}$",
        "app_installation": r"^ghs_[A-Za-z0-9]{36,}$",
    }

    # Pre-2021 tokens were bare 40 character hex strings
    LEGACY_PATTERN = r"^[a-f0-9]{40}$"

    @classmethod
    def validate_format(cls, token: str) -> Tuple[bool, Optional[str]]:
        """
        Validate the shape of a GitHub token.

        The remote is the final authority on whether a token works; this only
        catches obvious paste mistakes.

        Args:
            token: Token to check

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not token or not token.strip():
            return False, "Token is empty"

        if token != token.strip():
            return False, "Token has leading or trailing whitespace"

        if any(ch.isspace() for ch in token):
            return False, "Token contains whitespace"

        if cls.token_kind(token) is None:
            return False, "Token does not look like a GitHub token"

        return True, None

    @classmethod
    def token_kind(cls, token: str) -> Optional[str]:
        """Return the kind of GitHub token, or None if unrecognized."""
        for kind, pattern in cls.TOKEN_PATTERNS.items():
            if re.match(pattern, token):
                return kind
        if re.match(cls.LEGACY_PATTERN, token):
            return "legacy"
        return None

    @classmethod
    def sanitize_for_logging(cls, token: str) -> str:
        """
        Sanitize a token for safe logging.

        Args:
            token: Token to sanitize

        Returns:
            Sanitized version showing only first/last few characters
        """
        if not token or len(token) < 10:
            return "***"

        # Show first 4 and last 3 characters
        return f"{token[:4]}...{token[-3:]}"

    @classmethod
    def fingerprint(cls, token: str) -> str:
        """Stable, non-reversible identifier for a token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]

    @classmethod
    def mask_in_error_message(cls, message: str, tokens: Iterable[Optional[str]]) -> str:
        """
        Mask any tokens that might appear in error messages.

        Args:
            message: Error message that might contain tokens
            tokens: Tokens to mask

        Returns:
            Message with tokens masked
        """
        masked_message = message
        for token in tokens:
            if token and token in masked_message:
                masked_message = masked_message.replace(
                    token, cls.sanitize_for_logging(token)
                )
        return masked_message
