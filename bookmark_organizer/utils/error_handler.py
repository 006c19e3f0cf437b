"""
Error hierarchy for the Bookmark Organizer.

All custom exceptions for the project are defined here so that callers can
catch a single base class and decide how to recover from each failure:
retry after a re-fetch, re-authenticate, or correct a path or setting.
"""

from enum import Enum
from typing import List, Optional


# ============================================================================
# Unified Exception Hierarchy for Bookmark Organizer
# ============================================================================
# Import these exceptions from bookmark_organizer.utils.error_handler
# ============================================================================


class BookmarkOrganizerError(Exception):
    """Base exception for all bookmark organizer errors."""

    retryable = False


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(BookmarkOrganizerError):
    """
    Malformed entry or tree shape.

    Always raised before any storage or network call is made.

    Attributes:
        message: Error description
        issues: Individual problems found (one line each)
    """

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        self.message = message
        self.issues = list(issues or [])
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return self.message
        return f"{self.message}: " + "; ".join(self.issues)


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(BookmarkOrganizerError):
    """Configuration-related errors."""

    pass


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(BookmarkOrganizerError):
    """A remote file or a path segment does not exist."""

    pass


class FolderNotFoundError(NotFoundError):
    """
    A path segment did not match any folder.

    Attributes:
        segment: The segment that failed to resolve
        path: The full list of segments being resolved
    """

    def __init__(self, segment: str, path: Optional[List[str]] = None):
        self.segment = segment
        self.path = list(path or [])
        super().__init__(f"Folder not found: {segment}")


# ============================================================================
# Local Storage Errors
# ============================================================================


class StorageError(BookmarkOrganizerError):
    """Local key-value storage failures."""

    pass


class CorruptLocalStateError(StorageError):
    """The stored snapshot could not be parsed as a tree."""

    pass


# ============================================================================
# Remote Errors
# ============================================================================


class RemoteError(BookmarkOrganizerError):
    """
    Remote API failure.

    Attributes:
        message: Error description
        status_code: HTTP status code if applicable
        original_error: The underlying exception if any
    """

    retryable = True

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        if self.original_error:
            parts.append(
                f"Caused by: {type(self.original_error).__name__}: "
                f"{self.original_error}"
            )
        return " ".join(parts)


class NotAuthenticatedError(RemoteError):
    """An operation needs a stored credential and none is present."""

    retryable = False


class AuthError(RemoteError):
    """The remote rejected the stored credential."""

    retryable = False


class RemoteNotFoundError(RemoteError, NotFoundError):
    """The remote repository or file does not exist."""

    retryable = False


class ConflictError(RemoteError):
    """The concurrency token is stale: the remote file changed since it was fetched."""

    retryable = True


class ErrorCategory(Enum):
    """How a caller should react to an error."""

    RETRY = "retry"
    REAUTHENTICATE = "reauthenticate"
    CORRECT_INPUT = "correct_input"
    ABORT = "abort"


def categorize_error(error: BaseException) -> ErrorCategory:
    """
    Map an exception to the recovery a caller should attempt.

    Args:
        error: The exception raised by an operation

    Returns:
        ErrorCategory describing the next step
    """
    if isinstance(error, (NotAuthenticatedError, AuthError)):
        return ErrorCategory.REAUTHENTICATE
    if isinstance(error, (ValidationError, NotFoundError, ConfigurationError)):
        return ErrorCategory.CORRECT_INPUT
    if isinstance(error, BookmarkOrganizerError) and error.retryable:
        return ErrorCategory.RETRY
    return ErrorCategory.ABORT


_RECOVERY_HINTS = {
    ErrorCategory.RETRY: "Re-fetch the latest tree and try again.",
    ErrorCategory.REAUTHENTICATE: (
        "Store a valid token with 'auth set <token>' and run 'auth test'."
    ),
    ErrorCategory.CORRECT_INPUT: "Check the path, entry fields or configuration.",
    ErrorCategory.ABORT: "The operation was aborted; nothing was changed.",
}


def recovery_hint(error: BaseException) -> str:
    """Return a one-line suggestion for recovering from ``error``."""
    if isinstance(error, ConflictError):
        return (
            "The remote file changed since it was fetched. "
            "Re-run the command to apply the change on top of the latest version."
        )
    if isinstance(error, CorruptLocalStateError):
        return (
            "Repair the stored snapshot, or replace it with 'import <file>' "
            "or 'clear', before changing the local tree."
        )
    return _RECOVERY_HINTS[categorize_error(error)]
