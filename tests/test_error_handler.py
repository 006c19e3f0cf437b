"""
Tests for the error hierarchy, token validation and logging setup.
"""

import logging

import pytest

from bookmark_organizer.config.configuration import Configuration
from bookmark_organizer.config.pydantic_config import OrganizerConfig
from bookmark_organizer.utils.api_key_validator import GitHubTokenValidator
from bookmark_organizer.utils.error_handler import (
    AuthError,
    BookmarkOrganizerError,
    ConfigurationError,
    ConflictError,
    CorruptLocalStateError,
    ErrorCategory,
    FolderNotFoundError,
    NotAuthenticatedError,
    NotFoundError,
    RemoteError,
    RemoteNotFoundError,
    StorageError,
    ValidationError,
    categorize_error,
    recovery_hint,
)
from bookmark_organizer.utils.logging_setup import setup_logging
from tests.fixtures.test_data import VALID_TOKEN


class TestExceptionHierarchy:
    """Test the exception classes."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ValidationError,
            ConfigurationError,
            NotFoundError,
            StorageError,
            CorruptLocalStateError,
            RemoteError,
            NotAuthenticatedError,
            AuthError,
            RemoteNotFoundError,
            ConflictError,
        ],
    )
    def test_all_derive_from_base(self, error_class):
        assert issubclass(error_class, BookmarkOrganizerError)

    def test_remote_not_found_is_both(self):
        error = RemoteNotFoundError("missing", status_code=404)

        assert isinstance(error, RemoteError)
        assert isinstance(error, NotFoundError)

    def test_validation_error_message(self):
        error = ValidationError("Invalid entry", ["a: bad", "b: worse"])

        assert str(error) == "Invalid entry: a: bad; b: worse"
        assert error.issues == ["a: bad", "b: worse"]

    def test_validation_error_without_issues(self):
        assert str(ValidationError("Invalid entry")) == "Invalid entry"

    def test_folder_not_found(self):
        error = FolderNotFoundError("Go", ["Dev", "Go"])

        assert str(error) == "Folder not found: Go"
        assert error.segment == "Go"
        assert error.path == ["Dev", "Go"]

    def test_remote_error_message(self):
        error = RemoteError(
            "Request failed", status_code=500, original_error=TimeoutError("slow")
        )

        assert str(error) == "Request failed (HTTP 500) Caused by: TimeoutError: slow"

    def test_retryable_flags(self):
        assert RemoteError("x").retryable is True
        assert ConflictError("x").retryable is True
        assert AuthError("x").retryable is False
        assert NotAuthenticatedError("x").retryable is False
        assert ValidationError("x").retryable is False


class TestErrorCategories:
    """Test mapping errors to recovery actions."""

    @pytest.mark.parametrize(
        "error,category",
        [
            (NotAuthenticatedError("x"), ErrorCategory.REAUTHENTICATE),
            (AuthError("x", status_code=401), ErrorCategory.REAUTHENTICATE),
            (ValidationError("x"), ErrorCategory.CORRECT_INPUT),
            (FolderNotFoundError("x"), ErrorCategory.CORRECT_INPUT),
            (RemoteNotFoundError("x", status_code=404), ErrorCategory.CORRECT_INPUT),
            (ConfigurationError("x"), ErrorCategory.CORRECT_INPUT),
            (ConflictError("x", status_code=409), ErrorCategory.RETRY),
            (RemoteError("x", status_code=502), ErrorCategory.RETRY),
            (StorageError("x"), ErrorCategory.ABORT),
            (RuntimeError("x"), ErrorCategory.ABORT),
        ],
    )
    def test_categorize(self, error, category):
        assert categorize_error(error) is category

    def test_conflict_hint(self):
        assert "changed since it was fetched" in recovery_hint(ConflictError("x"))

    def test_auth_hint(self):
        assert "auth set" in recovery_hint(AuthError("x"))

    def test_input_hint(self):
        assert recovery_hint(FolderNotFoundError("Go")) == (
            "Check the path, entry fields or configuration."
        )

    def test_corrupt_snapshot_hint(self):
        assert "import <file>" in recovery_hint(CorruptLocalStateError("bad entry"))

    def test_abort_hint(self):
        assert "nothing was changed" in recovery_hint(StorageError("disk full"))


class TestGitHubTokenValidator:
    """Test token format checks and masking."""

    @pytest.mark.parametrize(
        "token,kind",
        [
            (VALID_TOKEN, "classic"),
            ("github_pat_" + "A1b2C3d4E5_" * 3, "fine_grained"),
            ("gho_" + "x" * 36, "oauth"),
            ("ghu_" + "x" * 36, "app_user"),
            ("ghs_" + "x" * 36, "app_installation"),
            ("0123456789abcdef0123456789abcdef01234567", "legacy"),
            ("not-a-token", None),
        ],
    )
    def test_token_kind(self, token, kind):
        assert GitHubTokenValidator.token_kind(token) == kind

    def test_valid_format(self):
        assert GitHubTokenValidator.validate_format(VALID_TOKEN) == (True, None)

    @pytest.mark.parametrize(
        "token,message",
        [
            ("", "Token is empty"),
            ("   ", "Token is empty"),
            (f" {VALID_TOKEN}", "Token has leading or trailing whitespace"),
            ("ghp_abc def", "Token contains whitespace"),
            ("password123", "Token does not look like a GitHub token"),
        ],
    )
    def test_invalid_format(self, token, message):
        assert GitHubTokenValidator.validate_format(token) == (False, message)

    def test_sanitize_for_logging(self):
        assert GitHubTokenValidator.sanitize_for_logging(VALID_TOKEN) == "ghp_...4e5"
        assert GitHubTokenValidator.sanitize_for_logging("short") == "***"
        assert GitHubTokenValidator.sanitize_for_logging("") == "***"

    def test_fingerprint_is_stable_and_opaque(self):
        fingerprint = GitHubTokenValidator.fingerprint(VALID_TOKEN)

        assert fingerprint == GitHubTokenValidator.fingerprint(VALID_TOKEN)
        assert len(fingerprint) == 16
        assert VALID_TOKEN[4:20] not in fingerprint

    def test_mask_in_error_message(self):
        message = f"request with {VALID_TOKEN} failed"

        masked = GitHubTokenValidator.mask_in_error_message(message, [VALID_TOKEN, None])

        assert VALID_TOKEN not in masked
        assert "ghp_...4e5" in masked


class TestSetupLogging:
    """Test logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_file_logging(self, temp_dir):
        config = Configuration(
            config=OrganizerConfig(
                storage={"data_dir": str(temp_dir)}, logging={"level": "WARNING"}
            )
        )

        log_path = setup_logging(config)

        assert log_path is not None
        assert log_path.parent == temp_dir / "logs"
        assert log_path.name.startswith("bookmark_organizer_")
        assert log_path.suffix == ".log"
        assert logging.getLogger().level == logging.WARNING

    def test_without_file(self, temp_dir):
        config = OrganizerConfig(
            storage={"data_dir": str(temp_dir)}, logging={"log_to_file": False}
        )

        assert setup_logging(config) is None
        assert not (temp_dir / "logs").exists()

    def test_verbose_forces_debug(self, temp_dir):
        config = OrganizerConfig(
            storage={"data_dir": str(temp_dir)}, logging={"log_to_file": False}
        )

        setup_logging(config, verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_http_loggers_quieted(self, temp_dir):
        config = OrganizerConfig(
            storage={"data_dir": str(temp_dir)}, logging={"log_to_file": False}
        )

        setup_logging(config, verbose=True)

        assert logging.getLogger("httpx").level == logging.WARNING
