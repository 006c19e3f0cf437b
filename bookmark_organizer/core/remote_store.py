"""
Remote Tree Store

Keeps the canonical bookmark tree in a remote repository file and guards
the credential used to reach it.

Credential states:

    UNAUTHENTICATED --set_credential--> AUTHENTICATED --test_connection--> VERIFIED
           ^                                   |                               |
           +------ test_connection fails ------+------- remove_credential -----+

A credential that fails ``test_connection`` is discarded, never kept.
"""

import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence, Union

from .data_models import (
    Entry,
    Tree,
    count_entries,
    dumps_tree,
    entry_kind,
    loads_tree,
    tree_issues,
    validation_issues,
)
from .github_client import CommitResult, GitHubContentsClient
from .key_value_store import KeyValueStore
from .navigator import describe_location, resolve
from bookmark_organizer.utils.api_key_validator import GitHubTokenValidator
from bookmark_organizer.utils.error_handler import (
    AuthError,
    BookmarkOrganizerError,
    ConfigurationError,
    NotAuthenticatedError,
    ValidationError,
)

DEFAULT_CREDENTIAL_KEY = "github_token"


class AuthState(str, Enum):
    """Credential lifecycle of the remote store."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    VERIFIED = "verified"


@dataclass
class FetchedTree:
    """A remote tree and the token that authorizes the next write."""

    tree: Tree
    token: str


@dataclass
class ConnectionStatus:
    """Outcome of ``test_connection``."""

    success: bool
    message: str
    item_count: int = 0
    link_count: int = 0
    folder_count: int = 0
    error: Optional[BookmarkOrganizerError] = None


class RemoteTreeStore:
    """
    Fetch and commit the remote tree with optimistic concurrency.

    Every mutation starts from a fresh fetch; a write whose token went stale
    in the meantime raises ``ConflictError`` and is never retried or merged
    here.

    Attributes:
        client: Contents API client, or None when no repository is configured
        store: Key-value store holding the credential
        credential_key: Key of the stored credential
    """

    def __init__(
        self,
        client: Optional[GitHubContentsClient],
        store: KeyValueStore,
        credential_key: str = DEFAULT_CREDENTIAL_KEY,
    ):
        self.client = client
        self.store = store
        self.credential_key = KeyValueStore.check_key(credential_key)
        self.verification_key = f"{credential_key}.verified"
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Credential state
    # ------------------------------------------------------------------

    def get_credential(self) -> Optional[str]:
        token = self.store.get(self.credential_key)
        return token or None

    def has_credential(self) -> bool:
        return self.get_credential() is not None

    @property
    def state(self) -> AuthState:
        token = self.get_credential()
        if token is None:
            return AuthState.UNAUTHENTICATED
        if self._is_verified(token):
            return AuthState.VERIFIED
        return AuthState.AUTHENTICATED

    @property
    def is_verified(self) -> bool:
        return self.state is AuthState.VERIFIED

    def verified_at(self) -> Optional[datetime]:
        """When the current credential was last verified, if it was."""
        record = self._verification_record()
        token = self.get_credential()
        if not record or not token:
            return None
        if record.get("fingerprint") != GitHubTokenValidator.fingerprint(token):
            return None
        try:
            return datetime.fromisoformat(record["verified_at"])
        except (KeyError, TypeError, ValueError):
            return None

    def _verification_record(self) -> Optional[dict]:
        raw = self.store.get(self.verification_key)
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except ValueError:
            return None
        return record if isinstance(record, dict) else None

    def _is_verified(self, token: str) -> bool:
        record = self._verification_record()
        return bool(record) and record.get(
            "fingerprint"
        ) == GitHubTokenValidator.fingerprint(token)

    def _mark_verified(self, token: str) -> None:
        record = {
            "fingerprint": GitHubTokenValidator.fingerprint(token),
            "verified_at": datetime.now().isoformat(),
        }
        self.store.set(self.verification_key, json.dumps(record))

    def set_credential(self, token: str) -> AuthState:
        """
        Store a credential. It stays unverified until ``test_connection``.

        Raises:
            ValidationError: If the token is blank
        """
        token = (token or "").strip()
        if not token:
            raise ValidationError("Invalid credential", ["token must not be empty"])

        is_valid, error_msg = GitHubTokenValidator.validate_format(token)
        if not is_valid:
            self.logger.warning(
                f"Stored token {GitHubTokenValidator.sanitize_for_logging(token)} "
                f"looks unusual: {error_msg}"
            )

        self.store.set(self.credential_key, token)
        self.store.delete(self.verification_key)
        self.logger.info("Credential stored (unverified)")
        return AuthState.AUTHENTICATED

    def remove_credential(self) -> AuthState:
        """Forget the credential and its verification."""
        self.store.delete(self.credential_key)
        self.store.delete(self.verification_key)
        self.logger.info("Credential removed")
        return AuthState.UNAUTHENTICATED

    def _require_credential(self) -> str:
        token = self.get_credential()
        if token is None:
            raise NotAuthenticatedError(
                "GitHub token not found. Please authenticate first."
            )
        return token

    def _require_client(self) -> GitHubContentsClient:
        if self.client is None:
            raise ConfigurationError(
                "No remote repository configured (set remote.owner and remote.repo)"
            )
        return self.client

    def test_connection(self) -> ConnectionStatus:
        """
        Check the stored credential against the remote file.

        On success the store becomes VERIFIED. On any failure the credential
        is discarded and the store returns to UNAUTHENTICATED.
        """
        if not self.has_credential():
            return ConnectionStatus(
                success=False,
                message="GitHub token not found. Please authenticate first.",
                error=NotAuthenticatedError("GitHub token not found."),
            )

        try:
            fetched = self.fetch_tree()
        except BookmarkOrganizerError as e:
            self.remove_credential()
            self.logger.warning(f"Connection test failed, credential discarded: {e}")
            return ConnectionStatus(success=False, message=str(e), error=e)

        self._mark_verified(self._require_credential())
        links, folders = count_entries(fetched.tree)
        self.logger.info("Connection test succeeded, credential verified")
        return ConnectionStatus(
            success=True,
            message="Successfully connected to GitHub",
            item_count=len(fetched.tree),
            link_count=links,
            folder_count=folders,
        )

    # ------------------------------------------------------------------
    # Tree operations
    # ------------------------------------------------------------------

    def fetch_tree(self) -> FetchedTree:
        """
        Fetch the remote tree and its concurrency token.

        Raises:
            NotAuthenticatedError: If no credential is stored
            AuthError: If the credential is rejected
            RemoteNotFoundError: If the repository or file is missing
            RemoteError: On other transport or server failures
            ValidationError: If the file is not a JSON array of entries
        """
        token = self._require_credential()
        client = self._require_client()

        try:
            remote_file = client.get_file(token)
        except AuthError:
            self.store.delete(self.verification_key)
            raise

        tree = loads_tree(remote_file.text)
        self.logger.debug(
            f"Fetched {len(tree)} top-level entries (sha {remote_file.sha[:7]})"
        )
        return FetchedTree(tree=tree, token=remote_file.sha)

    def commit_tree(self, tree: Tree, token: str, message: str) -> CommitResult:
        """
        Write ``tree`` if the remote file still matches ``token``.

        The tree is validated before any network call.

        Raises:
            ValidationError: If the tree is invalid (nothing is sent)
            NotAuthenticatedError: If no credential is stored
            ConflictError: If the remote file changed since ``token`` was fetched
            AuthError, RemoteNotFoundError, RemoteError: As for ``fetch_tree``
        """
        issues = tree_issues(tree)
        if issues:
            raise ValidationError("Invalid data structure", issues)

        credential = self._require_credential()
        client = self._require_client()

        try:
            result = client.put_file(credential, dumps_tree(tree, indent=2), token, message)
        except AuthError:
            self.store.delete(self.verification_key)
            raise

        return replace(result, tree=tree)

    def insert_at_path(
        self, new_item: Entry, path_segments: Union[str, Sequence[str], None]
    ) -> CommitResult:
        """
        Append ``new_item`` to the folder at ``path_segments`` and commit.

        The path is resolved against a fetch made immediately before the
        write, never against a cached tree.

        Raises:
            ValidationError: If the new item is invalid (nothing is fetched)
            FolderNotFoundError: If the path does not resolve in the fresh tree
            ConflictError: If another write landed between fetch and commit
        """
        issues = validation_issues(new_item)
        if issues:
            raise ValidationError("Invalid entry", issues)

        fetched = self.fetch_tree()
        resolution = resolve(fetched.tree, path_segments)
        resolution.entries.append(new_item)

        location = describe_location(resolution.breadcrumb)
        message = f"Add {entry_kind(new_item)}: {new_item.name} to {location}"
        result = self.commit_tree(fetched.tree, fetched.token, message)
        self.logger.info(f"Successfully added {new_item.name} to {location}")
        return result

    def __repr__(self) -> str:
        return f"RemoteTreeStore(client={self.client!r}, state={self.state.value})"
