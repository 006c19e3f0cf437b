"""
Mutation Engine

Applies "insert entry at path" to whichever backend is authoritative:
the remote file when the remote credential is verified, local storage
otherwise. Callers can also force a backend.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from .data_models import Entry, EntryDraft, Tree, entry_kind, validation_issues
from .github_client import CommitResult
from .local_store import LocalTreeStore
from .navigator import describe_location, resolve
from .remote_store import RemoteTreeStore
from bookmark_organizer.utils.error_handler import (
    NotAuthenticatedError,
    ValidationError,
)


class Backend(str, Enum):
    """Where a mutation is persisted."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class MutationResult:
    """
    Outcome of ``add_entry``.

    Attributes:
        backend: Backend the entry was written to
        entry: The entry that was added
        location: Human-readable target location
        tree: Full tree after the insertion
        commit: Commit details for remote writes
    """

    backend: Backend
    entry: Entry
    location: str
    tree: Tree
    commit: Optional[CommitResult] = None

    @property
    def message(self) -> str:
        return f"Successfully added {self.entry.name} to {self.location}"


class MutationEngine:
    """Insert entries into the tree held by the chosen backend."""

    def __init__(self, local: LocalTreeStore, remote: Optional[RemoteTreeStore] = None):
        self.local = local
        self.remote = remote
        self.logger = logging.getLogger(__name__)

    def select_backend(self, requested: Optional[Backend] = None) -> Backend:
        """
        Decide where the next mutation goes.

        Without an explicit request the remote is used only when its
        credential has been verified.

        Raises:
            NotAuthenticatedError: If the remote is requested without a credential
        """
        if requested is Backend.REMOTE:
            if self.remote is None or not self.remote.has_credential():
                raise NotAuthenticatedError(
                    "Remote backend requested but no GitHub token is stored"
                )
            return Backend.REMOTE
        if requested is Backend.LOCAL:
            return Backend.LOCAL
        if self.remote is not None and self.remote.is_verified:
            return Backend.REMOTE
        return Backend.LOCAL

    def add_entry(
        self,
        draft: Union[EntryDraft, Entry],
        current_path: Union[str, Sequence[str], None] = None,
        backend: Optional[Backend] = None,
    ) -> MutationResult:
        """
        Validate ``draft`` and append it to the folder at ``current_path``.

        Args:
            draft: Form input or an already built entry
            current_path: Target folder (root when empty)
            backend: Force a backend instead of the automatic choice

        Returns:
            MutationResult describing the write

        Raises:
            ValidationError: If the draft is invalid
            FolderNotFoundError: If the path does not resolve
            CorruptLocalStateError: If the local snapshot has unreadable entries
            NotAuthenticatedError, ConflictError, RemoteError: Remote failures
        """
        entry = draft.to_entry() if isinstance(draft, EntryDraft) else draft
        issues = validation_issues(entry)
        if issues:
            raise ValidationError("Invalid entry", issues)

        target = self.select_backend(backend)
        self.logger.debug(f"Adding {entry_kind(entry)} '{entry.name}' via {target.value}")

        if target is Backend.REMOTE:
            commit = self.remote.insert_at_path(entry, current_path)
            location = describe_location(resolve(commit.tree, current_path).breadcrumb)
            return MutationResult(
                backend=target,
                entry=entry,
                location=location,
                tree=commit.tree,
                commit=commit,
            )

        tree = self.local.load(strict=True)
        resolution = resolve(tree, current_path)
        resolution.entries.append(entry)
        self.local.save(tree)

        location = describe_location(resolution.breadcrumb)
        self.logger.info(f"Added {entry_kind(entry)} '{entry.name}' to {location}")
        return MutationResult(backend=target, entry=entry, location=location, tree=tree)
