"""
Organizer Session

The session is the single context object for one run of the organizer: it
owns the configuration, both persistence backends, the current tree and
the current location. The outer shell (CLI, web front end) only talks to
the session.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .data_models import BreadcrumbItem, Entry, EntryDraft, Tree
from .exporters import ExportResult, get_exporter
from .github_client import CommitResult, GitHubContentsClient
from .key_value_store import FileKeyValueStore, KeyValueStore
from .local_store import LocalTreeStore
from .mutation_engine import Backend, MutationEngine, MutationResult
from .navigator import Resolution, resolve
from .remote_store import AuthState, RemoteTreeStore
from bookmark_organizer.config.configuration import Configuration
from bookmark_organizer.utils.error_handler import FolderNotFoundError


class OrganizerSession:
    """
    Context shared by all organizer operations.

    Created at startup, mutated only through its methods and discarded on
    exit.

    Example:
        >>> session = OrganizerSession.from_config(Configuration())
        >>> session.open()
        >>> session.navigate("Dev/Go")
        >>> session.add_entry(EntryDraft("Go blog", "News", "https://go.dev/blog"))
    """

    def __init__(
        self,
        config: Configuration,
        local: LocalTreeStore,
        remote: RemoteTreeStore,
    ):
        self.config = config
        self.local = local
        self.remote = remote
        self.engine = MutationEngine(local, remote)
        self.tree: Tree = []
        self.source: Backend = Backend.LOCAL
        self._resolution = Resolution(folder=None, entries=self.tree)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: Configuration,
        store: Optional[KeyValueStore] = None,
        transport=None,
    ) -> "OrganizerSession":
        """
        Build a session and its backends from configuration.

        Args:
            config: Application configuration
            store: Key-value store to use instead of the data directory
            transport: Optional httpx transport for the remote client
        """
        if store is None:
            store = FileKeyValueStore(config.get_data_dir())

        client = None
        if config.has_remote_repository():
            client = GitHubContentsClient(
                owner=config.remote.owner,
                repo=config.remote.repo,
                file_path=config.remote.file_path,
                api_base=config.remote.api_base,
                branch=config.remote.branch,
                timeout=config.network.timeout,
                max_retries=config.network.max_retries,
                retry_delay=config.network.retry_delay,
                transport=transport,
            )

        local = LocalTreeStore(store, config.storage.tree_key)
        remote = RemoteTreeStore(client, store, config.storage.credential_key)
        return cls(config, local, remote)

    def close(self) -> None:
        if self.remote.client is not None:
            self.remote.client.close()

    def __enter__(self) -> "OrganizerSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Loading and navigation
    # ------------------------------------------------------------------

    @property
    def auth_state(self) -> AuthState:
        return self.remote.state

    def open(self) -> Tree:
        """Load the tree from the authoritative backend."""
        return self.reload()

    def reload(self) -> Tree:
        """
        Replace the session tree with a fresh copy.

        The remote is read when its credential is verified, local storage
        otherwise. The current location is kept if it still exists.
        """
        if self.remote.is_verified and self.remote.client is not None:
            self.tree = self.remote.fetch_tree().tree
            self.source = Backend.REMOTE
        else:
            self.tree = self.local.load()
            self.source = Backend.LOCAL

        self.logger.debug(f"Loaded {len(self.tree)} entries from {self.source.value}")
        self._reresolve()
        return self.tree

    def _reresolve(self) -> None:
        try:
            self._resolution = resolve(self.tree, self.current_segments)
        except FolderNotFoundError:
            self._resolution = resolve(self.tree, [])

    def navigate(self, path: Union[str, Sequence[str], None]) -> Resolution:
        """
        Move to the folder at ``path``.

        Raises:
            FolderNotFoundError: If the path does not resolve; the session is
                moved back to the root before raising
        """
        try:
            self._resolution = resolve(self.tree, path)
        except FolderNotFoundError:
            self._resolution = resolve(self.tree, [])
            self.logger.info(f"Unknown path {path!r}, redirected to root")
            raise
        return self._resolution

    def go_home(self) -> Resolution:
        return self.navigate([])

    def go_up(self) -> Resolution:
        """Move to the parent folder (no-op at the root)."""
        return self.navigate(self.current_segments[:-1])

    @property
    def breadcrumb(self) -> List[BreadcrumbItem]:
        return list(self._resolution.breadcrumb)

    @property
    def current_segments(self) -> List[str]:
        return self._resolution.segments

    @property
    def current_path_string(self) -> str:
        return self._resolution.path

    @property
    def current_folder(self):
        return self._resolution.folder

    def current_entries(self) -> List[Entry]:
        return list(self._resolution.entries)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_entry(
        self, draft: Union[EntryDraft, Entry], backend: Optional[Backend] = None
    ) -> MutationResult:
        """Add an entry at the current location and refresh the session tree."""
        result = self.engine.add_entry(draft, self.current_segments, backend)
        self.tree = result.tree
        self.source = result.backend
        self._reresolve()
        return result

    def import_snapshot(self, text: str) -> Tree:
        """Replace the local tree with an imported snapshot (destructive)."""
        self.tree = self.local.import_snapshot(text)
        self.source = Backend.LOCAL
        self.go_home()
        return self.tree

    def import_file(self, path: Union[str, Path]) -> Tree:
        """Replace the local tree with the contents of a file (destructive)."""
        self.tree = self.local.import_file(path)
        self.source = Backend.LOCAL
        self.go_home()
        return self.tree

    def export_to_file(
        self, output_path: Union[str, Path], format_name: str = "json"
    ) -> ExportResult:
        """Write the session tree to a file (pretty-printed JSON by default)."""
        return get_exporter(format_name)().export(self.tree, Path(output_path))

    def clear(self) -> bool:
        """Remove the local snapshot and reset to an empty tree at the root."""
        removed = self.local.clear()
        if self.source is Backend.LOCAL:
            self.tree = []
        self.go_home()
        return removed

    # ------------------------------------------------------------------
    # Synchronization between backends
    # ------------------------------------------------------------------

    def pull(self) -> Tree:
        """Replace the local snapshot with the current remote tree."""
        fetched = self.remote.fetch_tree()
        self.local.save(fetched.tree)
        self.tree = fetched.tree
        self.source = Backend.REMOTE
        self._reresolve()
        return self.tree

    def push(self, message: str = "Update links") -> CommitResult:
        """
        Commit the local tree over the current remote file.

        The token comes from a fetch made right before the write, so this is
        an explicit last-writer-wins overwrite of the remote contents.
        """
        tree = self.local.load(strict=True)
        fetched = self.remote.fetch_tree()
        result = self.remote.commit_tree(tree, fetched.token, message)
        self.tree = tree
        self._reresolve()
        return result
