"""
Local Tree Store

Persists the whole bookmark tree as one snapshot in a key-value store.
Snapshots that are not a JSON array are discarded on load rather than
surfaced, since there is no other copy to reconcile against locally.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .data_models import Tree, dumps_tree, entry_from_dict, loads_tree, tree_issues
from .key_value_store import KeyValueStore
from bookmark_organizer.utils.error_handler import (
    CorruptLocalStateError,
    ValidationError,
)

DEFAULT_TREE_KEY = "linksData"


class LocalTreeStore:
    """
    Load, save, clear, import and export the locally stored tree.

    Attributes:
        store: Backing key-value store
        key: Key holding the snapshot
        last_saved: Time of the last successful save in this process

    Example:
        >>> local = LocalTreeStore(FileKeyValueStore(Path(".bookmark_organizer")))
        >>> tree = local.load()
        >>> local.save(tree)
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_TREE_KEY):
        self.store = store
        self.key = KeyValueStore.check_key(key)
        self.last_saved: Optional[datetime] = None
        self.logger = logging.getLogger(__name__)

    def has_snapshot(self) -> bool:
        """True if a snapshot is stored, even an empty one."""
        return self.store.contains(self.key)

    def load(self, strict: bool = False) -> Tree:
        """
        Load the stored tree.

        A snapshot that is not a JSON array is discarded. Inside an array,
        top-level entries that are neither a link nor a folder are skipped.

        Args:
            strict: Raise instead of skipping unreadable entries. Callers
                that write the tree back use this so skipped entries are not
                silently dropped from storage.

        Returns:
            The stored tree, or an empty tree when nothing is stored or the
            snapshot is corrupt

        Raises:
            CorruptLocalStateError: With ``strict``, if an entry is unreadable
        """
        text = self.store.get(self.key)
        if text is None or text.strip() in ("", "undefined"):
            self.logger.debug("No stored snapshot, starting with an empty tree")
            return []

        try:
            data = json.loads(text)
        except ValueError as e:
            self.logger.warning(f"Discarding corrupt local snapshot: not valid JSON ({e})")
            return []
        if not isinstance(data, list):
            self.logger.warning(
                f"Discarding corrupt local snapshot: expected a JSON array, "
                f"got {type(data).__name__}"
            )
            return []

        tree, problems = self._read_entries(data)
        if problems:
            if strict:
                raise CorruptLocalStateError(
                    "Local snapshot has unreadable entries, refusing to overwrite it: "
                    + "; ".join(problems)
                )
            self.logger.warning(
                f"Skipping {len(problems)} unreadable entries in local snapshot: "
                + "; ".join(problems)
            )

        self.logger.debug(f"Loaded {len(tree)} top-level entries")
        return tree

    @staticmethod
    def _read_entries(data: list) -> Tuple[Tree, List[str]]:
        tree: Tree = []
        problems: List[str] = []
        for index, item in enumerate(data):
            name = item.get("name") if isinstance(item, dict) else None
            label = name.strip() if isinstance(name, str) and name.strip() else f"#{index}"
            try:
                tree.append(entry_from_dict(item, label))
            except ValidationError as e:
                problems.extend(e.issues or [e.message])
        return tree, problems

    def save(self, tree: Tree) -> datetime:
        """
        Replace the stored snapshot with ``tree``.

        Returns:
            The save time, also available as ``last_saved``
        """
        self.store.set(self.key, dumps_tree(tree, indent=None))
        self.last_saved = datetime.now()
        self.logger.info(f"Saved {len(tree)} top-level entries to local storage")
        return self.last_saved

    def clear(self) -> bool:
        """
        Remove the snapshot entirely.

        Unlike ``save([])`` this leaves no snapshot behind.

        Returns:
            True if a snapshot was removed
        """
        removed = self.store.delete(self.key)
        self.logger.info("Cleared local snapshot" if removed else "No snapshot to clear")
        return removed

    def import_snapshot(self, text: str) -> Tree:
        """
        Replace the stored tree with an external snapshot.

        This is destructive: the existing tree is discarded, not merged.

        Args:
            text: Snapshot content, a JSON array of entries

        Returns:
            The imported tree

        Raises:
            ValidationError: If the content is not a valid tree; the stored
                tree is left unchanged
        """
        tree = loads_tree(text)
        issues = tree_issues(tree)
        if issues:
            raise ValidationError("Import rejected", issues)

        self.save(tree)
        self.logger.info(f"Imported {len(tree)} top-level entries")
        return tree

    def import_file(self, path: Union[str, Path]) -> Tree:
        """Import a snapshot from a file. See ``import_snapshot``."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError("Import rejected", [f"cannot read {path}: {e}"]) from e
        return self.import_snapshot(text)

    def export_snapshot(self, tree: Optional[Tree] = None) -> str:
        """
        Serialize a tree (the stored one by default) for download.

        The result is pretty-printed and imports back to an equal tree.
        """
        if tree is None:
            tree = self.load()
        return dumps_tree(tree, indent=2)

    def __repr__(self) -> str:
        return f"LocalTreeStore(store={self.store!r}, key={self.key!r})"
