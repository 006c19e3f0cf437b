"""
Key-Value Storage

Plain textual key-value storage for the tree snapshot and the remote
credential. Every write replaces the whole value.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from bookmark_organizer.utils.error_handler import StorageError

_KEY_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


class KeyValueStore(ABC):
    """Abstract text key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if a value was removed."""

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    @staticmethod
    def check_key(key: str) -> str:
        if not isinstance(key, str) or not _KEY_RE.match(key) or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return key


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(self.check_key(key))

    def set(self, key: str, value: str) -> None:
        self._values[self.check_key(key)] = value

    def delete(self, key: str) -> bool:
        return self._values.pop(self.check_key(key), None) is not None

    def __repr__(self) -> str:
        return f"MemoryKeyValueStore(keys={sorted(self._values)})"


class FileKeyValueStore(KeyValueStore):
    """
    Store each key as a UTF-8 text file inside a directory.

    Writes go to a temporary file that is then renamed over the target, so a
    reader sees either the previous value or the new one.

    Example:
        >>> store = FileKeyValueStore(Path(".bookmark_organizer"))
        >>> store.set("linksData", "[]")
        >>> store.get("linksData")
        '[]'
    """

    SUFFIX = ".txt"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.logger = logging.getLogger(__name__)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{self.check_key(key)}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read '{key}' from {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        temp_path = path.with_name(f".{path.name}.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            temp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write '{key}' to {path}: {e}") from e
        finally:
            if temp_path.exists():
                temp_path.unlink()

        self.logger.debug(f"Stored {len(value)} characters under '{key}'")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}' ({path}): {e}") from e
        self.logger.debug(f"Deleted '{key}'")
        return True

    def __repr__(self) -> str:
        return f"FileKeyValueStore(directory={self.directory})"
