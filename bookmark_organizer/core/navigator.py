"""
Tree Navigator

Resolves slash-delimited, percent-encoded folder paths against a bookmark
tree. Resolution is all-or-nothing: an unknown segment fails the whole
lookup and callers fall back to the root.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union
from urllib.parse import quote, unquote

from .data_models import BreadcrumbItem, Entry, Folder, Tree, is_folder
from bookmark_organizer.utils.error_handler import FolderNotFoundError

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"


@dataclass
class Resolution:
    """
    Result of resolving a path.

    Attributes:
        folder: The addressed folder, or None for the root
        entries: Entries shown at the resolved location
        breadcrumb: One item per resolved segment, ending at ``folder``
    """

    folder: Optional[Folder]
    entries: List[Entry]
    breadcrumb: List[BreadcrumbItem] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.folder is None

    @property
    def path(self) -> str:
        """Percent-encoded path of the resolved location ("" for the root)."""
        return self.breadcrumb[-1].path if self.breadcrumb else ""

    @property
    def segments(self) -> List[str]:
        """Percent-encoded segments; ``resolve`` accepts them back unchanged."""
        return [encode_segment(item.name) for item in self.breadcrumb]


def encode_segment(segment: str) -> str:
    """Percent-encode a folder name for use as one path segment."""
    return quote(segment, safe="")


def split_path(path: Union[str, Sequence[str], None]) -> List[str]:
    """
    Turn an external address into decoded path segments.

    Empty segments are ignored, so ``""``, ``"/"`` and ``"Dev/"`` are
    handled the way a browser address would be. A sequence is taken as
    already split and only decoded.
    """
    if path is None:
        return []
    if isinstance(path, str):
        raw_segments: Iterable[str] = path.split(PATH_SEPARATOR)
    else:
        raw_segments = path
    return [unquote(segment) for segment in raw_segments if segment]


def find_folder(entries: Sequence[Entry], name: str) -> Optional[Folder]:
    """
    Find the first folder whose name matches case-insensitively.

    Sibling folders are not required to have unique names; the first match
    in display order wins.
    """
    wanted = name.casefold()
    for entry in entries:
        if is_folder(entry) and entry.name.casefold() == wanted:
            return entry
    return None


def resolve(tree: Tree, path_segments: Union[str, Sequence[str], None]) -> Resolution:
    """
    Resolve a path against the tree.

    Args:
        tree: Root entries
        path_segments: Folder names (percent-encoded or plain) or a
            slash-delimited path string

    Returns:
        Resolution for the addressed folder

    Raises:
        FolderNotFoundError: If any segment does not name a folder at its level
    """
    segments = split_path(path_segments)

    current: List[Entry] = tree
    folder: Optional[Folder] = None
    trail: List[BreadcrumbItem] = []

    for segment in segments:
        folder = find_folder(current, segment)
        if folder is None:
            logger.debug(f"Path segment '{segment}' not found in {segments}")
            raise FolderNotFoundError(segment, segments)

        trail.append(
            BreadcrumbItem(name=folder.name, path=build_path(trail, folder.name))
        )
        current = folder.children

    return Resolution(folder=folder, entries=current, breadcrumb=trail)


def build_path(breadcrumb: Sequence[BreadcrumbItem], new_segment: str) -> str:
    """Append a percent-encoded segment to the path of the last breadcrumb item."""
    encoded = encode_segment(new_segment)
    if not breadcrumb:
        return encoded
    return f"{breadcrumb[-1].path}{PATH_SEPARATOR}{encoded}"


def describe_location(breadcrumb: Sequence[BreadcrumbItem]) -> str:
    """Human-readable location used in commit and status messages."""
    if not breadcrumb:
        return "main page"
    return "folder: " + PATH_SEPARATOR.join(item.name for item in breadcrumb)
