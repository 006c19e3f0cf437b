"""
Data models for the Bookmark Organizer.

This module defines the bookmark tree: an ordered sequence of entries, where
each entry is either a ``Link`` or a ``Folder`` holding further entries. It
also holds the validation rules for entries and the conversion between the
model and the JSON-compatible snapshot form that is stored locally and
committed to the remote file.

Serialized form::

    [
      {"name": "Dev", "description": "Tools", "folder": [
        {"name": "Go", "description": "Go docs", "url": "https://go.dev"}
      ]}
    ]
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from bookmark_organizer.utils.error_handler import ValidationError

# Keys owned by the model; anything else is carried through in ``extra``
LINK_KEYS = ("name", "description", "url")
FOLDER_KEYS = ("name", "description", "folder")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


@dataclass
class Link:
    """A named bookmark pointing at an absolute URL."""

    name: str
    description: str
    url: str
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Folder:
    """
    A named folder of entries.

    ``children`` is serialized under the ``folder`` key. Its order is the
    display order.
    """

    name: str
    description: str
    children: List["Entry"] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


Entry = Union[Link, Folder]
Tree = List[Entry]


@dataclass(frozen=True)
class BreadcrumbItem:
    """One resolved folder on the way to the current location."""

    name: str
    path: str


@dataclass
class EntryDraft:
    """
    Unvalidated input for a new entry.

    A blank ``url`` means the draft describes a folder.
    """

    name: str = ""
    description: str = ""
    url: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return not (self.url or "").strip()

    def to_entry(self) -> Entry:
        """
        Build a trimmed entry from the draft.

        Raises:
            ValidationError: If the resulting entry is invalid
        """
        name = (self.name or "").strip()
        description = (self.description or "").strip()
        if self.is_folder:
            entry: Entry = Folder(name=name, description=description, children=[])
        else:
            entry = Link(name=name, description=description, url=self.url.strip())

        issues = validation_issues(entry)
        if issues:
            raise ValidationError("Invalid entry", issues)
        return entry


def is_folder(entry: Any) -> bool:
    """Single source of truth for telling folders from links."""
    return isinstance(entry, Folder)


def entry_kind(entry: Entry) -> str:
    """Return ``"folder"`` or ``"link"``."""
    return "folder" if is_folder(entry) else "link"


def is_absolute_url(value: Any) -> bool:
    """
    Check that a value parses as a well-formed absolute URL.

    Requires a scheme and something after it. Web URLs must name a host.
    """
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    if any(ch.isspace() for ch in value):
        return False

    try:
        parsed = urlparse(value)
    except ValueError:
        return False

    if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
        return False

    if parsed.scheme.lower() in ("http", "https", "ftp", "ws", "wss"):
        try:
            parsed.port
        except ValueError:
            # Out of range or non-numeric port
            return False
        return bool(parsed.hostname)

    return bool(parsed.netloc or parsed.path)


def _text_issue(value: Any, field_name: str, where: str) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return f"{where}: {field_name} must not be empty"
    return None


def _describe(where: str, index: int, name: Any) -> str:
    label = name.strip() if isinstance(name, str) and name.strip() else f"#{index}"
    return f"{where}/{label}" if where else label


def validation_issues(entry: Any, where: str = "") -> List[str]:
    """
    Collect every problem with an entry, recursing into folders.

    Accepts model objects and raw serialized mappings.

    Args:
        entry: Link, Folder or mapping to check
        where: Location prefix used in the messages

    Returns:
        List of human-readable issues (empty when the entry is valid)
    """
    where = where or "entry"

    if isinstance(entry, Mapping):
        try:
            entry = entry_from_dict(entry, where)
        except ValidationError as e:
            return e.issues or [e.message]

    if not isinstance(entry, (Link, Folder)):
        return [f"{where}: not a link or folder"]

    issues = []
    for field_name in ("name", "description"):
        issue = _text_issue(getattr(entry, field_name), field_name, where)
        if issue:
            issues.append(issue)

    if is_folder(entry):
        if not isinstance(entry.children, list):
            issues.append(f"{where}: folder contents must be a list")
        else:
            for index, child in enumerate(entry.children):
                child_name = getattr(child, "name", None)
                if isinstance(child, Mapping):
                    child_name = child.get("name")
                issues.extend(
                    validation_issues(child, _describe(where, index, child_name))
                )
    elif not is_absolute_url(entry.url):
        issues.append(f"{where}: url {entry.url!r} is not a valid absolute URL")

    return issues


def validate(entry: Any) -> bool:
    """Return True when the entry and everything below it is valid."""
    return not validation_issues(entry)


def tree_issues(tree: Any) -> List[str]:
    """Collect the problems of every entry in a tree."""
    if not isinstance(tree, list):
        return ["tree must be a list of entries"]

    issues = []
    for index, entry in enumerate(tree):
        name = entry.get("name") if isinstance(entry, Mapping) else getattr(
            entry, "name", None
        )
        issues.extend(validation_issues(entry, _describe("", index, name)))
    return issues


def validate_tree(tree: Any) -> bool:
    """Return True when every entry of the tree is valid."""
    return not tree_issues(tree)


def entry_from_dict(data: Any, where: str = "entry") -> Entry:
    """
    Convert a serialized mapping to a ``Link`` or ``Folder``.

    Only the shape is checked here; field contents are checked by
    ``validate``.

    Raises:
        ValidationError: If the mapping is not exactly one of link or folder
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Invalid entry", [f"{where}: expected an object"])

    has_url = data.get("url") is not None
    has_folder = data.get("folder") is not None

    if has_url and has_folder:
        raise ValidationError(
            "Invalid entry", [f"{where}: has both 'url' and 'folder'"]
        )
    if not has_url and not has_folder:
        raise ValidationError(
            "Invalid entry", [f"{where}: needs either 'url' or 'folder'"]
        )

    name = data.get("name", "")
    description = data.get("description", "")
    for field_name, value in (("name", name), ("description", description)):
        if not isinstance(value, str):
            raise ValidationError(
                "Invalid entry", [f"{where}: {field_name} must be a string"]
            )

    if has_url:
        if not isinstance(data["url"], str):
            raise ValidationError("Invalid entry", [f"{where}: url must be a string"])
        extra = {k: v for k, v in data.items() if k not in LINK_KEYS}
        return Link(name=name, description=description, url=data["url"], extra=extra)

    raw_children = data["folder"]
    if not isinstance(raw_children, list):
        raise ValidationError(
            "Invalid entry", [f"{where}: folder contents must be a list"]
        )

    children = [
        entry_from_dict(child, _describe(where, index, _raw_name(child)))
        for index, child in enumerate(raw_children)
    ]
    extra = {k: v for k, v in data.items() if k not in FOLDER_KEYS}
    return Folder(name=name, description=description, children=children, extra=extra)


def _raw_name(data: Any) -> Any:
    return data.get("name") if isinstance(data, Mapping) else None


def entry_to_dict(entry: Entry) -> Dict[str, Any]:
    """Convert an entry to its serialized mapping."""
    if is_folder(entry):
        data: Dict[str, Any] = {
            "name": entry.name,
            "description": entry.description,
            "folder": [entry_to_dict(child) for child in entry.children],
        }
    else:
        data = {
            "name": entry.name,
            "description": entry.description,
            "url": entry.url,
        }
    data.update(entry.extra)
    return data


def tree_from_json(data: Any) -> Tree:
    """
    Convert a parsed JSON payload to a tree.

    Raises:
        ValidationError: If the payload is not an array of entries
    """
    if not isinstance(data, list):
        raise ValidationError(
            "Invalid snapshot", [f"expected a JSON array, got {type(data).__name__}"]
        )
    return [
        entry_from_dict(item, _describe("", index, _raw_name(item)))
        for index, item in enumerate(data)
    ]


def tree_to_json(tree: Tree) -> List[Dict[str, Any]]:
    """Convert a tree to a JSON-compatible list."""
    return [entry_to_dict(entry) for entry in tree]


def dumps_tree(tree: Tree, indent: Optional[int] = 2) -> str:
    """Serialize a tree to snapshot text."""
    return json.dumps(tree_to_json(tree), indent=indent, ensure_ascii=False)


def loads_tree(text: str) -> Tree:
    """
    Parse snapshot text into a tree.

    Raises:
        ValidationError: If the text is not JSON or not an array of entries
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid snapshot", [f"not valid JSON ({e})"])
    return tree_from_json(data)


def count_entries(tree: Tree) -> Tuple[int, int]:
    """
    Count links and folders anywhere in the tree.

    Returns:
        Tuple of (links, folders)
    """
    links = folders = 0
    for entry in tree:
        if is_folder(entry):
            folders += 1
            sub_links, sub_folders = count_entries(entry.children)
            links += sub_links
            folders += sub_folders
        else:
            links += 1
    return links, folders
