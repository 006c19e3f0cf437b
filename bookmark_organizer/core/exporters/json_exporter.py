"""
JSON tree exporter.

Writes the snapshot form of the tree, the same document the local store
keeps and the remote file holds, so an export can be imported back.
"""

from .base import TreeExporter
from ..data_models import Tree, dumps_tree


class JSONExporter(TreeExporter):
    """
    Export the tree as a JSON array of entries.

    Example:
        >>> exporter = JSONExporter(indent=2)
        >>> result = exporter.export(tree, Path("links.json"))
    """

    def __init__(self, indent: int = 2, compact: bool = False):
        """
        Initialize the JSON exporter.

        Args:
            indent: Number of spaces for indentation
            compact: If True, write a single line (overrides indent)
        """
        super().__init__()
        self.indent = None if compact else indent
        self.compact = compact

    @property
    def format_name(self) -> str:
        return "JSON"

    @property
    def file_extension(self) -> str:
        return "json"

    def render(self, tree: Tree) -> str:
        return dumps_tree(tree, indent=self.indent) + "\n"
