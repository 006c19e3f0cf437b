"""
Markdown tree exporter.

Renders the tree as nested Markdown lists for reading outside the
organizer. The output is not meant to be imported back.
"""

from datetime import datetime
from typing import List

from .base import TreeExporter
from ..data_models import Entry, Tree, count_entries, is_folder


class MarkdownExporter(TreeExporter):
    """
    Export the tree to a single Markdown file.

    Top-level folders become headings; deeper folders become nested list
    items so the original order is kept.

    Example:
        >>> exporter = MarkdownExporter(include_descriptions=True)
        >>> result = exporter.export(tree, Path("links.md"))
    """

    def __init__(
        self,
        title: str = "Links",
        include_descriptions: bool = True,
        heading_level: int = 2
    ):
        """
        Initialize the Markdown exporter.

        Args:
            title: Document title
            include_descriptions: Whether to include entry descriptions
            heading_level: Heading level for top-level folders (1-4)
        """
        super().__init__()
        self.title = title
        self.include_descriptions = include_descriptions
        self.heading_level = max(1, min(4, heading_level))

    @property
    def format_name(self) -> str:
        return "Markdown"

    @property
    def file_extension(self) -> str:
        return "md"

    def render(self, tree: Tree) -> str:
        links, folders = count_entries(tree)
        lines = [
            f"# {self.title}",
            "",
            f"*Exported on {datetime.now().strftime('%Y-%m-%d %H:%M')} - "
            f"{links} links in {folders} folders*",
            "",
        ]

        loose = [entry for entry in tree if not is_folder(entry)]
        if loose:
            lines.extend(self._render_entries(loose, depth=0))
            lines.append("")

        heading = "#" * self.heading_level
        for entry in tree:
            if not is_folder(entry):
                continue
            lines.append(f"{heading} {self.escape_markdown(entry.name)}")
            lines.append("")
            if self.include_descriptions and entry.description:
                lines.append(self.escape_markdown(entry.description))
                lines.append("")
            if entry.children:
                lines.extend(self._render_entries(entry.children, depth=0))
            else:
                lines.append("*Empty folder*")
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def _render_entries(self, entries: List[Entry], depth: int) -> List[str]:
        indent = "  " * depth
        lines = []
        for entry in entries:
            name = self.escape_markdown(entry.name)
            if is_folder(entry):
                line = f"{indent}- **{name}**"
            else:
                line = f"{indent}- [{name}]({entry.url})"
            if self.include_descriptions and entry.description:
                line += f" - {self.escape_markdown(entry.description)}"
            lines.append(line)
            if is_folder(entry):
                lines.extend(self._render_entries(entry.children, depth + 1))
        return lines

    @staticmethod
    def escape_markdown(text: str) -> str:
        """Escape characters that would change Markdown rendering."""
        for char in ("\\", "[", "]", "*", "_", "`"):
            text = text.replace(char, f"\\{char}")
        return text
