"""
Base classes for tree exporters.

This module provides the abstract base class and common utilities
for all bookmark tree export formats.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from ..data_models import Tree, count_entries, tree_issues
from bookmark_organizer.utils.error_handler import StorageError


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        path: Path to the exported file
        count: Number of entries exported (links and folders at every depth)
        format_name: Name of the export format used
        exported_at: Timestamp of the export
        additional_info: Any format-specific additional information
        warnings: List of non-fatal warnings during export
    """

    path: Path
    count: int
    format_name: str
    exported_at: datetime = field(default_factory=datetime.now)
    additional_info: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"ExportResult(format={self.format_name}, "
            f"count={self.count}, path={self.path})"
        )


class ExportError(StorageError):
    """
    Exception raised when export fails.

    Attributes:
        message: Error description
        format_name: Name of the export format
        path: Target path if available
        original_error: Underlying exception if any
    """

    def __init__(
        self,
        message: str,
        format_name: Optional[str] = None,
        path: Optional[Path] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.format_name = format_name
        self.path = path
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.format_name:
            parts.append(f"[{self.format_name}]")
        parts.append(self.message)
        if self.path:
            parts.append(f"(path: {self.path})")
        if self.original_error:
            parts.append(f"Caused by: {type(self.original_error).__name__}: {self.original_error}")
        return " ".join(parts)


class TreeExporter(ABC):
    """
    Abstract base class for tree exporters.

    All exporters must implement the export() method and define
    format_name and file_extension properties.

    Example:
        >>> exporter = JSONExporter()
        >>> result = exporter.export(tree, Path("links.json"))
        >>> print(f"Exported {result.count} entries to {result.path}")
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def render(self, tree: Tree) -> str:
        """Return the exported document as text."""
        pass

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable name of the export format (e.g., "JSON")."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Default file extension without leading dot (e.g., "json")."""
        pass

    def validate_tree(self, tree: Tree) -> List[str]:
        """
        Check a tree before export.

        Returns:
            List of warning messages for any issues found
        """
        warnings = []
        if not tree:
            warnings.append("The tree is empty")
        warnings.extend(tree_issues(tree))
        return warnings

    def prepare_output_path(self, output_path: Union[str, Path]) -> Path:
        """
        Prepare the output path, creating the parent directory.

        Raises:
            ExportError: If the directory cannot be created
        """
        path = Path(output_path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(
                f"Failed to prepare output path: {path}",
                format_name=self.format_name,
                path=path,
                original_error=e
            ) from e

        if not path.suffix:
            path = path.with_suffix(f".{self.file_extension}")
        return path

    def export(self, tree: Tree, output_path: Union[str, Path]) -> ExportResult:
        """
        Export the tree to the specified path.

        Args:
            tree: Tree to export
            output_path: Target file; the format extension is added when missing

        Returns:
            ExportResult with details about the export

        Raises:
            ExportError: If the file cannot be written
        """
        warnings = self.validate_tree(tree)
        path = self.prepare_output_path(output_path)
        content = self.render(tree)

        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise ExportError(
                f"Failed to write {self.format_name} export",
                format_name=self.format_name,
                path=path,
                original_error=e
            ) from e

        links, folders = count_entries(tree)
        self.logger.info(f"Exported {links + folders} entries to {path}")

        return ExportResult(
            path=path,
            count=links + folders,
            format_name=self.format_name,
            additional_info={
                "links": links,
                "folders": folders,
                "file_size": path.stat().st_size,
            },
            warnings=warnings,
        )
