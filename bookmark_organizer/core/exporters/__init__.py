"""
Tree exporters.

This module provides exporters that write the bookmark tree to a file:
JSON (the importable snapshot form) and Markdown (for reading).
"""

from .base import TreeExporter, ExportResult, ExportError
from .json_exporter import JSONExporter
from .markdown_exporter import MarkdownExporter

__all__ = [
    "TreeExporter",
    "ExportResult",
    "ExportError",
    "JSONExporter",
    "MarkdownExporter",
    "EXPORTERS",
    "get_exporter",
]


# Format registry for easy access
EXPORTERS = {
    "json": JSONExporter,
    "markdown": MarkdownExporter,
    "md": MarkdownExporter,
}


def get_exporter(format_name: str) -> type:
    """
    Get an exporter class by format name.

    Args:
        format_name: Name of the format (json, markdown)

    Returns:
        Exporter class for the specified format

    Raises:
        ValueError: If format is not supported
    """
    format_lower = format_name.lower()
    if format_lower not in EXPORTERS:
        supported = ", ".join(sorted(set(EXPORTERS.keys()) - {"md"}))
        raise ValueError(
            f"Unsupported export format: {format_name}. "
            f"Supported formats: {supported}"
        )
    return EXPORTERS[format_lower]
