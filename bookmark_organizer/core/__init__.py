"""
Core bookmark tree modules.

This package contains the entry model, the path navigator, the local and
remote persistence backends, the mutation engine and the session that ties
them together.
"""

from .data_models import BreadcrumbItem, EntryDraft, Folder, Link
from .mutation_engine import Backend, MutationEngine, MutationResult
from .navigator import Resolution, resolve
from .session import OrganizerSession

__all__ = [
    "Backend",
    "BreadcrumbItem",
    "EntryDraft",
    "Folder",
    "Link",
    "MutationEngine",
    "MutationResult",
    "OrganizerSession",
    "Resolution",
    "resolve",
]
