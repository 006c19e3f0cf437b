"""
Bookmark Organizer

Keeps a hierarchical collection of links in a JSON file, stored locally or
committed to a GitHub repository, and lets you browse and extend it.
"""

__version__ = "1.0.0"
