#!/usr/bin/env python3
"""
Main entry point for the Bookmark Organizer.

Used by the ``bookmark-organizer`` console script.
"""

import sys
from bookmark_organizer.cli import main


if __name__ == "__main__":
    sys.exit(main())
