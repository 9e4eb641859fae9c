"""
Shared utilities for CLI commands.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from platformkit.library.loader import LibraryLoader

logger = logging.getLogger(__name__)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def resolve_project_root(path: Optional[Path] = None) -> Path:
    """
    Resolve project root directory.

    Args:
        path: Optional path (defaults to current directory)

    Returns:
        Resolved absolute path
    """
    if path is None:
        path = Path.cwd()
    return Path(path).resolve()


def create_loader(args) -> LibraryLoader:
    """Create a library loader honouring the global --lib-dir option."""
    lib_dir = getattr(args, "lib_dir", None)
    return LibraryLoader(lib_root=Path(lib_dir) if lib_dir else None)
