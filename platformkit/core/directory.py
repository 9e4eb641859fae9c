"""
Directory structure management for PlatformKit.

This module resolves the global library cache and project-local directories
and ensures the cache layout exists before libraries are downloaded into it.

Directory Structure:
    Global Cache (~/.platformkit/ or %USERPROFILE%\\.platformkit\\):
        - lib/                                    : Library root
          - <platdir>/<id>/<version>/             : Installed platform libraries
          - npm_cache/                            : Package manager cache
          - tmp/                                  : Download staging directories
          - lock/                                 : Concurrent access control files

    Project-Local (<project-root>/.platformkit/):
        - config.yaml     : Library overrides and download hooks
"""

import os
from pathlib import Path, PurePath
from typing import Optional, Union

from platformkit.core.exceptions import PlatformKitError

HOME_ENV_VAR = "PLATFORMKIT_HOME"

LIB_SUBDIRS = ("npm_cache", "tmp", "lock")


class DirectoryError(PlatformKitError):
    """Base exception for directory-related errors."""

    pass


class DirectoryCreationError(DirectoryError):
    """Raised when directory creation fails."""

    pass


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific global cache directory path.

    The PLATFORMKIT_HOME environment variable takes precedence.

    Returns:
        Path: The global cache directory path.
            - Windows: %USERPROFILE%\\.platformkit
            - Linux/macOS: ~/.platformkit/

    Example:
        >>> cache_dir = get_global_cache_dir()
        >>> print(cache_dir)
        /home/user/.platformkit  # on Linux
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override)

    if os.name == "nt":  # Windows
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".platformkit"
    else:  # Linux/macOS
        return Path.home() / ".platformkit"


def get_lib_directory() -> Path:
    """Get the library root where platform libraries are cached."""
    return get_global_cache_dir() / "lib"


def get_project_local_dir(project_root: Union[str, Path]) -> Path:
    """
    Get the project-local .platformkit directory path.

    Args:
        project_root: Root directory of the project.

    Returns:
        Path: The project-local .platformkit directory path.
    """
    if not isinstance(project_root, (Path, PurePath)):
        project_root = Path(project_root)
    return project_root / ".platformkit"


def ensure_lib_structure(lib_root: Optional[Path] = None) -> Path:
    """
    Create the library cache directory structure if it doesn't exist.

    Creates:
        - Library root directory
        - npm_cache/, tmp/ and lock/ subdirectories

    Args:
        lib_root: Library root (default: get_lib_directory())

    Returns:
        Path: The library root path.

    Raises:
        DirectoryCreationError: If directory creation fails.
    """
    lib_root = Path(lib_root) if lib_root is not None else get_lib_directory()

    for path in [lib_root] + [lib_root / name for name in LIB_SUBDIRS]:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(f"Failed to create directory {path}: {e}")

    return lib_root


__all__ = [
    "DirectoryError",
    "DirectoryCreationError",
    "get_global_cache_dir",
    "get_lib_directory",
    "get_project_local_dir",
    "ensure_lib_structure",
]
