"""
Core functionality for PlatformKit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_global_cache_dir,
    get_lib_directory,
    get_project_local_dir,
    ensure_lib_structure,
    DirectoryError,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .exceptions import (
    PlatformKitError,
    ConfigError,
    UnrecognizedPlatformError,
    RegistryError,
    LibraryDownloadError,
    HTTPStatusError,
    ArchiveExtractionError,
    InsecureArchiveError,
    ArchiveLayoutError,
    PackageCacheError,
    HookError,
)

__all__ = [
    "get_global_cache_dir",
    "get_lib_directory",
    "get_project_local_dir",
    "ensure_lib_structure",
    "DirectoryError",
    "LockManager",
    "LockTimeout",
    "PlatformKitError",
    "ConfigError",
    "UnrecognizedPlatformError",
    "RegistryError",
    "LibraryDownloadError",
    "HTTPStatusError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "ArchiveLayoutError",
    "PackageCacheError",
    "HookError",
]
