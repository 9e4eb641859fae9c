"""
Centralized exception hierarchy for PlatformKit.

This module defines all custom exceptions raised while acquiring platform
libraries so callers can catch a single base class or a specific failure.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class PlatformKitError(Exception):
    """Base exception for all PlatformKit errors."""

    pass


class ConfigError(PlatformKitError):
    """Configuration file could not be read or is malformed."""

    pass


# ============================================================================
# Registry Exceptions
# ============================================================================


class UnrecognizedPlatformError(PlatformKitError):
    """Raised when a platform name is absent from the (merged) registry."""

    def __init__(self, platform_name: str):
        self.platform_name = platform_name
        super().__init__(f'Platform library "{platform_name}" not recognized.')


class RegistryError(PlatformKitError):
    """Raised when the platform registry data cannot be loaded."""

    pass


# ============================================================================
# Download Exceptions
# ============================================================================


class LibraryDownloadError(PlatformKitError):
    """Raised when a library archive cannot be retrieved."""

    pass


class HTTPStatusError(LibraryDownloadError):
    """Raised when the library URL answers with a non-200 status."""

    def __init__(
        self,
        status_code: int,
        platform: str,
        version: Optional[str],
        library_id: Optional[str],
    ):
        self.status_code = status_code
        self.platform = platform
        self.version = version
        self.library_id = library_id
        super().__init__(
            f"HTTP error {status_code} retrieving version {version} "
            f"of {library_id} for {platform}"
        )


class ArchiveExtractionError(PlatformKitError):
    """Failed to decompress or extract a library archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


class ArchiveLayoutError(ArchiveExtractionError):
    """Archive does not contain exactly one top-level directory."""

    def __init__(self, entries):
        self.entries = list(entries)
        if not self.entries:
            detail = "archive is empty"
        else:
            detail = "found " + ", ".join(sorted(self.entries))
        super().__init__(
            f"Expected exactly one top-level directory in library archive: {detail}"
        )


# ============================================================================
# Package Cache Exceptions
# ============================================================================


class PackageCacheError(PlatformKitError):
    """Raised when the package manager cannot add or resolve a package."""

    pass


# ============================================================================
# Hook Exceptions
# ============================================================================


class HookError(PlatformKitError):
    """Raised when a download hook fails."""

    def __init__(self, event: str, reason: str):
        self.event = event
        self.reason = reason
        super().__init__(f"Hook '{event}' failed: {reason}")
