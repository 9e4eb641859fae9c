"""
Platform library acquisition.

This package resolves platform identities against the registry and acquires
the matching library from a local path, a version-control snapshot, or the
npm package cache.
"""

from .identity import PlatformIdentity, resolve_identity
from .registry import PlatformMetadata, PlatformRegistry
from .hooks import LibraryHooks, NoopHooks, CommandHooks
from .downloader import AcquisitionRequest, LibraryDownloader
from .package_cache import PackageCache, NpmPackageCache
from .loader import LibraryLoader, based_on_config, snapshot_url

__all__ = [
    "PlatformIdentity",
    "resolve_identity",
    "PlatformMetadata",
    "PlatformRegistry",
    "LibraryHooks",
    "NoopHooks",
    "CommandHooks",
    "AcquisitionRequest",
    "LibraryDownloader",
    "PackageCache",
    "NpmPackageCache",
    "LibraryLoader",
    "based_on_config",
    "snapshot_url",
]
