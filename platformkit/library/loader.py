"""
Lazy loading of platform libraries.

This module decides where a platform library comes from and returns the
directory holding its sources:

1. A custom location configured for the project (local path), merged over
   the registry record.
2. A version-control snapshot (``--use-git``, and always for the ``www``
   web-source bundle), downloaded and cached under the library root.
3. The npm package cache, for released versions.
"""

import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from platformkit.config.project import ProjectConfig
from platformkit.core.exceptions import ConfigError, UnrecognizedPlatformError
from platformkit.library.downloader import AcquisitionRequest, LibraryDownloader
from platformkit.library.hooks import CommandHooks, LibraryHooks
from platformkit.library.identity import PlatformIdentity, resolve_identity
from platformkit.library.package_cache import NpmPackageCache, PackageCache
from platformkit.library.registry import PlatformRegistry

logger = logging.getLogger(__name__)

WEB_SOURCE_PLATFORM = "www"

# Newer platform name -> name older project configurations used for it.
LEGACY_ALIASES = {"windows": "windows8"}

SNAPSHOT_SUFFIX = ";a=snapshot;h={version};sf=tgz"

_VCS_WEB_URL = re.compile(r"^...*:")


def snapshot_url(url: str, version: str) -> str:
    """
    Build the snapshot download URL for a version-control web endpoint.

    Example:
        >>> snapshot_url("https://git.example.org/repos/asf?p=cordova-ios.git", "3.5.0")
        'https://git.example.org/repos/asf?p=cordova-ios.git;a=snapshot;h=3.5.0;sf=tgz'
    """
    if _VCS_WEB_URL.match(url):
        return url + SNAPSHOT_SUFFIX.format(version=version)
    return url


class LibraryLoader:
    """
    Resolves platform libraries to directories, downloading them when needed.

    Example:
        >>> loader = LibraryLoader()
        >>> loader.based_on_config(Path("/path/to/project"), "android@4.0.0")
        PosixPath('/home/user/.platformkit/lib/npm_cache/cordova-android/4.0.0/package')
    """

    def __init__(
        self,
        registry: Optional[PlatformRegistry] = None,
        lib_root: Optional[Path] = None,
        downloader: Optional[LibraryDownloader] = None,
        package_cache: Optional[PackageCache] = None,
        hooks: Optional[LibraryHooks] = None,
    ):
        """
        Initialize library loader.

        Args:
            registry: Platform registry. If None, loads the bundled registry.
            lib_root: Library root. Ignored when a downloader is given.
            downloader: Library downloader. If None, creates one for lib_root.
            package_cache: Package cache. If None, uses npm under lib_root.
            hooks: Download hooks. If None, hooks come from the project config.
        """
        self.registry = registry if registry is not None else PlatformRegistry.load()
        self.downloader = downloader or LibraryDownloader(lib_root=lib_root)
        self.lib_root = self.downloader.lib_root
        self.package_cache = package_cache or NpmPackageCache(self.lib_root / "npm_cache")
        self.hooks = hooks

    def based_on_config(
        self,
        project_root: Union[str, Path],
        platform: str,
        use_git: bool = False,
    ) -> Path:
        """
        Acquire a platform library, honouring the project's configuration.

        Args:
            project_root: Root directory of the project
            platform: Platform token, "name" or "name@version"
            use_git: Prefer a version-control snapshot over the package cache

        Returns:
            Directory containing the platform library sources
        """
        identity = resolve_identity(platform)
        config = ProjectConfig.load(project_root)
        hooks = self.hooks or CommandHooks.from_config(config)
        project_root = config.project_root

        config_key = identity.name
        custom_path = config.has_custom_path(config_key)
        if not custom_path and identity.name in LEGACY_ALIASES:
            config_key = LEGACY_ALIASES[identity.name]
            custom_path = config.has_custom_path(config_key)

        if not custom_path:
            return self.default(
                platform, use_git=use_git, hooks=hooks, project_root=project_root
            )

        logger.debug(f'Using custom library location for "{identity.name}": {custom_path}')
        override = config.lib_override(config_key)
        if identity.version and "version" not in override:
            override["version"] = identity.version
        registry = self.registry.with_override(identity.name, override)
        return self.custom(registry, identity.name, hooks=hooks, project_root=project_root)

    def default(
        self,
        platform: str,
        use_git: bool = False,
        hooks: Optional[LibraryHooks] = None,
        project_root: Optional[Path] = None,
    ) -> Path:
        """Acquire a platform library from the registry defaults."""
        identity = resolve_identity(platform)
        if use_git or identity.name == WEB_SOURCE_PLATFORM:
            return self.from_version_control(
                identity, hooks=hooks, project_root=project_root
            )
        return self.from_package_cache(identity)

    def from_version_control(
        self,
        identity: PlatformIdentity,
        hooks: Optional[LibraryHooks] = None,
        project_root: Optional[Path] = None,
    ) -> Path:
        """Download (or reuse) a version-control snapshot of the library."""
        identity = self._resolve_version(identity)
        metadata = self.registry[identity.name]

        url = metadata.source_url
        if url:
            url = snapshot_url(url, identity.version)

        record = replace(
            metadata, url=url, uri=None, id=self.registry.vendor, version=identity.version
        )
        registry = self.registry.with_record(identity.name, record)
        return self.custom(registry, identity.name, hooks=hooks, project_root=project_root)

    def from_package_cache(self, identity: PlatformIdentity) -> Path:
        """Resolve a released library version through the package cache."""
        identity = self._resolve_version(identity)
        metadata = self.registry[identity.name]

        # A snapshot of the same version downloaded earlier is reused as is.
        snapshot_dir = self._snapshot_dir(identity)
        if snapshot_dir.exists():
            logger.debug(
                f'Platform files for "{identity.name}" previously downloaded '
                "not from npm. Using that copy."
            )
            return snapshot_dir / metadata.subdirectory

        package_name = f"{self.registry.vendor}-{identity.name}"
        return self.package_cache.resolve(package_name, identity.version)

    def custom(
        self,
        registry: PlatformRegistry,
        platform: str,
        hooks: Optional[LibraryHooks] = None,
        project_root: Optional[Path] = None,
    ) -> Path:
        """
        Acquire a library from the location recorded in a (merged) registry.

        Local paths are returned as is. Remote libraries are served from the
        cache when already installed, otherwise downloaded with the proxy and
        TLS settings of project_root's npm configuration.
        """
        if platform not in registry:
            raise UnrecognizedPlatformError(platform)

        try:
            request = AcquisitionRequest.from_metadata(platform, registry[platform])
        except ValueError as e:
            raise ConfigError(str(e)) from e

        if not request.is_uri:
            return request.lib_dir(self.lib_root)

        cached = self.downloader.cached_path(request)
        if cached is not None:
            logger.debug(
                f'{request.id} library for "{platform}" already exists. '
                "No need to download. Continuing."
            )
            return cached

        return self.downloader.download(request, hooks=hooks, project_root=project_root)

    def find_cached(self, platform: str, use_git: bool = False) -> Optional[Path]:
        """
        Return the cached library directory for a platform without fetching.

        Args:
            platform: Platform token, "name" or "name@version"
            use_git: Only consider version-control snapshots

        Returns:
            Directory of the cached library, or None if it is not cached
        """
        identity = self._resolve_version(resolve_identity(platform))
        metadata = self.registry[identity.name]

        snapshot_dir = self._snapshot_dir(identity)
        if snapshot_dir.exists():
            return snapshot_dir / metadata.subdirectory

        if use_git or identity.name == WEB_SOURCE_PLATFORM:
            return None
        package_name = f"{self.registry.vendor}-{identity.name}"
        return self.package_cache.cached(package_name, identity.version)

    def _snapshot_dir(self, identity: PlatformIdentity) -> Path:
        metadata = self.registry[identity.name]
        platdir = metadata.altplatform or identity.name
        return self.lib_root / platdir / self.registry.vendor / identity.version

    def _resolve_version(self, identity: PlatformIdentity) -> PlatformIdentity:
        if identity.name not in self.registry:
            raise UnrecognizedPlatformError(identity.name)
        identity = identity.with_default_version(self.registry.default_version(identity.name))
        if not identity.version:
            raise ConfigError(f'No version known for platform "{identity.name}"')
        return identity


# Convenience function for one-off acquisitions
def based_on_config(
    project_root: Union[str, Path], platform: str, use_git: bool = False
) -> Path:
    """
    Convenience function to acquire a platform library.

    Creates a loader with default settings and resolves the platform in one
    call. For multiple platforms, create a LibraryLoader and reuse it.

    Example:
        >>> from platformkit.library.loader import based_on_config
        >>> path = based_on_config(Path.cwd(), "ios")
    """
    return LibraryLoader().based_on_config(project_root, platform, use_git=use_git)
