"""
Platform library download and installation.

This module fetches a library archive over HTTP(S), streams it through gzip
decompression and tar extraction into a staging directory, and promotes the
extracted tree into the library cache. The cache never holds a partially
written library: extraction happens in staging, and promotion is a rename of
the whole directory.
"""

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

from platformkit.config.npmrc import NpmConfig
from platformkit.core.directory import get_lib_directory
from platformkit.core.download import (
    DEFAULT_TIMEOUT,
    ResponseReader,
    is_fetchable_url,
    local_path_from_url,
    open_stream,
)
from platformkit.core.exceptions import ArchiveLayoutError, HTTPStatusError
from platformkit.core.filesystem import (
    extract_tar_gz_stream,
    list_entries,
    move_directory,
    safe_rmtree,
)
from platformkit.core.locking import LockManager
from platformkit.library.hooks import LibraryHooks, NoopHooks
from platformkit.library.registry import PlatformMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquisitionRequest:
    """Fully resolved description of a library to acquire."""

    platform: str
    url: str
    id: Optional[str] = None
    version: Optional[str] = None
    subdirectory: str = ""
    altplatform: Optional[str] = None

    def __post_init__(self):
        """Validate request after initialization."""
        if not self.url:
            raise ValueError(f"No library URL configured for platform '{self.platform}'")
        if self.is_uri and not self.id:
            raise ValueError(f"A library id is required to download {self.url}")
        if self.is_uri and not self.version:
            raise ValueError(f"A library version is required to download {self.url}")

    @classmethod
    def from_metadata(cls, platform: str, metadata: PlatformMetadata) -> "AcquisitionRequest":
        return cls(
            platform=platform,
            url=metadata.source_url,
            id=metadata.id,
            version=metadata.version,
            subdirectory=metadata.subdirectory or "",
            altplatform=metadata.altplatform,
        )

    @property
    def is_uri(self) -> bool:
        return is_fetchable_url(self.url)

    @property
    def platdir(self) -> str:
        return self.altplatform or self.platform

    def download_dir(self, lib_root: Path) -> Path:
        """Final install directory: <lib_root>/<platdir>/<id>/<version>."""
        return Path(lib_root) / self.platdir / self.id / self.version

    def lib_dir(self, lib_root: Path) -> Path:
        """Directory handed to callers: the install (or local) dir plus subdirectory."""
        if not self.is_uri:
            return local_path_from_url(self.url) / self.subdirectory
        return self.download_dir(lib_root) / self.subdirectory


class LibraryDownloader:
    """
    Downloads platform libraries into the library cache.

    Example:
        >>> downloader = LibraryDownloader()
        >>> request = AcquisitionRequest(
        ...     platform="android",
        ...     url="https://example.com/android.tgz",
        ...     id="cordova",
        ...     version="4.0.0",
        ... )
        >>> downloader.download(request)
        PosixPath('/home/user/.platformkit/lib/android/cordova/4.0.0')
    """

    def __init__(
        self,
        lib_root: Optional[Path] = None,
        hooks: Optional[LibraryHooks] = None,
        npm_config: Optional[NpmConfig] = None,
        lock_manager: Optional[LockManager] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize library downloader.

        Args:
            lib_root: Library root. If None, uses the global library directory.
            hooks: Download hooks. If None, no hooks run.
            npm_config: npm configuration for proxy/TLS settings.
                        If None, loaded per project on first download.
            lock_manager: Lock manager. If None, uses <lib_root>/lock.
            timeout: HTTP timeout in seconds
        """
        self.lib_root = Path(lib_root) if lib_root is not None else get_lib_directory()
        self.tmp_dir = self.lib_root / "tmp"
        self.hooks = hooks or NoopHooks()
        self._npm_config = npm_config
        self._npm_configs: Dict[Optional[Path], NpmConfig] = {}
        self.lock_manager = lock_manager or LockManager(self.lib_root / "lock")
        self.timeout = timeout

    def npm_config_for(self, project_root: Optional[Path] = None) -> NpmConfig:
        """Return the npm config, with the project's .npmrc layered in when given."""
        if self._npm_config is not None:
            return self._npm_config
        key = Path(project_root) if project_root is not None else None
        if key not in self._npm_configs:
            self._npm_configs[key] = NpmConfig.load(project_root=key)
        return self._npm_configs[key]

    def cached_path(self, request: AcquisitionRequest) -> Optional[Path]:
        """Return the library dir if the request is already installed, else None."""
        if request.download_dir(self.lib_root).exists():
            return request.lib_dir(self.lib_root)
        return None

    def download(
        self,
        request: AcquisitionRequest,
        hooks: Optional[LibraryHooks] = None,
        project_root: Optional[Path] = None,
    ) -> Path:
        """
        Download, extract and install a library.

        Args:
            request: Library to download; its url must be fetchable
            hooks: Hooks for this download (default: the downloader's hooks)
            project_root: Project whose .npmrc supplies proxy/TLS settings

        Returns:
            Installed library directory joined with the request's subdirectory

        Raises:
            LibraryDownloadError: If the server cannot be reached
            HTTPStatusError: If the server answers with a non-200 status
            ArchiveExtractionError: If the archive cannot be extracted
            ArchiveLayoutError: If the archive has not exactly one top-level directory
            HookError: If a download hook fails
            LockTimeout: If another process holds the install lock too long
        """
        if not request.is_uri:
            raise ValueError(f"Not a downloadable URL: {request.url}")

        hooks = hooks or self.hooks
        download_dir = request.download_dir(self.lib_root)
        lib_dir = request.lib_dir(self.lib_root)

        hooks.before_download(
            platform=request.platform,
            url=request.url,
            id=request.id,
            version=request.version,
        )

        npm_config = self.npm_config_for(project_root)
        proxy = npm_config.proxy_for(request.url)
        strict_ssl = npm_config.strict_ssl

        with self.lock_manager.library_lock(download_dir):
            if download_dir.exists():
                logger.debug(
                    f'{request.id} library for "{request.platform}" was installed '
                    "by another process. Continuing."
                )
                return lib_dir

            try:
                with self._staging_dir(request.id) as staging:
                    size = self._fetch_and_extract(request, staging, proxy, strict_ssl)
                    move_directory(self._single_top_level_entry(staging), download_dir)
            except Exception as e:
                logger.error(
                    f"Failed to download {request.id} library for {request.platform}: {e}"
                )
                raise

        hooks.after_download(
            platform=request.platform,
            url=request.url,
            id=request.id,
            version=request.version,
            path=lib_dir,
            size=size,
            symlink=False,
        )
        return lib_dir

    @contextmanager
    def _staging_dir(self, library_id: str) -> Iterator[Path]:
        """
        Create a fresh staging directory and remove it on every exit path.

        The name embeds the process id and a nanosecond timestamp so concurrent
        attempts never share a directory. It lives under the library root, not
        the system temp dir, so promotion is a same-filesystem rename.
        """
        staging = self.tmp_dir / f"tmp_{library_id}_{os.getpid()}_{time.time_ns()}"
        safe_rmtree(staging, require_prefix=self.tmp_dir)
        staging.mkdir(parents=True)
        try:
            yield staging
        finally:
            safe_rmtree(staging, require_prefix=self.tmp_dir)

    def _fetch_and_extract(
        self,
        request: AcquisitionRequest,
        staging: Path,
        proxy: Optional[str],
        strict_ssl: Optional[bool],
    ) -> int:
        logger.info(f"Downloading {request.id} library for {request.platform}...")

        response = open_stream(
            request.url, proxy=proxy, strict_ssl=strict_ssl, timeout=self.timeout
        )
        with response:
            if response.status_code != 200:
                raise HTTPStatusError(
                    response.status_code, request.platform, request.version, request.id
                )
            size = extract_tar_gz_stream(ResponseReader(response), staging)

        logger.debug(f"Downloaded, unzipped and extracted {size} byte response.")
        logger.info("Download complete")
        return size

    @staticmethod
    def _single_top_level_entry(staging: Path) -> Path:
        entries = list_entries(staging)
        if len(entries) != 1 or not (staging / entries[0]).is_dir():
            raise ArchiveLayoutError(entries)
        return staging / entries[0]
