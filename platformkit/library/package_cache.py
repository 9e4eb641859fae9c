"""
Package-manager backed library acquisition.

Released platform libraries are published as npm packages
(``cordova-android@4.0.0``). This module asks npm to resolve such a package
through a cache kept under the library root and unpacks it to a stable
directory:

    <lib_root>/npm_cache/<name>/<version>/package

Network access and cache freshness are npm's business; the adapter only
points npm at the cache directory and sets the freshness window.
"""

import json
import logging
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from platformkit.core.directory import get_lib_directory
from platformkit.core.exceptions import PackageCacheError
from platformkit.core.filesystem import extract_tar_gz_stream, move_directory, safe_rmtree
from platformkit.core.locking import LockManager

logger = logging.getLogger(__name__)

# Time in seconds npm considers cached metadata fresh without asking the registry.
CACHE_MIN_SECONDS = 3600 * 24


class PackageCache(ABC):
    """Capability to resolve a package version to an unpacked directory."""

    @abstractmethod
    def resolve(self, name: str, version: str) -> Path:
        """
        Resolve a package to a directory containing its unpacked contents.

        Args:
            name: Package name (e.g., "cordova-android")
            version: Exact package version

        Returns:
            Path to the unpacked package directory

        Raises:
            PackageCacheError: If the package cannot be resolved
        """
        pass

    def cached(self, name: str, version: str) -> Optional[Path]:
        """Return the unpacked package directory if already cached, without fetching."""
        return None


class NpmPackageCache(PackageCache):
    """
    PackageCache implemented with the npm command-line client.

    Example:
        >>> cache = NpmPackageCache()
        >>> cache.resolve("cordova-android", "3.6.4")
        PosixPath('/home/user/.platformkit/lib/npm_cache/cordova-android/3.6.4/package')
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        npm_executable: Optional[str] = None,
        cache_min: int = CACHE_MIN_SECONDS,
        lock_manager: Optional[LockManager] = None,
    ):
        """
        Initialize npm package cache.

        Args:
            cache_dir: npm cache root (default: <lib_root>/npm_cache)
            npm_executable: Path to npm (default: found on PATH)
            cache_min: Freshness window in seconds
            lock_manager: Lock manager (default: lock/ next to cache_dir)
        """
        self.cache_dir = Path(cache_dir) if cache_dir else get_lib_directory() / "npm_cache"
        self.npm_executable = npm_executable
        self.cache_min = cache_min
        self.lock_manager = lock_manager or LockManager(self.cache_dir.parent / "lock")

    def package_dir(self, name: str, version: str) -> Path:
        return self.cache_dir / name / version / "package"

    def cached(self, name: str, version: str) -> Optional[Path]:
        package_dir = self.package_dir(name, version)
        return package_dir if package_dir.exists() else None

    def get_npm_executable(self) -> str:
        """
        Get path to the npm executable.

        Raises:
            PackageCacheError: If npm is not installed
        """
        if self.npm_executable:
            return self.npm_executable

        npm = shutil.which("npm")
        if not npm:
            raise PackageCacheError(
                "npm not found in PATH. Install Node.js and npm, "
                "or fetch the platform with --use-git."
            )
        self.npm_executable = npm
        return npm

    def resolve(self, name: str, version: str) -> Path:
        package_dir = self.package_dir(name, version)
        if package_dir.exists():
            logger.debug(f"Using cached package {name}@{version}: {package_dir}")
            return package_dir

        with self.lock_manager.library_lock(package_dir):
            if package_dir.exists():
                return package_dir

            version_dir = package_dir.parent
            version_dir.mkdir(parents=True, exist_ok=True)
            staging = version_dir / f".tmp_{os.getpid()}_{time.time_ns()}"
            staging.mkdir()
            try:
                tarball = self._pack(f"{name}@{version}", staging)
                with open(tarball, "rb") as f:
                    extract_tar_gz_stream(f, staging / "unpacked")
                unpacked = staging / "unpacked" / "package"
                if not unpacked.is_dir():
                    raise PackageCacheError(
                        f"Package {name}@{version} has no 'package' directory"
                    )
                move_directory(unpacked, package_dir)
            finally:
                safe_rmtree(staging, require_prefix=version_dir)

        logger.info(f"Added {name}@{version} to package cache")
        return package_dir

    def _npm_command(self, *args: str) -> List[str]:
        return [
            self.get_npm_executable(),
            *args,
            "--cache",
            str(self.cache_dir),
            "--cache-min",
            str(self.cache_min),
        ]

    def _pack(self, spec: str, destination: Path) -> Path:
        """Have npm fetch a package tarball (through its cache) into destination."""
        cmd = self._npm_command("pack", spec, "--json", "--pack-destination", str(destination))
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, cwd=destination)
        except OSError as e:
            raise PackageCacheError(
                f"Failed to execute npm: {e}\nCommand: {' '.join(cmd)}"
            ) from e

        if result.returncode != 0:
            raise PackageCacheError(
                f"npm failed to fetch {spec} (exit code {result.returncode})\n"
                f"Command: {' '.join(cmd)}\n"
                f"Error output:\n{result.stderr}"
            )

        try:
            filename = json.loads(result.stdout)[0]["filename"]
        except (ValueError, LookupError, TypeError) as e:
            raise PackageCacheError(f"Unexpected npm pack output for {spec}: {e}") from e

        # Scoped packages are packed as scope-name-version.tgz
        tarball = destination / filename.replace("@", "").replace("/", "-")
        if not tarball.exists():
            raise PackageCacheError(f"npm did not produce {tarball}")
        return tarball
