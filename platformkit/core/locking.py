"""
Concurrent access control for PlatformKit.

Two processes installing the same platform library would otherwise race on
the final cache directory. This module provides file-based advisory locks,
keyed by the install path, that serialize those installs across processes.

Features:
- Cross-platform file locking (Windows, Linux, macOS)
- Cross-process locking (not just threading)
- Timeout support to prevent hanging
- Stale lock file cleanup

Usage:
    from platformkit.core.locking import LockManager

    lock_manager = LockManager(lib_root / "lock")
    with lock_manager.library_lock(install_dir, timeout=300):
        # Only one process installs into install_dir at a time
        pass
"""

import hashlib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Union

from filelock import FileLock, Timeout as LockTimeout

from platformkit.core.filesystem import remove_stale_entries

logger = logging.getLogger(__name__)


def lock_name_for(key: Union[str, Path]) -> str:
    """
    Build a lock file name for an arbitrary key.

    The tail of the key is kept readable; a short digest keeps names unique.

    Args:
        key: Resource key (typically the final install directory)

    Returns:
        File name ending in ".lock"
    """
    text = str(key)
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    tail = "-".join(Path(text).parts[-3:])
    safe_tail = "".join(c if c.isalnum() or c in "-_." else "-" for c in tail)
    return f"library-{safe_tail}-{digest}.lock"


class LockManager:
    """
    Manages locks for PlatformKit library installs.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Union[str, Path]):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (created if missing)
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def library_lock(self, install_dir: Union[str, Path], timeout: float = 300):
        """
        Acquire lock for a library install directory.

        Args:
            install_dir: Final install directory the lock protects
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_dir / lock_name_for(install_dir)
        lock = FileLock(str(lock_path), timeout=timeout)

        try:
            lock.acquire()
        except LockTimeout as e:
            logger.error(
                f"Could not acquire library lock for {install_dir} after {timeout}s. "
                "Another process may be downloading this library."
            )
            raise LockTimeout(str(lock_path)) from e

        try:
            logger.debug(f"Acquired library lock: {lock_path}")
            yield
        finally:
            lock.release()
            logger.debug(f"Released library lock: {lock_path}")

    def cleanup_stale_locks(self, max_age_hours: float = 24) -> int:
        """
        Remove lock files older than max_age_hours.

        The filelock library releases locks when a process dies, but the lock
        files themselves stay on disk.

        Args:
            max_age_hours: Maximum age in hours before lock is considered stale

        Returns:
            Number of stale locks removed
        """
        removed_count = remove_stale_entries(self.lock_dir, max_age_hours)
        if removed_count:
            logger.info(f"Removed {removed_count} stale lock file(s)")
        return removed_count


__all__ = [
    "LockManager",
    "LockTimeout",
    "lock_name_for",
]
