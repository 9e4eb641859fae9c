"""
File system utilities for PlatformKit.

This module provides the filesystem operations the library cache relies on:
- Streaming extraction of gzip-compressed tar archives
- Safe deletion of staging directories
- Promotion of an extracted directory into the cache (rename, with a
  copy fallback across filesystems)

All operations guard against paths escaping their intended parent directory.
"""

import errno
import gzip
import os
import shutil
import sys
import tarfile
import time
import zlib
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from platformkit.core.exceptions import (
    PlatformKitError,
    ArchiveExtractionError,
    InsecureArchiveError,
)

IS_WINDOWS = os.name == "nt"


class FilesystemError(PlatformKitError):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Args:
        path: Path to check
        parent: Parent directory

    Returns:
        True if path is under parent directory

    Example:
        >>> is_relative_to(Path("/home/user/.platformkit/lib/tmp"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def list_entries(path: Union[str, Path]) -> List[str]:
    """Return the names of the direct children of a directory, sorted."""
    return sorted(p.name for p in Path(path).iterdir())


# ============================================================================
# Archive Extraction
# ============================================================================


class _CountingReader:
    """File-like wrapper that counts the bytes read through it."""

    def __init__(self, fileobj: BinaryIO):
        self._fileobj = fileobj
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._fileobj.read(size)
        self.bytes_read += len(data)
        return data


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Prevents directory traversal attacks (e.g., paths containing '../').

    Args:
        path: Member path from archive
        destination: Extraction destination

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def _checked_members(tar: tarfile.TarFile, destination: Path) -> Iterator[tarfile.TarInfo]:
    """Yield archive members in stream order, validating each path."""
    for member in tar:
        _validate_archive_path(member.name, destination)
        yield member


def extract_tar_gz_stream(stream: BinaryIO, destination: Union[str, Path]) -> int:
    """
    Decompress and extract a .tar.gz stream without buffering it to disk.

    The stream is read sequentially, so it may be a network response body.

    Args:
        stream: Readable binary file-like object producing gzip data
        destination: Directory to extract to (created if missing)

    Returns:
        Number of decompressed bytes read from the stream

    Raises:
        InsecureArchiveError: If archive contains malicious paths
        ArchiveExtractionError: If decompression or extraction fails
    """
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    counter = _CountingReader(gzip.GzipFile(fileobj=stream, mode="rb"))

    try:
        with tarfile.open(fileobj=counter, mode="r|") as tar:
            members = _checked_members(tar, destination)
            # Extract with filter for security (Python 3.12+)
            if sys.version_info >= (3, 12):
                tar.extractall(destination, members=members, filter="data")
            else:
                tar.extractall(destination, members=members)
    except InsecureArchiveError:
        raise
    except (OSError, EOFError, zlib.error, tarfile.TarError) as e:
        raise ArchiveExtractionError(f"Failed to extract library archive: {e}") from e

    return counter.bytes_read


# ============================================================================
# Safe File Operations
# ============================================================================


def _handle_remove_readonly(func, path, exc):
    """Error handler for Windows read-only files."""
    if not os.access(path, os.W_OK):
        os.chmod(path, 0o777)
        func(path)
    else:
        raise exc if isinstance(exc, BaseException) else exc[1]


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/home/user/.platformkit/lib/tmp/tmp_x', require_prefix='/home/user/.platformkit')
        >>> safe_rmtree('/usr/bin', require_prefix='/home')  # ValueError
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=_handle_remove_readonly)
            else:
                shutil.rmtree(path, onerror=_handle_remove_readonly)
        else:
            shutil.rmtree(path)
    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def move_directory(source: Union[str, Path], target: Union[str, Path]) -> Path:
    """
    Move a directory to a target path that must not exist yet.

    A same-filesystem rename is atomic: the target appears fully populated or
    not at all. Across filesystems the tree is copied to a hidden sibling of
    the target first and then renamed into place.

    Args:
        source: Directory to move
        target: Destination path (parents are created)

    Returns:
        The target path

    Raises:
        FilesystemError: If the target exists or the move fails
    """
    source = Path(source)
    target = Path(target)

    if target.exists():
        raise FilesystemError(f"Target directory already exists: {target}")

    target.parent.mkdir(parents=True, exist_ok=True)

    try:
        os.rename(source, target)
        return target
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise FilesystemError(
                f"Failed to move '{source}' to '{target}': {e}"
            ) from e

    # Cross-device link: copy next to the target, then rename.
    partial = target.with_name(f".{target.name}.partial-{os.getpid()}")
    try:
        shutil.copytree(source, partial, symlinks=True)
        os.rename(partial, target)
    except OSError as e:
        raise FilesystemError(f"Failed to copy '{source}' to '{target}': {e}") from e
    finally:
        if partial.exists():
            safe_rmtree(partial, require_prefix=target.parent)

    safe_rmtree(source)
    return target


def remove_stale_entries(directory: Union[str, Path], max_age_hours: float) -> int:
    """
    Remove files and directories older than max_age_hours.

    Used for staging directories and lock files left behind by interrupted
    processes.

    Args:
        directory: Directory whose direct children are inspected
        max_age_hours: Maximum age in hours before an entry is considered stale

    Returns:
        Number of entries removed
    """
    directory = Path(directory)
    if not directory.exists():
        return 0

    current_time = time.time()
    removed_count = 0

    for entry in directory.iterdir():
        try:
            age_hours = (current_time - entry.stat().st_mtime) / 3600
            if age_hours <= max_age_hours:
                continue
            if entry.is_dir():
                safe_rmtree(entry, require_prefix=directory)
            else:
                entry.unlink()
            removed_count += 1
        except (OSError, FilesystemError):
            # Entry may be in use or already deleted
            continue

    return removed_count


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "is_relative_to",
    "list_entries",
    "extract_tar_gz_stream",
    "safe_rmtree",
    "move_directory",
    "remove_stale_entries",
]
