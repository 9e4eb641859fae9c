"""
Clean command implementation.

Removes staging directories and lock files left behind by interrupted
acquisitions. Installed libraries are never touched.
"""

import logging

from platformkit.core.directory import ensure_lib_structure
from platformkit.core.filesystem import remove_stale_entries
from platformkit.core.locking import LockManager

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the clean command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    lib_root = ensure_lib_structure(args.lib_dir)
    logger.debug(f"Cleaning library root {lib_root}")

    removed_dirs = remove_stale_entries(lib_root / "tmp", args.max_age_hours)
    removed_locks = LockManager(lib_root / "lock").cleanup_stale_locks(args.max_age_hours)

    print(f"Removed {removed_dirs} staging entries and {removed_locks} lock files")
    return 0
