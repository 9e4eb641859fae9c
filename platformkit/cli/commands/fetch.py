"""
Fetch command implementation.

Acquires a platform library (downloading it if needed) and prints its path.
"""

import logging

from platformkit.cli.utils import create_loader, print_error, resolve_project_root
from platformkit.core.exceptions import PlatformKitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the fetch command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    project_root = resolve_project_root(args.project_root)
    logger.debug(f"Fetching {args.platform} for project {project_root}")

    try:
        loader = create_loader(args)
        path = loader.based_on_config(project_root, args.platform, use_git=args.use_git)
    except PlatformKitError as e:
        print_error(str(e))
        return 1

    print(path)
    return 0
