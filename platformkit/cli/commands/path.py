"""
Path command implementation.

Prints where a platform library is cached, without fetching it.
"""

import logging

from platformkit.cli.utils import create_loader, print_error
from platformkit.core.exceptions import PlatformKitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the path command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if the library is cached, 1 otherwise)
    """
    try:
        loader = create_loader(args)
        path = loader.find_cached(args.platform, use_git=args.use_git)
    except PlatformKitError as e:
        print_error(str(e))
        return 1

    if path is None:
        logger.info(f'Library for "{args.platform}" is not cached')
        return 1

    print(path)
    return 0
