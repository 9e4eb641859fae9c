"""
PlatformKit - lazy acquisition and caching of platform SDK libraries.

Given a platform name (optionally pinned to a version), PlatformKit returns a
directory holding the platform's library sources, downloading and caching it
under ~/.platformkit/lib on first use.

Example:
    >>> from platformkit import LibraryLoader
    >>> loader = LibraryLoader()
    >>> path = loader.based_on_config(Path.cwd(), "android@4.0.0", use_git=True)
"""

from platformkit.library.loader import LibraryLoader, based_on_config

__version__ = "0.1.0"

__all__ = ["LibraryLoader", "based_on_config", "__version__"]
