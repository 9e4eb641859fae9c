"""
Entry point for running PlatformKit CLI as a module.

Usage: python -m platformkit [command] [options]
"""

from platformkit.cli.parser import main

if __name__ == "__main__":
    main()
