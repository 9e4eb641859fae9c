"""
Configuration readers for PlatformKit.

- npmrc: proxy and TLS settings from the npm configuration store
- project: per-project library overrides and download hooks
"""

from .npmrc import NpmConfig, parse_npmrc
from .project import ProjectConfig, get_config_path

__all__ = [
    "NpmConfig",
    "parse_npmrc",
    "ProjectConfig",
    "get_config_path",
]
