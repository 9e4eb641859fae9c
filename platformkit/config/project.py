"""Project-local configuration for PlatformKit.

This module reads ``<project>/.platformkit/config.yaml``, which may point a
platform at a custom library location and declare download hooks:

.. code-block:: yaml

    lib:
      ios:
        url: /local/ios-src
        version: 3.2.0
        subdirectory: ""
    hooks:
      before_library_download:
        - echo "fetching $PLATFORMKIT_PLATFORM"
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from platformkit.core.directory import get_project_local_dir
from platformkit.core.download import is_fetchable_url
from platformkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"


def get_config_path(project_root: Union[str, Path]) -> Path:
    """Get the path of the project configuration file."""
    return get_project_local_dir(project_root) / CONFIG_FILE_NAME


class ProjectConfig:
    """Parsed project configuration."""

    def __init__(self, project_root: Union[str, Path], data: Optional[Dict[str, Any]] = None):
        self.project_root = Path(project_root)
        self.data = data or {}

    @classmethod
    def load(cls, project_root: Union[str, Path]) -> "ProjectConfig":
        """
        Load the project configuration.

        A missing file yields an empty configuration.

        Args:
            project_root: Root directory of the project

        Returns:
            ProjectConfig instance

        Raises:
            ConfigError: If the file is not valid YAML or not a mapping
        """
        config_path = get_config_path(project_root)
        if not config_path.exists():
            logger.debug(f"Project config not found (optional): {config_path}")
            return cls(project_root)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")

        lib = data.get("lib")
        if lib is not None and not isinstance(lib, dict):
            raise ConfigError(f"'lib' in {config_path} must be a mapping")

        return cls(project_root, data)

    def lib_override(self, platform: str) -> Dict[str, Any]:
        """Return the override record for a platform (empty if none)."""
        override = (self.data.get("lib") or {}).get(platform)
        if override is None:
            return {}
        if not isinstance(override, dict):
            raise ConfigError(f"lib.{platform} must be a mapping")
        return dict(override)

    def has_custom_path(self, platform: str) -> Optional[str]:
        """
        Return the custom local library path configured for a platform.

        Only overrides whose url (or legacy uri) is a local filesystem path
        count; remote overrides are ignored here.
        """
        override = self.lib_override(platform)
        url = override.get("uri") or override.get("url")
        if not url:
            return None
        url = str(url)
        if is_fetchable_url(url):
            return None
        return url

    def hook_commands(self, event: str) -> List[str]:
        """Return the shell commands configured for a hook event."""
        commands = (self.data.get("hooks") or {}).get(event) or []
        if isinstance(commands, str):
            commands = [commands]
        if not isinstance(commands, list):
            raise ConfigError(f"hooks.{event} must be a command or list of commands")
        return [str(c) for c in commands]
