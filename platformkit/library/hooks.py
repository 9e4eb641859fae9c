"""
Download lifecycle hooks.

The downloader calls ``before_download`` before any network activity and
``after_download`` once a library is installed. Each call completes before
the download proceeds; an exception aborts the acquisition.

Events:
    before_library_download: platform, url, id, version
    after_library_download:  platform, url, id, version, path, size, symlink
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from platformkit.config.project import ProjectConfig
from platformkit.core.exceptions import HookError

logger = logging.getLogger(__name__)

BEFORE_LIBRARY_DOWNLOAD = "before_library_download"
AFTER_LIBRARY_DOWNLOAD = "after_library_download"

ENV_PREFIX = "PLATFORMKIT_"


class LibraryHooks(ABC):
    """Extension point around library downloads."""

    @abstractmethod
    def before_download(
        self, platform: str, url: str, id: Optional[str], version: Optional[str]
    ) -> None:
        """Called before the library archive is requested."""
        pass

    @abstractmethod
    def after_download(
        self,
        platform: str,
        url: str,
        id: Optional[str],
        version: Optional[str],
        path: Path,
        size: int,
        symlink: bool = False,
    ) -> None:
        """Called after the library has been installed into the cache."""
        pass


class NoopHooks(LibraryHooks):
    """Hooks that do nothing."""

    def before_download(self, platform, url, id, version) -> None:
        pass

    def after_download(self, platform, url, id, version, path, size, symlink=False) -> None:
        pass


class CommandHooks(LibraryHooks):
    """
    Run shell commands declared in the project configuration.

    Event fields are exported to the commands as environment variables
    (``PLATFORMKIT_PLATFORM``, ``PLATFORMKIT_URL``, ``PLATFORMKIT_ID``,
    ``PLATFORMKIT_VERSION``, and after download also ``PLATFORMKIT_PATH``,
    ``PLATFORMKIT_SIZE`` and ``PLATFORMKIT_SYMLINK``).

    Example:
        >>> hooks = CommandHooks.from_project(Path("/path/to/project"))
    """

    def __init__(self, commands: Dict[str, List[str]], cwd: Optional[Path] = None):
        self.commands = commands
        self.cwd = cwd

    @classmethod
    def from_project(cls, project_root: Path) -> "CommandHooks":
        return cls.from_config(ProjectConfig.load(project_root))

    @classmethod
    def from_config(cls, config: ProjectConfig) -> "CommandHooks":
        """Build hooks from an already loaded project configuration."""
        commands = {
            event: config.hook_commands(event)
            for event in (BEFORE_LIBRARY_DOWNLOAD, AFTER_LIBRARY_DOWNLOAD)
        }
        return cls(commands, cwd=config.project_root)

    def before_download(self, platform, url, id, version) -> None:
        self._fire(
            BEFORE_LIBRARY_DOWNLOAD,
            {"platform": platform, "url": url, "id": id, "version": version},
        )

    def after_download(self, platform, url, id, version, path, size, symlink=False) -> None:
        self._fire(
            AFTER_LIBRARY_DOWNLOAD,
            {
                "platform": platform,
                "url": url,
                "id": id,
                "version": version,
                "path": path,
                "size": size,
                "symlink": symlink,
            },
        )

    def _fire(self, event: str, info: Dict[str, Any]) -> None:
        commands = self.commands.get(event) or []
        if not commands:
            return

        env = os.environ.copy()
        for key, value in info.items():
            if isinstance(value, bool):
                value = str(value).lower()
            env[ENV_PREFIX + key.upper()] = "" if value is None else str(value)

        for cmd in commands:
            logger.debug(f"Running {event} hook: {cmd}")
            try:
                result = subprocess.run(
                    cmd, shell=True, capture_output=True, text=True, cwd=self.cwd, env=env
                )
            except OSError as e:
                raise HookError(event, f"failed to execute '{cmd}': {e}") from e

            if result.stdout:
                logger.info(result.stdout.rstrip())
            if result.returncode != 0:
                raise HookError(
                    event,
                    f"'{cmd}' exited with code {result.returncode}\n{result.stderr}",
                )
