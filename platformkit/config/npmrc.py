"""npm configuration store reader.

Library downloads honour the proxy and TLS settings users already keep for
npm. Settings are layered the way npm layers them: the user ``.npmrc``, then
the project ``.npmrc``, then ``npm_config_*`` environment variables.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import urlparse

from platformkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "npm_config_"

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def _expand(value: str, env: Mapping[str, str]) -> str:
    return _ENV_REFERENCE.sub(lambda m: env.get(m.group(1), ""), value)


def parse_npmrc(text: str, env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Parse the contents of an .npmrc file.

    Args:
        text: File contents (``key = value`` lines, ``;`` or ``#`` comments)
        env: Environment used for ``${VAR}`` expansion (default: os.environ)

    Returns:
        Mapping of lower-cased keys to values
    """
    env = os.environ if env is None else env
    values: Dict[str, str] = {}

    for line in text.splitlines():
        line = line.strip()
        if not line or line[0] in ";#":
            continue
        if "=" not in line:
            logger.debug(f"Ignoring malformed .npmrc line: {line}")
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip().lower()] = _expand(value, env)

    return values


def _read_npmrc(path: Path, env: Mapping[str, str]) -> Dict[str, str]:
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read npm config {path}: {e}") from e
    logger.debug(f"Loaded npm config from {path}")
    return parse_npmrc(text, env)


class NpmConfig:
    """Read-only view over the layered npm configuration."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = dict(values or {})

    @classmethod
    def load(
        cls,
        project_root: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "NpmConfig":
        """
        Load npm configuration from .npmrc files and the environment.

        Args:
            project_root: Directory whose .npmrc is layered over the user one
            env: Environment mapping (default: os.environ)

        Returns:
            NpmConfig with later layers overriding earlier ones
        """
        env = os.environ if env is None else env
        values: Dict[str, str] = {}

        user_config = env.get("NPM_CONFIG_USERCONFIG") or env.get(
            ENV_PREFIX + "userconfig"
        )
        user_path = Path(user_config) if user_config else Path.home() / ".npmrc"
        values.update(_read_npmrc(user_path, env))

        if project_root is not None:
            values.update(_read_npmrc(Path(project_root) / ".npmrc", env))

        for name, value in env.items():
            if name.lower().startswith(ENV_PREFIX):
                key = name[len(ENV_PREFIX):].lower().replace("_", "-")
                values[key] = value

        return cls(values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(key.lower(), default)

    def get_bool(self, key: str) -> Optional[bool]:
        """Return a boolean setting, or None when it is unset or not a boolean."""
        value = self.get(key)
        if value is None:
            return None
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return None

    def proxy_for(self, url: str) -> Optional[str]:
        """Return ``https-proxy`` for https URLs and ``proxy`` for http URLs."""
        scheme = urlparse(url).scheme.lower()
        if scheme == "https":
            return self.get("https-proxy") or None
        if scheme == "http":
            return self.get("proxy") or None
        return None

    @property
    def strict_ssl(self) -> Optional[bool]:
        return self.get_bool("strict-ssl")
