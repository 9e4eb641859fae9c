"""
Platform registry and metadata management.

This module provides the read-only catalog of supported platforms with their
default library URL, version and cache layout hints. Project overrides are
merged into copies; the registry's own records are never modified.
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from platformkit.core.exceptions import RegistryError

logger = logging.getLogger(__name__)

DEFAULT_VENDOR = "cordova"


@dataclass(frozen=True)
class PlatformMetadata:
    """Library metadata for a single platform."""

    url: Optional[str] = None
    """Library location: a fetchable URL or a local filesystem path"""

    version: Optional[str] = None
    """Default library version"""

    id: Optional[str] = None
    """Library id, used to namespace the cache directory"""

    subdirectory: str = ""
    """Path inside the library that holds the platform sources"""

    altplatform: Optional[str] = None
    """Cache directory name to use instead of the platform name"""

    uri: Optional[str] = None
    """Legacy spelling of url; takes precedence when set"""

    @property
    def source_url(self) -> Optional[str]:
        return self.uri or self.url

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlatformMetadata":
        """Build metadata from a registry or override record."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"Ignoring unknown platform metadata keys: {sorted(unknown)}")
        values = {k: v for k, v in data.items() if k in known and v is not None}
        if "version" in values:
            values["version"] = str(values["version"])
        if values.get("subdirectory") is None:
            values["subdirectory"] = ""
        return cls(**values)

    def merged(self, override: Mapping[str, Any]) -> "PlatformMetadata":
        """Return a copy with the override record's fields winning."""
        patch = PlatformMetadata.from_dict(override)
        changes = {
            f.name: getattr(patch, f.name)
            for f in fields(self)
            if f.name in override and override[f.name] is not None
        }
        return replace(self, **changes)


class PlatformRegistry(Mapping[str, PlatformMetadata]):
    """
    Immutable mapping from platform name to PlatformMetadata.

    Example:
        >>> registry = PlatformRegistry.load()
        >>> registry["android"].version
        '3.6.4'
        >>> custom = registry.with_override("ios", {"url": "/local/ios-src"})
        >>> registry["ios"].url == custom["ios"].url
        False
    """

    def __init__(
        self,
        platforms: Mapping[str, PlatformMetadata],
        vendor: str = DEFAULT_VENDOR,
    ):
        self._platforms = dict(platforms)
        self.vendor = vendor

    @staticmethod
    def default_registry_path() -> Path:
        """Get path to the bundled registry file."""
        return Path(__file__).parent.parent / "data" / "platforms.json"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlatformRegistry":
        """
        Build a registry from its JSON structure.

        Raises:
            RegistryError: If the structure is invalid
        """
        if "platforms" not in data or not isinstance(data["platforms"], dict):
            raise RegistryError("Invalid registry structure: missing 'platforms' mapping")

        platforms = {}
        for name, record in data["platforms"].items():
            if not isinstance(record, dict):
                raise RegistryError(f"Invalid registry record for platform '{name}'")
            platforms[name] = PlatformMetadata.from_dict(record)

        return cls(platforms, vendor=data.get("vendor", DEFAULT_VENDOR))

    @classmethod
    def load(cls, registry_path: Optional[Path] = None) -> "PlatformRegistry":
        """
        Load the registry from a JSON file.

        Args:
            registry_path: Optional path to registry JSON file.
                           If None, uses the bundled platforms.json

        Raises:
            RegistryError: If file cannot be loaded or parsed
        """
        registry_path = registry_path or cls.default_registry_path()
        if not registry_path.exists():
            raise RegistryError(f"Registry file not found: {registry_path}")

        try:
            with open(registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RegistryError(
                f"Invalid JSON in registry file: {e}\nFile: {registry_path}"
            ) from e
        except OSError as e:
            raise RegistryError(
                f"Failed to load registry file: {e}\nFile: {registry_path}"
            ) from e

        registry = cls.from_dict(data)
        logger.debug(f"Loaded registry with {len(registry)} platforms")
        return registry

    def __getitem__(self, name: str) -> PlatformMetadata:
        return self._platforms[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._platforms)

    def __len__(self) -> int:
        return len(self._platforms)

    def default_version(self, name: str) -> Optional[str]:
        record = self._platforms.get(name)
        return record.version if record else None

    def with_override(self, name: str, override: Mapping[str, Any]) -> "PlatformRegistry":
        """
        Return a new registry with an override merged into one platform.

        Platforms absent from the registry become known through the override.
        """
        base = self._platforms.get(name, PlatformMetadata())
        return self.with_record(name, base.merged(override))

    def with_record(self, name: str, record: PlatformMetadata) -> "PlatformRegistry":
        """Return a new registry with one platform's record replaced."""
        platforms: Dict[str, PlatformMetadata] = dict(self._platforms)
        platforms[name] = record
        return PlatformRegistry(platforms, vendor=self.vendor)
