"""
Unit tests for the platform registry.
"""

import json

import pytest

from platformkit.core.exceptions import RegistryError
from platformkit.library.registry import PlatformMetadata, PlatformRegistry


class TestPlatformMetadata:
    """Test PlatformMetadata class."""

    def test_from_dict(self):
        """Test metadata is built from a record and versions become strings."""
        metadata = PlatformMetadata.from_dict(
            {"url": "https://example/x.git", "version": 4, "unknown": "ignored"}
        )
        assert metadata.url == "https://example/x.git"
        assert metadata.version == "4"
        assert metadata.subdirectory == ""

    def test_source_url_prefers_uri(self):
        """Test legacy uri wins over url."""
        metadata = PlatformMetadata(url="https://new", uri="/legacy")
        assert metadata.source_url == "/legacy"

    def test_merged_override_wins(self):
        """Test override fields replace base fields in a copy."""
        base = PlatformMetadata(url="https://example/ios.git", version="3.6.3", subdirectory="")
        merged = base.merged({"url": "/local/ios-src", "version": "3.2.0", "id": None})

        assert merged.url == "/local/ios-src"
        assert merged.version == "3.2.0"
        assert merged.id is None
        assert base.url == "https://example/ios.git"


class TestPlatformRegistry:
    """Test PlatformRegistry class."""

    def test_load_bundled(self):
        """Test the bundled registry lists the known platforms."""
        registry = PlatformRegistry.load()

        assert registry.vendor == "cordova"
        assert set(registry) == {
            "amazon-fireos",
            "android",
            "ios",
            "wp8",
            "windows8",
            "windows",
            "firefoxos",
            "blackberry10",
            "ubuntu",
            "browser",
            "www",
        }
        assert registry["windows"].altplatform == "windows8"
        assert registry["wp8"].subdirectory == "wp8"

    def test_load_missing_file(self, tmp_path):
        """Test missing registry file raises RegistryError."""
        with pytest.raises(RegistryError, match="not found"):
            PlatformRegistry.load(tmp_path / "missing.json")

    def test_load_invalid_json(self, tmp_path):
        """Test invalid JSON raises RegistryError."""
        path = tmp_path / "platforms.json"
        path.write_text("{not json")
        with pytest.raises(RegistryError, match="Invalid JSON"):
            PlatformRegistry.load(path)

    def test_load_custom_file(self, tmp_path):
        """Test a registry can be loaded from another file."""
        path = tmp_path / "platforms.json"
        path.write_text(
            json.dumps({"vendor": "acme", "platforms": {"x": {"url": "https://x", "version": "1"}}})
        )
        registry = PlatformRegistry.load(path)

        assert registry.vendor == "acme"
        assert registry.default_version("x") == "1"

    @pytest.mark.parametrize(
        "data", [{}, {"platforms": []}, {"platforms": {"ios": "https://x"}}]
    )
    def test_invalid_structure(self, data):
        """Test malformed registry data raises RegistryError."""
        with pytest.raises(RegistryError):
            PlatformRegistry.from_dict(data)

    def test_default_version_unknown(self, sample_registry):
        """Test unknown platform has no default version."""
        assert sample_registry.default_version("nonexistent") is None

    def test_with_override_does_not_mutate(self, sample_registry):
        """Test overrides produce a new registry and leave the original alone."""
        custom = sample_registry.with_override("ios", {"url": "/local/ios-src"})

        assert custom["ios"].url == "/local/ios-src"
        assert custom["ios"].version == "3.6.3"
        assert sample_registry["ios"].url.startswith("https://")
        assert custom is not sample_registry
        assert custom.vendor == sample_registry.vendor

    def test_with_override_new_platform(self, sample_registry):
        """Test an override can introduce an unknown platform."""
        custom = sample_registry.with_override("tizen", {"url": "/local/tizen"})

        assert "tizen" in custom
        assert "tizen" not in sample_registry
