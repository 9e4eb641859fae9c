"""
Pytest configuration and shared fixtures for PlatformKit tests.
"""

import io
import tarfile
from pathlib import Path
from typing import Callable, Dict, Optional, Union

import pytest
import yaml

from platformkit.config.npmrc import NpmConfig
from platformkit.library.registry import PlatformRegistry


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))
    monkeypatch.delenv("PLATFORMKIT_HOME", raising=False)

    return fake_home


@pytest.fixture
def lib_root(tmp_path: Path) -> Path:
    """Library root inside the test's temporary directory."""
    root = tmp_path / "lib"
    root.mkdir()
    return root


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def write_project_config(project_root: Path) -> Callable[[dict], Path]:
    """Return a helper writing <project>/.platformkit/config.yaml."""

    def _write(data: dict) -> Path:
        config_dir = project_root / ".platformkit"
        config_dir.mkdir(exist_ok=True)
        config_file = config_dir / "config.yaml"
        config_file.write_text(yaml.safe_dump(data))
        return config_file

    return _write


@pytest.fixture
def npm_config() -> NpmConfig:
    """npm configuration with no proxy or TLS settings."""
    return NpmConfig({})


@pytest.fixture
def make_tar_gz() -> Callable[[Dict[str, Optional[Union[str, bytes]]]], bytes]:
    """
    Return a helper building a gzip-compressed tar archive in memory.

    Keys are member paths; a value of None adds a directory entry.
    """

    def _build(files: Dict[str, Optional[Union[str, bytes]]]) -> bytes:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                if content is None:
                    info.type = tarfile.DIRTYPE
                    info.mode = 0o755
                    tar.addfile(info)
                    continue
                data = content.encode("utf-8") if isinstance(content, str) else content
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    return _build


@pytest.fixture
def sample_registry() -> PlatformRegistry:
    """Small registry covering the layout variants."""
    return PlatformRegistry.from_dict(
        {
            "vendor": "cordova",
            "platforms": {
                "android": {
                    "url": "https://example/android.git",
                    "version": "4.0.0",
                },
                "ios": {
                    "url": "https://git.example.org/repos/asf?p=cordova-ios.git",
                    "version": "3.6.3",
                },
                "wp8": {
                    "url": "https://git.example.org/repos/asf?p=cordova-wp8.git",
                    "version": "3.6.4",
                    "subdirectory": "wp8",
                },
                "windows8": {
                    "url": "https://git.example.org/repos/asf?p=cordova-windows.git",
                    "version": "3.6.4",
                    "subdirectory": "windows8",
                },
                "windows": {
                    "url": "https://git.example.org/repos/asf?p=cordova-windows.git",
                    "version": "3.6.4",
                    "altplatform": "windows8",
                    "subdirectory": "windows",
                },
                "www": {
                    "url": "https://git.example.org/repos/asf?p=cordova-app-hello-world.git",
                    "version": "3.6.3",
                },
            },
        }
    )
