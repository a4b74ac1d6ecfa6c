import time
from typing import Dict, Optional

import platformdirs
import pytest
import requests

from jdkfetch.download.interfaces import DownloadSource, UnifiedVersion

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)

_JDKFETCH_ENV_VARS = (
    "JDKFETCH_CONFIG",
    "JDKFETCH_VERSIONS_PATH",
    "JDKFETCH_LOG_LEVEL",
    "GITHUB_TOKEN",
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object used to register markers.
    """
    config.addinivalue_line("markers", "unit: fast tests with no I/O beyond tmp_path")
    config.addinivalue_line(
        "markers", "core_downloads: catalog, resolution and download behaviour"
    )
    config.addinivalue_line(
        "markers", "infrastructure: configuration, logging and CLI plumbing"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every platformdirs location at a temporary directory and clear jdkfetch
    environment variables, so no test reads or writes the real user directories.
    """
    base = tmp_path_factory.mktemp("jdkfetch")
    cache_dir = base / "cache"
    config_dir = base / "config"
    log_dir = base / "log"

    for path in (cache_dir, config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    for name in _JDKFETCH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    Retry backoff paths call time.sleep(); tests that need real timing should
    monkeypatch it back within the test.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


def make_version(
    version: str,
    major: Optional[int] = None,
    is_lts: bool = False,
    tag_name: Optional[str] = None,
    release_name: str = "",
    download_urls: Optional[Dict[str, DownloadSource]] = None,
    checksums: Optional[Dict[str, str]] = None,
    source: str = "github",
) -> UnifiedVersion:
    """Build a UnifiedVersion from a dotted version string."""
    parts = [int(p) for p in version.split(".")]
    parts += [None] * (3 - len(parts))
    return UnifiedVersion(
        version=version,
        major=major if major is not None else parts[0],
        minor=parts[1],
        patch=parts[2],
        tag_name=tag_name or f"jdk-{version}+7",
        release_name=release_name,
        is_lts=is_lts,
        download_urls=download_urls
        if download_urls is not None
        else {
            "linux-x64": DownloadSource(
                primary=f"https://example.com/OpenJDK-{version}-linux-x64.tar.gz"
            )
        },
        checksums=checksums or {},
        source=source,
    )


@pytest.fixture
def version_factory():
    """Provide `make_version` to tests that build catalogs."""
    return make_version


@pytest.fixture
def sample_github_release():
    """A GitHub API release object for jdk-21.0.4+7 with a realistic asset mix."""
    base = "https://github.com/adoptium/temurin21-binaries/releases/download/jdk-21.0.4%2B7"
    names = [
        "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz",
        "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz.sha256.txt",
        "OpenJDK21U-jdk_aarch64_linux_hotspot_21.0.4_7.tar.gz",
        "OpenJDK21U-jdk_x64_windows_hotspot_21.0.4_7.zip",
        "OpenJDK21U-jdk_x64_windows_hotspot_21.0.4_7.msi",
        "OpenJDK21U-jdk_aarch64_mac_hotspot_21.0.4_7.tar.gz",
        "OpenJDK21U-jre_x64_linux_hotspot_21.0.4_7.tar.gz",
        "OpenJDK21U-jdk_x64_alpine-linux_hotspot_21.0.4_7.tar.gz",
        "OpenJDK21U-debugimage_x64_linux_hotspot_21.0.4_7.tar.gz",
    ]
    return {
        "tag_name": "jdk-21.0.4+7",
        "name": "jdk-21.0.4+7",
        "prerelease": False,
        "draft": False,
        "published_at": "2024-07-17T00:00:00Z",
        "assets": [
            {"name": name, "browser_download_url": f"{base}/{name}", "size": 100}
            for name in names
        ],
    }
