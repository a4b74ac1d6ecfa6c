"""Tests for the static version registry."""

import os

import pytest

from jdkfetch.download.registry import (
    VersionRegistry,
    load_registry,
    registry_search_paths,
)
from jdkfetch.exceptions import RegistryError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

REGISTRY_TOML = """
[[versions]]
version = "21.0.4"
major = 21
lts = true
tag_name = "jdk-21.0.4+7"

[versions.assets]
linux-x64 = "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"
windows-x64 = "https://downloads.example.com/jdk21.zip"

[versions.assets_tsinghua]
linux-x64 = "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"

[versions.checksums]
linux-x64 = "51fb4d03a4429c39d397d3a03a779077159317616550e4e71624c9843083e7b9"

[[versions]]
version = "17.0.12"
major = 17
tag_name = "jdk-17.0.12+7"
release_name = "Temurin 17 (pinned)"

[versions.assets]
linux-x64 = "OpenJDK17U-jdk_x64_linux_hotspot_17.0.12_7.tar.gz"
"""


@pytest.fixture
def registry_file(tmp_path):
    path = tmp_path / "java_versions.toml"
    path.write_text(REGISTRY_TOML, encoding="utf-8")
    return str(path)


class TestVersionRegistry:
    def test_parses_entries(self, registry_file):
        registry = VersionRegistry.from_file(registry_file)

        assert registry.path == registry_file
        assert [e.version for e in registry.entries] == ["21.0.4", "17.0.12"]
        first = registry.entries[0]
        assert first.lts is True
        assert first.checksums["linux-x64"].startswith("51fb4d")
        assert registry.entries[1].lts is False

    def test_source_specific_assets_override_shared_table(self, registry_file):
        entry = VersionRegistry.from_file(registry_file).entries[0]

        assert list(entry.assets_for("tsinghua")) == ["linux-x64"]
        assert set(entry.assets_for("github")) == {"linux-x64", "windows-x64"}

    def test_display_name(self, registry_file):
        entries = VersionRegistry.from_file(registry_file).entries
        assert entries[0].display_name() == "Eclipse Temurin JDK 21.0.4"
        assert entries[1].display_name() == "Temurin 17 (pinned)"

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[[versions]\nversion = ", encoding="utf-8")

        with pytest.raises(RegistryError) as exc_info:
            VersionRegistry.from_file(str(path))
        assert exc_info.value.path == str(path)

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('[[versions]]\nversion = "21.0.4"\nmajor = 21\n', encoding="utf-8")

        with pytest.raises(RegistryError, match="tag_name"):
            VersionRegistry.from_file(str(path))

    def test_non_integer_major(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text(
            '[[versions]]\nversion = "21"\nmajor = "21"\ntag_name = "jdk-21+35"\n',
            encoding="utf-8",
        )

        with pytest.raises(RegistryError):
            VersionRegistry.from_file(str(path))

    def test_non_string_asset(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text(
            '[[versions]]\nversion = "21"\nmajor = 21\ntag_name = "jdk-21+35"\n'
            "[versions.assets]\nlinux-x64 = 5\n",
            encoding="utf-8",
        )

        with pytest.raises(RegistryError):
            VersionRegistry.from_file(str(path))


class TestLoadRegistry:
    def test_absent_registry_is_none(self):
        assert load_registry() is None

    def test_absent_registry_with_registry_only_raises(self):
        with pytest.raises(RegistryError):
            load_registry(registry_only=True)

    def test_configured_path_wins(self, registry_file, monkeypatch, tmp_path):
        monkeypatch.setenv("JDKFETCH_VERSIONS_PATH", str(tmp_path / "other.toml"))

        registry = load_registry(registry_file)

        assert registry is not None
        assert registry.path == registry_file

    def test_environment_variable(self, registry_file, monkeypatch):
        monkeypatch.setenv("JDKFETCH_VERSIONS_PATH", registry_file)

        registry = load_registry()

        assert registry is not None
        assert registry.path == registry_file

    def test_user_config_dir(self, tmp_path):
        default_path = registry_search_paths()[-1]
        with open(default_path, "w", encoding="utf-8") as f:
            f.write(REGISTRY_TOML)

        registry = load_registry()

        assert registry is not None
        assert os.path.basename(registry.path) == "java_versions.toml"

    def test_search_order(self, monkeypatch):
        monkeypatch.setenv("JDKFETCH_VERSIONS_PATH", "/env/versions.toml")

        paths = registry_search_paths("/configured/versions.toml")

        assert paths[:2] == ["/configured/versions.toml", "/env/versions.toml"]
        assert paths[2].endswith("java_versions.toml")
