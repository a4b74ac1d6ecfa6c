import os

import pytest

from jdkfetch.config import (
    CacheConfig,
    Config,
    DownloadConfig,
    SourcesConfig,
    get_config_path,
    load_config,
)
from jdkfetch.exceptions import ConfigFileError, ConfigValidationError

pytestmark = [pytest.mark.unit, pytest.mark.infrastructure]

FULL_CONFIG = """
sources:
  primary: github
  fallback: [adoptium, tsinghua]
  github_majors: [21, 17]
  releases_per_repository: 3
  registry_path: ~/java_versions.toml
cache:
  ttl_seconds: 600
download:
  retry_count: 5
  connect_timeout: 4
  directory: /srv/jdks
log_level: DEBUG
log_dir: ~/logs
"""


def _write(tmp_path, text, name="jdkfetch.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config == Config()

    def test_default_priority(self):
        assert SourcesConfig().priority() == ["tsinghua", "aliyun", "github"]

    def test_priority_removes_duplicates(self):
        sources = SourcesConfig(primary="github", fallback=["aliyun", "github", "aliyun"])
        assert sources.priority() == ["github", "aliyun"]

    def test_default_directories_use_user_cache_dir(self):
        assert CacheConfig().resolved_directory().endswith(os.path.join("cache", "catalog"))
        assert DownloadConfig().resolved_directory().endswith(
            os.path.join("cache", "downloads")
        )
        assert DownloadConfig(directory="/srv/jdks").resolved_directory() == "/srv/jdks"


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        config = load_config(_write(tmp_path, FULL_CONFIG))

        assert config.sources.priority() == ["github", "adoptium", "tsinghua"]
        assert config.sources.github_majors == [21, 17]
        assert config.sources.releases_per_repository == 3
        assert config.sources.registry_path == "~/java_versions.toml"
        assert config.cache.ttl_seconds == 600
        assert config.download.retry_count == 5
        assert config.download.connect_timeout == 4.0
        assert isinstance(config.download.connect_timeout, float)
        assert config.download.read_timeout == DownloadConfig().read_timeout
        assert config.log_level == "DEBUG"

    def test_environment_variable_path(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "cache:\n  ttl_seconds: 5\n", name="custom.yaml")
        monkeypatch.setenv("JDKFETCH_CONFIG", path)

        assert get_config_path() == path
        assert load_config().cache.ttl_seconds == 5

    def test_user_config_dir_path(self):
        assert get_config_path().endswith(os.path.join("config", "jdkfetch.yaml"))

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == Config()

    def test_single_fallback_string_is_accepted(self, tmp_path):
        config = load_config(_write(tmp_path, "sources:\n  fallback: github\n"))
        assert config.sources.fallback == ["github"]

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigFileError):
            load_config(_write(tmp_path, "sources: [unclosed\n"))


class TestValidation:
    @pytest.mark.parametrize(
        "text,message",
        [
            ("colour: blue\n", "Unknown configuration key"),
            ("sources:\n  mirrors: []\n", "Unknown configuration key"),
            ("sources:\n  primary: maven\n", "Unknown source"),
            ("sources:\n  fallback: [github, sdkman]\n", "Unknown source"),
            ("sources:\n  releases_per_repository: 0\n", "at least 1"),
            ("sources:\n  github_majors: []\n", "github_majors"),
            ("cache:\n  ttl_seconds: -1\n", "must not be negative"),
            ("cache:\n  ttl_seconds: soon\n", "must be an integer"),
            ("download:\n  retry_count: true\n", "must be an integer"),
            ("download:\n  exponential_backoff: 1\n", "true or false"),
            ("download:\n  read_timeout: 0\n", "must be positive"),
            ("sources: github\n", "must be a mapping"),
            ("- github\n", "must be a mapping"),
            ("log_level: 10\n", "must be a string"),
        ],
    )
    def test_rejects_invalid_values(self, tmp_path, text, message):
        with pytest.raises(ConfigValidationError, match=message):
            load_config(_write(tmp_path, text))

    def test_from_dict_none(self):
        assert Config.from_dict(None) == Config()
