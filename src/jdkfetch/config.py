"""
Configuration loading for jdkfetch.

Settings live in a YAML file (``jdkfetch.yaml`` in the platformdirs user config
directory, or the path named by ``JDKFETCH_CONFIG``) and are parsed into typed
dataclasses. A missing file yields the defaults; unknown keys are rejected so a
typo never silently falls back to a default.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

import platformdirs
import yaml

from jdkfetch.constants import (
    ADOPTIUM_API_BASE,
    ALIYUN_MIRROR_BASE,
    ALL_SOURCES,
    APP_NAME,
    CACHE_SUBDIR,
    CONFIG_FILE_NAME,
    CONFIG_PATH_ENV_VAR,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_FALLBACK_SOURCES,
    DEFAULT_GITHUB_MAJORS,
    DEFAULT_PRIMARY_SOURCE,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_RELEASES_PER_REPOSITORY,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY_MS,
    DOWNLOADS_SUBDIR,
    GITHUB_API_BASE,
    TSINGHUA_MIRROR_BASE,
)
from jdkfetch.exceptions import ConfigFileError, ConfigValidationError
from jdkfetch.log_utils import logger


@dataclass
class SourcesConfig:
    """Which catalog sources are consulted, in what order, and where they live."""

    primary: str = DEFAULT_PRIMARY_SOURCE
    fallback: List[str] = field(default_factory=lambda: list(DEFAULT_FALLBACK_SOURCES))
    registry_only: bool = False
    registry_path: Optional[str] = None
    github_majors: List[int] = field(
        default_factory=lambda: list(DEFAULT_GITHUB_MAJORS)
    )
    releases_per_repository: int = DEFAULT_RELEASES_PER_REPOSITORY
    github_token: Optional[str] = None
    github_api_base: str = GITHUB_API_BASE
    adoptium_api_base: str = ADOPTIUM_API_BASE
    tsinghua_base: str = TSINGHUA_MIRROR_BASE
    aliyun_base: str = ALIYUN_MIRROR_BASE

    def priority(self) -> List[str]:
        """Primary followed by fallbacks, with duplicates removed."""
        ordered: List[str] = []
        for name in [self.primary, *self.fallback]:
            if name not in ordered:
                ordered.append(name)
        return ordered

    def validate(self) -> None:
        for name in [self.primary, *self.fallback]:
            if name not in ALL_SOURCES:
                raise ConfigValidationError(
                    f"Unknown source '{name}'",
                    details=f"valid sources: {', '.join(ALL_SOURCES)}",
                )
        if self.releases_per_repository < 1:
            raise ConfigValidationError(
                "sources.releases_per_repository must be at least 1"
            )
        if not self.github_majors or not all(
            isinstance(major, int) and major > 0 for major in self.github_majors
        ):
            raise ConfigValidationError(
                "sources.github_majors must be a non-empty list of positive integers"
            )


@dataclass
class CacheConfig:
    ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    directory: Optional[str] = None

    def resolved_directory(self) -> str:
        return self.directory or os.path.join(
            platformdirs.user_cache_dir(APP_NAME), CACHE_SUBDIR
        )

    def validate(self) -> None:
        if self.ttl_seconds < 0:
            raise ConfigValidationError("cache.ttl_seconds must not be negative")


@dataclass
class DownloadConfig:
    """Retry, timeout and location settings for archive downloads."""

    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    exponential_backoff: bool = True
    connect_timeout: float = float(DEFAULT_CONNECT_TIMEOUT)
    read_timeout: float = float(DEFAULT_READ_TIMEOUT)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    directory: Optional[str] = None

    def resolved_directory(self) -> str:
        return self.directory or os.path.join(
            platformdirs.user_cache_dir(APP_NAME), DOWNLOADS_SUBDIR
        )

    def validate(self) -> None:
        if self.retry_count < 0:
            raise ConfigValidationError("download.retry_count must not be negative")
        if self.retry_delay_ms < 0:
            raise ConfigValidationError("download.retry_delay_ms must not be negative")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ConfigValidationError("download timeouts must be positive")
        if self.chunk_size <= 0:
            raise ConfigValidationError("download.chunk_size must be positive")


@dataclass
class Config:
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    log_level: Optional[str] = None
    log_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Config":
        """
        Build a Config from a parsed YAML mapping.

        Parameters:
            data (Optional[Dict[str, Any]]): Top-level mapping; `None` yields the defaults.

        Returns:
            Config: A validated configuration object.

        Raises:
            ConfigValidationError: If the mapping has unknown keys, wrongly typed values
                or values outside their allowed range.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigValidationError(
                "Configuration root must be a mapping",
                details=f"got {type(data).__name__}",
            )

        sections = {
            "sources": SourcesConfig,
            "cache": CacheConfig,
            "download": DownloadConfig,
        }
        scalar_keys = ("log_level", "log_dir")
        _reject_unknown_keys(data, (*sections, *scalar_keys), "")

        kwargs: Dict[str, Any] = {}
        for name, section_cls in sections.items():
            kwargs[name] = _build_section(section_cls, data.get(name), name)
        for name in scalar_keys:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise ConfigValidationError(f"'{name}' must be a string")
            kwargs[name] = value

        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        self.sources.validate()
        self.cache.validate()
        self.download.validate()


def _reject_unknown_keys(
    data: Dict[str, Any], allowed: Tuple[str, ...], section: str
) -> None:
    unknown = sorted(str(key) for key in set(data) - set(allowed))
    if unknown:
        where = f"section '{section}'" if section else "top level"
        raise ConfigValidationError(
            f"Unknown configuration key(s) in {where}: {', '.join(unknown)}",
            details=f"allowed keys: {', '.join(allowed)}",
        )


def _build_section(section_cls: Any, raw: Any, section: str) -> Any:
    if raw is None:
        return section_cls()
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"Section '{section}' must be a mapping")

    section_fields = {f.name: f for f in fields(section_cls)}
    _reject_unknown_keys(raw, tuple(section_fields), section)

    defaults = section_cls()
    values: Dict[str, Any] = {}
    for name, value in raw.items():
        default = getattr(defaults, name)
        values[name] = _coerce(value, default, f"{section}.{name}")
    return section_cls(**values)


def _coerce(value: Any, default: Any, key: str) -> Any:
    """Check `value` against the type of the field's default and normalize it."""
    if value is None:
        return default if not isinstance(default, list) else list(default)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConfigValidationError(f"'{key}' must be true or false", details=repr(value))
        return value
    if isinstance(default, int) and not isinstance(default, bool):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"'{key}' must be an integer", details=repr(value))
        return value
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigValidationError(f"'{key}' must be a number", details=repr(value))
        return float(value)
    if isinstance(default, list):
        if isinstance(value, (str, int)):
            value = [value]
        if not isinstance(value, list):
            raise ConfigValidationError(f"'{key}' must be a list", details=repr(value))
        return list(value)
    if not isinstance(value, str):
        raise ConfigValidationError(f"'{key}' must be a string", details=repr(value))
    return value


def get_config_path() -> str:
    """Return the config file path: JDKFETCH_CONFIG if set, else the platformdirs location."""
    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return os.path.expanduser(env_path)
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def load_config(path: Optional[str] = None) -> Config:
    """
    Load the jdkfetch configuration YAML.

    Parameters:
        path (Optional[str]): Explicit file to load. If omitted, `get_config_path()` is used.

    Returns:
        Config: The parsed configuration, or the defaults when the file does not exist.

    Raises:
        ConfigFileError: If the file exists but cannot be read or is not valid YAML.
        ConfigValidationError: If the file contents are not a valid configuration.
    """
    config_path = path or get_config_path()
    if not os.path.exists(config_path):
        logger.debug(f"No configuration file at {config_path}; using defaults")
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            f"Could not read configuration file {config_path}", details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            f"Invalid YAML in configuration file {config_path}", details=str(e)
        ) from e

    logger.debug(f"Loaded configuration from {config_path}")
    return Config.from_dict(data)
