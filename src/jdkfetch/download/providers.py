"""
Source names and provider construction.
"""

from enum import Enum
from typing import Optional

from jdkfetch.config import SourcesConfig
from jdkfetch.constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    SOURCE_ADOPTIUM,
    SOURCE_ALIYUN,
    SOURCE_GITHUB,
    SOURCE_TSINGHUA,
)
from jdkfetch.exceptions import ConfigValidationError

from .adoptium_source import AdoptiumProvider
from .base import BaseCatalogProvider
from .cache import CatalogCache
from .client import HttpClient
from .github_source import GithubProvider
from .mirrors import AliyunProvider, TsinghuaProvider
from .registry import VersionRegistry


class SourceName(str, Enum):
    GITHUB = SOURCE_GITHUB
    ADOPTIUM = SOURCE_ADOPTIUM
    TSINGHUA = SOURCE_TSINGHUA
    ALIYUN = SOURCE_ALIYUN

    @classmethod
    def parse(cls, value: str) -> "SourceName":
        """
        Look up a source by name, case-insensitively.

        Raises:
            ConfigValidationError: If `value` names no known source.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ConfigValidationError(
                f"Unknown source '{value}'",
                details=f"valid sources: {', '.join(s.value for s in cls)}",
            ) from e


def create_provider(
    name: "str | SourceName",
    client: HttpClient,
    cache: Optional[CatalogCache] = None,
    registry: Optional[VersionRegistry] = None,
    sources: Optional[SourcesConfig] = None,
    cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
) -> BaseCatalogProvider:
    """
    Build the provider for `name` from the `sources` configuration section.

    Mirror providers get their own GitHub provider as upstream; it shares the
    cache, so the upstream catalog is fetched once per TTL for both mirrors.

    Raises:
        ConfigValidationError: If `name` is not a known source.
    """
    source = name if isinstance(name, SourceName) else SourceName.parse(name)
    sources = sources or SourcesConfig()

    if source is SourceName.ADOPTIUM:
        return AdoptiumProvider(
            client,
            cache=cache,
            registry=registry,
            cache_ttl=cache_ttl,
            majors=sources.github_majors,
            api_base=sources.adoptium_api_base,
        )

    github = GithubProvider(
        client,
        cache=cache,
        registry=registry,
        cache_ttl=cache_ttl,
        majors=sources.github_majors,
        releases_per_repository=sources.releases_per_repository,
        github_token=sources.github_token,
        api_base=sources.github_api_base,
    )
    if source is SourceName.GITHUB:
        return github
    if source is SourceName.TSINGHUA:
        return TsinghuaProvider(
            client,
            github,
            base_url=sources.tsinghua_base,
            cache=cache,
            registry=registry,
            cache_ttl=cache_ttl,
        )
    return AliyunProvider(
        client,
        github,
        base_url=sources.aliyun_base,
        cache=cache,
        registry=registry,
        cache_ttl=cache_ttl,
    )
