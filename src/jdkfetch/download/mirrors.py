"""
Mirror catalog providers.

Mirrors publish the same Temurin archives as GitHub under their own directory
layout. A mirror provider takes the upstream catalog (or the registry) and
rewrites every DownloadSource so the mirror URL is primary and the upstream
URL is the fallback.
"""

import posixpath
from abc import abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

from jdkfetch.constants import (
    ALIYUN_MIRROR_BASE,
    ARCH_X86,
    DEFAULT_CACHE_TTL_SECONDS,
    OS_MACOS,
    SOURCE_ALIYUN,
    SOURCE_TSINGHUA,
    TSINGHUA_MIRROR_BASE,
)
from jdkfetch.log_utils import logger

from .base import BaseCatalogProvider, github_asset_url, is_url
from .cache import CatalogCache
from .client import HttpClient
from .interfaces import CatalogProvider, DownloadSource, UnifiedVersion
from .registry import RegistryEntry, VersionRegistry

# Adoptium directory names that differ from jdkfetch platform names
_ADOPTIUM_OS_DIRS = {OS_MACOS: "mac"}
_ADOPTIUM_ARCH_DIRS = {ARCH_X86: "x32"}


def asset_filename(url: str) -> str:
    """Return the decoded last path segment of `url`."""
    return unquote(posixpath.basename(urlparse(url).path))


class MirrorProvider(BaseCatalogProvider):
    """
    Base for providers that re-host upstream archives.

    Subclasses only implement `mirror_url`.
    """

    def __init__(
        self,
        client: HttpClient,
        upstream: CatalogProvider,
        base_url: str,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        super().__init__(client, cache, registry, cache_ttl)
        self.upstream = upstream
        self.base_url = base_url.rstrip("/")

    @abstractmethod
    def mirror_url(self, major: int, tag_name: str, platform_key: str, filename: str) -> str:
        """Mirror URL of `filename` for the given release and platform."""

    def rewrite(self, version: UnifiedVersion) -> UnifiedVersion:
        download_urls: Dict[str, DownloadSource] = {}
        for key, upstream in version.download_urls.items():
            filename = asset_filename(upstream.primary)
            download_urls[key] = DownloadSource(
                primary=self.mirror_url(version.major, version.tag_name, key, filename),
                fallback=upstream.primary,
            )
        return replace(version, download_urls=download_urls, source=self.name)

    def fetch_catalog(self) -> List[UnifiedVersion]:
        upstream_versions = self.upstream.list_versions()
        logger.debug(
            f"{self.name}: mirroring {len(upstream_versions)} release(s) "
            f"from {self.upstream.name}"
        )
        return [self.rewrite(version) for version in upstream_versions]

    def registry_source(
        self, entry: RegistryEntry, platform_key: str, asset: str
    ) -> DownloadSource:
        if is_url(asset):
            return DownloadSource(primary=asset)
        return DownloadSource(
            primary=self.mirror_url(entry.major, entry.tag_name, platform_key, asset),
            fallback=github_asset_url(entry.major, entry.tag_name, asset),
        )


class TsinghuaProvider(MirrorProvider):
    """TUNA mirror: `{base}/{major}/jdk/{arch}/{os}/{file}`, with macOS spelled `mac`."""

    name = SOURCE_TSINGHUA

    def __init__(
        self,
        client: HttpClient,
        upstream: CatalogProvider,
        base_url: str = TSINGHUA_MIRROR_BASE,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        super().__init__(client, upstream, base_url, cache, registry, cache_ttl)

    def mirror_url(self, major: int, tag_name: str, platform_key: str, filename: str) -> str:
        os_name, _, arch = platform_key.partition("-")
        os_dir = _ADOPTIUM_OS_DIRS.get(os_name, os_name)
        arch_dir = _ADOPTIUM_ARCH_DIRS.get(arch, arch)
        return f"{self.base_url}/{major}/jdk/{arch_dir}/{os_dir}/{filename}"


class AliyunProvider(MirrorProvider):
    """Aliyun mirror: `{base}/{major}/{tag_name}/{file}`."""

    name = SOURCE_ALIYUN

    def __init__(
        self,
        client: HttpClient,
        upstream: CatalogProvider,
        base_url: str = ALIYUN_MIRROR_BASE,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        super().__init__(client, upstream, base_url, cache, registry, cache_ttl)

    def mirror_url(self, major: int, tag_name: str, platform_key: str, filename: str) -> str:
        return f"{self.base_url}/{major}/{tag_name}/{filename}"
