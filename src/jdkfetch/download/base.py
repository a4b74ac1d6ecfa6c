"""
Base Catalog Provider

This module provides the shared implementation of the CatalogProvider contract:
registry-first listing, cache-then-origin fetching, resolution, URL selection
and archive fetching. Concrete providers only describe how to read their origin
and how to build URLs from registry entries.
"""

from abc import abstractmethod
from dataclasses import replace
from typing import List, Optional
from urllib.parse import quote

from jdkfetch.cancellation import CancellationToken
from jdkfetch.constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    GITHUB_DOWNLOAD_BASE,
    REGISTRY_PUBLISHED_AT,
    TEMURIN_GITHUB_OWNER,
    TEMURIN_REPO_TEMPLATE,
)
from jdkfetch.log_utils import logger

from .cache import CatalogCache
from .client import HttpClient
from .downloader import ArchiveDownloader
from .interfaces import (
    ArtifactLocation,
    CatalogProvider,
    DownloadOptions,
    DownloadSource,
    ProgressCallback,
    UnifiedVersion,
)
from .mirror import UrlSelection, select_download_url
from .registry import RegistryEntry, VersionRegistry
from .resolver import resolve_version, sort_versions
from .version import VersionSpec, parse_version_spec, split_version


def github_asset_url(major: int, tag_name: str, filename: str) -> str:
    """Upstream Temurin release asset URL on GitHub."""
    repo = TEMURIN_REPO_TEMPLATE.format(major=major)
    return (
        f"{GITHUB_DOWNLOAD_BASE}/{TEMURIN_GITHUB_OWNER}/{repo}/releases/download/"
        f"{quote(tag_name, safe='')}/{filename}"
    )


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


class BaseCatalogProvider(CatalogProvider):
    """
    Shared behaviour for every catalog source.

    Listing precedence:
    1. the static registry, when one was loaded (no network, no cache)
    2. the catalog cache entry for this source, when present and unexpired
    3. a live fetch from the origin, saved to the cache before being returned
    """

    name = ""

    def __init__(
        self,
        client: HttpClient,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        self.client = client
        self.cache = cache
        self.registry = registry
        self.cache_ttl = cache_ttl
        self.downloader = ArchiveDownloader(client)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_versions(self) -> List[UnifiedVersion]:
        if self.registry is not None:
            versions = self.versions_from_registry(self.registry)
            logger.debug(f"{self.name}: {len(versions)} release(s) from registry")
            return sort_versions(versions)

        if self.cache is not None:
            cached = self.cache.load_versions(self.name)
            if cached is not None:
                logger.debug(f"{self.name}: {len(cached)} release(s) from cache")
                return sort_versions(cached)

        versions = sort_versions(self.fetch_catalog())
        logger.info(f"{self.name}: found {len(versions)} release(s)")
        if self.cache is not None:
            self.cache.save_versions(self.name, versions, self.cache_ttl)
        return versions

    @abstractmethod
    def fetch_catalog(self) -> List[UnifiedVersion]:
        """
        Query the origin for releases.

        Raises:
            CatalogFetchError: If the origin cannot be reached.
        """

    def versions_from_registry(self, registry: VersionRegistry) -> List[UnifiedVersion]:
        return [self._registry_version(entry) for entry in registry.entries]

    def _registry_version(self, entry: RegistryEntry) -> UnifiedVersion:
        _, minor, patch = split_version(entry.version)
        download_urls = {}
        for platform_key, asset in entry.assets_for(self.name).items():
            download_urls[platform_key] = self.registry_source(entry, platform_key, asset)
        return UnifiedVersion(
            version=entry.version,
            major=entry.major,
            minor=minor,
            patch=patch,
            tag_name=entry.tag_name,
            release_name=entry.display_name(),
            is_lts=entry.lts,
            download_urls=download_urls,
            published_at=REGISTRY_PUBLISHED_AT,
            checksums=dict(entry.checksums),
            source=self.name,
        )

    def registry_source(
        self, entry: RegistryEntry, platform_key: str, asset: str
    ) -> DownloadSource:
        """
        Build the DownloadSource for one registry asset.

        Full URLs are used verbatim; file names resolve to the upstream GitHub URL.
        Mirror providers override this to point at their own layout.
        """
        if is_url(asset):
            return DownloadSource(primary=asset)
        return DownloadSource(primary=github_asset_url(entry.major, entry.tag_name, asset))

    # ------------------------------------------------------------------
    # Resolution and retrieval
    # ------------------------------------------------------------------

    def resolve(self, spec: "str | VersionSpec") -> UnifiedVersion:
        """
        Resolve `spec` against this source's catalog.

        Raises:
            VersionSpecError: If `spec` is a string that cannot be parsed.
            CatalogFetchError: If the catalog cannot be listed.
            NoCandidatesError, VersionNotFoundError: If nothing matches.
        """
        parsed = parse_version_spec(spec) if isinstance(spec, str) else spec
        return resolve_version(parsed, self.list_versions(), source=self.name)

    def download_url(self, version: UnifiedVersion, platform_key: str) -> UrlSelection:
        return select_download_url(self.client, version, platform_key)

    def fetch(
        self,
        version: UnifiedVersion,
        platform_key: str,
        options: Optional[DownloadOptions] = None,
        progress: Optional[ProgressCallback] = None,
        destination: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ArtifactLocation:
        """
        Select a URL for `platform_key` and download it.

        With `destination` the archive is written there; without it the payload
        is returned in memory. A checksum known to the catalog is enforced when
        the caller did not supply one.
        """
        selection = self.download_url(version, platform_key)
        options = options or DownloadOptions()
        if not options.expected_checksum:
            known = version.checksums.get(selection.platform_key)
            if known:
                options = replace(options, expected_checksum=known)

        if destination is None:
            return self.downloader.download_to_memory(
                selection.url, options, progress, cancel_token
            )
        return self.downloader.download_to_file(
            selection.url, destination, options, progress, cancel_token
        )
