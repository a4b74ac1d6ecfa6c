"""
Catalog Orchestrator

This module implements the inbound interface of jdkfetch: resolving a version
request against a priority-ordered chain of catalog sources and downloading
the resolved release for a platform.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple, Union

from jdkfetch.cancellation import CancellationToken
from jdkfetch.config import Config, DownloadConfig
from jdkfetch.constants import UNKNOWN
from jdkfetch.exceptions import (
    AllSourcesFailedError,
    DownloadCancelledError,
    DownloadError,
    PlatformError,
    ResolveError,
)
from jdkfetch.log_utils import logger
from jdkfetch.platforms import Platform

from .base import BaseCatalogProvider
from .cache import CatalogCache
from .client import HttpClient
from .interfaces import (
    ArtifactLocation,
    CatalogListing,
    DownloadOptions,
    FetchResult,
    ProgressCallback,
    ResolvedVersion,
    UnifiedVersion,
)
from .providers import SourceName, create_provider
from .registry import VersionRegistry, load_registry
from .version import VersionSpec, parse_version_spec

MAX_LISTING_WORKERS = 4


def options_from_config(
    download: DownloadConfig, expected_checksum: Optional[str] = None
) -> DownloadOptions:
    """Build DownloadOptions from the `download` configuration section."""
    return DownloadOptions(
        expected_checksum=expected_checksum,
        retry_count=download.retry_count,
        retry_delay_ms=download.retry_delay_ms,
        exponential_backoff=download.exponential_backoff,
        connect_timeout=download.connect_timeout,
        read_timeout=download.read_timeout,
        chunk_size=download.chunk_size,
    )


def target_platform_key(platform_key: Optional[str] = None) -> str:
    """
    Normalized `{os}-{arch}` key for `platform_key`, or for this machine when omitted.

    Raises:
        PlatformError: If the key is malformed, or this machine's platform is not recognized.
    """
    if platform_key:
        return Platform.from_key(platform_key).key()
    current = Platform.current()
    if UNKNOWN in (current.os, current.arch):
        raise PlatformError(
            f"Could not detect a supported platform for this machine ({current.key()})",
            field="platform",
            value=current.key(),
            details="pass an explicit platform key such as 'linux-x64'",
        )
    return current.key()


def artifact_file_name(version: UnifiedVersion, platform_key: str) -> str:
    """Default archive name, e.g. OpenJDK-21.0.4-linux-x64-tsinghua.tar.gz."""
    platform = Platform.from_key(platform_key)
    return (
        f"OpenJDK-{version.version}-{platform.os}-{platform.arch}-"
        f"{version.source}.{platform.archive_ext()}"
    )


class CatalogOrchestrator:
    """
    Coordinates catalog providers, the resolver and the downloader.

    This class handles:
    - Source priority (configured primary then fallbacks, or a per-call override)
    - Lazy construction of one provider per source, sharing one cache and client
    - The static registry, loaded once and handed to every provider
    - Resolve-and-download walks that move on to the next source on failure
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[HttpClient] = None,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
    ):
        """
        Create an orchestrator.

        Parameters:
            config (Optional[Config]): Settings; defaults are used when omitted.
            client (Optional[HttpClient]): HTTP client to share; one is created (and
                owned) when omitted.
            cache (Optional[CatalogCache]): Catalog cache; defaults to the configured
                cache directory and TTL.
            registry (Optional[VersionRegistry]): Static registry; when omitted the
                registry search path is consulted once.

        Raises:
            RegistryError: If a registry file is invalid, or none is found while
                `sources.registry_only` is set.
        """
        self.config = config or Config()
        self._owns_client = client is None
        self.client = client or HttpClient()
        self.cache = cache or CatalogCache(
            self.config.cache.resolved_directory(),
            default_ttl=self.config.cache.ttl_seconds,
        )
        if registry is None:
            registry = load_registry(
                self.config.sources.registry_path,
                registry_only=self.config.sources.registry_only,
            )
        self.registry = registry
        if self.registry is not None:
            logger.info(f"Using version registry {self.registry.path}")
        self._providers: Dict[SourceName, BaseCatalogProvider] = {}

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def priority(self, source_priority: Optional[Sequence[str]] = None) -> List[SourceName]:
        """Resolve the source chain: the override if given, else the configured one."""
        names = list(source_priority) if source_priority else self.config.sources.priority()
        ordered: List[SourceName] = []
        for name in names:
            source = SourceName.parse(name)
            if source not in ordered:
                ordered.append(source)
        return ordered

    def provider(self, name: Union[str, SourceName]) -> BaseCatalogProvider:
        source = name if isinstance(name, SourceName) else SourceName.parse(name)
        if source not in self._providers:
            self._providers[source] = create_provider(
                source,
                self.client,
                cache=self.cache,
                registry=self.registry,
                sources=self.config.sources,
                cache_ttl=self.config.cache.ttl_seconds,
            )
        return self._providers[source]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        spec: Union[str, VersionSpec],
        source_priority: Optional[Sequence[str]] = None,
    ) -> ResolvedVersion:
        """
        Resolve `spec` against the source chain; the first source that answers wins.

        Parameters:
            spec (Union[str, VersionSpec]): Free-form request such as "21", "lts" or "17+".
            source_priority (Optional[Sequence[str]]): Source names overriding the
                configured priority.

        Returns:
            ResolvedVersion: The selected release and the source whose catalog held it.

        Raises:
            VersionSpecError: If `spec` cannot be parsed (no source is consulted).
            AllSourcesFailedError: If every source failed to list or match.
        """
        parsed = parse_version_spec(spec) if isinstance(spec, str) else spec
        failures: List[Tuple[str, Exception]] = []
        for source in self.priority(source_priority):
            try:
                version = self.provider(source).resolve(parsed)
            except (ResolveError, DownloadError) as e:
                logger.warning(f"Source {source.value} could not resolve '{parsed}': {e}")
                failures.append((source.value, e))
                continue
            logger.info(
                f"Resolved '{parsed}' to {version.version} ({version.tag_name}) "
                f"from {source.value}"
            )
            return ResolvedVersion(version=version, source=source.value)

        raise AllSourcesFailedError(f"No source could resolve '{parsed}'", failures)

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def default_destination(self, version: UnifiedVersion, platform_key: str) -> str:
        return os.path.join(
            self.config.download.resolved_directory(),
            artifact_file_name(version, platform_key),
        )

    def download(
        self,
        version: Union[ResolvedVersion, UnifiedVersion],
        platform_key: Optional[str] = None,
        options: Optional[DownloadOptions] = None,
        progress: Optional[ProgressCallback] = None,
        destination: Optional[str] = None,
        in_memory: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ArtifactLocation:
        """
        Download a resolved release for `platform_key`.

        Parameters:
            version (Union[ResolvedVersion, UnifiedVersion]): Release from `resolve()`.
            platform_key (Optional[str]): Target `{os}-{arch}`; defaults to this machine.
            options (Optional[DownloadOptions]): Retry, timeout and checksum settings;
                defaults come from the `download` configuration section. When no
                checksum is given, the one recorded in the catalog is enforced.
            progress (Optional[ProgressCallback]): Called with (downloaded, total).
            destination (Optional[str]): Target file; defaults to the downloads
                directory. Ignored when `in_memory` is set.
            in_memory (bool): Return the payload bytes instead of writing a file.
            cancel_token (Optional[CancellationToken]): Cooperative cancellation.

        Returns:
            ArtifactLocation: The verified artifact.

        Raises:
            PlatformError: If `platform_key` is malformed.
            NoAvailableSourceError: If no URL is usable for the platform.
            DownloadError: If the transfer fails after retries or permanently.
        """
        record = version.version if isinstance(version, ResolvedVersion) else version
        key = target_platform_key(platform_key)
        options = options or options_from_config(self.config.download)
        provider = self.provider(record.source or self.priority()[0])

        if in_memory:
            destination = None
        elif destination is None:
            destination = self.default_destination(record, key)

        logger.info(f"Downloading {record.version} for {key} from {provider.name}")
        return provider.fetch(
            record,
            key,
            options=options,
            progress=progress,
            destination=destination,
            cancel_token=cancel_token,
        )

    def fetch(
        self,
        spec: Union[str, VersionSpec],
        platform_key: Optional[str] = None,
        options: Optional[DownloadOptions] = None,
        progress: Optional[ProgressCallback] = None,
        destination: Optional[str] = None,
        in_memory: bool = False,
        cancel_token: Optional[CancellationToken] = None,
        source_priority: Optional[Sequence[str]] = None,
    ) -> FetchResult:
        """
        Resolve and download, walking the source chain until one source succeeds.

        A source is skipped when it cannot list its catalog, has no matching
        release or its download fails. Cancellation and malformed requests stop
        the walk immediately.

        Returns:
            FetchResult: The resolved release and the downloaded artifact.

        Raises:
            VersionSpecError, PlatformError: If the request is malformed.
            DownloadCancelledError: If `cancel_token` is cancelled.
            AllSourcesFailedError: If every source failed; carries each failure.
        """
        parsed = parse_version_spec(spec) if isinstance(spec, str) else spec
        key = target_platform_key(platform_key)

        failures: List[Tuple[str, Exception]] = []
        for source in self.priority(source_priority):
            try:
                version = self.provider(source).resolve(parsed)
                artifact = self.download(
                    version,
                    key,
                    options=options,
                    progress=progress,
                    destination=destination,
                    in_memory=in_memory,
                    cancel_token=cancel_token,
                )
            except DownloadCancelledError:
                raise
            except (ResolveError, DownloadError) as e:
                logger.warning(f"Source {source.value} failed: {e}")
                failures.append((source.value, e))
                continue
            return FetchResult(
                resolved=ResolvedVersion(version=version, source=source.value),
                artifact=artifact,
            )

        raise AllSourcesFailedError(
            f"Could not fetch '{parsed}' for {key} from any source", failures
        )

    # ------------------------------------------------------------------
    # Catalog maintenance
    # ------------------------------------------------------------------

    def list_all_sources(
        self, source_priority: Optional[Sequence[str]] = None
    ) -> CatalogListing:
        """
        List every source's catalog concurrently.

        Failing sources are reported in `CatalogListing.failures` instead of raising.
        """
        sources = self.priority(source_priority)
        providers = [self.provider(source) for source in sources]
        listing = CatalogListing()

        def _list(provider: BaseCatalogProvider) -> Tuple[str, object]:
            try:
                return provider.name, provider.list_versions()
            except (ResolveError, DownloadError) as e:
                return provider.name, e

        with ThreadPoolExecutor(
            max_workers=min(MAX_LISTING_WORKERS, len(providers) or 1)
        ) as pool:
            results = list(pool.map(_list, providers))

        for name, result in results:
            if isinstance(result, Exception):
                logger.warning(f"Could not list {name}: {result}")
                listing.failures[name] = result
            else:
                listing.versions[name] = result  # type: ignore[assignment]
        return listing

    def cleanup_cache(self) -> int:
        return self.cache.cleanup_expired()

    def clear_cache(self) -> int:
        return self.cache.clear()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "CatalogOrchestrator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
