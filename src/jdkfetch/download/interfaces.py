"""
Core Interfaces for the jdkfetch Download Subsystem

This module defines the data structures that flow between catalog providers,
the resolver and the downloader, plus the CatalogProvider contract every
source implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from jdkfetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY_MS,
)

ProgressCallback = Callable[[int, Optional[int]], None]
"""Called after every chunk with (bytes_downloaded, total_bytes_or_None)."""


@dataclass(frozen=True)
class DownloadSource:
    """Where one platform archive can be fetched from."""

    primary: str
    """Preferred URL (the mirror URL for mirror sources)"""

    fallback: Optional[str] = None
    """Upstream URL used when the primary does not answer a probe"""

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"primary": self.primary, "fallback": self.fallback}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DownloadSource":
        return cls(primary=data["primary"], fallback=data.get("fallback"))


@dataclass(frozen=True)
class UnifiedVersion:
    """A single published JDK release, normalized across all sources."""

    version: str
    """Dotted numeric version, e.g. '21.0.4'"""

    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None

    tag_name: str = ""
    """Upstream release tag, e.g. 'jdk-21.0.4+7'"""

    release_name: str = ""
    """Human-readable release name; searched by exact-spec matching"""

    is_lts: bool = False

    download_urls: Dict[str, DownloadSource] = field(default_factory=dict)
    """Platform key ('{os}-{arch}') to download location"""

    published_at: str = ""
    """ISO 8601 timestamp, or 'registry' for registry-sourced entries"""

    checksums: Dict[str, str] = field(default_factory=dict)
    """Optional SHA-256 hex digest per platform key"""

    source: str = ""
    """Name of the provider that emitted this record"""

    def __hash__(self) -> int:
        return hash((self.source, self.version, self.tag_name))

    def platforms(self) -> List[str]:
        return sorted(self.download_urls)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict for the catalog cache."""
        return {
            "version": self.version,
            "major": self.major,
            "minor": self.minor,
            "patch": self.patch,
            "tag_name": self.tag_name,
            "release_name": self.release_name,
            "is_lts": self.is_lts,
            "download_urls": {
                key: source.to_dict() for key, source in self.download_urls.items()
            },
            "published_at": self.published_at,
            "checksums": dict(self.checksums),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnifiedVersion":
        """
        Rebuild a UnifiedVersion from `to_dict()` output.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If a field has the wrong shape.
        """
        return cls(
            version=str(data["version"]),
            major=int(data["major"]),
            minor=data.get("minor"),
            patch=data.get("patch"),
            tag_name=data.get("tag_name") or "",
            release_name=data.get("release_name") or "",
            is_lts=bool(data.get("is_lts", False)),
            download_urls={
                key: DownloadSource.from_dict(value)
                for key, value in (data.get("download_urls") or {}).items()
            },
            published_at=data.get("published_at") or "",
            checksums=dict(data.get("checksums") or {}),
            source=data.get("source") or "",
        )


@dataclass(frozen=True)
class ResolvedVersion:
    """The record the resolver selected and the source whose catalog held it."""

    version: UnifiedVersion
    source: str


@dataclass
class DownloadOptions:
    """Per-download knobs; defaults match the `download` configuration section."""

    expected_checksum: Optional[str] = None
    """Hex SHA-256 the payload must match"""

    retry_count: int = DEFAULT_RETRY_COUNT
    """Retries after the first attempt; total attempts are retry_count + 1"""

    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    exponential_backoff: bool = True
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    reuse_existing: bool = True
    """Reuse a non-empty destination file instead of downloading again"""

    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class ArtifactLocation:
    """Where a verified artifact ended up."""

    url: str
    """URL the payload was fetched from (or would have been, when reused)"""

    size: int
    sha256: Optional[str] = None

    path: Optional[str] = None
    """Absolute file path, for file downloads"""

    content: Optional[bytes] = None
    """Payload bytes, for in-memory downloads"""

    reused: bool = False
    """Whether an existing file was reused without a network transfer"""

    @property
    def in_memory(self) -> bool:
        return self.content is not None


class CatalogProvider(ABC):
    """
    A source of UnifiedVersion records.

    Implementations return releases sorted newest first. An empty list is a valid
    answer; an unreachable origin raises CatalogFetchError.
    """

    name: str = ""

    @abstractmethod
    def list_versions(self) -> List[UnifiedVersion]:
        """
        Return every release this source knows about, newest first.

        Raises:
            CatalogFetchError: If the origin cannot be reached or returns malformed data.
        """


@dataclass
class FetchResult:
    """Outcome of a resolve-and-download walk over the source chain."""

    resolved: ResolvedVersion
    artifact: ArtifactLocation


@dataclass
class CatalogListing:
    """Per-source catalogs from `list_all_sources()`; failed sources are kept apart."""

    versions: Dict[str, List[UnifiedVersion]] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)
