"""
jdkfetch Download Subsystem

Core Components:
- interfaces: Data model and the CatalogProvider contract
- version: Version spec parsing and Temurin tag parsing
- registry: Optional static version registry (TOML)
- github_source, adoptium_source, mirrors: Catalog providers
- providers: Source names and provider construction
- cache: TTL-bounded catalog cache
- resolver: Best-match release selection
- mirror: Mirror probing and URL selection
- downloader: Resilient archive downloads
- orchestrator: Source-chain resolution and download
"""

from .adoptium_source import AdoptiumProvider
from .base import BaseCatalogProvider
from .cache import CatalogCache
from .client import HttpClient
from .downloader import ArchiveDownloader
from .github_source import GithubProvider
from .interfaces import (
    ArtifactLocation,
    CatalogListing,
    CatalogProvider,
    DownloadOptions,
    DownloadSource,
    FetchResult,
    ResolvedVersion,
    UnifiedVersion,
)
from .mirrors import AliyunProvider, TsinghuaProvider
from .orchestrator import CatalogOrchestrator
from .providers import SourceName, create_provider
from .registry import VersionRegistry, load_registry
from .resolver import resolve_version
from .version import parse_version_spec

__all__ = [
    # Interfaces
    "ArtifactLocation",
    "CatalogListing",
    "CatalogProvider",
    "DownloadOptions",
    "DownloadSource",
    "FetchResult",
    "ResolvedVersion",
    "UnifiedVersion",
    # Providers
    "BaseCatalogProvider",
    "GithubProvider",
    "AdoptiumProvider",
    "TsinghuaProvider",
    "AliyunProvider",
    "SourceName",
    "create_provider",
    # Core components
    "ArchiveDownloader",
    "CatalogCache",
    "CatalogOrchestrator",
    "HttpClient",
    "VersionRegistry",
    "load_registry",
    "parse_version_spec",
    "resolve_version",
]
