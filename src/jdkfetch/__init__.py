"""
jdkfetch - resolve JDK version requests and download Temurin archives from mirrored sources.
"""

from jdkfetch.download.interfaces import (
    ArtifactLocation,
    DownloadOptions,
    DownloadSource,
    ResolvedVersion,
    UnifiedVersion,
)
from jdkfetch.download.orchestrator import CatalogOrchestrator
from jdkfetch.download.version import parse_version_spec

__all__ = [
    "ArtifactLocation",
    "CatalogOrchestrator",
    "DownloadOptions",
    "DownloadSource",
    "ResolvedVersion",
    "UnifiedVersion",
    "parse_version_spec",
]
