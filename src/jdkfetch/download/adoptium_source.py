"""
Adoptium API Source

Lists Temurin GA releases from the Adoptium v3 API. Unlike the GitHub listing,
every binary carries its SHA-256 checksum, which is recorded on the version so
downloads from this source are always verified.
"""

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from jdkfetch.constants import (
    ADOPTIUM_API_BASE,
    ADOPTIUM_PAGE_SIZE,
    ARCH_X86,
    ARCHIVE_EXTENSIONS,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_GITHUB_MAJORS,
    OS_LINUX,
    OS_MACOS,
    OS_WINDOWS,
    SOURCE_ADOPTIUM,
)
from jdkfetch.exceptions import CatalogFetchError, describe_failures
from jdkfetch.log_utils import logger
from jdkfetch.utils import normalize_checksum

from .base import BaseCatalogProvider
from .cache import CatalogCache
from .client import HttpClient
from .interfaces import DownloadSource, UnifiedVersion
from .registry import VersionRegistry

_OS_NAMES = {"linux": OS_LINUX, "windows": OS_WINDOWS, "mac": OS_MACOS}
_ARCH_NAMES = {"x32": ARCH_X86}


def _binary_platform_key(binary: Dict[str, Any]) -> Optional[str]:
    os_name = _OS_NAMES.get(str(binary.get("os", "")))
    arch = binary.get("architecture")
    if os_name is None or not isinstance(arch, str) or not arch:
        return None
    return f"{os_name}-{_ARCH_NAMES.get(arch, arch)}"


def create_version_from_adoptium_data(
    release_data: Dict[str, Any], lts_majors: Set[int], source: str = SOURCE_ADOPTIUM
) -> Optional[UnifiedVersion]:
    """
    Create a UnifiedVersion from one `feature_releases` entry.

    Parameters:
        release_data (Dict[str, Any]): Release object from the Adoptium API.
        lts_majors (Set[int]): Majors listed in `available_lts_releases`.
        source (str): Provider name recorded on the result.

    Returns:
        Optional[UnifiedVersion]: The release, or None when it has no version data
            or no JDK archive for a supported OS.
    """
    version_data = release_data.get("version_data")
    if not isinstance(version_data, dict) or "major" not in version_data:
        logger.debug("Skipping Adoptium release without version_data")
        return None

    major = int(version_data["major"])
    minor = int(version_data.get("minor") or 0)
    patch = int(version_data.get("security") or 0)

    download_urls: Dict[str, DownloadSource] = {}
    checksums: Dict[str, str] = {}
    for binary in release_data.get("binaries") or []:
        if not isinstance(binary, dict) or binary.get("image_type") != "jdk":
            continue
        package = binary.get("package") or {}
        link = package.get("link")
        name = package.get("name") or ""
        if not isinstance(link, str) or not name.lower().endswith(ARCHIVE_EXTENSIONS):
            continue
        key = _binary_platform_key(binary)
        if key is None or key in download_urls:
            continue
        download_urls[key] = DownloadSource(primary=link)
        checksum = normalize_checksum(package.get("checksum"))
        if checksum:
            checksums[key] = checksum

    if not download_urls:
        return None

    tag_name = release_data.get("release_name") or ""
    return UnifiedVersion(
        version=f"{major}.{minor}.{patch}",
        major=major,
        minor=minor,
        patch=patch,
        tag_name=tag_name,
        release_name=f"Eclipse Temurin {version_data.get('openjdk_version') or tag_name}",
        is_lts=major in lts_majors,
        download_urls=download_urls,
        published_at=release_data.get("timestamp") or "",
        checksums=checksums,
        source=source,
    )


class AdoptiumProvider(BaseCatalogProvider):
    """Catalog provider backed by the Adoptium v3 REST API."""

    name = SOURCE_ADOPTIUM

    def __init__(
        self,
        client: HttpClient,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
        majors: Sequence[int] = DEFAULT_GITHUB_MAJORS,
        api_base: str = ADOPTIUM_API_BASE,
    ):
        super().__init__(client, cache, registry, cache_ttl)
        self.majors = list(majors)
        self.api_base = api_base.rstrip("/")

    def available_releases(self) -> Tuple[List[int], Set[int]]:
        """
        Query `/info/available_releases`.

        Returns:
            Tuple[List[int], Set[int]]: Every published major and the LTS majors.
        """
        url = f"{self.api_base}/info/available_releases"
        data = self.client.get_json(url, source=self.name)
        if not isinstance(data, dict):
            raise CatalogFetchError(
                "Unexpected Adoptium API response", source=self.name, url=url
            )
        try:
            available = [int(m) for m in data.get("available_releases") or []]
            lts = {int(m) for m in data.get("available_lts_releases") or []}
        except (TypeError, ValueError) as e:
            raise CatalogFetchError(
                "Malformed Adoptium release list",
                source=self.name,
                url=url,
                details=str(e),
            ) from e
        return available, lts

    def feature_releases(self, major: int) -> List[Dict[str, Any]]:
        url = f"{self.api_base}/assets/feature_releases/{major}/ga"
        data = self.client.get_json(
            url,
            params={
                "image_type": "jdk",
                "page_size": ADOPTIUM_PAGE_SIZE,
                "sort_order": "DESC",
                "vendor": "eclipse",
            },
            source=self.name,
        )
        if not isinstance(data, list):
            raise CatalogFetchError(
                "Unexpected Adoptium API response", source=self.name, url=url
            )
        return [entry for entry in data if isinstance(entry, dict)]

    def fetch_catalog(self) -> List[UnifiedVersion]:
        available, lts_majors = self.available_releases()
        majors = [m for m in self.majors if m in available]
        if not majors:
            logger.info(f"{self.name}: none of the configured majors are published")
            return []

        versions: List[UnifiedVersion] = []
        seen: Set[Tuple[int, Optional[int], Optional[int]]] = set()
        failures: Dict[str, Exception] = {}
        for major in majors:
            try:
                releases = self.feature_releases(major)
            except CatalogFetchError as e:
                logger.warning(f"Could not list Adoptium {major} releases: {e}")
                failures[str(major)] = e
                continue
            for release_data in releases:
                try:
                    version = create_version_from_adoptium_data(
                        release_data, lts_majors, self.name
                    )
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed Adoptium release entry: {e}")
                    continue
                if version is None:
                    continue
                identity = (version.major, version.minor, version.patch)
                if identity not in seen:
                    seen.add(identity)
                    versions.append(version)

        if len(failures) == len(majors):
            raise CatalogFetchError(
                "Could not list any Adoptium feature release",
                source=self.name,
                url=self.api_base,
                details=describe_failures(failures),
            )
        return versions
