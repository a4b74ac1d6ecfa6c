"""
GitHub Release Source

Lists Eclipse Temurin releases from the `adoptium/temurin{N}-binaries`
repositories through the GitHub REST API and turns them into UnifiedVersion
records keyed by platform.
"""

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from jdkfetch.constants import (
    ARCHIVE_EXTENSIONS,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_GITHUB_MAJORS,
    DEFAULT_RELEASES_PER_REPOSITORY,
    GITHUB_API_ACCEPT,
    GITHUB_API_BASE,
    GITHUB_API_VERSION,
    GITHUB_MAX_PER_PAGE,
    LTS_MAJORS,
    SOURCE_GITHUB,
    TEMURIN_GITHUB_OWNER,
    TEMURIN_REPO_TEMPLATE,
)
from jdkfetch.exceptions import CatalogFetchError, describe_failures
from jdkfetch.log_utils import logger
from jdkfetch.platforms import Platform
from jdkfetch.utils import get_effective_github_token

from .base import BaseCatalogProvider
from .cache import CatalogCache
from .client import HttpClient
from .interfaces import DownloadSource, UnifiedVersion
from .registry import VersionRegistry
from .version import parse_temurin_tag


def is_jdk_archive(name: str) -> bool:
    """True for plain JDK archives, e.g. OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz."""
    lowered = name.lower()
    return (
        lowered.endswith(ARCHIVE_EXTENSIONS)
        and "-jdk_" in lowered
        and "alpine" not in lowered
    )


def create_version_from_github_data(
    release_data: Dict[str, Any], source: str = SOURCE_GITHUB
) -> Optional[UnifiedVersion]:
    """
    Create a UnifiedVersion from GitHub API release data.

    Only JDK archives (.zip, .tar.gz) whose file name identifies both OS and
    architecture are kept. JRE, debug and test images, installers, checksum
    files and Alpine builds are ignored.

    Parameters:
        release_data (Dict[str, Any]): Raw release object from the GitHub API.
        source (str): Provider name recorded on the result.

    Returns:
        Optional[UnifiedVersion]: The parsed release, or None when the tag is not a
            Temurin release tag or no usable archive is attached.
    """
    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        logger.warning("Skipping release with missing or invalid tag_name")
        return None

    parsed = parse_temurin_tag(tag_name)
    if parsed is None:
        logger.debug(f"Skipping release with unrecognized tag {tag_name}")
        return None

    download_urls: Dict[str, DownloadSource] = {}
    for asset in release_data.get("assets") or []:
        if not isinstance(asset, dict):
            continue
        name = asset.get("name")
        url = asset.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str):
            continue
        if not is_jdk_archive(name):
            continue
        os_arch = Platform.parse_from_filename(name)
        if os_arch is None:
            continue
        download_urls.setdefault(
            f"{os_arch[0]}-{os_arch[1]}", DownloadSource(primary=url)
        )

    if not download_urls:
        logger.debug(f"Skipping release {tag_name} with no archive assets")
        return None

    return UnifiedVersion(
        version=parsed.version,
        major=parsed.major,
        minor=parsed.minor,
        patch=parsed.patch,
        tag_name=tag_name,
        release_name=release_data.get("name") or tag_name,
        is_lts=parsed.major in LTS_MAJORS,
        download_urls=download_urls,
        published_at=release_data.get("published_at") or "",
        source=source,
    )


class GithubProvider(BaseCatalogProvider):
    """
    Catalog provider backed by the Temurin GitHub release repositories.

    One repository is scanned per configured major version. A repository that
    cannot be reached is logged and skipped; the catalog only fails when every
    repository fails.
    """

    name = SOURCE_GITHUB

    def __init__(
        self,
        client: HttpClient,
        cache: Optional[CatalogCache] = None,
        registry: Optional[VersionRegistry] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
        majors: Sequence[int] = DEFAULT_GITHUB_MAJORS,
        releases_per_repository: int = DEFAULT_RELEASES_PER_REPOSITORY,
        github_token: Optional[str] = None,
        api_base: str = GITHUB_API_BASE,
    ):
        super().__init__(client, cache, registry, cache_ttl)
        self.majors = list(majors)
        self.releases_per_repository = releases_per_repository
        self.github_token = github_token
        self.api_base = api_base.rstrip("/")

    def releases_url(self, major: int) -> str:
        repo = TEMURIN_REPO_TEMPLATE.format(major=major)
        return f"{self.api_base}/{TEMURIN_GITHUB_OWNER}/{repo}/releases"

    def _request_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": GITHUB_API_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        token = get_effective_github_token(self.github_token)
        if token:
            headers["Authorization"] = f"token {token}"
        return headers

    def fetch_repository(self, major: int) -> List[UnifiedVersion]:
        """
        Fetch the newest non-prerelease releases of one repository.

        Raises:
            CatalogFetchError: If the repository listing cannot be retrieved.
        """
        url = self.releases_url(major)
        # Extra room so skipped prereleases do not starve the per-repo quota.
        per_page = min(GITHUB_MAX_PER_PAGE, self.releases_per_repository * 4)
        releases_data = self.client.get_json(
            url,
            params={"per_page": per_page},
            headers=self._request_headers(),
            source=self.name,
        )
        if not isinstance(releases_data, list):
            raise CatalogFetchError(
                "Unexpected GitHub API response",
                source=self.name,
                url=url,
                details=f"expected a list, got {type(releases_data).__name__}",
            )

        versions: List[UnifiedVersion] = []
        for release_data in releases_data:
            if len(versions) >= self.releases_per_repository:
                break
            if not isinstance(release_data, dict):
                logger.warning(
                    f"Skipping malformed release entry from {url}: "
                    f"expected dict, got {type(release_data).__name__}"
                )
                continue
            if release_data.get("prerelease") or release_data.get("draft"):
                continue
            version = create_version_from_github_data(release_data, self.name)
            if version is not None:
                versions.append(version)
        return versions

    def fetch_catalog(self) -> List[UnifiedVersion]:
        versions: List[UnifiedVersion] = []
        seen: Set[Tuple[int, Optional[int], Optional[int]]] = set()
        failures: Dict[str, Exception] = {}

        for major in self.majors:
            try:
                repo_versions = self.fetch_repository(major)
            except CatalogFetchError as e:
                logger.warning(f"Could not list Temurin {major} releases: {e}")
                failures[TEMURIN_REPO_TEMPLATE.format(major=major)] = e
                continue
            for version in repo_versions:
                identity = (version.major, version.minor, version.patch)
                if identity in seen:
                    continue
                seen.add(identity)
                versions.append(version)

        if failures and len(failures) == len(self.majors):
            raise CatalogFetchError(
                "Could not reach any Temurin release repository",
                source=self.name,
                url=self.api_base,
                details=describe_failures(failures),
            )
        return versions
