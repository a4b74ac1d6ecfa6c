"""
Mirror probing and download URL selection.

For a release and a target platform the probe picks a DownloadSource (exact
platform key first, then any key for the same OS) and checks its primary URL
with a HEAD request. An unreachable primary is never an error by itself; it
only switches the selection to the upstream fallback.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from jdkfetch.exceptions import NoAvailableSourceError
from jdkfetch.log_utils import logger

from .client import HttpClient
from .interfaces import DownloadSource, UnifiedVersion

MAX_PROBE_WORKERS = 4


@dataclass(frozen=True)
class UrlSelection:
    url: str
    platform_key: str
    used_fallback: bool = False
    exact_platform: bool = True


def candidate_sources(
    version: UnifiedVersion, platform_key: str
) -> List[Tuple[str, DownloadSource]]:
    """
    Download sources usable for `platform_key`, best first.

    The exact key comes first if present; otherwise every entry whose OS segment
    matches, sorted by key so the order is deterministic.
    """
    exact = version.download_urls.get(platform_key)
    if exact is not None:
        return [(platform_key, exact)]

    target_os = platform_key.split("-", 1)[0]
    return [
        (key, version.download_urls[key])
        for key in sorted(version.download_urls)
        if key.split("-", 1)[0] == target_os
    ]


def probe_many(client: HttpClient, urls: Iterable[str]) -> Dict[str, bool]:
    """
    Probe several URLs concurrently.

    Returns:
        Dict[str, bool]: URL to reachability, for every distinct URL given.
    """
    unique = list(dict.fromkeys(urls))
    if not unique:
        return {}
    with ThreadPoolExecutor(max_workers=min(MAX_PROBE_WORKERS, len(unique))) as pool:
        results = list(pool.map(lambda url: client.probe(url)[0], unique))
    return dict(zip(unique, results))


def select_download_url(
    client: HttpClient, version: UnifiedVersion, platform_key: str
) -> UrlSelection:
    """
    Choose the URL to fetch `version` for `platform_key` from.

    Parameters:
        client (HttpClient): Client used for HEAD probes.
        version (UnifiedVersion): The resolved release.
        platform_key (str): Target `{os}-{arch}` key.

    Returns:
        UrlSelection: The chosen URL, the platform key it belongs to and whether
        the fallback or a cross-architecture entry was used.

    Raises:
        NoAvailableSourceError: If no entry matches the platform's OS, or every
            candidate's primary failed its probe and none has a fallback.
    """
    candidates = candidate_sources(version, platform_key)
    if not candidates:
        raise NoAvailableSourceError(
            f"Release {version.version} has no archive for {platform_key}",
            platform_key=platform_key,
            available=version.platforms(),
        )

    exact = candidates[0][0] == platform_key
    if not exact:
        logger.warning(
            f"No archive for {platform_key} in {version.version}; "
            f"trying same-OS entries: {', '.join(key for key, _ in candidates)}"
        )
        # Cross-arch candidates are independent, so probe them together.
        reachable = probe_many(client, [source.primary for _, source in candidates])
    else:
        reachable = {}

    for key, source in candidates:
        ok = reachable.get(source.primary)
        if ok is None:
            ok = client.probe(source.primary)[0]
        if ok:
            return UrlSelection(source.primary, key, False, exact)
        if source.fallback:
            logger.info(
                f"Primary URL unavailable, using fallback for {key}: {source.fallback}"
            )
            return UrlSelection(source.fallback, key, True, exact)
        logger.debug(f"Primary URL unavailable and no fallback for {key}")

    raise NoAvailableSourceError(
        f"No reachable download URL for {version.version} on {platform_key}",
        platform_key=platform_key,
        available=version.platforms(),
        url=candidates[0][1].primary,
    )
