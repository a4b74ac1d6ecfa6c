"""
Best-match selection of a release from a catalog.

The resolver sorts candidates itself before comparing them, so the result for a
given catalog and request never depends on the order a provider returned.
"""

from typing import Callable, Iterable, List, Optional

from jdkfetch.exceptions import NoCandidatesError, VersionNotFoundError
from jdkfetch.log_utils import logger

from .interfaces import UnifiedVersion
from .version import (
    Exact,
    Latest,
    LatestLts,
    Major,
    Range,
    VersionSpec,
    leading_major,
    version_sort_key,
)


def sort_versions(versions: Iterable[UnifiedVersion]) -> List[UnifiedVersion]:
    """Return `versions` newest first by (major, minor, patch), nulls lowest."""
    return sorted(versions, key=version_sort_key, reverse=True)


def _first(
    versions: List[UnifiedVersion], predicate: Callable[[UnifiedVersion], bool]
) -> Optional[UnifiedVersion]:
    return next((v for v in versions if predicate(v)), None)


def _match_exact(text: str, versions: List[UnifiedVersion]) -> Optional[UnifiedVersion]:
    needle = text.lower()
    # Each rule is tried across the whole catalog before the next one.
    rules: List[Callable[[UnifiedVersion], bool]] = [
        lambda v: v.version.lower() == needle,
        lambda v: v.version.replace("-", ".").lower() == needle,
        lambda v: needle in v.tag_name.lower(),
        lambda v: needle in v.release_name.lower(),
    ]
    for rule in rules:
        match = _first(versions, rule)
        if match is not None:
            return match

    major = leading_major(text)
    if major is not None:
        match = _first(versions, lambda v: v.major == major)
        if match is not None:
            logger.debug(
                f"No exact match for {text!r}; using newest release of major {major}"
            )
        return match
    return None


def resolve_version(
    spec: VersionSpec,
    versions: Iterable[UnifiedVersion],
    source: Optional[str] = None,
) -> UnifiedVersion:
    """
    Select the single release that best satisfies `spec`.

    Rules:
    - Exact: version equality, then dash-normalized equality, then tag substring,
      then release-name substring; then the newest release of the leading major.
    - Major: newest LTS release of that major, else newest release of that major.
    - Range: newest release whose major lies within the bounds.
    - Latest: newest release. LatestLts: newest LTS release.

    Parameters:
        spec (VersionSpec): Parsed request.
        versions (Iterable[UnifiedVersion]): Candidate releases in any order.
        source (Optional[str]): Catalog source name, used in error messages.

    Returns:
        UnifiedVersion: The selected release.

    Raises:
        NoCandidatesError: If `versions` is empty.
        VersionNotFoundError: If no release satisfies `spec`.
    """
    ordered = sort_versions(versions)
    where = f" in {source} catalog" if source else ""
    if not ordered:
        raise NoCandidatesError(f"No releases available{where}")

    match: Optional[UnifiedVersion]
    if isinstance(spec, Exact):
        match = _match_exact(spec.text, ordered)
    elif isinstance(spec, Major):
        match = _first(ordered, lambda v: v.major == spec.major and v.is_lts)
        if match is None:
            match = _first(ordered, lambda v: v.major == spec.major)
    elif isinstance(spec, Range):
        match = _first(ordered, lambda v: spec.low <= v.major <= spec.high)
    elif isinstance(spec, Latest):
        match = ordered[0]
    elif isinstance(spec, LatestLts):
        match = _first(ordered, lambda v: v.is_lts)
    else:
        raise TypeError(f"Unsupported version spec: {spec!r}")

    if match is None:
        raise VersionNotFoundError(
            f"No release matches '{spec}'{where}",
            spec=str(spec),
            source=source,
            details=f"{len(ordered)} release(s) considered",
        )

    logger.debug(f"Resolved '{spec}' to {match.version} ({match.tag_name}){where}")
    return match
