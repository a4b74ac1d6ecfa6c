"""
Version Handling for the jdkfetch Download Subsystem

This module turns free-form user requests ("21", "lts", "17+", "jdk-11.0.15")
into VersionSpec values, parses Temurin release tags into numeric components,
and provides the sort key the resolver orders candidates by.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from packaging.version import InvalidVersion, Version

from jdkfetch.constants import OPEN_RANGE_UPPER_BOUND, VERSION_SPEC_PREFIXES
from jdkfetch.exceptions import VersionSpecError


@dataclass(frozen=True)
class Exact:
    """Match a specific version, tag or release name."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Major:
    """Newest release of one major line, preferring LTS builds."""

    major: int

    def __str__(self) -> str:
        return str(self.major)


@dataclass(frozen=True)
class Range:
    """Newest release whose major lies in [low, high]."""

    low: int
    high: int

    def __str__(self) -> str:
        if self.high == OPEN_RANGE_UPPER_BOUND:
            return f"{self.low}+"
        return f"{self.low}-{self.high}"


@dataclass(frozen=True)
class Latest:
    def __str__(self) -> str:
        return "latest"


@dataclass(frozen=True)
class LatestLts:
    def __str__(self) -> str:
        return "lts"


VersionSpec = Union[Exact, Major, Range, Latest, LatestLts]

_LTS_WORDS = frozenset({"lts", "latest-lts"})
_LATEST_WORDS = frozenset({"latest", "newest"})
_PREFIX_RX = re.compile("|".join(re.escape(p) for p in VERSION_SPEC_PREFIXES))
_LEADING_NUMBER_RX = re.compile(r"^\D*(\d+)")

# jdk-17.0.8+7, jdk-21+35, jdk-21.0.4.1+1
_MODERN_TAG_RX = re.compile(r"^jdk-(?P<version>\d+(?:\.\d+)*)(?:\+(?P<build>\d+))?")
# jdk8u422-b05
_LEGACY_TAG_RX = re.compile(r"^jdk(?P<major>\d+)u(?P<update>\d+)(?:-b(?P<build>\d+))?")


def _strip_prefixes(text: str) -> str:
    # "openjdk" is tried before "jdk"; separators left behind ("jdk-21") are dropped.
    return _PREFIX_RX.sub("", text).strip().lstrip("-_ ").strip()


def _parse_int(text: str, raw: str, field: str) -> int:
    text = text.strip()
    if not text.isdigit():
        raise VersionSpecError(
            f"Invalid version request: {raw!r}",
            field=field,
            value=raw,
            details=f"{text!r} is not a number",
        )
    return int(text)


def parse_version_spec(raw: str) -> VersionSpec:
    """
    Parse a free-form version request.

    Precedence:
    1. "lts" / "latest-lts" -> LatestLts (checked before prefix stripping)
    2. "latest" / "newest" -> Latest
    3. "A-B" -> Range(A, B); both parts must be integers
    4. "N+" -> Range(N, 999)
    5. an integer -> Major(N)
    6. anything else -> Exact(cleaned)

    The prefixes "openjdk", "jdk", "java" and "v" are removed before rules 2-6.

    Parameters:
        raw (str): The user's request, e.g. "JDK 21", "17+", "11.0.15".

    Returns:
        VersionSpec: Exactly one spec variant.

    Raises:
        VersionSpecError: For empty or prefix-only input, or a malformed range.
    """
    if raw is None:
        raise VersionSpecError("Version request is empty", field="spec", value=raw)

    lowered = raw.strip().lower()
    if lowered in _LTS_WORDS:
        return LatestLts()

    cleaned = _strip_prefixes(lowered)
    if not cleaned:
        raise VersionSpecError(
            "Version request is empty", field="spec", value=raw
        )

    if cleaned in _LTS_WORDS:
        return LatestLts()
    if cleaned in _LATEST_WORDS:
        return Latest()

    if "-" in cleaned:
        parts = cleaned.split("-")
        if len(parts) != 2:
            raise VersionSpecError(
                f"Invalid version range: {raw!r}",
                field="range",
                value=raw,
                details="expected 'LOW-HIGH'",
            )
        low = _parse_int(parts[0], raw, "range")
        high = _parse_int(parts[1], raw, "range")
        return Range(low, high)

    if cleaned.endswith("+"):
        return Range(_parse_int(cleaned[:-1], raw, "range"), OPEN_RANGE_UPPER_BOUND)

    if cleaned.isdigit():
        return Major(int(cleaned))

    return Exact(cleaned)


def leading_major(text: str) -> Optional[int]:
    """Return the first run of digits in `text`, e.g. 17 for '17.0.8'."""
    match = _LEADING_NUMBER_RX.match(text or "")
    return int(match.group(1)) if match else None


def split_version(version: str) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """
    Split a dotted version into (major, minor, patch).

    Uses packaging's release tuple so "21.0.4+7" and "21.0.4" both give (21, 0, 4).
    Missing components are None.
    """
    try:
        release = Version(version).release
    except InvalidVersion:
        numbers = [int(p) for p in re.findall(r"\d+", version or "")[:3]]
        release = tuple(numbers)

    padded = list(release[:3]) + [None] * (3 - min(len(release), 3))
    return padded[0], padded[1], padded[2]


@dataclass(frozen=True)
class ParsedTag:
    version: str
    major: int
    minor: Optional[int]
    patch: Optional[int]
    build: Optional[int]


def parse_temurin_tag(tag_name: str) -> Optional[ParsedTag]:
    """
    Parse a Temurin release tag.

    Handles the modern form ("jdk-17.0.8+7" -> 17.0.8, build 7) and the JDK 8
    form ("jdk8u422-b05" -> 8.0.422, build 5).

    Returns:
        Optional[ParsedTag]: Parsed components, or None for tags in neither form.
    """
    tag = (tag_name or "").strip()

    match = _MODERN_TAG_RX.match(tag)
    if match:
        version = match.group("version")
        major, minor, patch = split_version(version)
        if major is None:
            return None
        build = match.group("build")
        return ParsedTag(
            version=version,
            major=major,
            minor=minor,
            patch=patch,
            build=int(build) if build else None,
        )

    match = _LEGACY_TAG_RX.match(tag)
    if match:
        major = int(match.group("major"))
        update = int(match.group("update"))
        build = match.group("build")
        return ParsedTag(
            version=f"{major}.0.{update}",
            major=major,
            minor=0,
            patch=update,
            build=int(build) if build else None,
        )

    return None


def version_sort_key(version) -> Tuple[int, int, int, str, str]:
    """
    Ascending sort key for a UnifiedVersion.

    Orders by (major, minor, patch) with missing components sorting lowest, then
    by version string and tag name so ties are broken deterministically.
    """
    return (
        version.major,
        version.minor if version.minor is not None else -1,
        version.patch if version.patch is not None else -1,
        version.version,
        version.tag_name,
    )
