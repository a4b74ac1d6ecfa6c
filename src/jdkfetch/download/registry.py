"""
Static version registry.

An optional TOML file that lists releases and their per-platform archive names,
for offline or locked-down environments. When present it is authoritative and
no catalog request is made. Example::

    [[versions]]
    version = "21.0.4"
    major = 21
    lts = true
    tag_name = "jdk-21.0.4+7"

    [versions.assets]
    linux-x64 = "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"
    windows-x64 = "OpenJDK21U-jdk_x64_windows_hotspot_21.0.4_7.zip"

    [versions.assets_tsinghua]
    linux-x64 = "OpenJDK21U-jdk_x64_linux_hotspot_21.0.4_7.tar.gz"

    [versions.checksums]
    linux-x64 = "51fb4d03a4429c39d397d3a03a779077159317616550e4e71624c9843083e7b9"

Asset values are file names expanded with each source's URL layout, or full URLs
used as-is.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import platformdirs
import tomli

from jdkfetch.constants import (
    APP_NAME,
    REGISTRY_FILE_NAME,
    REGISTRY_PATH_ENV_VAR,
)
from jdkfetch.exceptions import RegistryError
from jdkfetch.log_utils import logger


@dataclass
class RegistryEntry:
    version: str
    major: int
    tag_name: str
    lts: bool = False
    release_name: Optional[str] = None
    assets: Dict[str, str] = field(default_factory=dict)
    source_assets: Dict[str, Dict[str, str]] = field(default_factory=dict)
    """Per-source overrides, from the `assets_<source>` tables"""

    checksums: Dict[str, str] = field(default_factory=dict)

    def assets_for(self, source: str) -> Dict[str, str]:
        """Return the source-specific asset table if one is given, else the shared one."""
        return self.source_assets.get(source) or self.assets

    def display_name(self) -> str:
        return self.release_name or f"Eclipse Temurin JDK {self.version}"


def _string_table(value: Any, where: str, path: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise RegistryError(
            f"Registry table '{where}' must map platform keys to strings", path=path
        )
    return dict(value)


def _parse_entry(raw: Any, index: int, path: str) -> RegistryEntry:
    if not isinstance(raw, dict):
        raise RegistryError(f"Registry entry #{index} is not a table", path=path)
    try:
        version = str(raw["version"])
        major = raw["major"]
        tag_name = str(raw["tag_name"])
    except KeyError as e:
        raise RegistryError(
            f"Registry entry #{index} is missing required key {e}", path=path
        ) from e
    if isinstance(major, bool) or not isinstance(major, int):
        raise RegistryError(
            f"Registry entry #{index} has a non-integer 'major'", path=path
        )

    source_assets = {}
    for key, value in raw.items():
        if key.startswith("assets_"):
            source_assets[key[len("assets_") :]] = _string_table(
                value, f"versions[{index}].{key}", path
            )

    return RegistryEntry(
        version=version,
        major=major,
        tag_name=tag_name,
        lts=bool(raw.get("lts", False)),
        release_name=raw.get("release_name"),
        assets=_string_table(raw.get("assets"), f"versions[{index}].assets", path),
        source_assets=source_assets,
        checksums=_string_table(
            raw.get("checksums"), f"versions[{index}].checksums", path
        ),
    )


@dataclass
class VersionRegistry:
    path: str
    entries: List[RegistryEntry]

    @classmethod
    def from_file(cls, path: str) -> "VersionRegistry":
        """
        Read and validate a registry file.

        Raises:
            RegistryError: If the file cannot be read or is not a valid registry.
        """
        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except OSError as e:
            raise RegistryError(
                "Could not read version registry", path=path, details=str(e)
            ) from e
        except tomli.TOMLDecodeError as e:
            raise RegistryError(
                "Version registry is not valid TOML", path=path, details=str(e)
            ) from e

        versions = data.get("versions", [])
        if not isinstance(versions, list):
            raise RegistryError("'versions' must be an array of tables", path=path)

        entries = [_parse_entry(raw, i, path) for i, raw in enumerate(versions)]
        logger.debug(f"Loaded {len(entries)} registry entries from {path}")
        return cls(path=path, entries=entries)


def registry_search_paths(configured_path: Optional[str] = None) -> List[str]:
    """
    Candidate registry locations in lookup order.

    1. the configured `sources.registry_path`
    2. the JDKFETCH_VERSIONS_PATH environment variable
    3. `java_versions.toml` in the user config directory
    """
    candidates = []
    if configured_path:
        candidates.append(os.path.expanduser(configured_path))
    env_path = os.environ.get(REGISTRY_PATH_ENV_VAR)
    if env_path:
        candidates.append(os.path.expanduser(env_path))
    candidates.append(
        os.path.join(platformdirs.user_config_dir(APP_NAME), REGISTRY_FILE_NAME)
    )
    return candidates


def load_registry(
    configured_path: Optional[str] = None, registry_only: bool = False
) -> Optional[VersionRegistry]:
    """
    Locate and load the version registry.

    Parameters:
        configured_path (Optional[str]): Path from configuration, searched first.
        registry_only (bool): When True, a missing registry is an error instead of `None`.

    Returns:
        Optional[VersionRegistry]: The first registry found, or `None` when there is none.

    Raises:
        RegistryError: If a registry file is found but invalid, or none is found and
            `registry_only` is set.
    """
    searched = registry_search_paths(configured_path)
    for path in searched:
        if os.path.isfile(path):
            return VersionRegistry.from_file(path)

    if registry_only:
        raise RegistryError(
            "Version registry not found and registry-only mode is enabled",
            details=f"searched: {', '.join(searched)}",
        )
    return None
