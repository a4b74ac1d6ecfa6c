"""
Platform model shared by catalog providers and the downloader.

A platform is an (os, arch) pair rendered as the `{os}-{arch}` key used to
index `UnifiedVersion.download_urls`.
"""

import platform as _platform
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from jdkfetch.constants import (
    ARCH_AARCH64,
    ARCH_X64,
    ARCH_X86,
    OS_LINUX,
    OS_MACOS,
    OS_WINDOWS,
    TAR_GZ_EXTENSION,
    UNKNOWN,
    ZIP_EXTENSION,
)
from jdkfetch.exceptions import PlatformError

_SYSTEM_TO_OS = {
    "windows": OS_WINDOWS,
    "win": OS_WINDOWS,
    "darwin": OS_MACOS,
    "macos": OS_MACOS,
    "mac": OS_MACOS,
    "osx": OS_MACOS,
    "linux": OS_LINUX,
}

_MACHINE_TO_ARCH = {
    "x86_64": ARCH_X64,
    "amd64": ARCH_X64,
    "x64": ARCH_X64,
    "aarch64": ARCH_AARCH64,
    "arm64": ARCH_AARCH64,
    "i386": ARCH_X86,
    "i686": ARCH_X86,
    "x86": ARCH_X86,
    "x32": ARCH_X86,
    # Other architectures Adoptium publishes, kept under their own names
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "arm": "arm",
    "riscv64": "riscv64",
}

# File name tokens, checked in order. "darwin" and "mac" are tested before
# "win" so that a macOS archive is never classified as Windows.
_FILENAME_OS_TOKENS = (
    (("mac", "macos", "osx", "darwin"), OS_MACOS),
    (("windows", "win"), OS_WINDOWS),
    (("linux",), OS_LINUX),
)
_FILENAME_ARCH_TOKENS = (
    (("x64", "x86_64", "amd64"), ARCH_X64),
    (("aarch64", "arm64"), ARCH_AARCH64),
    (("x86", "x32", "i686", "i386"), ARCH_X86),
)
_TOKEN_SPLIT_RX = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class Platform:
    """An operating system and CPU architecture pair."""

    os: str
    """Normalized OS name: windows, macos, linux or unknown"""

    arch: str
    """Normalized architecture: x64, aarch64, x86 or unknown"""

    @classmethod
    def current(cls) -> "Platform":
        """
        Detect the platform of the running interpreter.

        Unrecognized systems or machines are reported as "unknown" rather than raising,
        so callers can still pass an explicit platform key.
        """
        system = _platform.system().lower()
        machine = _platform.machine().lower()
        return cls(
            os=_SYSTEM_TO_OS.get(system, UNKNOWN),
            arch=_MACHINE_TO_ARCH.get(machine, UNKNOWN),
        )

    @classmethod
    def from_key(cls, key: str) -> "Platform":
        """
        Parse an `{os}-{arch}` key such as "linux-x64".

        Both segments go through the same alias tables as `current()`, so
        "darwin-arm64" and "macos-aarch64" name the same platform.

        Raises:
            PlatformError: If the key does not contain exactly one OS and one arch
                segment, or either segment is not a recognized name.
        """
        parts = (key or "").strip().lower().split("-")
        if len(parts) != 2 or not all(parts):
            raise PlatformError(
                f"Invalid platform key: {key!r}",
                field="platform",
                value=key,
                details="expected '{os}-{arch}', e.g. 'linux-x64'",
            )

        os_name = _SYSTEM_TO_OS.get(parts[0])
        arch = _MACHINE_TO_ARCH.get(parts[1])
        if os_name is None or arch is None:
            unknown = parts[0] if os_name is None else parts[1]
            raise PlatformError(
                f"Unknown platform in key {key!r}: {unknown!r}",
                field="platform",
                value=key,
                details=(
                    f"known OS names: {', '.join(sorted(set(_SYSTEM_TO_OS.values())))}; "
                    f"known architectures: {', '.join(sorted(set(_MACHINE_TO_ARCH.values())))}"
                ),
            )
        return cls(os=os_name, arch=arch)

    @staticmethod
    def parse_from_filename(filename: str) -> Optional[Tuple[str, str]]:
        """
        Infer (os, arch) from an archive file name.

        Matching works on separator-delimited tokens, so
        "OpenJDK21U-jdk_aarch64_mac_hotspot_21.0.4_7.tar.gz" yields ("macos", "aarch64").

        Returns:
            Optional[Tuple[str, str]]: The (os, arch) pair, or None when either cannot be determined.
        """
        tokens = set(_TOKEN_SPLIT_RX.split(filename.lower()))
        # "x86_64" is split into "x86" and "64" above; detect it on the raw name.
        if "x86_64" in filename.lower():
            tokens.add("x86_64")
            tokens.discard("x86")

        os_name = next(
            (name for aliases, name in _FILENAME_OS_TOKENS if tokens & set(aliases)),
            None,
        )
        arch = next(
            (name for aliases, name in _FILENAME_ARCH_TOKENS if tokens & set(aliases)),
            None,
        )
        if os_name is None or arch is None:
            return None
        return os_name, arch

    def key(self) -> str:
        return f"{self.os}-{self.arch}"

    def archive_ext(self) -> str:
        """Default archive format: zip on Windows, tar.gz everywhere else."""
        return ZIP_EXTENSION if self.os == OS_WINDOWS else TAR_GZ_EXTENSION

    def __str__(self) -> str:
        return self.key()
