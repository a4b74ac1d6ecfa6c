"""
Cache Management for the jdkfetch Download Subsystem

This module persists catalog listings per source as human-readable JSON files
of the form ``{"data": ..., "timestamp": <unix seconds>, "ttl": <seconds>}``.
"""

import json
import os
import time
from dataclasses import dataclass
from typing import Any, List, Optional

import platformdirs

from jdkfetch.constants import (
    APP_NAME,
    CACHE_FILE_SUFFIX,
    CACHE_KEY_TEMPLATE,
    CACHE_SUBDIR,
    DEFAULT_CACHE_TTL_SECONDS,
)
from jdkfetch.log_utils import logger

from .files import _atomic_write_json, _remove_quietly
from .interfaces import UnifiedVersion


@dataclass
class CacheEntry:
    data: Any
    timestamp: int
    ttl: int

    def is_expired(self, now: Optional[float] = None) -> bool:
        """An entry is expired once strictly more than `ttl` seconds have passed."""
        current = time.time() if now is None else now
        return current - self.timestamp > self.ttl

    def to_dict(self) -> dict:
        return {"data": self.data, "timestamp": self.timestamp, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, raw: Any) -> "CacheEntry":
        """
        Validate and wrap a decoded cache file.

        Raises:
            ValueError: If required fields are missing or have the wrong type.
        """
        if not isinstance(raw, dict) or "data" not in raw:
            raise ValueError("cache entry is not an object with a 'data' field")
        timestamp = raw.get("timestamp")
        ttl = raw.get("ttl")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            raise ValueError("cache entry has no numeric 'timestamp'")
        if not isinstance(ttl, (int, float)) or isinstance(ttl, bool):
            raise ValueError("cache entry has no numeric 'ttl'")
        return cls(data=raw["data"], timestamp=int(timestamp), ttl=int(ttl))


def cache_key_for_source(source: str) -> str:
    return CACHE_KEY_TEMPLATE.format(source=source)


class CatalogCache:
    """
    TTL-bounded key/value store for catalog listings.

    Each key maps to one JSON file in the cache directory. Writes are atomic, so a
    concurrent reader sees either the previous entry or the new one.
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        default_ttl: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        """
        Initialize the cache.

        Parameters:
            cache_dir (Optional[str]): Directory for cache files. Defaults to
                `<user cache dir>/jdkfetch/catalog`.
            default_ttl (int): TTL in seconds used when `save()` is called without one.
        """
        self.cache_dir = cache_dir or os.path.join(
            platformdirs.user_cache_dir(APP_NAME), CACHE_SUBDIR
        )
        self.default_ttl = default_ttl
        self._ensure_cache_dir_exists()

    def _ensure_cache_dir_exists(self) -> None:
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create cache directory {self.cache_dir}: {e}")
            raise

    def get_cache_file_path(self, key: str) -> str:
        return os.path.join(self.cache_dir, f"{key}{CACHE_FILE_SUFFIX}")

    def _read_entry(self, file_path: str) -> CacheEntry:
        with open(file_path, "r", encoding="utf-8") as f:
            return CacheEntry.from_dict(json.load(f))

    def load(self, key: str) -> Optional[Any]:
        """
        Return the cached data for `key` if present and unexpired.

        Expired and corrupt entries are deleted and reported as absent.

        Returns:
            The stored data, or `None` when there is no usable entry.
        """
        file_path = self.get_cache_file_path(key)
        if not os.path.exists(file_path):
            return None

        try:
            entry = self._read_entry(file_path)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Discarding corrupt cache entry {key}: {e}")
            _remove_quietly(file_path)
            return None

        if entry.is_expired():
            logger.debug(f"Cache expired for {key}")
            _remove_quietly(file_path)
            return None

        remaining = entry.ttl - (int(time.time()) - entry.timestamp)
        logger.debug(f"Using cached {key} ({max(remaining, 0) // 60} min remaining)")
        return entry.data

    def save(self, key: str, data: Any, ttl: Optional[int] = None) -> bool:
        """
        Store `data` under `key`, replacing any previous entry.

        Returns:
            bool: True if the entry was written, False if the write failed.
        """
        entry = CacheEntry(
            data=data,
            timestamp=int(time.time()),
            ttl=self.default_ttl if ttl is None else int(ttl),
        )
        written = _atomic_write_json(self.get_cache_file_path(key), entry.to_dict())
        if written:
            logger.debug(f"Saved cache entry {key} (ttl {entry.ttl}s)")
        return written

    def _entry_paths(self) -> List[str]:
        try:
            with os.scandir(self.cache_dir) as it:
                return [
                    entry.path
                    for entry in it
                    if entry.is_file() and entry.name.endswith(CACHE_FILE_SUFFIX)
                ]
        except OSError as e:
            logger.error(f"Could not scan cache directory {self.cache_dir}: {e}")
            return []

    def cleanup_expired(self) -> int:
        """
        Remove every expired entry.

        Corrupt or unreadable entries are skipped, not removed, and never abort the scan.

        Returns:
            int: Number of entries removed.
        """
        removed = 0
        now = time.time()
        for path in self._entry_paths():
            try:
                entry = self._read_entry(path)
            except (OSError, ValueError) as e:
                logger.debug(f"Skipping unreadable cache file {path}: {e}")
                continue
            if entry.is_expired(now):
                try:
                    os.remove(path)
                    removed += 1
                except OSError as e:
                    logger.warning(f"Could not remove expired cache file {path}: {e}")
        if removed:
            logger.info(f"Removed {removed} expired cache entr{'y' if removed == 1 else 'ies'}")
        return removed

    def clear(self) -> int:
        """
        Remove every cache entry regardless of age.

        Returns:
            int: Number of entries removed.
        """
        removed = 0
        for path in self._entry_paths():
            try:
                os.remove(path)
                removed += 1
            except OSError as e:
                logger.error(f"Could not remove cache file {path}: {e}")
        logger.info(f"Cleared {removed} cache entr{'y' if removed == 1 else 'ies'}")
        return removed

    def load_versions(self, source: str) -> Optional[List[UnifiedVersion]]:
        """
        Load the cached catalog for `source`.

        Returns:
            Optional[List[UnifiedVersion]]: The cached releases, or `None` when absent,
            expired or not decodable as a release list (the entry is then discarded).
        """
        key = cache_key_for_source(source)
        data = self.load(key)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.warning(f"Discarding malformed catalog cache for {source}")
            _remove_quietly(self.get_cache_file_path(key))
            return None
        try:
            return [UnifiedVersion.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed catalog cache for {source}: {e}")
            _remove_quietly(self.get_cache_file_path(key))
            return None

    def save_versions(
        self, source: str, versions: List[UnifiedVersion], ttl: Optional[int] = None
    ) -> bool:
        return self.save(
            cache_key_for_source(source), [v.to_dict() for v in versions], ttl
        )
