import hashlib
import importlib.metadata
import os
from typing import Optional

from jdkfetch.constants import APP_NAME, HASH_FILE_SUFFIX
from jdkfetch.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `jdkfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(github_token: Optional[str]) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    env_token = os.environ.get("GITHUB_TOKEN")
    return env_token.strip() if env_token and env_token.strip() else None


def calculate_sha256(file_path: str) -> Optional[str]:
    """
    Compute the SHA-256 hex digest of a file.

    Reads the file in binary mode and streams its contents without loading the whole file into memory.
    Returns the 64-character lowercase hexadecimal digest on success, or None if the file cannot be opened or read (e.g., missing file or permission error).
    """
    try:
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                sha256_hash.update(chunk)
        return sha256_hash.hexdigest()
    except (IOError, OSError) as e:
        logger.debug(f"Error calculating SHA-256 for {file_path}: {e}")
        return None


def normalize_checksum(value: Optional[str]) -> Optional[str]:
    """
    Normalize a user- or provider-supplied SHA-256 value.

    Accepts bare hex digests, "sha256:<hex>" prefixes and sha256sum-style lines
    ("<hex>  <name>"). Returns the lowercase digest or None for empty input.
    """
    if not value:
        return None
    text = value.strip().split()[0] if value.strip() else ""
    if text.lower().startswith("sha256:"):
        text = text[len("sha256:") :]
    return text.lower() or None


def get_hash_file_path(file_path: str) -> str:
    """Get the path for storing the hash file."""
    return file_path + HASH_FILE_SUFFIX


def save_file_hash(file_path: str, hash_value: str) -> None:
    r"""
    Write the given SHA-256 hex digest to a companion `.sha256` sidecar file next to `file_path`.

    The sidecar contains a single line in sha256sum format:
        "<hash_value>  <basename>\n"

    IO errors are caught and logged; this function does not raise on failure.
    """
    hash_file = get_hash_file_path(file_path)
    tmp_file = f"{hash_file}.tmp.{os.getpid()}"
    try:
        with open(tmp_file, "w", encoding="ascii", newline="\n") as f:
            f.write(f"{hash_value}  {os.path.basename(file_path)}\n")
        os.replace(tmp_file, hash_file)
        logger.debug("Saved hash for %s", os.path.basename(file_path))
    except (IOError, OSError) as e:
        logger.debug("Error saving hash file %s: %s", hash_file, e)
        try:
            if os.path.exists(tmp_file):
                os.remove(tmp_file)
        except OSError:
            pass


def load_file_hash(file_path: str) -> Optional[str]:
    """
    Return the SHA-256 hex string stored in the file_path's `.sha256` sidecar, if available.

    Returns None if the sidecar is missing, unreadable or empty. Does not raise on I/O errors.
    """
    hash_file = get_hash_file_path(file_path)
    try:
        with open(hash_file, "r", encoding="ascii") as f:
            line = f.readline().strip()
            if line:
                return line.split()[0].lower()
    except (IOError, OSError, UnicodeDecodeError):
        pass
    return None


def remove_file_and_hash(path: str) -> bool:
    """
    Remove a file and its .sha256 sidecar if present. Returns True on success, False on error.

    Errors are logged and False is returned; exceptions are not raised.
    """
    try:
        if os.path.exists(path):
            os.remove(path)
        hash_file = get_hash_file_path(path)
        if os.path.exists(hash_file):
            os.remove(hash_file)
        return True
    except (IOError, OSError) as e:
        logger.error(f"Error removing {path} or its hash sidecar: {e}")
        return False


def verify_file_integrity(
    file_path: str, expected_checksum: Optional[str] = None
) -> bool:
    """
    Decide whether an existing file may be reused.

    The file must exist and be non-empty. When a `.sha256` sidecar is present the
    file must still match it; when `expected_checksum` is given the file must match
    that as well. A file with neither is trusted on presence alone.

    Parameters:
        file_path (str): Path of the previously downloaded file.
        expected_checksum (Optional[str]): Hex SHA-256 the caller requires, if any.

    Returns:
        bool: `True` if the file can be reused, `False` if it must be downloaded again.
    """
    if not os.path.isfile(file_path):
        return False
    try:
        if os.path.getsize(file_path) == 0:
            logger.debug(f"Existing file is empty: {file_path}")
            return False
    except OSError:
        return False

    expected = normalize_checksum(expected_checksum)
    stored_hash = load_file_hash(file_path)
    if not stored_hash and not expected:
        return True

    current_hash = calculate_sha256(file_path)
    if not current_hash:
        return False

    if stored_hash and current_hash != stored_hash:
        logger.warning(
            f"Hash mismatch for {os.path.basename(file_path)} - file may be corrupted"
        )
        return False
    if expected and current_hash != expected:
        logger.warning(
            f"Checksum mismatch for {os.path.basename(file_path)}: expected {expected}, got {current_hash}"
        )
        return False

    if not stored_hash:
        save_file_hash(file_path, current_hash)
    logger.debug(f"Hash verified for {os.path.basename(file_path)}")
    return True
