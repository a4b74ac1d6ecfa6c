"""
File helpers for the download subsystem.

Every persistent write (catalog cache entries, downloaded archives) goes through
a temporary file in the destination directory followed by `os.replace`, so a
reader never observes a half-written file.
"""

import json
import os
import tempfile
from typing import Any, Callable

from jdkfetch.log_utils import logger


def _atomic_write(
    file_path: str, writer_func: Callable[[Any], None], suffix: str = ".tmp"
) -> bool:
    """
    Write data to a file atomically by writing to a temporary file and atomically replacing the target on success.

    Parameters:
        file_path (str): Destination file path to be written.
        writer_func (Callable[[Any], None]): Callable that receives an open text file-like object and writes the desired content to it.
        suffix (str): Suffix to use for the temporary file name (default ".tmp").

    Returns:
        bool: `True` if the temporary write and atomic replace succeeded, `False` on any error.
    """
    parent = os.path.dirname(file_path) or "."
    try:
        os.makedirs(parent, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=parent, prefix="tmp-", suffix=suffix)
    except OSError as e:
        logger.error(f"Could not create temporary file for {file_path}: {e}")
        return False

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
            writer_func(temp_f)
        os.replace(temp_path, file_path)
    except (IOError, UnicodeEncodeError, OSError, TypeError, ValueError) as e:
        logger.error(f"Could not write to {file_path}: {e}")
        return False
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass
    return True


def _atomic_write_json(file_path: str, data: dict) -> bool:
    """
    Atomically write the given dictionary to the target file as pretty-printed JSON.

    Returns:
        bool: `True` if the file was written and moved into place successfully, `False` on error.
    """
    return _atomic_write(
        file_path, lambda f: json.dump(data, f, indent=2), suffix=".tmp"
    )


def _remove_quietly(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


def _truncate_quietly(path: str) -> None:
    """Empty `path` in place; the file itself (and any claim on it) is kept."""
    try:
        os.truncate(path, 0)
    except OSError as e:
        logger.debug(f"Could not truncate {path}: {e}")
