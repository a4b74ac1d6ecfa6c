"""
Cooperative cancellation for long-running downloads.

A CancellationToken is handed to the downloader, which checks it before each
attempt, while sleeping between retries and inside the chunk loop. Nothing is
interrupted from outside; the download unwinds and removes its partial file.
"""

import threading
from typing import Optional

from jdkfetch.exceptions import DownloadCancelledError


class CancellationToken:
    """
    Thread-safe flag a caller sets to stop an in-flight download.

    Examples:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        """Clear the flag so the token can be reused."""
        self._event.clear()

    def wait(self, timeout: float) -> bool:
        """
        Sleep for up to `timeout` seconds, waking early on cancellation.

        Returns:
            bool: `True` if cancellation was requested before the timeout elapsed.
        """
        return self._event.wait(timeout)

    def raise_if_cancelled(
        self, url: Optional[str] = None, destination: Optional[str] = None
    ) -> None:
        """
        Raise DownloadCancelledError when cancellation has been requested.

        Parameters:
            url (Optional[str]): URL being transferred, recorded on the error.
            destination (Optional[str]): Destination path, recorded on the error.
        """
        if self.is_cancelled():
            raise DownloadCancelledError(
                "Download cancelled", url=url, destination=destination
            )
