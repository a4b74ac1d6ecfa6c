"""
Archive Downloader

Streams a JDK archive into memory or onto disk with progress reporting,
bounded retries with backoff, SHA-256 verification and an atomic final write.

File downloads go through ``<destination>.part``. The part file is created
exclusively, so a second process targeting the same destination either fails
fast (the part file is fresh) or takes over an abandoned one (the part file is
older than STALE_PART_FILE_SECONDS). The destination only ever appears via
``os.replace`` of a complete, verified part file.
"""

import hashlib
import io
import os
import time
from typing import IO, Callable, Optional, Tuple

import requests

from jdkfetch.cancellation import CancellationToken
from jdkfetch.constants import (
    MAX_RETRY_DELAY,
    NOT_FOUND_HTTP_STATUSES,
    PART_FILE_SUFFIX,
    PERMANENT_HTTP_STATUSES,
    STALE_PART_FILE_SECONDS,
)
from jdkfetch.exceptions import (
    ChecksumMismatchError,
    DownloadCancelledError,
    DownloadError,
    DownloadInProgressError,
    DownloadIOError,
    HTTPError,
    NetworkError,
    ResourceNotFoundError,
)
from jdkfetch.log_utils import logger
from jdkfetch.utils import (
    calculate_sha256,
    get_hash_file_path,
    load_file_hash,
    normalize_checksum,
    remove_file_and_hash,
    save_file_hash,
    verify_file_integrity,
)

from .client import HttpClient
from .files import _remove_quietly, _truncate_quietly
from .interfaces import ArtifactLocation, DownloadOptions, ProgressCallback


def compute_retry_delay(attempt: int, options: DownloadOptions) -> float:
    """
    Seconds to wait after failed attempt number `attempt` (1-based).

    Exponential backoff doubles the base delay per attempt; either way the delay
    is capped at MAX_RETRY_DELAY.
    """
    base = max(options.retry_delay_ms, 0) / 1000.0
    if options.exponential_backoff:
        delay = base * (2 ** (attempt - 1))
    else:
        delay = base
    return min(delay, MAX_RETRY_DELAY)


def classify_http_status(status_code: int, url: str) -> DownloadError:
    """Map an HTTP error status to a retryable or permanent DownloadError."""
    if status_code in NOT_FOUND_HTTP_STATUSES:
        return ResourceNotFoundError(
            f"Archive not found (HTTP {status_code})",
            status_code=status_code,
            url=url,
            is_retryable=False,
        )
    if status_code in PERMANENT_HTTP_STATUSES:
        return HTTPError(
            f"Access denied (HTTP {status_code})",
            status_code=status_code,
            url=url,
            is_retryable=False,
        )
    return HTTPError(
        f"Server returned HTTP {status_code}",
        status_code=status_code,
        url=url,
        is_retryable=True,
    )


def _content_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("Content-Length") if response.headers else None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class ArchiveDownloader:
    """
    Transfers archives for the orchestrator.

    One instance can serve many downloads; it holds no per-download state.
    """

    def __init__(self, client: HttpClient):
        self.client = client

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def download_to_memory(
        self,
        url: str,
        options: Optional[DownloadOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ArtifactLocation:
        """
        Download `url` into memory.

        Returns:
            ArtifactLocation: With `content` set to the verified payload.

        Raises:
            DownloadError: The last error once retries are exhausted, or a permanent error immediately.
        """
        options = options or DownloadOptions()

        def attempt() -> ArtifactLocation:
            buffer = io.BytesIO()
            size, digest = self._transfer(url, buffer, options, progress, cancel_token)
            payload = buffer.getvalue()
            return ArtifactLocation(url=url, size=size, sha256=digest, content=payload)

        return self._with_retries(url, None, options, cancel_token, attempt)

    def download_to_file(
        self,
        url: str,
        destination: str,
        options: Optional[DownloadOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ArtifactLocation:
        """
        Download `url` to `destination` atomically.

        An existing non-empty destination is reused without a network request when
        `options.reuse_existing` is set and it passes verification (its `.sha256`
        sidecar, and `options.expected_checksum` when given). A file failing
        verification is deleted and downloaded again. With reuse disabled the
        existing file stays in place until the new download replaces it.

        Parameters:
            url (str): Archive URL.
            destination (str): Final file path; made absolute.
            options (Optional[DownloadOptions]): Retry, timeout and checksum settings.
            progress (Optional[ProgressCallback]): Called with (downloaded, total) after every chunk.
            cancel_token (Optional[CancellationToken]): Checked between attempts, while
                backing off and for every chunk.

        Returns:
            ArtifactLocation: With `path` set to the absolute destination.

        Raises:
            DownloadInProgressError: If another process holds a fresh part file.
            DownloadCancelledError: If cancellation was requested.
            DownloadError: The last error once retries are exhausted, or a permanent error immediately.
        """
        options = options or DownloadOptions()
        destination = os.path.abspath(destination)
        expected = normalize_checksum(options.expected_checksum)

        reused = self._reuse_existing(url, destination, expected, options)
        if reused is not None:
            return reused

        parent = os.path.dirname(destination)
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as e:
            raise DownloadIOError(
                "Could not create download directory",
                url=url,
                details=str(e),
                destination=destination,
            ) from e

        part_path = destination + PART_FILE_SUFFIX
        self._claim_part_file(part_path, url, destination)

        def attempt() -> ArtifactLocation:
            try:
                sink = open(part_path, "wb")
            except OSError as e:
                raise DownloadIOError(
                    "Could not open temporary download file",
                    url=url,
                    details=str(e),
                    destination=destination,
                ) from e
            try:
                with sink:
                    size, digest = self._transfer(
                        url, sink, options, progress, cancel_token
                    )
            except ChecksumMismatchError:
                # The part file stays claimed until the retry loop ends; only its
                # bytes are discarded. The next attempt reopens it in place.
                _truncate_quietly(part_path)
                raise
            return ArtifactLocation(url=url, size=size, sha256=digest, path=destination)

        try:
            result = self._with_retries(url, destination, options, cancel_token, attempt)
            try:
                os.replace(part_path, destination)
            except OSError as e:
                raise DownloadIOError(
                    "Could not move completed download into place",
                    url=url,
                    details=str(e),
                    destination=destination,
                ) from e
        finally:
            _remove_quietly(part_path)

        # The old sidecar, if any, describes the file that was just replaced
        if result.sha256:
            save_file_hash(destination, result.sha256)
        else:
            _remove_quietly(get_hash_file_path(destination))
        size_mb = result.size / (1024 * 1024)
        if size_mb >= 1.0:
            logger.info(f"Downloaded: {os.path.basename(destination)} ({size_mb:.1f} MB)")
        else:
            logger.info(
                f"Downloaded: {os.path.basename(destination)} ({result.size} bytes)"
            )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reuse_existing(
        self,
        url: str,
        destination: str,
        expected: Optional[str],
        options: DownloadOptions,
    ) -> Optional[ArtifactLocation]:
        if not os.path.exists(destination):
            return None
        if not options.reuse_existing:
            # Replaced atomically once the new download is complete
            logger.debug(f"Reuse disabled; downloading over {destination}")
            return None

        if verify_file_integrity(destination, expected):
            logger.info(
                f"Skipped: {os.path.basename(destination)} (already present & verified)"
            )
            return ArtifactLocation(
                url=url,
                size=os.path.getsize(destination),
                sha256=load_file_hash(destination) or calculate_sha256(destination),
                path=destination,
                reused=True,
            )

        logger.info(
            f"Existing {os.path.basename(destination)} failed verification, re-downloading"
        )
        if not remove_file_and_hash(destination):
            raise DownloadIOError(
                "Could not remove unverified existing file",
                url=url,
                destination=destination,
            )
        return None

    def _claim_part_file(self, part_path: str, url: str, destination: str) -> None:
        """
        Create `part_path` exclusively, taking over a stale one left by a dead process.

        Raises:
            DownloadInProgressError: If a fresh part file already exists.
            DownloadIOError: If the part file cannot be created.
        """
        for _ in range(2):
            try:
                fd = os.open(part_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
                os.close(fd)
                return
            except FileExistsError:
                try:
                    age = time.time() - os.path.getmtime(part_path)
                except OSError:
                    # Removed between open() and stat(); just retry the claim.
                    continue
                if age < STALE_PART_FILE_SECONDS:
                    raise DownloadInProgressError(
                        "Another download is already writing this file",
                        url=url,
                        destination=destination,
                        details=f"{part_path} was modified {int(age)}s ago",
                    ) from None
                logger.warning(
                    f"Taking over stale partial download {part_path} ({int(age)}s old)"
                )
                _remove_quietly(part_path)
            except OSError as e:
                raise DownloadIOError(
                    "Could not create temporary download file",
                    url=url,
                    details=str(e),
                    destination=destination,
                ) from e
        raise DownloadInProgressError(
            "Could not claim temporary download file",
            url=url,
            destination=destination,
        )

    def _with_retries(
        self,
        url: str,
        destination: Optional[str],
        options: DownloadOptions,
        cancel_token: Optional[CancellationToken],
        attempt_func: Callable[[], ArtifactLocation],
    ) -> ArtifactLocation:
        max_attempts = max(options.retry_count, 0) + 1
        last_error: Optional[DownloadError] = None

        for attempt in range(1, max_attempts + 1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(url, destination)
            try:
                logger.debug(f"Download attempt {attempt}/{max_attempts}: {url}")
                return attempt_func()
            except DownloadCancelledError as e:
                self._annotate(e, url, attempt, destination)
                raise
            except DownloadError as e:
                self._annotate(e, url, attempt, destination)
                if not e.is_retryable:
                    logger.error(f"Permanent download failure: {e}")
                    raise
                last_error = e

            if attempt < max_attempts:
                delay = compute_retry_delay(attempt, options)
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed ({last_error}); retrying in {delay:.1f}s"
                )
                self._sleep(delay, cancel_token, url, destination)

        if last_error is None:
            raise DownloadError(
                "Download failed without an attempt", url=url, destination=destination
            )
        logger.error(f"Download failed after {max_attempts} attempt(s): {last_error}")
        raise last_error

    @staticmethod
    def _annotate(
        error: DownloadError, url: str, attempt: int, destination: Optional[str]
    ) -> None:
        error.url = error.url or url
        error.retry_count = attempt
        if destination:
            error.destination = destination

    @staticmethod
    def _sleep(
        delay: float,
        cancel_token: Optional[CancellationToken],
        url: str,
        destination: Optional[str],
    ) -> None:
        if delay <= 0:
            return
        if cancel_token is None:
            time.sleep(delay)
            return
        if cancel_token.wait(delay):
            raise DownloadCancelledError(
                "Download cancelled while waiting to retry",
                url=url,
                destination=destination,
            )

    def _transfer(
        self,
        url: str,
        sink: IO[bytes],
        options: DownloadOptions,
        progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[int, str]:
        """
        Stream one attempt into `sink`.

        Returns:
            Tuple[int, str]: (bytes written, SHA-256 hex digest of the payload).

        Raises:
            NetworkError, HTTPError, ResourceNotFoundError: Classified transfer failures.
            ChecksumMismatchError: If the payload does not match the expected checksum.
            DownloadIOError: If writing to `sink` fails.
            DownloadCancelledError: If cancellation is requested mid-stream.
        """
        try:
            response = self.client.stream(
                url, options.connect_timeout, options.read_timeout
            )
        except (requests.RequestException, OSError) as e:
            raise NetworkError(
                f"Connection failed: {type(e).__name__}", url=url, details=str(e)
            ) from e

        try:
            if response.status_code >= 400:
                raise classify_http_status(response.status_code, url)

            total = _content_length(response)
            hasher = hashlib.sha256()
            downloaded = 0
            chunks = iter(response.iter_content(chunk_size=options.chunk_size))
            while True:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled(url)
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except (requests.RequestException, OSError) as e:
                    raise NetworkError(
                        f"Transfer interrupted: {type(e).__name__}",
                        url=url,
                        details=str(e),
                    ) from e
                if not chunk:
                    continue
                try:
                    sink.write(chunk)
                except OSError as e:
                    raise DownloadIOError(
                        "Could not write download data", url=url, details=str(e)
                    ) from e
                hasher.update(chunk)
                downloaded += len(chunk)
                if progress is not None:
                    progress(downloaded, total)
        finally:
            response.close()

        if total is not None and downloaded < total:
            raise NetworkError(
                "Transfer ended early",
                url=url,
                details=f"received {downloaded} of {total} bytes",
            )

        digest = hasher.hexdigest()
        expected = normalize_checksum(options.expected_checksum)
        if expected and digest != expected:
            raise ChecksumMismatchError(
                "Checksum verification failed", expected=expected, actual=digest, url=url
            )
        logger.debug(f"Transferred {downloaded} bytes from {url}")
        return downloaded, digest
