"""
HTTP client for catalog queries, mirror probes and archive transfers.

An HttpClient is constructed explicitly and passed to the providers, the probe
and the downloader; nothing in jdkfetch holds a module-level session.
"""

from typing import Any, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from jdkfetch.constants import (
    CATALOG_REQUEST_TIMEOUT,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONNECT_RETRIES,
    PROBE_TIMEOUT,
    RETRY_STATUS_FORCELIST,
)
from jdkfetch.exceptions import CatalogFetchError
from jdkfetch.log_utils import logger
from jdkfetch.utils import get_user_agent


def _build_catalog_session() -> requests.Session:
    session = requests.Session()
    retry_strategy: Retry = Retry(
        total=DEFAULT_CONNECT_RETRIES,
        connect=DEFAULT_CONNECT_RETRIES,
        read=DEFAULT_CONNECT_RETRIES,
        status=DEFAULT_CONNECT_RETRIES,
        backoff_factor=DEFAULT_BACKOFF_FACTOR,
        status_forcelist=list(RETRY_STATUS_FORCELIST),
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HttpClient:
    """
    Owns the requests sessions used by one engine instance.

    Catalog GETs and HEAD probes go through a session with urllib3 retries for
    transient statuses. Archive downloads use a plain session because the
    downloader runs its own retry loop with cancellation and checksum handling.
    """

    def __init__(
        self,
        catalog_timeout: float = CATALOG_REQUEST_TIMEOUT,
        probe_timeout: float = PROBE_TIMEOUT,
        catalog_session: Optional[requests.Session] = None,
        download_session: Optional[requests.Session] = None,
    ):
        self.catalog_timeout = catalog_timeout
        self.probe_timeout = probe_timeout
        self.catalog_session = catalog_session or _build_catalog_session()
        self.download_session = download_session or requests.Session()
        self.user_agent = get_user_agent()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if extra:
            headers.update(extra)
        return headers

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        source: Optional[str] = None,
    ) -> Any:
        """
        GET `url` and decode the JSON body.

        Parameters:
            url (str): Catalog endpoint.
            params (Optional[Dict[str, Any]]): Query parameters.
            headers (Optional[Dict[str, str]]): Extra headers (e.g. GitHub auth).
            source (Optional[str]): Provider name, recorded on raised errors.

        Returns:
            Any: The decoded JSON document.

        Raises:
            CatalogFetchError: On network failure, non-2xx status or undecodable JSON.
        """
        logger.debug(f"GET {url} params={params}")
        try:
            response = self.catalog_session.get(
                url,
                params=params,
                headers=self._headers(headers),
                timeout=self.catalog_timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise CatalogFetchError(
                f"Catalog request failed with HTTP {status}",
                source=source,
                url=url,
                details=str(e),
            ) from e
        except requests.RequestException as e:
            raise CatalogFetchError(
                "Could not reach catalog origin", source=source, url=url, details=str(e)
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise CatalogFetchError(
                "Catalog response is not valid JSON",
                source=source,
                url=url,
                details=str(e),
            ) from e

    def probe(self, url: str) -> Tuple[bool, Optional[int]]:
        """
        Issue a HEAD request (redirects followed) to check that `url` exists.

        Never raises; network errors are reported as an unsuccessful probe.

        Returns:
            Tuple[bool, Optional[int]]: (reachable, status code or None on network error).
        """
        try:
            response = self.catalog_session.head(
                url,
                headers=self._headers(),
                timeout=self.probe_timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.debug(f"Probe failed for {url}: {e}")
            return False, None
        try:
            status = response.status_code
            ok = 200 <= status < 400
            logger.debug(f"Probe {url} -> HTTP {status}")
            return ok, status
        finally:
            response.close()

    def stream(
        self, url: str, connect_timeout: float, read_timeout: float
    ) -> requests.Response:
        """
        Open a streaming GET for an archive. The caller closes the response.

        Raises:
            requests.RequestException: Propagated unchanged for the downloader to classify.
        """
        return self.download_session.get(
            url,
            stream=True,
            headers=self._headers(),
            timeout=(connect_timeout, read_timeout),
        )

    def close(self) -> None:
        self.catalog_session.close()
        self.download_session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
