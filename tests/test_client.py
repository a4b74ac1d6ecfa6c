"""Tests for the HTTP client wrapper."""

from unittest.mock import Mock

import pytest
import requests

from jdkfetch.download.client import HttpClient
from jdkfetch.exceptions import CatalogFetchError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


def _response(status=200, json_data=None, json_error=None):
    response = Mock(spec=requests.Response)
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status} Error", response=response
        )
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def sessions():
    return Mock(spec=requests.Session), Mock(spec=requests.Session)


@pytest.fixture
def client(sessions):
    catalog, download = sessions
    return HttpClient(catalog_session=catalog, download_session=download)


class TestGetJson:
    def test_returns_decoded_body(self, client, sessions):
        sessions[0].get.return_value = _response(json_data=[{"tag_name": "jdk-21+35"}])

        data = client.get_json(
            "https://api.example.com/releases",
            params={"per_page": 5},
            headers={"Authorization": "token t"},
        )

        assert data == [{"tag_name": "jdk-21+35"}]
        kwargs = sessions[0].get.call_args.kwargs
        assert kwargs["params"] == {"per_page": 5}
        assert kwargs["headers"]["Authorization"] == "token t"
        assert kwargs["headers"]["User-Agent"].startswith("jdkfetch/")
        assert kwargs["timeout"] == client.catalog_timeout

    def test_http_error(self, client, sessions):
        sessions[0].get.return_value = _response(status=403)

        with pytest.raises(CatalogFetchError) as exc_info:
            client.get_json("https://api.example.com/releases", source="github")

        assert exc_info.value.source == "github"
        assert "403" in exc_info.value.message

    def test_network_error(self, client, sessions):
        sessions[0].get.side_effect = requests.ConnectionError("dns failure")

        with pytest.raises(CatalogFetchError) as exc_info:
            client.get_json("https://api.example.com/releases")
        assert exc_info.value.is_retryable is True

    def test_invalid_json(self, client, sessions):
        sessions[0].get.return_value = _response(json_error=ValueError("bad json"))

        with pytest.raises(CatalogFetchError, match="not valid JSON"):
            client.get_json("https://api.example.com/releases")


class TestProbe:
    @pytest.mark.parametrize(
        "status,reachable", [(200, True), (302, True), (404, False), (503, False)]
    )
    def test_status_mapping(self, client, sessions, status, reachable):
        response = _response(status=200)
        response.status_code = status
        sessions[0].head.return_value = response

        assert client.probe("https://mirror/jdk.tar.gz") == (reachable, status)
        assert sessions[0].head.call_args.kwargs["allow_redirects"] is True
        response.close.assert_called_once()

    def test_network_error_is_not_raised(self, client, sessions):
        sessions[0].head.side_effect = requests.Timeout("slow")

        assert client.probe("https://mirror/jdk.tar.gz") == (False, None)


class TestStreamAndLifecycle:
    def test_stream_uses_download_session(self, client, sessions):
        client.stream("https://mirror/jdk.tar.gz", 5.0, 30.0)

        kwargs = sessions[1].get.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["timeout"] == (5.0, 30.0)
        sessions[0].get.assert_not_called()

    def test_context_manager_closes_sessions(self, sessions):
        with HttpClient(catalog_session=sessions[0], download_session=sessions[1]):
            pass

        sessions[0].close.assert_called_once()
        sessions[1].close.assert_called_once()

    def test_default_catalog_session_retries(self):
        client = HttpClient()
        try:
            adapter = client.catalog_session.get_adapter("https://api.github.com")
            assert adapter.max_retries.total > 0
            assert 503 in adapter.max_retries.status_forcelist
        finally:
            client.close()
