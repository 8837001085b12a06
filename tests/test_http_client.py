"""
Tests for the HttpClient abstraction

These tests verify that the HttpClient wrapper correctly delegates to a
requests.Session and supports dependency injection for testing.
"""

from unittest.mock import Mock, patch

from requests.structures import CaseInsensitiveDict

from networking.http_client import HttpClient, default_http_client
from networking.request import CachePolicy, MaterializedRequest, Method


def materialized(cache_policy=CachePolicy.USE_PROTOCOL_CACHE_POLICY, headers=None, body=None):
    return MaterializedRequest(
        method=Method.POST,
        url="https://api.example.com/items",
        headers=CaseInsensitiveDict(headers or {"Content-Type": "application/json"}),
        body=body,
        timeout=10.0,
        cache_policy=cache_policy,
    )


class TestHttpClient:
    """Test HttpClient wrapper functionality"""

    @patch("networking.http_client.requests.Session")
    def test_session_created_lazily_once(self, mock_session_cls):
        """Should create the requests.Session on first use only"""
        client = HttpClient()
        mock_session_cls.assert_not_called()

        first = client.session
        second = client.session

        mock_session_cls.assert_called_once_with()
        assert first is second

    def test_injected_session_used(self):
        """Should use an injected session"""
        session = Mock()
        client = HttpClient(session=session)

        client.request("GET", "https://example.com")

        session.request.assert_called_once_with(
            "GET", "https://example.com", headers=None, data=None, timeout=None
        )

    def test_request_passes_additional_kwargs(self):
        """Should pass additional kwargs to Session.request"""
        session = Mock()
        client = HttpClient(session=session)

        client.request("GET", "https://example.com", verify=False, allow_redirects=True)

        call_kwargs = session.request.call_args[1]
        assert not call_kwargs["verify"]
        assert call_kwargs["allow_redirects"]

    def test_send_materialized_request(self):
        """Should send method, URL, headers, body and timeout"""
        session = Mock()
        session.request.return_value = Mock(status_code=200)
        client = HttpClient(session=session)

        response = client.send(materialized(body=b'{"a":1}'))

        session.request.assert_called_once_with(
            "POST",
            "https://api.example.com/items",
            headers={"Content-Type": "application/json"},
            data=b'{"a":1}',
            timeout=10.0,
        )
        assert response.status_code == 200

    def test_send_maps_reload_policy_to_no_cache(self):
        """Should express reload-ignoring-cache as Cache-Control: no-cache"""
        session = Mock()
        client = HttpClient(session=session)

        client.send(materialized(cache_policy=CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA))

        assert session.request.call_args[1]["headers"]["Cache-Control"] == "no-cache"

    def test_send_keeps_explicit_cache_control(self):
        """Should not replace a Cache-Control header set by the caller"""
        session = Mock()
        client = HttpClient(session=session)

        client.send(
            materialized(
                cache_policy=CachePolicy.RETURN_CACHE_DATA_DONT_LOAD,
                headers={"cache-control": "max-age=0"},
            )
        )

        headers = session.request.call_args[1]["headers"]
        assert headers == {"cache-control": "max-age=0"}

    def test_protocol_policy_adds_nothing(self):
        """Should leave headers alone for the protocol cache policy"""
        session = Mock()
        client = HttpClient(session=session)

        client.send(materialized())

        assert "Cache-Control" not in session.request.call_args[1]["headers"]

    def test_default_instance(self):
        """Should expose a process-wide default client"""
        assert isinstance(default_http_client, HttpClient)
