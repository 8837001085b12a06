"""HTTP client abstraction for dependency injection and testability."""

import threading
from typing import Any

import requests

from .request import CachePolicy, MaterializedRequest

CACHE_CONTROL = {
    CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA: "no-cache",
    CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD: "max-stale",
    CachePolicy.RETURN_CACHE_DATA_DONT_LOAD: "only-if-cached",
}


class HttpClient:
    """
    HTTP client wrapper around a shared requests.Session.

    This abstraction enables:
    - Dependency injection for testing
    - Easy mocking in unit tests
    - One process-wide session, created on first use
    """

    def __init__(self, session: requests.Session | None = None):
        self._session = session
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The underlying session, created lazily"""
        if self._session is None:
            with self._lock:
                if self._session is None:
                    self._session = requests.Session()
        return self._session

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Send a request.

        Args:
            method: HTTP method
            url: Fully encoded URL
            headers: Optional HTTP headers
            data: Optional raw body
            timeout: Optional request timeout in seconds
            **kwargs: Additional arguments to pass to requests.Session.request()

        Returns:
            requests.Response object
        """
        return self.session.request(
            method, url, headers=headers, data=data, timeout=timeout, **kwargs
        )

    def send(self, request: MaterializedRequest) -> requests.Response:
        """
        Send a materialized request.

        The cache policy is expressed as a Cache-Control header unless the
        request already carries one.

        Raises:
            requests.RequestException: On connection, timeout or protocol failures
        """
        headers = dict(request.headers)
        directive = CACHE_CONTROL.get(request.cache_policy)
        if directive and "cache-control" not in request.headers:
            headers["Cache-Control"] = directive

        return self.request(
            request.method.value,
            request.url,
            headers=headers,
            data=request.body,
            timeout=request.timeout,
        )


# Process-wide instance, never torn down
default_http_client = HttpClient()
