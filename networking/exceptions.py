"""
Custom exceptions for the networking layer
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .http_status import HTTPStatus


class NetworkingError(Exception):
    """Base exception for all networking errors"""

    pass


class BadUrlError(NetworkingError):
    """Raised when the target URL cannot be encoded or parsed"""

    def __init__(self, url: str | None = None):
        self.url = url
        if url:
            super().__init__(f"Not a valid URL: {url!r}")
        else:
            super().__init__("Not a valid URL")


class BadRequestAuthorizationError(NetworkingError):
    """Raised when a required credential is missing"""

    def __init__(self, message: str = "Request authorization is missing a credential"):
        super().__init__(message)


class BadRequestParametersError(NetworkingError):
    """
    Raised when request parameters cannot be serialized into a JSON body.

    The original parameters (before any derived parameter was injected) are
    kept on the exception so callers can inspect what was rejected.
    """

    def __init__(self, parameters: Any):
        self.parameters = parameters
        super().__init__(f"This parameter set is invalid, check it again: {parameters!r}")


class TransportError(NetworkingError):
    """Raised when the transport delivered no response or no body"""

    def __init__(self, message: str = "There is a transport error"):
        super().__init__(message)


class HttpServerError(NetworkingError):
    """
    Raised when the server answers with anything other than a success status.

    The body is retained so the caller can inspect the server's error payload.
    """

    def __init__(self, body: bytes, status_code: "HTTPStatus", raw_status: int | None = None):
        self.body = body
        self.status_code = status_code
        self.raw_status = raw_status if raw_status is not None else int(status_code)
        super().__init__(f"There is a http server error with status code {self.raw_status}")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (undecodable bytes replaced)"""
        return self.body.decode("utf-8", errors="replace")


class JsonFormatError(NetworkingError):
    """
    Raised when a success body cannot be decoded into the requested type.

    The underlying validation error is chained as __cause__.
    """

    def __init__(self, message: str, body: bytes | None = None):
        self.body = body
        super().__init__(f"Failed to decode the response body: {message}")


class DownloadServerSideError(NetworkingError):
    """Raised when a download is answered with a non-success status"""

    def __init__(self, status_code: "HTTPStatus", raw_status: int | None = None):
        self.status_code = status_code
        self.raw_status = raw_status if raw_status is not None else int(status_code)
        super().__init__(f"There is a http server error with status code {self.raw_status}")

