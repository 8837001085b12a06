"""HTTP status classification"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes the dispatcher distinguishes.

    Any code without a member here classifies as UNKNOWN (value 0):
    - 2xx: only 200 counts as success
    - 3xx: permanent/temporary redirect
    - 4xx: bad request, not authorized, forbidden, not found
    - 5xx: internal server error, service unavailable
    """

    UNKNOWN = 0

    SUCCESS = 200

    PERMANENT_REDIRECT = 301
    TEMPORARY_REDIRECT = 302

    BAD_REQUEST = 400
    NOT_AUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @classmethod
    def from_code(cls, code: int) -> "HTTPStatus":
        """Classify a numeric status code, falling back to UNKNOWN"""
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def category(self) -> str:
        """Coarse class of the status: success, redirect, client_error, server_error or unknown"""
        if self is HTTPStatus.UNKNOWN:
            return "unknown"
        if self.value < 300:
            return "success"
        if self.value < 400:
            return "redirect"
        if self.value < 500:
            return "client_error"
        return "server_error"
