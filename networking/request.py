"""
Request descriptors and their materialization into transport-ready requests

A RequestDescriptor states what a call should look like (target, method,
parameters, headers, authorization, signature). materialize() applies the
placement rules and produces the MaterializedRequest handed to the transport:
- parameters go to the query string for GET/DELETE and to a JSON body for POST/PUT/PATCH
- a derived language parameter is added whenever a parameter map is present
- API keys become query parameters on GET and headers otherwise
"""

import base64
import hashlib
import json
import locale
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

import pydantic_core
from requests.structures import CaseInsensitiveDict

from .config import Config, config
from .exceptions import BadRequestAuthorizationError, BadRequestParametersError, BadUrlError
from .logging_config import get_module_logger

logger = get_module_logger("request")

# Characters left as-is when escaping a whole URL for a query context
URL_QUERY_ALLOWED = "!$&'()*+,-./:;=?@_~"

# Same set without the item separators, for single query names and values
QUERY_ITEM_ALLOWED = "!$'()*+,-./:;?@_~"

DEFAULT_TIMEOUT = 10.0


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def carries_body(self) -> bool:
        """Whether parameters for this method are sent as a JSON body"""
        return self in (Method.POST, Method.PUT, Method.PATCH)


class CachePolicy(Enum):
    """Cache directive passed through to the transport"""

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE_DATA = "reload_ignoring_local_cache_data"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"


@dataclass(frozen=True)
class BearerToken:
    """Authorization: Bearer <token>; a missing token fails materialization"""

    token: str | None = field(repr=False)


@dataclass(frozen=True)
class BasicAuth:
    """Authorization: Basic base64(username:password)"""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ApiKey:
    """API key sent as a query parameter on GET, as a header otherwise"""

    key: str
    value: str = field(repr=False)


Authorization = BearerToken | BasicAuth | ApiKey


@dataclass(frozen=True)
class DigestSignature:
    """
    Hex digest of a secret appended to the URL as a query parameter.

    The algorithm is any name hashlib accepts.
    """

    secret: str = field(repr=False)
    algorithm: str = "md5"

    @property
    def content(self) -> str:
        digest = hashlib.new(self.algorithm, self.secret.encode("utf-8"), usedforsecurity=False)
        return digest.hexdigest()


@dataclass(frozen=True)
class PlainSignature:
    """Value sent verbatim in the Signature header"""

    value: str

    @property
    def content(self) -> str:
        return self.value


Signature = DigestSignature | PlainSignature


@dataclass
class MaterializedRequest:
    """Concrete request owned by the dispatcher for one exchange"""

    method: Method
    url: str
    headers: CaseInsensitiveDict
    body: bytes | None
    timeout: float
    cache_policy: CachePolicy


def get_language_identifier(locale_id: str | None = None) -> str:
    """
    Two-letter language code of the current locale

    Args:
        locale_id: Locale identifier to use instead of the process locale (e.g. "de_DE")

    Returns:
        The first two characters, or the whole identifier if it is shorter
    """
    if locale_id is None:
        locale_id = locale.getlocale()[0] or ""
    if len(locale_id) >= 2:
        return locale_id[:2]
    return locale_id


def percent_encode(url: str) -> str:
    """Escape a URL for safe use in a query context (spaces, non-ASCII, '%', '#', ...)"""
    try:
        return quote(url, safe=URL_QUERY_ALLOWED)
    except UnicodeEncodeError as e:
        raise BadUrlError(url) from e


def render_query_value(value: Any) -> str:
    """String form of a parameter value in a query string; None renders empty"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(existing: str, parameters: Mapping[str, Any]) -> str:
    """
    Append one encoded item per parameter to an already encoded query

    Literal '+' is escaped as %2B in the result, since servers commonly
    decode '+' in a query as a space.
    """
    try:
        items = [
            f"{quote(str(name), safe=QUERY_ITEM_ALLOWED)}="
            f"{quote(render_query_value(value), safe=QUERY_ITEM_ALLOWED)}"
            for name, value in parameters.items()
        ]
    except UnicodeEncodeError as e:
        raise BadUrlError() from e

    query = "&".join([existing, *items]) if existing else "&".join(items)
    return query.replace("+", "%2B")


def _split_url(url: str) -> SplitResult:
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise BadUrlError(url) from e

    if not parts.scheme or not parts.netloc:
        raise BadUrlError(url)
    return parts


@dataclass
class RequestDescriptor:
    """
    Description of one intended HTTP call

    Args:
        target: Unencoded URL; it is percent-encoded during materialization
        method: HTTP method (POST by default)
        timeout: Seconds; None uses networking.request.default_timeout (10s)
        authorization: BearerToken, BasicAuth or ApiKey
        cache_policy: Cache directive handed to the transport
        parameters: Key/value map, placed in the query (GET/DELETE) or JSON body
        param_object: Serializable object sent as the whole body when parameters is None
        signature: DigestSignature (query parameter) or PlainSignature (header)
        headers: (key, value) pairs applied in order after the defaults
    """

    target: str
    method: Method = Method.POST
    timeout: float | None = None
    authorization: Authorization | None = None
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    parameters: Mapping[str, Any] | None = None
    param_object: Any = None
    signature: Signature | None = None
    headers: Sequence[tuple[str, str]] = field(default_factory=list)

    def describe(self) -> str:
        """One-line summary for logs; credentials appear by kind only"""
        auth = type(self.authorization).__name__ if self.authorization else None
        return f"{self.method.value} {self.target} params={self.parameters!r} auth={auth}"

    def materialize(self, config_obj: Config | None = None) -> MaterializedRequest:
        """
        Turn the descriptor into a transport-ready request

        Args:
            config_obj: Config object (optional, uses global config if None)

        Returns:
            MaterializedRequest with final URL, headers and body

        Raises:
            BadUrlError: If the target cannot be encoded or parsed
            BadRequestAuthorizationError: If a bearer token is missing
            BadRequestParametersError: If the parameters cannot be serialized
        """
        if config_obj is None:
            config_obj = config

        encoded_url = percent_encode(self.target)

        # Appended as text so it stays in place when the query is rebuilt below
        if isinstance(self.signature, DigestSignature):
            signature_parameter = config_obj.get(
                "networking.request.signature_parameter", "signature"
            )
            encoded_url = f"{encoded_url}&{signature_parameter}={self.signature.content}"

        _split_url(encoded_url)

        timeout = self.timeout
        if timeout is None:
            timeout = float(config_obj.get("networking.request.default_timeout", DEFAULT_TIMEOUT))

        headers = CaseInsensitiveDict()
        headers["Content-Type"] = config_obj.get(
            "networking.request.content_type", "application/json"
        )

        if isinstance(self.signature, PlainSignature):
            headers["Signature"] = self.signature.content

        for key, value in self.headers:
            headers[key] = value

        parameters = dict(self.parameters) if self.parameters is not None else None

        auth = self.authorization
        if isinstance(auth, BearerToken):
            if auth.token is None:
                raise BadRequestAuthorizationError("Bearer token is missing")
            headers["Authorization"] = f"Bearer {auth.token}"
        elif isinstance(auth, BasicAuth):
            try:
                credentials = f"{auth.username}:{auth.password}".encode()
            except UnicodeEncodeError as e:
                raise BadRequestAuthorizationError("Basic credentials are not encodable") from e
            headers["Authorization"] = f"Basic {base64.b64encode(credentials).decode('ascii')}"
        elif isinstance(auth, ApiKey):
            if self.method is Method.GET:
                if parameters is None:
                    parameters = {}
                parameters[auth.key] = auth.value
            else:
                headers[auth.key] = auth.value

        request = MaterializedRequest(
            method=self.method,
            url=encoded_url,
            headers=headers,
            body=None,
            timeout=timeout,
            cache_policy=self.cache_policy,
        )

        if parameters is None:
            if self.param_object is not None:
                request.body = self._encode_param_object()
        else:
            self._place_parameters(request, parameters, config_obj)

        logger.debug(
            f"Materialized {request.method.value} {request.url} "
            f"({len(request.body) if request.body is not None else 0} body bytes)"
        )
        return request

    def _place_parameters(
        self, request: MaterializedRequest, parameters: dict[str, Any], config_obj: Config
    ) -> None:
        original_parameters = dict(parameters)
        language_parameter = config_obj.get("networking.request.language_parameter", "lang")
        parameters[language_parameter] = get_language_identifier()

        # Only POST/PUT/PATCH carry parameters in the body; GET/DELETE use the query
        if self.method.carries_body:
            try:
                request.body = json.dumps(
                    parameters, allow_nan=False, ensure_ascii=False, separators=(",", ":")
                ).encode("utf-8")
            except (TypeError, ValueError, UnicodeEncodeError) as e:
                raise BadRequestParametersError(original_parameters) from e
        else:
            parts = _split_url(request.url)
            query = build_query(parts.query, parameters)
            request.url = urlunsplit(parts._replace(query=query))

    def _encode_param_object(self) -> bytes:
        try:
            return pydantic_core.to_json(self.param_object)
        except pydantic_core.PydanticSerializationError as e:
            raise BadRequestParametersError(self.param_object) from e
