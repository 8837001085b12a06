"""
Dispatcher: runs one HTTP exchange per call and classifies the response

Each call materializes the descriptor on the calling thread, performs the
exchange on a worker thread and hands exactly one Outcome to the caller's
completion through a completion context (a single dedicated thread by
default, or an asyncio loop). Failures detected before anything is sent are
delivered synchronously on the calling thread instead.

Three call shapes share the classification:
- send_request: raw body bytes
- get: body decoded into a target type
- send_codable_request: like get, and a 403 reporting status 0 publishes ACCOUNT_SUSPENDED
"""

import asyncio
import json
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Protocol, TypeVar

import pydantic
import requests

from .config import Config, config
from .events import ACCOUNT_SUSPENDED, EventBus, default_event_bus
from .exceptions import (
    DownloadServerSideError,
    HttpServerError,
    JsonFormatError,
    NetworkingError,
    TransportError,
)
from .http_client import HttpClient, default_http_client
from .http_status import HTTPStatus
from .logging_config import describe_body, get_module_logger
from .outcome import Outcome
from .request import MaterializedRequest, RequestDescriptor

logger = get_module_logger("dispatcher")

T = TypeVar("T")

Completion = Callable[[Outcome[Any]], None]
ErrorFactory = Callable[[bytes, HTTPStatus, int], NetworkingError]


class CompletionContext(Protocol):
    """Where completions run; must preserve submission order"""

    def call_soon(self, callback: Callable[..., None], *args: Any) -> None: ...


def _run_completion(callback: Callable[..., None], *args: Any) -> None:
    try:
        callback(*args)
    except Exception:
        logger.error(f"Completion callback {callback!r} raised", exc_info=True)


class SerialContext:
    """Runs completions one at a time, in submission order, on one dedicated thread"""

    def __init__(self, thread_name: str = "networking-main"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=thread_name)

    def call_soon(self, callback: Callable[..., None], *args: Any) -> None:
        self._executor.submit(_run_completion, callback, *args)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class AsyncioContext:
    """Runs completions on an asyncio event loop"""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def call_soon(self, callback: Callable[..., None], *args: Any) -> None:
        self.loop.call_soon_threadsafe(_run_completion, callback, *args)


def _http_server_error(body: bytes, status: HTTPStatus, raw_status: int) -> NetworkingError:
    return HttpServerError(body, status, raw_status)


def _download_error(body: bytes, status: HTTPStatus, raw_status: int) -> NetworkingError:
    return DownloadServerSideError(status, raw_status)


def _raw_body(body: bytes) -> bytes:
    return body


class Dispatcher:
    """
    Sends request descriptors and delivers classified outcomes

    All collaborators are injectable; anything not given falls back to the
    process-wide defaults. Dispatcher.shared() is the lazily created
    process-wide instance.
    """

    _shared: "Dispatcher | None" = None
    _shared_lock = threading.Lock()

    def __init__(
        self,
        http_client: HttpClient | None = None,
        event_bus: EventBus | None = None,
        context: CompletionContext | None = None,
        executor: ThreadPoolExecutor | None = None,
        config_obj: Config | None = None,
    ):
        """
        Initialize dispatcher

        Args:
            http_client: Transport (uses default_http_client if None)
            event_bus: Domain event bus (uses default_event_bus if None)
            context: Where completions run (a new SerialContext if None)
            executor: Pool running the exchanges (a new pool if None)
            config_obj: Config object (uses global config if None)
        """
        self.http_client = http_client or default_http_client
        self.event_bus = event_bus or default_event_bus
        self.config = config_obj or config

        self._owns_context = context is None
        self.context: CompletionContext = context or SerialContext()

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.config.get("networking.dispatch.max_workers", 4),
            thread_name_prefix="networking-exchange",
        )

    @classmethod
    def shared(cls) -> "Dispatcher":
        """Process-wide dispatcher, created on first use and never torn down"""
        if cls._shared is None:
            with cls._shared_lock:
                if cls._shared is None:
                    cls._shared = cls()
        return cls._shared

    def close(self, wait: bool = True) -> None:
        """Shut down the executors this dispatcher created itself"""
        if self._owns_executor:
            self.executor.shutdown(wait=wait)
        if self._owns_context and isinstance(self.context, SerialContext):
            self.context.shutdown(wait=wait)

    def send_request(
        self, descriptor: RequestDescriptor, completion: Completion
    ) -> "Future[Outcome[bytes]] | None":
        """
        Perform the call and deliver the raw response body

        Returns:
            Future of the exchange, or None if the request failed before being sent
        """
        return self._dispatch(descriptor, completion, _raw_body, emit_suspended=True)

    def get(
        self, object_type: type[T], descriptor: RequestDescriptor, completion: Completion
    ) -> "Future[Outcome[T]] | None":
        """
        Perform the call and deliver the body decoded into ``object_type``

        object_type is anything pydantic can validate JSON into (models,
        dataclasses, TypedDicts, list[...] and so on). A body that does not
        decode fails with JsonFormatError.
        """
        return self._dispatch(
            descriptor, completion, self._decoder(object_type), emit_suspended=False
        )

    def send_codable_request(
        self, object_type: type[T], descriptor: RequestDescriptor, completion: Completion
    ) -> "Future[Outcome[T]] | None":
        """Same as get(), and publishes ACCOUNT_SUSPENDED for a 403 reporting status 0"""
        return self._dispatch(
            descriptor, completion, self._decoder(object_type), emit_suspended=True
        )

    def download(
        self, descriptor: RequestDescriptor, destination: Path, completion: Completion
    ) -> "Future[Outcome[Path]] | None":
        """
        Perform the call and write the body to ``destination``

        Succeeds with the destination path; a non-success status fails with
        DownloadServerSideError.
        """

        def write(body: bytes) -> Path:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(body)
            return destination

        return self._dispatch(
            descriptor, completion, write, emit_suspended=False, on_error=_download_error
        )

    def _decoder(self, object_type: type[T]) -> Callable[[bytes], T]:
        adapter = pydantic.TypeAdapter(object_type)

        def decode(body: bytes) -> T:
            try:
                return adapter.validate_json(body)
            except pydantic.ValidationError as e:
                raise JsonFormatError(str(e), body) from e

        return decode

    def _dispatch(
        self,
        descriptor: RequestDescriptor,
        completion: Completion,
        on_success: Callable[[bytes], Any],
        emit_suspended: bool,
        on_error: ErrorFactory = _http_server_error,
    ) -> "Future[Outcome[Any]] | None":
        logger.debug(f"begin request {descriptor.describe()}")

        try:
            request = descriptor.materialize(self.config)
        except NetworkingError as e:
            logger.warning(f"Request to {descriptor.target} not sent: {e}")
            completion(Outcome.failure(e))
            return None

        return self.executor.submit(
            self._exchange, request, completion, on_success, emit_suspended, on_error
        )

    def _exchange(
        self,
        request: MaterializedRequest,
        completion: Completion,
        on_success: Callable[[bytes], Any],
        emit_suspended: bool,
        on_error: ErrorFactory,
    ) -> Outcome[Any]:
        try:
            outcome = self._perform(request, on_success, emit_suspended, on_error)
        except Exception as e:
            # Anything the transport raises outside requests' hierarchy still yields one outcome
            logger.warning(
                f"Exchange failed for {request.method.value} {request.url}: {e!r}", exc_info=True
            )
            error = TransportError(f"There is a transport error: {e}")
            error.__cause__ = e
            outcome = Outcome.failure(error)
        self.context.call_soon(completion, outcome)
        return outcome

    def _perform(
        self,
        request: MaterializedRequest,
        on_success: Callable[[bytes], Any],
        emit_suspended: bool,
        on_error: ErrorFactory,
    ) -> Outcome[Any]:
        try:
            response = self.http_client.send(request)
        except requests.RequestException as e:
            # Transport errors are final; nothing else is evaluated
            logger.warning(f"Transport error for {request.method.value} {request.url}: {e}")
            return Outcome.failure(e)

        if response is None or getattr(response, "status_code", None) is None:
            return Outcome.failure(TransportError("No HTTP response received"))

        body = response.content
        if body is None:
            return Outcome.failure(TransportError("Response has no body"))

        status = HTTPStatus.from_code(response.status_code)
        limit = self.config.get("networking.logging.body_preview_limit", 2000)
        logger.debug(
            f"{request.method.value} {request.url} -> {response.status_code}: "
            f"{describe_body(body, limit)}"
        )

        if status is HTTPStatus.SUCCESS:
            try:
                return Outcome.success(on_success(body))
            except (JsonFormatError, OSError) as e:
                logger.warning(f"Could not handle response of {request.url}: {e}")
                return Outcome.failure(e)

        if status is HTTPStatus.FORBIDDEN and emit_suspended:
            self._publish_if_suspended(request, body)

        logger.warning(
            f"HTTP {response.status_code} for {request.method.value} {request.url}"
        )
        return Outcome.failure(on_error(body, status, response.status_code))

    def _publish_if_suspended(self, request: MaterializedRequest, body: bytes) -> None:
        login_marker = self.config.get("networking.dispatch.login_marker", "login")
        if login_marker in request.url:
            return

        try:
            payload = json.loads(body)
        except ValueError:
            return

        status = payload.get("status") if isinstance(payload, dict) else None
        if type(status) is int and status == 0:
            topic = self.config.get("networking.dispatch.suspended_event", ACCOUNT_SUSPENDED)
            logger.info(f"Account suspended reported by {request.url}, publishing '{topic}'")
            self.event_bus.emit(topic)
