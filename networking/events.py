"""
In-process publish/subscribe for domain events

The dispatcher publishes ACCOUNT_SUSPENDED when the server rejects a call with
a 403 whose body reports status 0. Host applications subscribe to react
(sign the user out, show a notice, ...). Publishing never affects the
outcome delivered to the caller.
"""

import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from .logging_config import get_module_logger

logger = get_module_logger("events")

ACCOUNT_SUSPENDED = "SUSPENDACCOUNT"

Handler = Callable[..., None]


class EventBus:
    """
    Synchronous in-process pub/sub with fault isolation.

    Handlers run on the publishing thread in subscription order. A failing
    handler is logged and counted; the remaining handlers still run and the
    publisher never sees the exception.
    """

    def __init__(self):
        self._subs: dict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._stats: dict[str, dict[str, int]] = defaultdict(
            lambda: {"emitted": 0, "handled": 0, "failed": 0}
        )

    def subscribe(self, topic: str, handler: Handler) -> None:
        """Register a handler for a topic."""
        with self._lock:
            self._subs[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        """Remove a handler from a topic (idempotent)."""
        with self._lock:
            if topic in self._subs and handler in self._subs[topic]:
                self._subs[topic].remove(handler)
                if not self._subs[topic]:
                    del self._subs[topic]

    def statistics(self, topic: str) -> dict[str, int]:
        """Get statistics for a topic."""
        with self._lock:
            return dict(self._stats[topic])

    def emit(self, topic: str, *args: Any, **kw: Any) -> None:
        """
        Emit an event to all handlers for a topic.

        Args:
            topic: Event topic
            *args: Positional arguments passed to handlers
            **kw: Keyword arguments passed to handlers
        """
        # Copy so handlers may (un)subscribe while being called
        with self._lock:
            handlers = list(self._subs.get(topic, []))
            self._stats[topic]["emitted"] += 1

        if not handlers:
            logger.debug(f"Emitting event to topic '{topic}' with no subscribers")
            return

        for handler in handlers:
            handler_name = getattr(handler, "__name__", repr(handler))
            try:
                handler(*args, **kw)
            except Exception as e:
                with self._lock:
                    self._stats[topic]["failed"] += 1
                logger.error(
                    f"Handler '{handler_name}' failed for topic '{topic}': {e}",
                    exc_info=True,
                )
            else:
                with self._lock:
                    self._stats[topic]["handled"] += 1


default_event_bus = EventBus()
