"""Subscriber hooks for log lines and registry changes."""

import logging
import threading
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class EventHook:
    """A named list of callbacks fired synchronously in subscription order.

    A failing handler is logged and skipped so one bad observer cannot stop
    the others or the publisher.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: List[Callable[..., Any]] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        with self._lock:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Callable[..., Any]) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def emit(self, *args: Any) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler %r for %s failed", handler, self.name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)
