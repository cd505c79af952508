"""Event channels connecting the upload coordinator to presentation code.

The coordinator only ever calls ``emit``; consoles, JSON writers and tests
subscribe handlers. Events are delivered synchronously, in the order they
are produced.
"""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """A multi-subscriber notification stream for one event type."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: list[Callable[[T], None]] = []

    def subscribe(self, handler: Callable[[T], None]) -> Callable[[T], None]:
        """Register a handler. Returns it so this can be used as a decorator."""
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Callable[[T], None]) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def emit(self, event: T) -> None:
        """Deliver an event to every handler.

        A handler that raises is logged and skipped; reporting problems
        must never change the outcome of an upload.
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s events raised", self.name)

    def __len__(self) -> int:
        return len(self._handlers)
