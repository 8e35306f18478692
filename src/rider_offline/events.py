"""Typed listener registry with disposer-style subscriptions."""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Emitter(Generic[T]):
    """Fans a value out to subscribed listeners.

    Example:
        emitter: Emitter[bool] = Emitter()
        unsubscribe = emitter.subscribe(print)
        emitter.emit(True)
        unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Unsubscribe:
        """Register a listener.

        Returns:
            Callable that removes the listener; calling it twice is harmless
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, value: T) -> None:
        """Call every listener with ``value``.

        A failing listener is logged and does not stop the others.
        """
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                logger.error("Listener %r failed: %s", listener, e, exc_info=True)

    def __len__(self) -> int:
        return len(self._listeners)
