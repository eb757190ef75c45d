import logging
import threading
from typing import Any, Callable

log = logging.getLogger("beacon.core.event_bus")


class EventBus:
    """Thread-safe publish/subscribe event system.

    The store publishes every new state snapshot on it, and the daemon
    uses it to fan hardware and view notifications out to listeners.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Callable) -> Callable[[], None]:
        """Register ``callback`` for ``topic``. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)
            log.debug("Subscribed to '%s': %s", topic,
                      getattr(callback, "__name__", repr(callback)))

        def unsubscribe() -> None:
            self.unsubscribe(topic, callback)

        return unsubscribe

    def unsubscribe(self, topic: str, callback: Callable) -> None:
        with self._lock:
            if topic in self._subscribers:
                self._subscribers[topic] = [
                    cb for cb in self._subscribers[topic] if cb is not callback
                ]

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))

    def clear(self, topic: str | None = None) -> None:
        """Drop the subscribers of ``topic``, or of every topic."""
        with self._lock:
            if topic is None:
                self._subscribers.clear()
            else:
                self._subscribers.pop(topic, None)

    def publish(self, topic: str, data: Any = None) -> None:
        # Snapshot the list so callbacks may (un)subscribe while we iterate
        with self._lock:
            callbacks = list(self._subscribers.get(topic, []))

        for callback in callbacks:
            try:
                callback(data)
            except Exception:
                log.exception(
                    "Error in subscriber for '%s': %s",
                    topic,
                    getattr(callback, "__name__", repr(callback)),
                )
