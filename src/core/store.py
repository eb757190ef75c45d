"""Single-writer state store.

Owns the current state snapshot and the dispatch pipeline
(middleware chain, then reducer). Dispatches can come from the main
loop or from Bluetooth callback threads; they all go through one FIFO
queue and are applied one full cycle at a time.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import TYPE_CHECKING, Any, Callable, Iterable

from core.event_bus import EventBus

if TYPE_CHECKING:
    from beacon.middleware import Middleware

log = logging.getLogger("beacon.core.store")

STATE_CHANGED = "state_changed"


class Store:
    """Serialised dispatch over an immutable state snapshot.

    ``dispatch`` appends to the queue. Whoever finds the queue idle
    drains it, so a dispatch is applied before it returns unless another
    thread (or an outer dispatch on this thread) is already draining; in
    that case the drainer picks it up in order.
    """

    def __init__(self, initial_state: Any,
                 reducer: Callable[[Any, Any], Any],
                 middleware: Iterable[Middleware] = (),
                 event_bus: EventBus | None = None):
        self._state = initial_state
        self._reducer = reducer
        self._middleware = list(middleware)
        self.event_bus = event_bus or EventBus()

        self._queue: deque = deque()
        self._lock = threading.Lock()
        self._draining = False
        self._closed = False

        for mw in self._middleware:
            mw.attach(self)

    @property
    def state(self) -> Any:
        return self._state

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Call ``callback(new_state)`` after every reduction."""
        return self.event_bus.subscribe(STATE_CHANGED, callback)

    def dispatch(self, action: Any) -> None:
        with self._lock:
            if self._closed:
                log.debug("Store closed, dropping %s", action)
                return
            self._queue.append(action)
            if self._draining:
                return
            self._draining = True

        self._drain()

    def close(self) -> None:
        """Detach middleware and observers. Later dispatches are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.clear()

        for mw in self._middleware:
            try:
                mw.detach()
            except Exception:
                log.exception("Error detaching middleware '%s'", mw.name)
        self.event_bus.clear(STATE_CHANGED)
        log.debug("Store closed")

    @property
    def is_closed(self) -> bool:
        return self._closed

    # --- Pipeline ---

    def _drain(self) -> None:
        try:
            while True:
                with self._lock:
                    if not self._queue:
                        self._draining = False
                        return
                    action = self._queue.popleft()
                try:
                    self._run(0, action)
                except Exception:
                    # dispatch never raises to the caller
                    log.exception("Dispatch failed for %s", action)
        except BaseException:
            with self._lock:
                self._draining = False
            raise

    def _run(self, index: int, action: Any) -> None:
        if index < len(self._middleware):
            self._middleware[index].on_action(
                action, lambda next_action: self._run(index + 1, next_action)
            )
            return
        self._reduce(action)

    def _reduce(self, action: Any) -> None:
        new_state = self._reducer(action, self._state)
        self._state = new_state
        self.event_bus.publish(STATE_CHANGED, new_state)
