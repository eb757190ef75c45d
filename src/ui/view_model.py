"""Screen projection of the app state.

Turns an AppState into the six labelled items the screen shows, and
the one user intent (the beacon toggle) into a store action.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from beacon import state as s
from beacon.actions import BeaconAction, StartAdvertising, StopAdvertising
from beacon.region import BeaconRegion
from beacon.state import AppState

if TYPE_CHECKING:
    from core.store import Store

log = logging.getLogger("beacon.ui.view_model")

T = TypeVar("T")


@dataclass(frozen=True)
class ContentItem(Generic[T]):
    title: str
    value: T

    @property
    def text(self) -> str:
        return f"{self.title}{self.value}"


@dataclass(frozen=True)
class ToggleBeacon:
    on: bool


@dataclass(frozen=True)
class ViewState:
    title_view: ContentItem[str]
    toggle_beacon: ContentItem[bool]
    beacon_info: ContentItem[str]
    state_peripheral_manager: ContentItem[str]
    peer_connection: ContentItem[str]
    error_information: ContentItem[str]

    @classmethod
    def empty(cls) -> ViewState:
        return cls(
            title_view=ContentItem("", ""),
            toggle_beacon=ContentItem("", False),
            beacon_info=ContentItem("", ""),
            state_peripheral_manager=ContentItem("", ""),
            peer_connection=ContentItem("", ""),
            error_information=ContentItem("", ""),
        )

    def lines(self) -> list[str]:
        """Plain-text rendering, top to bottom."""
        toggle = "[x]" if self.toggle_beacon.value else "[ ]"
        return [
            self.title_view.title,
            self.title_view.value,
            f"{toggle} {self.toggle_beacon.title}",
            self.state_peripheral_manager.text,
            self.peer_connection.text,
            self.error_information.text,
            self.beacon_info.text,
        ]


def project(state: AppState, region: BeaconRegion) -> ViewState:
    """Build the screen contents for ``state``."""
    return ViewState(
        title_view=ContentItem(s.APP_TITLE, s.APP_USAGE),
        toggle_beacon=ContentItem(s.LABEL_TOGGLE_BEACON, state.is_beacon_advertising),
        beacon_info=ContentItem(s.LABEL_BEACON_INFO, region.uuid_string),
        state_peripheral_manager=ContentItem(
            s.LABEL_PERIPHERAL_MANAGER_STATE, state.peripheral_manager_status.description
        ),
        peer_connection=ContentItem(s.LABEL_PEER_CONNECTION, state.connected_peer),
        error_information=ContentItem(s.LABEL_ERROR_INFORMATION, state.error),
    )


def translate(intent: ToggleBeacon) -> BeaconAction:
    return StartAdvertising() if intent.on else StopAdvertising()


class ViewModel:
    """Keeps a ViewState in sync with a store.

    Listeners are only called when the projected view actually changes,
    so state changes the screen doesn't show are not redrawn.
    """

    def __init__(self, store: Store, region: BeaconRegion):
        self._store = store
        self._region = region
        self._lock = threading.Lock()
        self._listeners: list[Callable[[ViewState], None]] = []
        self._view = project(store.state, region)
        self._unsubscribe = store.subscribe(self._on_state)

    @property
    def state(self) -> ViewState:
        with self._lock:
            return self._view

    def send(self, intent: ToggleBeacon) -> None:
        """Forward a user intent to the store."""
        log.debug("Intent: %s", intent)
        self._store.dispatch(translate(intent))

    def add_listener(self, callback: Callable[[ViewState], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def close(self) -> None:
        self._unsubscribe()
        with self._lock:
            self._listeners.clear()

    def _on_state(self, app_state: AppState) -> None:
        view = project(app_state, self._region)
        with self._lock:
            if view == self._view:
                return
            self._view = view
            listeners = list(self._listeners)
        for callback in listeners:
            callback(view)
