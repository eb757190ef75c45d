"""Store middleware.

A middleware sits on the dispatch path between the caller and the
reducer. It sees every action, may talk to the outside world, and
decides what goes downstream by calling ``forward`` zero or more times.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from beacon.actions import (
    BeaconAction,
    GotAdvertisingAck,
    GotManagerState,
    GotSubscribedPeer,
    StartAdvertising,
    StopAdvertising,
    TriggerError,
)
from beacon.region import BeaconRegion
from beacon.state import AppState
from ble.hardware import (
    AdvertisingAck,
    BeaconHardware,
    BluetoothState,
    Event,
    HardwareError,
    ManagerStateChanged,
    Request,
    StartAdvertisingRequest,
    StopAdvertisingRequest,
    SubscribedAck,
    Unsubscribed,
)

if TYPE_CHECKING:
    from core.store import Store

log = logging.getLogger("beacon.middleware")

Forward = Callable[[BeaconAction], None]


class Middleware:
    """Base class for store middleware."""

    name: str = "base"
    _store: Store | None = None

    def attach(self, store: Store) -> None:
        """Called once when the store is built."""
        self._store = store

    def detach(self) -> None:
        """Called from Store.close()."""
        self._store = None

    def on_action(self, action: BeaconAction, forward: Forward) -> None:
        forward(action)


class LoggingMiddleware(Middleware):
    """Logs every action and the state it produced."""

    name = "logger"

    def on_action(self, action: BeaconAction, forward: Forward) -> None:
        before = self._store.state
        log.debug("Action: %s", action)
        forward(action)
        after = self._store.state
        if after != before:
            log.debug("State: %s", after)


class BeaconMiddleware(Middleware):
    """Adapter between app actions and a Bluetooth hardware backend.

    Outbound, start/stop intents become hardware requests. Inbound,
    hardware events become app actions dispatched on the store. The
    backend only ever sees the two manager statuses of the app state.
    """

    name = "beacon"

    def __init__(self, hardware: BeaconHardware, region: BeaconRegion):
        self.hardware = hardware
        self.region = region
        self._store: Store | None = None

    def attach(self, store: Store) -> None:
        self._store = store
        self.hardware.attach(self._on_hardware_event,
                             lambda: self.project_state(store.state))

    def detach(self) -> None:
        self.hardware.detach()
        self._store = None

    # --- Adapter ---

    def translate_outbound(self, action: BeaconAction) -> Request | None:
        match action:
            case StartAdvertising():
                return StartAdvertisingRequest(self.region.peripheral_data())
            case StopAdvertising():
                return StopAdvertisingRequest()
            case _:
                return None

    def translate_inbound(self, event: Event) -> BeaconAction | None:
        match event:
            case AdvertisingAck():
                return GotAdvertisingAck()
            case ManagerStateChanged(kind=kind, status=status):
                return GotManagerState(kind, status)
            case SubscribedAck(peer=peer, characteristic=char):
                return GotSubscribedPeer(True, peer, char)
            case Unsubscribed(peer=peer, characteristic=char):
                return GotSubscribedPeer(False, peer, char)
            case HardwareError(description=description):
                return TriggerError(description)
            case _:
                return None

    @staticmethod
    def project_state(state: AppState) -> BluetoothState:
        return BluetoothState(
            peripheral_status=state.peripheral_manager_status,
            central_status=state.central_manager_status,
        )

    # --- Dispatch path ---

    def on_action(self, action: BeaconAction, forward: Forward) -> None:
        request = self.translate_outbound(action)
        if request is not None:
            log.info("→ %s", type(request).__name__)
            try:
                self.hardware.request(request)
            except Exception as exc:
                log.exception("Hardware request failed: %s", type(request).__name__)
                # Queued behind the current action by the store
                self._dispatch(TriggerError(exc))
        forward(action)

    def _on_hardware_event(self, event: Event) -> None:
        action = self.translate_inbound(event)
        if action is None:
            log.warning("Ignoring unhandled hardware event: %r", event)
            return
        log.debug("← %s", event)
        self._dispatch(action)

    def _dispatch(self, action: BeaconAction) -> None:
        if self._store is None:
            log.debug("Store detached, dropping %s", action)
            return
        self._store.dispatch(action)
