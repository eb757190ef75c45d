"""Bluetooth hardware collaborator.

Defines the narrow request/event vocabulary the beacon middleware talks
to, plus the base class every backend implements. Backends push events
from whatever thread their stack calls back on; the middleware turns
them into fresh store dispatches.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from beacon.state import ManagerKind, ManagerStatus

log = logging.getLogger("beacon.ble.hardware")


# --- Requests (app -> hardware) ---

@dataclass(frozen=True)
class StartAdvertisingRequest:
    advertisement: dict[str, Any]


@dataclass(frozen=True)
class StopAdvertisingRequest:
    pass


Request = Union[StartAdvertisingRequest, StopAdvertisingRequest]


# --- Events (hardware -> app) ---

@dataclass(frozen=True)
class AdvertisingAck:
    pass


@dataclass(frozen=True)
class ManagerStateChanged:
    kind: ManagerKind
    status: ManagerStatus


@dataclass(frozen=True)
class SubscribedAck:
    peer: str
    characteristic: str


@dataclass(frozen=True)
class Unsubscribed:
    peer: str
    characteristic: str


@dataclass(frozen=True)
class HardwareError:
    description: str


Event = Union[AdvertisingAck, ManagerStateChanged, SubscribedAck,
              Unsubscribed, HardwareError]


@dataclass(frozen=True)
class BluetoothState:
    """What the hardware side is allowed to see of the app state."""

    peripheral_status: ManagerStatus = ManagerStatus.UNKNOWN
    central_status: ManagerStatus = ManagerStatus.UNKNOWN


class BeaconHardware:
    """Base class for Bluetooth beacon backends."""

    name: str = "base"

    def __init__(self):
        self._on_event: Callable[[Event], None] | None = None
        self._get_state: Callable[[], BluetoothState] = BluetoothState
        self._connected = False

    def attach(self, on_event: Callable[[Event], None],
               get_state: Callable[[], BluetoothState]) -> None:
        """Wire the backend to the middleware. Called once before connect()."""
        self._on_event = on_event
        self._get_state = get_state

    def detach(self) -> None:
        self._on_event = None
        self._get_state = BluetoothState

    def emit(self, event: Event) -> None:
        """Hand an event to the attached middleware (any thread)."""
        handler = self._on_event
        if handler is None:
            log.debug("%s: no handler attached, dropping %s", self.name, event)
            return
        handler(event)

    @property
    def bluetooth_state(self) -> BluetoothState:
        return self._get_state()

    def connect(self) -> bool:
        """Bring up the Bluetooth managers. Returns True on success."""
        self._connected = True
        return True

    def disconnect(self) -> None:
        self._connected = False

    def request(self, request: Request) -> None:
        """Fire-and-forget; the outcome comes back later as an event."""
        raise NotImplementedError

    def pump(self) -> None:
        """Give the backend a slice of the daemon loop to deliver callbacks."""

    @property
    def is_connected(self) -> bool:
        return self._connected
