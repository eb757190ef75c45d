"""Simulated beacon backend.

Behaves like a powered-on adapter without touching any radio: acks
advertising requests after a short delay on a timer thread and can fake
a central subscribing to the beacon. Used on hosts without CoreBluetooth
and by the tests.
"""

import logging
import threading

from beacon.region import APPLE_BEACON_KEY
from beacon.state import ManagerKind, ManagerStatus
from ble.hardware import (
    AdvertisingAck,
    BeaconHardware,
    HardwareError,
    ManagerStateChanged,
    Request,
    StartAdvertisingRequest,
    StopAdvertisingRequest,
    SubscribedAck,
    Unsubscribed,
)

log = logging.getLogger("beacon.ble.simulated")

SIMULATED_CHARACTERISTIC = "<CBCharacteristic: UUID = Beacon Data, Notifying = YES>"


class SimulatedBeacon(BeaconHardware):
    """In-process stand-in for a Bluetooth peripheral manager."""

    name = "simulated"

    def __init__(self, ack_delay: float = 0.2, simulate_peer: str | None = None,
                 characteristic: str = SIMULATED_CHARACTERISTIC):
        super().__init__()
        self.ack_delay = ack_delay
        self.simulate_peer = simulate_peer
        self.characteristic = characteristic
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._advertising = False
        self._peer_subscribed = False
        self.last_advertisement: dict | None = None

    def connect(self) -> bool:
        log.info("Simulated Bluetooth adapter powered on")
        self._connected = True
        self.emit(ManagerStateChanged(ManagerKind.PERIPHERAL, ManagerStatus.POWERED_ON))
        self.emit(ManagerStateChanged(ManagerKind.CENTRAL, ManagerStatus.POWERED_ON))
        return True

    def disconnect(self) -> None:
        self._cancel_timer()
        with self._lock:
            self._advertising = False
            self._peer_subscribed = False
        self._connected = False
        log.info("Simulated Bluetooth adapter off")

    def request(self, request: Request) -> None:
        match request:
            case StartAdvertisingRequest(advertisement=advertisement):
                self._start(advertisement)
            case StopAdvertisingRequest():
                self._stop()
            case _:
                log.warning("Unsupported request: %r", request)

    @property
    def is_advertising(self) -> bool:
        with self._lock:
            return self._advertising

    # --- Internals ---

    def _start(self, advertisement: dict) -> None:
        if not self._connected:
            self.emit(HardwareError("Bluetooth adapter is not connected"))
            return
        if self.bluetooth_state.peripheral_status is not ManagerStatus.POWERED_ON:
            self.emit(HardwareError("Peripheral manager is not powered on"))
            return
        if APPLE_BEACON_KEY not in advertisement:
            self.emit(HardwareError("Advertisement has no beacon data"))
            return

        self.last_advertisement = dict(advertisement)
        log.debug("Advertising requested (%d bytes)",
                  len(advertisement[APPLE_BEACON_KEY]))

        if self.ack_delay <= 0:
            self._ack()
            return

        self._cancel_timer()
        timer = threading.Timer(self.ack_delay, self._ack)
        timer.daemon = True
        with self._lock:
            self._timer = timer
        timer.start()

    def _ack(self) -> None:
        with self._lock:
            self._timer = None
            self._advertising = True
            subscribe = self.simulate_peer is not None and not self._peer_subscribed
            if subscribe:
                self._peer_subscribed = True
        log.info("Simulated advertising started")
        self.emit(AdvertisingAck())
        if subscribe:
            self.emit(SubscribedAck(self.simulate_peer, self.characteristic))

    def _stop(self) -> None:
        self._cancel_timer()
        with self._lock:
            was_subscribed = self._peer_subscribed
            self._advertising = False
            self._peer_subscribed = False
        log.info("Simulated advertising stopped")
        if was_subscribed:
            self.emit(Unsubscribed(self.simulate_peer, self.characteristic))

    def _cancel_timer(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
