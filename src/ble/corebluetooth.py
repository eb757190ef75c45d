"""CoreBluetooth beacon backend (macOS).

Drives a CBPeripheralManager for advertising and a CBCentralManager for
the central role state through pyobjc. Delegate callbacks are delivered
on the main run loop, which the daemon spins through ``pump()``.
"""

import logging

import objc
from CoreBluetooth import CBCentralManager, CBPeripheralManager
from Foundation import NSData, NSDate, NSObject, NSRunLoop

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

log = logging.getLogger("beacon.ble.corebluetooth")

# How long a single pump() lets the run loop deliver callbacks
PUMP_INTERVAL = 0.01


def _error_text(error) -> str:
    return str(error.localizedDescription())


def _peer_id(central) -> str:
    return str(central.identifier().UUIDString())


class PeripheralDelegate(NSObject):
    """CBPeripheralManagerDelegate forwarding to the backend."""

    def initWithBackend_(self, backend):
        self = objc.super(PeripheralDelegate, self).init()
        if self is None:
            return None
        self.backend = backend
        return self

    def peripheralManagerDidUpdateState_(self, peripheral):
        self.backend.manager_state_changed(ManagerKind.PERIPHERAL, peripheral.state())

    def peripheralManagerDidStartAdvertising_error_(self, peripheral, error):
        if error is not None:
            log.error("Advertising failed: %s", _error_text(error))
            self.backend.emit(HardwareError(_error_text(error)))
            return
        log.info("Advertising started")
        self.backend.emit(AdvertisingAck())

    def peripheralManager_central_didSubscribeToCharacteristic_(
            self, peripheral, central, characteristic):
        self.backend.emit(SubscribedAck(_peer_id(central), str(characteristic.description())))

    def peripheralManager_central_didUnsubscribeFromCharacteristic_(
            self, peripheral, central, characteristic):
        self.backend.emit(Unsubscribed(_peer_id(central), str(characteristic.description())))


class CentralDelegate(NSObject):
    """CBCentralManagerDelegate; only the power state matters here."""

    def initWithBackend_(self, backend):
        self = objc.super(CentralDelegate, self).init()
        if self is None:
            return None
        self.backend = backend
        return self

    def centralManagerDidUpdateState_(self, central):
        self.backend.manager_state_changed(ManagerKind.CENTRAL, central.state())


class CoreBluetoothBeacon(BeaconHardware):
    """Beacon advertising through the system Bluetooth stack."""

    name = "corebluetooth"

    def __init__(self):
        super().__init__()
        self._peripheral_delegate = None
        self._central_delegate = None
        self._peripheral_manager = None
        self._central_manager = None

    def connect(self) -> bool:
        try:
            log.info("Starting CoreBluetooth managers...")
            self._peripheral_delegate = PeripheralDelegate.alloc().initWithBackend_(self)
            self._central_delegate = CentralDelegate.alloc().initWithBackend_(self)
            # queue=None: callbacks arrive on the main run loop, see pump()
            self._peripheral_manager = (
                CBPeripheralManager.alloc()
                .initWithDelegate_queue_options_(self._peripheral_delegate, None, None)
            )
            self._central_manager = (
                CBCentralManager.alloc()
                .initWithDelegate_queue_options_(self._central_delegate, None, None)
            )
            self._connected = True
            return True
        except Exception:
            log.exception("Failed to start CoreBluetooth managers")
            self._connected = False
            return False

    def disconnect(self) -> None:
        if self._peripheral_manager is not None:
            try:
                if self._peripheral_manager.isAdvertising():
                    self._peripheral_manager.stopAdvertising()
            except Exception:
                log.debug("stopAdvertising failed during shutdown")
        self._peripheral_manager = None
        self._central_manager = None
        self._peripheral_delegate = None
        self._central_delegate = None
        self._connected = False
        log.info("CoreBluetooth managers released")

    def manager_state_changed(self, kind: ManagerKind, raw_state: int) -> None:
        status = ManagerStatus.from_raw(raw_state)
        log.info("%s manager: %s", kind.value.capitalize(), status)
        self.emit(ManagerStateChanged(kind, status))

    def request(self, request: Request) -> None:
        if self._peripheral_manager is None:
            self.emit(HardwareError("Peripheral manager not started"))
            return

        match request:
            case StartAdvertisingRequest(advertisement=advertisement):
                status = self.bluetooth_state.peripheral_status
                if status is not ManagerStatus.POWERED_ON:
                    self.emit(HardwareError(f"Peripheral manager is {status}"))
                    return
                self._peripheral_manager.startAdvertising_(_to_objc(advertisement))
            case StopAdvertisingRequest():
                self._peripheral_manager.stopAdvertising()
            case _:
                log.warning("Unsupported request: %r", request)

    def pump(self) -> None:
        NSRunLoop.currentRunLoop().runUntilDate_(
            NSDate.dateWithTimeIntervalSinceNow_(PUMP_INTERVAL)
        )


def _to_objc(advertisement: dict) -> dict:
    """Wrap raw bytes values as NSData for the advertisement dictionary."""
    converted = {}
    for key, value in advertisement.items():
        if isinstance(value, (bytes, bytearray)):
            value = NSData.dataWithBytes_length_(bytes(value), len(value))
        converted[key] = value
    return converted
