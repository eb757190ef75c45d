import logging

import pytest

from beacon.actions import (
    GotAdvertisingAck,
    GotManagerState,
    GotSubscribedPeer,
    StartAdvertising,
    StopAdvertising,
    TriggerError,
)
from beacon.middleware import BeaconMiddleware, LoggingMiddleware
from beacon.reducer import reduce
from beacon.region import APPLE_BEACON_KEY
from beacon.state import AppState, ManagerKind, ManagerStatus
from ble.hardware import (
    AdvertisingAck,
    BluetoothState,
    HardwareError,
    ManagerStateChanged,
    StartAdvertisingRequest,
    StopAdvertisingRequest,
    SubscribedAck,
    Unsubscribed,
)
from core.store import Store


@pytest.fixture
def middleware(fake_hardware, region):
    return BeaconMiddleware(fake_hardware, region)


@pytest.fixture
def store(middleware, initial_state):
    store = Store(initial_state, reduce, middleware=[LoggingMiddleware(), middleware])
    yield store
    store.close()


# --- translate_outbound ---

def test_start_advertising_builds_beacon_request(middleware, region):
    request = middleware.translate_outbound(StartAdvertising())
    assert isinstance(request, StartAdvertisingRequest)
    assert request.advertisement == region.peripheral_data()


def test_stop_advertising_request(middleware):
    assert middleware.translate_outbound(StopAdvertising()) == StopAdvertisingRequest()


@pytest.mark.parametrize("action", [
    GotAdvertisingAck(),
    GotManagerState(ManagerKind.PERIPHERAL, ManagerStatus.POWERED_ON),
    GotSubscribedPeer(True, "A", "B"),
    TriggerError("x"),
], ids=lambda a: type(a).__name__)
def test_other_actions_make_no_request(middleware, action):
    assert middleware.translate_outbound(action) is None


# --- translate_inbound ---

@pytest.mark.parametrize("event,expected", [
    (AdvertisingAck(), GotAdvertisingAck()),
    (ManagerStateChanged(ManagerKind.CENTRAL, ManagerStatus.POWERED_OFF),
     GotManagerState(ManagerKind.CENTRAL, ManagerStatus.POWERED_OFF)),
    (SubscribedAck("PEER", "char"), GotSubscribedPeer(True, "PEER", "char")),
    (Unsubscribed("PEER", "char"), GotSubscribedPeer(False, "PEER", "char")),
    (HardwareError("adapter gone"), TriggerError("adapter gone")),
], ids=lambda v: type(v).__name__)
def test_inbound_translation(middleware, event, expected):
    assert middleware.translate_inbound(event) == expected


def test_unknown_inbound_event_is_dropped(middleware):
    assert middleware.translate_inbound("garbage") is None


def test_project_state_keeps_only_manager_statuses():
    state = AppState(
        peripheral_manager_status=ManagerStatus.POWERED_ON,
        central_manager_status=ManagerStatus.UNAUTHORIZED,
        is_beacon_advertising=True,
        connected_peer="x:y",
        error="e",
    )
    assert BeaconMiddleware.project_state(state) == BluetoothState(
        ManagerStatus.POWERED_ON, ManagerStatus.UNAUTHORIZED
    )


# --- Through the store ---

def test_start_is_sent_to_hardware_and_reaches_reducer(store, fake_hardware):
    store.dispatch(TriggerError("stale"))
    store.dispatch(StartAdvertising())

    assert len(fake_hardware.requests) == 1
    assert APPLE_BEACON_KEY in fake_hardware.requests[0].advertisement
    assert store.state.error == ""


def test_stop_is_sent_to_hardware(store, fake_hardware):
    store.dispatch(StopAdvertising())
    assert fake_hardware.requests == [StopAdvertisingRequest()]


def test_non_intent_actions_do_not_reach_hardware(store, fake_hardware):
    store.dispatch(GotAdvertisingAck())
    store.dispatch(TriggerError("x"))
    assert fake_hardware.requests == []


def test_hardware_events_become_dispatches(store, fake_hardware):
    fake_hardware.emit(ManagerStateChanged(ManagerKind.PERIPHERAL, ManagerStatus.POWERED_ON))
    fake_hardware.emit(AdvertisingAck())
    fake_hardware.emit(SubscribedAck("ABCD", "charDesc"))

    assert store.state.peripheral_manager_status is ManagerStatus.POWERED_ON
    assert store.state.is_beacon_advertising is True
    assert store.state.connected_peer == "ABCD:charDesc"

    fake_hardware.emit(Unsubscribed("ABCD", "charDesc"))
    assert store.state.connected_peer == ""


def test_hardware_error_event_sets_error(store, fake_hardware):
    fake_hardware.emit(HardwareError("Bluetooth is off"))
    assert store.state.error == "Bluetooth is off"


def test_unknown_event_does_not_stop_advertising(store, fake_hardware, caplog):
    fake_hardware.emit(AdvertisingAck())
    with caplog.at_level(logging.WARNING, logger="beacon.middleware"):
        fake_hardware.emit(object())
    warnings = [r for r in caplog.records
                if r.name == "beacon.middleware" and r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "Ignoring unhandled hardware event" in warnings[0].getMessage()
    assert store.state.is_beacon_advertising is True
    assert fake_hardware.requests == []


def test_request_failure_becomes_trigger_error(store, fake_hardware):
    fake_hardware.fail_with = OSError("adapter unplugged")
    store.dispatch(StartAdvertising())  # must not raise
    assert store.state.error == "adapter unplugged"


def test_hardware_sees_projected_state(store, fake_hardware):
    fake_hardware.emit(ManagerStateChanged(ManagerKind.CENTRAL, ManagerStatus.POWERED_ON))
    assert fake_hardware.bluetooth_state == BluetoothState(
        ManagerStatus.UNKNOWN, ManagerStatus.POWERED_ON
    )


def test_close_detaches_hardware(store, fake_hardware):
    store.close()
    fake_hardware.emit(AdvertisingAck())
    assert store.state.is_beacon_advertising is False
    assert fake_hardware.bluetooth_state == BluetoothState()
