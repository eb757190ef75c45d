import asyncio

import pytest

from ble.simulated import SimulatedBeacon
from main import BeaconDaemon, create_hardware, parse_args


def make_config(tmp_path=None, **hardware):
    hw = {"backend": "simulated", "ack_delay": 0, "simulate_peer": None}
    hw.update(hardware)
    return {
        "beacon": {},
        "hardware": hw,
        "display": {
            "fps": 50,
            "snapshot_path": str(tmp_path / "screen.png") if tmp_path else None,
        },
    }


def test_create_hardware_simulated():
    hardware = create_hardware(make_config(ack_delay=0.3, simulate_peer="P"))
    assert isinstance(hardware, SimulatedBeacon)
    assert hardware.ack_delay == 0.3
    assert hardware.simulate_peer == "P"


def test_commands_drive_the_store():
    daemon = BeaconDaemon(make_config(simulate_peer="PEER"))
    daemon.hardware.connect()

    assert daemon.handle_command("on") is True
    assert daemon.store.state.is_beacon_advertising is True
    assert daemon.view_model.state.peer_connection.value.startswith("PEER:")

    assert daemon.handle_command(" OFF \n") is True
    assert daemon.store.state.connected_peer == ""
    assert daemon.handle_command("dance") is False
    daemon.shutdown()


def test_toggle_alternates_from_last_request():
    daemon = BeaconDaemon(make_config())
    daemon.hardware.connect()
    daemon.handle_command("toggle")
    assert daemon.hardware.is_advertising
    daemon.handle_command("toggle")
    assert not daemon.hardware.is_advertising
    # Advertising flag stays set after a stop; toggle must still turn it back on
    assert daemon.view_model.state.toggle_beacon.value is True
    daemon.handle_command("toggle")
    assert daemon.hardware.is_advertising
    daemon.handle_command("toggle")
    assert not daemon.hardware.is_advertising
    daemon.shutdown()


def test_on_off_then_toggle_restarts():
    daemon = BeaconDaemon(make_config())
    daemon.hardware.connect()
    daemon.handle_command("on")
    daemon.handle_command("off")
    daemon.handle_command("toggle")
    assert daemon.hardware.is_advertising
    daemon.shutdown()


@pytest.mark.parametrize("fps", [0, -5])
def test_non_positive_fps_is_rejected(fps):
    config = make_config()
    config["display"]["fps"] = fps
    with pytest.raises(ValueError, match="fps"):
        BeaconDaemon(config)


def test_render_prints_and_saves_snapshot(tmp_path, capsys):
    daemon = BeaconDaemon(make_config(tmp_path))
    daemon.render()
    out = capsys.readouterr().out
    assert "CoreBluetooth with Redux !" in out
    assert "State of peripheral manager : Unknown" in out
    assert (tmp_path / "screen.png").exists()
    daemon.shutdown()


def test_dirty_flag_follows_view_changes():
    daemon = BeaconDaemon(make_config())
    assert daemon.consume_dirty() is True
    assert daemon.consume_dirty() is False
    daemon.hardware.connect()
    assert daemon.consume_dirty() is True
    daemon.shutdown()


def test_shutdown_stops_advertising_and_closes():
    daemon = BeaconDaemon(make_config())
    daemon.hardware.connect()
    daemon.toggle_beacon(True)
    assert daemon.hardware.is_advertising

    daemon.shutdown()
    daemon.shutdown()  # second call is a no-op

    assert not daemon.hardware.is_advertising
    assert not daemon.hardware.is_connected
    assert daemon.store.is_closed


def test_run_loop_until_quit(capsys):
    daemon = BeaconDaemon(make_config(simulate_peer="PEER"))

    async def scenario():
        task = asyncio.create_task(daemon.run())
        await asyncio.sleep(0.05)
        daemon.handle_command("on")
        await asyncio.sleep(0.05)
        daemon.handle_command("quit")
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(scenario())

    out = capsys.readouterr().out
    assert "[x] Enable beacon" in out
    assert "Peer connected : PEER:" in out
    assert daemon.store.is_closed


def test_run_returns_when_backend_fails():
    class DeadBeacon(SimulatedBeacon):
        def connect(self):
            return False

    daemon = BeaconDaemon(make_config(), hardware=DeadBeacon())
    asyncio.run(daemon.run())
    assert daemon.store.is_closed


def test_parse_args():
    args = parse_args(["--backend", "simulated", "--log-level", "DEBUG"])
    assert args.backend == "simulated"
    assert args.log_level == "DEBUG"
    assert args.config is None
    with pytest.raises(SystemExit):
        parse_args(["--backend", "nope"])
