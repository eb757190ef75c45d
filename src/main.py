#!/usr/bin/env python3
"""Bluetooth beacon daemon: main entry point.

Runs an asyncio event loop that:
  1. Brings up the Bluetooth backend (CoreBluetooth or simulated)
  2. Feeds hardware callbacks and user commands through the store
  3. Redraws the beacon screen whenever the projected view changes
"""

import argparse
import asyncio
import signal
import sys
import os
import logging
import threading

# Add src/ to path so imports work when running directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import BACKENDS, load_config
from core.logging_config import setup_logging
from core.event_bus import EventBus
from core.store import Store
from beacon.actions import StopAdvertising
from beacon.middleware import BeaconMiddleware, LoggingMiddleware
from beacon.reducer import reduce
from beacon.region import BeaconRegion
from beacon.state import AppState
from ble.hardware import BeaconHardware
from ble.simulated import SimulatedBeacon
from ui.screens import BeaconScreen
from ui.view_model import ToggleBeacon, ViewModel, ViewState

log = logging.getLogger("beacon.main")

HELP = "commands: on | off | toggle | status | quit"


def create_hardware(config: dict) -> BeaconHardware:
    """Build the Bluetooth backend named in the config."""
    hw = config.get("hardware", {})
    backend = hw.get("backend", "simulated")
    if backend == "corebluetooth":
        # pyobjc is only installed on macOS
        from ble.corebluetooth import CoreBluetoothBeacon
        return CoreBluetoothBeacon()
    return SimulatedBeacon(
        ack_delay=hw.get("ack_delay", 0.2),
        simulate_peer=hw.get("simulate_peer"),
    )


class BeaconDaemon:
    """Main application daemon."""

    def __init__(self, config: dict, hardware: BeaconHardware | None = None):
        self.config = config
        self.event_bus = EventBus()
        self._running = False
        self._closed = False
        self._fps = config.get("display", {}).get("fps", 10)
        if self._fps <= 0:
            raise ValueError(f"display fps must be positive, got {self._fps}")
        self._snapshot_path = config.get("display", {}).get("snapshot_path")
        # Last on/off the user asked for; the advertising flag never drops back
        self._beacon_requested = False

        self.region = BeaconRegion.from_config(config)
        self.hardware = hardware or create_hardware(config)

        # Store: logger first so it sees the state the whole chain produced
        self.store = Store(
            AppState.empty(),
            reduce,
            middleware=[
                LoggingMiddleware(),
                BeaconMiddleware(self.hardware, self.region),
            ],
            event_bus=self.event_bus,
        )

        self.view_model = ViewModel(self.store, self.region)
        self.screen = BeaconScreen()

        # Dirty flag for screen redraws (set from any thread)
        self._dirty_lock = threading.Lock()
        self._dirty = True
        self.view_model.add_listener(self._on_view_changed)

    # --- User intents ---

    def toggle_beacon(self, on: bool) -> None:
        self._beacon_requested = on
        self.view_model.send(ToggleBeacon(on))

    def handle_command(self, command: str) -> bool:
        """Run one console command. Returns False if it was not understood."""
        command = command.strip().lower()
        if command in ("on", "start"):
            self.toggle_beacon(True)
        elif command in ("off", "stop"):
            self.toggle_beacon(False)
        elif command == "toggle":
            self.toggle_beacon(not self._beacon_requested)
        elif command == "status":
            self._mark_dirty()
        elif command in ("quit", "exit", "q"):
            log.info("Quit requested")
            self._running = False
        elif command in ("help", "?"):
            print(HELP)
        elif command:
            log.warning("Unknown command '%s' (%s)", command, HELP)
            return False
        return True

    # --- Screen ---

    def _on_view_changed(self, view: ViewState) -> None:
        self._mark_dirty()

    def _mark_dirty(self) -> None:
        with self._dirty_lock:
            self._dirty = True

    def consume_dirty(self) -> bool:
        """Check and clear dirty flag. Returns True if the view changed."""
        with self._dirty_lock:
            was_dirty = self._dirty
            self._dirty = False
            return was_dirty

    def render(self) -> None:
        view = self.view_model.state
        print("\n".join(["-" * 60, *view.lines(), "-" * 60]), flush=True)
        if self._snapshot_path:
            try:
                self.screen.save(view, self._snapshot_path)
            except OSError:
                log.exception("Could not write screen snapshot to %s",
                              self._snapshot_path)

    # --- Console input ---

    def _on_stdin(self) -> None:
        line = sys.stdin.readline()
        if not line:
            log.info("stdin closed, no more commands")
            asyncio.get_running_loop().remove_reader(sys.stdin)
            return
        self.handle_command(line)

    # --- Main loop ---

    async def run(self) -> None:
        """Main event loop."""
        if not self.hardware.connect():
            log.error("Could not start the %s Bluetooth backend", self.hardware.name)
            self.shutdown()
            return

        self._running = True
        loop = asyncio.get_running_loop()
        reading_stdin = False
        if sys.stdin is not None and sys.stdin.isatty():
            try:
                loop.add_reader(sys.stdin, self._on_stdin)
                reading_stdin = True
            except (NotImplementedError, ValueError) as exc:
                log.warning("Console commands unavailable: %s", exc)

        frame_interval = 1.0 / self._fps
        log.info("Beacon %s via %s backend", self.region.uuid_string, self.hardware.name)
        log.info("Ready! %s", HELP)

        try:
            while self._running:
                try:
                    self.hardware.pump()
                    if self.consume_dirty():
                        self.render()
                except Exception:
                    log.exception("Loop iteration error")
                await asyncio.sleep(frame_interval)
        except asyncio.CancelledError:
            log.info("Main loop cancelled")
        finally:
            if reading_stdin:
                loop.remove_reader(sys.stdin)
            self.shutdown()

    def stop(self) -> None:
        self._running = False

    def shutdown(self) -> None:
        """Clean shutdown: stop advertising, release hardware, close the store."""
        if self._closed:
            return
        self._closed = True
        self._running = False
        log.info("Shutting down...")
        if self.store.state.is_beacon_advertising and self.hardware.is_connected:
            self.store.dispatch(StopAdvertising())
        self.hardware.disconnect()
        self.view_model.close()
        self.store.close()
        log.info("Shutdown complete")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Toggle a Bluetooth LE beacon and show its status")
    parser.add_argument("--config", help="path to a YAML config file")
    parser.add_argument("--backend", choices=BACKENDS,
                        help="override hardware.backend from the config")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)
    log.info("=== Bluetooth Beacon ===")

    config = load_config(args.config)
    if args.backend:
        config["hardware"]["backend"] = args.backend
    daemon = BeaconDaemon(config)

    loop = asyncio.new_event_loop()

    def signal_handler():
        log.info("Signal received, stopping...")
        daemon.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(daemon.run())
    finally:
        loop.close()


if __name__ == "__main__":
    main()
