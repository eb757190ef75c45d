"""Beacon region and advertisement payload.

Builds the same advertisement dictionary CoreLocation's
``CLBeaconRegion.peripheralData(withMeasuredPower:)`` returns, so any
backend can hand it straight to a peripheral manager.

iBeacon body (21 bytes):
  proximity UUID (16) + major (2, BE) + minor (2, BE) + measured power (1, signed)
"""

import struct
import uuid as uuid_mod

APPLE_BEACON_KEY = "kCBAdvDataAppleBeaconKey"

DEFAULT_UUID = "E2C56DB5-DFFB-48D2-B060-D0F5A71096E0"
DEFAULT_IDENTIFIER = "CoreLocation-Redux"
DEFAULT_MEASURED_POWER = -59  # calibrated RSSI at 1 m


class BeaconRegion:
    """Static beacon identity, fixed for the lifetime of the process."""

    __slots__ = ("uuid", "identifier", "major", "minor", "measured_power")

    def __init__(self, uuid: str = DEFAULT_UUID,
                 identifier: str = DEFAULT_IDENTIFIER,
                 major: int = 0, minor: int = 0,
                 measured_power: int | None = None):
        try:
            self.uuid = uuid_mod.UUID(str(uuid))
        except ValueError:
            raise ValueError(f"Invalid beacon UUID: {uuid!r}") from None
        self.identifier = identifier
        self.major = _check_range("major", major, 0, 0xFFFF)
        self.minor = _check_range("minor", minor, 0, 0xFFFF)
        self.measured_power = (
            None if measured_power is None
            else _check_range("measured_power", measured_power, -128, 127)
        )

    @classmethod
    def from_config(cls, config: dict) -> "BeaconRegion":
        cfg = config.get("beacon", {})
        return cls(
            uuid=cfg.get("uuid", DEFAULT_UUID),
            identifier=cfg.get("identifier", DEFAULT_IDENTIFIER),
            major=cfg.get("major", 0),
            minor=cfg.get("minor", 0),
            measured_power=cfg.get("measured_power"),
        )

    @property
    def uuid_string(self) -> str:
        return str(self.uuid).upper()

    def beacon_bytes(self, measured_power: int | None = None) -> bytes:
        power = measured_power
        if power is None:
            power = self.measured_power
        if power is None:
            power = DEFAULT_MEASURED_POWER
        power = _check_range("measured_power", power, -128, 127)
        return self.uuid.bytes + struct.pack(">HHb", self.major, self.minor, power)

    def peripheral_data(self, measured_power: int | None = None) -> dict[str, bytes]:
        """Advertisement dictionary for a peripheral manager."""
        return {APPLE_BEACON_KEY: self.beacon_bytes(measured_power)}

    def __repr__(self) -> str:
        return (f"BeaconRegion({self.identifier!r}, {self.uuid_string}, "
                f"major={self.major}, minor={self.minor})")


def _check_range(name: str, value, low: int, high: int) -> int:
    value = int(value)
    if not low <= value <= high:
        raise ValueError(f"{name} must be in {low}..{high}, got {value}")
    return value
