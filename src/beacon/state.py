"""Application state for the beacon daemon.

A single immutable snapshot owned by the Store. The reducer is the only
thing that produces new snapshots; everybody else just reads them.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class ManagerKind(Enum):
    """Which Bluetooth manager role reported a state change."""

    PERIPHERAL = "peripheral"
    CENTRAL = "central"


class ManagerStatus(IntEnum):
    """Bluetooth manager power/authorisation state.

    Values follow CoreBluetooth's CBManagerState raw values so backends
    can convert with ``ManagerStatus.from_raw(manager.state())``.
    """

    UNKNOWN = 0
    RESETTING = 1
    UNSUPPORTED = 2
    UNAUTHORIZED = 3
    POWERED_OFF = 4
    POWERED_ON = 5

    @classmethod
    def from_raw(cls, value: int) -> "ManagerStatus":
        try:
            return cls(int(value))
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        return _STATUS_TEXT[self]

    def __str__(self) -> str:
        return self.description


_STATUS_TEXT = {
    ManagerStatus.UNKNOWN: "Unknown",
    ManagerStatus.RESETTING: "Resetting",
    ManagerStatus.UNSUPPORTED: "Unsupported",
    ManagerStatus.UNAUTHORIZED: "Unauthorized",
    ManagerStatus.POWERED_OFF: "Powered Off",
    ManagerStatus.POWERED_ON: "Powered On",
}


# Static screen content; not part of the mutable state
APP_TITLE = "CoreBluetooth with Redux !"
APP_USAGE = "Use the toggle switch to turn on/off the CoreBluetooth Beacon."
LABEL_TOGGLE_BEACON = "Enable beacon"
LABEL_BEACON_INFO = "Broadcasting as : "
LABEL_PERIPHERAL_MANAGER_STATE = "State of peripheral manager : "
LABEL_PEER_CONNECTION = "Peer connected : "
LABEL_ERROR_INFORMATION = "Error : "


@dataclass(frozen=True)
class AppState:
    """Snapshot of everything the screen and the hardware adapter need."""

    peripheral_manager_status: ManagerStatus = ManagerStatus.UNKNOWN
    central_manager_status: ManagerStatus = ManagerStatus.UNKNOWN
    is_beacon_advertising: bool = False
    connected_peer: str = ""  # "<peer>:<characteristic>" or empty
    error: str = ""  # outcome of the previous action only

    @classmethod
    def empty(cls) -> "AppState":
        return cls()
