"""Beacon actions.

Closed set of events that can change the application state: user
intents (start/stop advertising) and facts reported by the Bluetooth
hardware. Every variant is an immutable value consumed once by the
store pipeline.
"""

from dataclasses import dataclass
from typing import Union

from beacon.state import ManagerKind, ManagerStatus


@dataclass(frozen=True)
class StartAdvertising:
    pass


@dataclass(frozen=True)
class StopAdvertising:
    pass


@dataclass(frozen=True)
class GotAdvertisingAck:
    pass


@dataclass(frozen=True)
class GotManagerState:
    kind: ManagerKind
    status: ManagerStatus


@dataclass(frozen=True)
class GotSubscribedPeer:
    connected: bool
    peer: str
    characteristic: str


@dataclass(frozen=True)
class TriggerError:
    error: Union[str, BaseException]


BeaconAction = Union[
    StartAdvertising,
    StopAdvertising,
    GotAdvertisingAck,
    GotManagerState,
    GotSubscribedPeer,
    TriggerError,
]

ACTION_TYPES = (
    StartAdvertising,
    StopAdvertising,
    GotAdvertisingAck,
    GotManagerState,
    GotSubscribedPeer,
    TriggerError,
)


def describe(error: Union[str, BaseException]) -> str:
    """Human readable text for an error carried by ``TriggerError``."""
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return str(error)
