"""Pure reducer: (action, state) -> new state.

Never touches hardware. Anything with a side effect happens in the
middleware before the action gets here.
"""

from dataclasses import replace
from typing import assert_never

from beacon.actions import (
    BeaconAction,
    GotAdvertisingAck,
    GotManagerState,
    GotSubscribedPeer,
    StartAdvertising,
    StopAdvertising,
    TriggerError,
    describe,
)
from beacon.state import AppState, ManagerKind


def reduce(action: BeaconAction, state: AppState) -> AppState:
    """Return the state that results from applying ``action`` to ``state``.

    Every variant clears ``error`` except ``TriggerError``, which sets it.
    Anything outside the action union fails ``assert_never``.
    """
    match action:
        case GotAdvertisingAck():
            return replace(state, is_beacon_advertising=True, error="")

        case GotManagerState(kind=kind, status=status):
            if kind is ManagerKind.PERIPHERAL:
                return replace(state, peripheral_manager_status=status, error="")
            return replace(state, central_manager_status=status, error="")

        case GotSubscribedPeer(connected=connected, peer=peer, characteristic=char):
            connected_peer = f"{peer}:{char}" if connected else ""
            return replace(state, connected_peer=connected_peer, error="")

        case TriggerError(error=error):
            return replace(state, error=describe(error))

        case StartAdvertising() | StopAdvertising():
            # The hardware side of these is the middleware's job
            return replace(state, error="")

        case _:
            assert_never(action)
