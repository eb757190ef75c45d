import os
import sys

import pytest

# Modules live directly under src/, same as when main.py runs
SRC = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from beacon.region import BeaconRegion  # noqa: E402
from beacon.state import AppState  # noqa: E402
from ble.hardware import BeaconHardware  # noqa: E402


class FakeHardware(BeaconHardware):
    """Records requests; tests push events with emit()."""

    name = "fake"

    def __init__(self, fail_with: Exception | None = None):
        super().__init__()
        self.requests = []
        self.fail_with = fail_with

    def request(self, request):
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with


@pytest.fixture
def region():
    return BeaconRegion()


@pytest.fixture
def initial_state():
    return AppState.empty()


@pytest.fixture
def fake_hardware():
    return FakeHardware()
