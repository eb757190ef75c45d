from PIL import Image

from beacon.state import AppState, ManagerStatus
from ui.screens import HEIGHT, WIDTH, BeaconScreen
from ui.view_model import project


def test_render_size_and_mode(region):
    img = BeaconScreen().render(project(AppState(), region))
    assert img.size == (WIDTH, HEIGHT)
    assert img.mode == "RGB"


def test_toggle_colour_follows_state(region):
    screen = BeaconScreen()
    off = screen.render(project(AppState(), region))
    on = screen.render(project(AppState(is_beacon_advertising=True), region))
    assert off.tobytes() != on.tobytes()


def test_save_png(region, tmp_path):
    path = tmp_path / "screen.png"
    state = AppState(peripheral_manager_status=ManagerStatus.POWERED_ON, error="boom")
    BeaconScreen().save(project(state, region), str(path))
    with Image.open(path) as img:
        assert img.size == (WIDTH, HEIGHT)
