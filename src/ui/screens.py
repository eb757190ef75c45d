"""Beacon status screen.

Renders a ViewState into a PIL Image: title and usage at the top, the
beacon toggle, manager/peer/error lines, and the beacon identity at
the bottom.
"""

import logging
from PIL import Image, ImageDraw, ImageFont

from ui.view_model import ViewState

log = logging.getLogger("beacon.ui.screens")

WIDTH = 640
HEIGHT = 320
MARGIN = 16

# Colors
BG = (0, 0, 0)
TEXT = (220, 220, 220)
TEXT_DIM = (120, 120, 120)
ACCENT = (60, 100, 255)
TOGGLE_ON = (50, 200, 80)
TOGGLE_OFF = (60, 60, 60)
ERROR_COLOR = (255, 60, 60)
SEPARATOR = (50, 50, 50)


class BeaconScreen:
    """Renders the single beacon screen."""

    def __init__(self):
        self._font: ImageFont.FreeTypeFont | None = None
        self._font_small: ImageFont.FreeTypeFont | None = None
        self._font_title: ImageFont.FreeTypeFont | None = None
        self._load_fonts()

    def _load_fonts(self) -> None:
        try:
            self._font_title = ImageFont.truetype(
                "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 22
            )
            self._font = ImageFont.truetype(
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", 14
            )
            self._font_small = ImageFont.truetype(
                "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", 11
            )
        except OSError:
            log.debug("DejaVu fonts not found, using default font")
            self._font = ImageFont.load_default()
            self._font_small = self._font
            self._font_title = self._font

    def render(self, view: ViewState) -> Image.Image:
        """Render the screen for ``view``."""
        img = Image.new("RGB", (WIDTH, HEIGHT), BG)
        draw = ImageDraw.Draw(img)

        # --- Title and usage ---
        draw.text((MARGIN, MARGIN), view.title_view.title,
                  fill=TEXT, font=self._font_title)
        draw.text((MARGIN, MARGIN + 34), view.title_view.value,
                  fill=TEXT_DIM, font=self._font_small)

        # --- Toggle ---
        self._draw_toggle(draw, MARGIN, 90, view.toggle_beacon.title,
                          view.toggle_beacon.value)

        draw.line([MARGIN, 130, WIDTH - MARGIN, 130], fill=SEPARATOR)

        # --- Status lines ---
        y = 145
        for item in (view.state_peripheral_manager, view.peer_connection):
            draw.text((MARGIN, y), item.text, fill=TEXT, font=self._font)
            y += 24

        error_color = ERROR_COLOR if view.error_information.value else TEXT_DIM
        draw.text((MARGIN, y), view.error_information.text,
                  fill=error_color, font=self._font)

        # --- Beacon identity ---
        draw.line([MARGIN, HEIGHT - 44, WIDTH - MARGIN, HEIGHT - 44], fill=SEPARATOR)
        draw.text((MARGIN, HEIGHT - 32), view.beacon_info.text,
                  fill=ACCENT, font=self._font_small)

        return img

    def _draw_toggle(self, draw: ImageDraw.ImageDraw, x: int, y: int,
                     label: str, on: bool) -> None:
        """Switch on the right, label on the left."""
        draw.text((x, y + 4), label, fill=TEXT, font=self._font)

        sw_w, sw_h = 52, 26
        sw_x = WIDTH - MARGIN - sw_w
        draw.rounded_rectangle([sw_x, y, sw_x + sw_w, y + sw_h], radius=sw_h // 2,
                               fill=TOGGLE_ON if on else TOGGLE_OFF)
        knob_x = sw_x + sw_w - sw_h if on else sw_x
        draw.ellipse([knob_x + 3, y + 3, knob_x + sw_h - 3, y + sw_h - 3], fill=TEXT)

    def save(self, view: ViewState, path: str) -> None:
        self.render(view).save(path)
        log.debug("Screen saved to %s", path)
