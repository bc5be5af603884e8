"""Linux paste drivers.

Images paste with ``ctrl+v``; text uses ``ctrl+shift+v`` so terminals accept
it as well. ``ydotool`` works with raw evdev key codes (29 ctrl, 42 shift,
47 v).
"""

from typing import List

from clipboard_god.models import ItemType
from clipboard_god.paste.base import PasteDriver, PasteMethod

_CTRL, _SHIFT, _V = 29, 42, 47


def key_combination(item_type: ItemType) -> str:
    return "ctrl+v" if item_type is ItemType.IMAGE else "ctrl+shift+v"


def _xdotool_key(combo: str) -> PasteMethod:
    return PasteMethod("xdotool-key", ("xdotool", "key", combo), requires="xdotool")


def _xdotool_sequence(combo: str) -> PasteMethod:
    if combo == "ctrl+shift+v":
        command = ("xdotool", "keydown", "ctrl", "keydown", "shift", "key", "v",
                   "keyup", "shift", "keyup", "ctrl")
    else:
        command = ("xdotool", "keydown", "ctrl", "key", "v", "keyup", "ctrl")
    return PasteMethod("xdotool-keydown", command, requires="xdotool")


def _ydotool_keycodes(combo: str) -> PasteMethod:
    if combo == "ctrl+shift+v":
        codes = (f"{_CTRL}:1", f"{_SHIFT}:1", f"{_V}:1", f"{_V}:0", f"{_SHIFT}:0", f"{_CTRL}:0")
    else:
        codes = (f"{_CTRL}:1", f"{_V}:1", f"{_V}:0", f"{_CTRL}:0")
    return PasteMethod("ydotool", ("ydotool", "key") + codes, requires="ydotool")


_WAYLAND_MANUAL = PasteMethod("wl-clipboard-manual", None, requires="wl-paste")


class X11PasteDriver(PasteDriver):
    name = "x11"

    def methods(self, item_type: ItemType) -> List[PasteMethod]:
        combo = key_combination(item_type)
        return [
            _xdotool_key(combo),
            _xdotool_sequence(combo),
            _ydotool_keycodes(combo),
            _WAYLAND_MANUAL,
        ]

    def settle_delay(self, item_type: ItemType) -> float:
        return 0.5 if item_type is ItemType.IMAGE else 0.1


class WaylandPasteDriver(X11PasteDriver):
    """xdotool only reaches XWayland clients, so ydotool goes first."""

    name = "wayland"

    def methods(self, item_type: ItemType) -> List[PasteMethod]:
        combo = key_combination(item_type)
        return [
            _ydotool_keycodes(combo),
            _xdotool_key(combo),
            _xdotool_sequence(combo),
            _WAYLAND_MANUAL,
        ]
