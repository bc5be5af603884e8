import logging
import os
import platform
from typing import Mapping, Optional

from clipboard_god.paste.base import PasteDriver
from clipboard_god.utils.process import CommandRunner

logger = logging.getLogger(__name__)


def detect_session(system: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return one of ``macos``, ``windows``, ``wayland`` or ``x11``."""
    system = system or platform.system()
    environ = os.environ if environ is None else environ

    if system == "Darwin":
        return "macos"
    if system == "Windows":
        return "windows"
    if system == "Linux":
        session_type = environ.get("XDG_SESSION_TYPE", "").lower()
        if session_type == "wayland" or (environ.get("WAYLAND_DISPLAY") and session_type != "x11"):
            return "wayland"
        return "x11"
    raise NotImplementedError(f"Platform '{system}' is not supported")


def get_paste_driver(
    runner: Optional[CommandRunner] = None,
    session: Optional[str] = None,
) -> PasteDriver:
    session = session or detect_session()
    logger.debug("Selecting paste driver for session %s", session)

    if session == "macos":
        from clipboard_god.paste.macos import MacOSPasteDriver
        return MacOSPasteDriver(runner)
    elif session == "windows":
        from clipboard_god.paste.windows import WindowsPasteDriver
        return WindowsPasteDriver(runner)
    elif session == "wayland":
        from clipboard_god.paste.linux import WaylandPasteDriver
        return WaylandPasteDriver(runner)
    elif session == "x11":
        from clipboard_god.paste.linux import X11PasteDriver
        return X11PasteDriver(runner)
    else:
        raise NotImplementedError(f"Paste session '{session}' is not supported")
