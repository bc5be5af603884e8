import logging
import os
from typing import List, Optional

from clipboard_god.clipboard.base import IMAGE_FORMATS, TEXT_FORMATS, ClipboardBackend
from clipboard_god.utils.content import to_png
from clipboard_god.utils.process import CommandRunner

logger = logging.getLogger(__name__)


class LinuxClipboard(ClipboardBackend):
    """Clipboard through ``wl-clipboard`` on Wayland, ``xclip`` on X11."""

    _IMAGE_PREFERENCE = ("image/png", "image/jpeg", "image/bmp", "image/webp", "image/tiff")

    def __init__(self, runner: Optional[CommandRunner] = None, wayland: Optional[bool] = None):
        self.runner = runner or CommandRunner()
        if wayland is None:
            wayland = bool(os.environ.get("WAYLAND_DISPLAY")) and bool(self.runner.which("wl-paste"))
        self.wayland = wayland

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------
    def _list_command(self) -> List[str]:
        if self.wayland:
            return ["wl-paste", "--list-types"]
        return ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"]

    def _read_command(self, target: str) -> List[str]:
        if self.wayland:
            command = ["wl-paste", "--type", target]
            if target.lower().startswith("text/"):
                command.append("--no-newline")
            return command
        return ["xclip", "-selection", "clipboard", "-t", target, "-o"]

    def _write_command(self, target: str) -> List[str]:
        if self.wayland:
            return ["wl-copy", "--type", target]
        return ["xclip", "-selection", "clipboard", "-t", target, "-i"]

    def _read(self, command: List[str]) -> Optional[bytes]:
        result = self.runner.run(command, timeout=1.5)
        if not result.ok:
            return None
        return result.stdout

    # ------------------------------------------------------------------
    # ClipboardBackend
    # ------------------------------------------------------------------
    def available_formats(self) -> List[str]:
        data = self._read(self._list_command())
        if not data:
            return []
        text = data.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def read_text(self) -> Optional[str]:
        targets = self.available_formats()
        target = next((t for t in targets if t.lower() in TEXT_FORMATS), "text/plain")
        data = self._read(self._read_command(target))
        if data is None:
            return None
        return data.decode("utf-8", errors="ignore")

    def read_image(self) -> Optional[bytes]:
        targets = {t.lower(): t for t in self.available_formats()}
        for mime in self._IMAGE_PREFERENCE:
            if mime not in targets or mime not in IMAGE_FORMATS:
                continue
            data = self._read(self._read_command(targets[mime]))
            if not data:
                continue
            png = to_png(data)
            if png:
                return png
            logger.debug("Clipboard %s payload could not be decoded", mime)
        return None

    def write_text(self, text: str) -> bool:
        command = self._write_command("text/plain;charset=utf-8" if self.wayland else "UTF8_STRING")
        result = self.runner.run(command, timeout=2.0, input=text.encode("utf-8"),
                                 capture_output=False)
        if not result.ok:
            logger.warning("Clipboard text write failed (exit %s)", result.returncode)
        return result.ok

    def write_image(self, png: bytes) -> bool:
        result = self.runner.run(self._write_command("image/png"), timeout=2.0, input=png,
                                 capture_output=False)
        if not result.ok:
            logger.warning("Clipboard image write failed (exit %s)", result.returncode)
        return result.ok

    def read_selection(self) -> Optional[str]:
        if self.wayland:
            command = ["wl-paste", "--primary", "--no-newline"]
        else:
            command = ["xclip", "-selection", "primary", "-o"]
        data = self._read(command)
        return data.decode("utf-8", errors="ignore") if data is not None else None
