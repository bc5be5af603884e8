import io
import logging
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

import win32clipboard as wc
import win32con
from PIL import Image, ImageGrab

from clipboard_god.clipboard.base import IMAGE_FORMAT, TEXT_FORMAT, ClipboardBackend

logger = logging.getLogger(__name__)


class WindowsClipboard(ClipboardBackend):

    @contextmanager
    def _opened(self) -> Iterator[bool]:
        # another process may hold the clipboard for a few milliseconds
        opened = False
        for _ in range(3):
            try:
                wc.OpenClipboard()
                opened = True
                break
            except Exception:
                time.sleep(0.05)
        try:
            yield opened
        finally:
            if opened:
                try:
                    wc.CloseClipboard()
                except Exception:
                    logger.debug("CloseClipboard failed", exc_info=True)

    def available_formats(self) -> List[str]:
        formats = []
        with self._opened() as opened:
            if not opened:
                return formats
            if wc.IsClipboardFormatAvailable(win32con.CF_UNICODETEXT):
                formats.append(TEXT_FORMAT)
            if (wc.IsClipboardFormatAvailable(win32con.CF_DIB)
                    or wc.IsClipboardFormatAvailable(win32con.CF_BITMAP)):
                formats.append(IMAGE_FORMAT)
        return formats

    def read_text(self) -> Optional[str]:
        with self._opened() as opened:
            if not opened or not wc.IsClipboardFormatAvailable(win32con.CF_UNICODETEXT):
                return None
            try:
                return wc.GetClipboardData(win32con.CF_UNICODETEXT)
            except Exception:
                logger.debug("CF_UNICODETEXT read failed", exc_info=True)
                return None

    def read_image(self) -> Optional[bytes]:
        try:
            grabbed = ImageGrab.grabclipboard()
        except Exception:
            logger.debug("ImageGrab.grabclipboard failed", exc_info=True)
            return None
        if not isinstance(grabbed, Image.Image):
            return None
        output = io.BytesIO()
        grabbed.save(output, format="PNG")
        return output.getvalue()

    def write_text(self, text: str) -> bool:
        with self._opened() as opened:
            if not opened:
                return False
            try:
                wc.EmptyClipboard()
                wc.SetClipboardData(win32con.CF_UNICODETEXT, text)
                return True
            except Exception:
                logger.warning("Clipboard text write failed", exc_info=True)
                return False

    def write_image(self, png: bytes) -> bool:
        try:
            with Image.open(io.BytesIO(png)) as image:
                output = io.BytesIO()
                image.convert("RGB").save(output, format="BMP")
        except OSError:
            logger.warning("Image could not be converted for the clipboard", exc_info=True)
            return False
        dib = output.getvalue()[14:]  # strip BITMAPFILEHEADER

        with self._opened() as opened:
            if not opened:
                return False
            try:
                wc.EmptyClipboard()
                wc.SetClipboardData(win32con.CF_DIB, dib)
                return True
            except Exception:
                logger.warning("Clipboard image write failed", exc_info=True)
                return False
