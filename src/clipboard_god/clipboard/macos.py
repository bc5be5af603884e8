import logging
from typing import List, Optional

try:
    from AppKit import NSPasteboard, NSPasteboardTypePNG, NSPasteboardTypeString, NSPasteboardTypeTIFF
    from Foundation import NSData
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

from clipboard_god.clipboard.base import IMAGE_FORMAT, TEXT_FORMAT, ClipboardBackend
from clipboard_god.utils.content import to_png

logger = logging.getLogger(__name__)


class MacOSClipboard(ClipboardBackend):

    def _pasteboard(self):
        if not HAS_APPKIT:
            return None
        return NSPasteboard.generalPasteboard()

    def available_formats(self) -> List[str]:
        pasteboard = self._pasteboard()
        if pasteboard is None:
            return []
        types = pasteboard.types() or []
        formats = []
        if NSPasteboardTypeString in types:
            formats.append(TEXT_FORMAT)
        if NSPasteboardTypePNG in types:
            formats.append(IMAGE_FORMAT)
        elif NSPasteboardTypeTIFF in types:
            formats.append("image/tiff")
        return formats

    def read_text(self) -> Optional[str]:
        pasteboard = self._pasteboard()
        if pasteboard is None:
            return None
        try:
            text = pasteboard.stringForType_(NSPasteboardTypeString)
        except Exception:
            logger.debug("NSPasteboard string read failed", exc_info=True)
            return None
        return str(text) if text is not None else None

    def read_image(self) -> Optional[bytes]:
        pasteboard = self._pasteboard()
        if pasteboard is None:
            return None
        for pb_type in (NSPasteboardTypePNG, NSPasteboardTypeTIFF):
            try:
                data = pasteboard.dataForType_(pb_type)
            except Exception:
                logger.debug("NSPasteboard %s read failed", pb_type, exc_info=True)
                continue
            if data:
                png = to_png(bytes(data))
                if png:
                    return png
        return None

    def write_text(self, text: str) -> bool:
        pasteboard = self._pasteboard()
        if pasteboard is None:
            return False
        try:
            pasteboard.clearContents()
            return bool(pasteboard.setString_forType_(text, NSPasteboardTypeString))
        except Exception:
            logger.warning("NSPasteboard text write failed", exc_info=True)
            return False

    def write_image(self, png: bytes) -> bool:
        pasteboard = self._pasteboard()
        if pasteboard is None:
            return False
        try:
            data = NSData.dataWithBytes_length_(png, len(png))
            pasteboard.clearContents()
            return bool(pasteboard.setData_forType_(data, NSPasteboardTypePNG))
        except Exception:
            logger.warning("NSPasteboard image write failed", exc_info=True)
            return False
