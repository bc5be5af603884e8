from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

TEXT_FORMAT = "text/plain"
IMAGE_FORMAT = "image/png"

TEXT_FORMATS = frozenset({
    "text/plain",
    "text/plain;charset=utf-8",
    "text/plain;charset=utf8",
    "utf8_string",
    "string",
})
IMAGE_FORMATS = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/bmp",
    "image/webp",
    "image/tiff",
})


def has_text(formats: Iterable[str]) -> bool:
    return any(f.lower() in TEXT_FORMATS for f in formats)


def has_image(formats: Iterable[str]) -> bool:
    return any(f.lower() in IMAGE_FORMATS for f in formats)


class ClipboardBackend(ABC):
    """OS clipboard access. Implementations report failure as ``None``/``False``."""

    @abstractmethod
    def available_formats(self) -> List[str]:
        pass

    @abstractmethod
    def read_text(self) -> Optional[str]:
        pass

    @abstractmethod
    def read_image(self) -> Optional[bytes]:
        """Current clipboard image encoded as PNG."""

    @abstractmethod
    def write_text(self, text: str) -> bool:
        pass

    @abstractmethod
    def write_image(self, png: bytes) -> bool:
        pass

    def read_selection(self) -> Optional[str]:
        """Primary selection buffer, where the platform has one."""
        return None
