from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ItemType(str, Enum):
    TEXT = "text"
    IMAGE = "image"


def to_millis(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


def from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000)


@dataclass(frozen=True)
class ClipboardItem:
    """Immutable history snapshot. Image bytes are never held inline."""
    id: str
    type: ItemType
    content: Optional[str]
    content_hash: Optional[str]
    timestamp: datetime
    image_path: Optional[str] = None
    image_thumb_path: Optional[str] = None


@dataclass(frozen=True)
class AddResult:
    id: Optional[str]
    existed: bool = False
    success: bool = True
    error: Optional[Exception] = None

    @classmethod
    def failed(cls, error: Exception) -> "AddResult":
        return cls(id=None, existed=False, success=False, error=error)


@dataclass(frozen=True)
class PasteResult:
    """Outcome of one write-then-paste request.

    ``duplicate`` marks a request absorbed by the repeat-trigger window.
    ``injected`` is False when delivery resolved without a keystroke and the
    user has to paste manually.
    """
    success: bool
    error: Optional[Exception] = None
    method: Optional[str] = None
    injected: bool = False
    duplicate: bool = False

    @classmethod
    def failed(cls, error: Exception) -> "PasteResult":
        return cls(success=False, error=error)

    @property
    def error_kind(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None

    def to_event(self) -> Dict[str, Any]:
        event: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            event["error"] = str(self.error)
        return event
