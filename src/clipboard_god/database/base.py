from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from clipboard_god.models import ClipboardItem, ItemType


@dataclass(frozen=True)
class PreparedItem:
    """Normalized, hashed candidate ready to be persisted."""
    type: ItemType
    content_hash: str
    timestamp_ms: int
    item_id: str
    text: Optional[str] = None
    image_bytes: Optional[bytes] = None


class StorageBackend(ABC):
    """Contract shared by the SQLite and JSON history backends.

    Mutating methods raise ``StorageWriteError``; reads raise ``StorageError``.
    """

    name = "abstract"

    def __init__(self, max_history: int):
        self.max_history = max_history

    @abstractmethod
    def add(self, item: PreparedItem) -> Tuple[str, bool]:
        """Insert ``item`` or refresh the timestamp of its twin; prune after insert.

        Returns ``(item_id, existed)``.
        """

    @abstractmethod
    def get_history(self, limit: int, offset: int = 0) -> List[ClipboardItem]:
        pass

    @abstractmethod
    def search(self, query: str, limit: int = 100) -> List[ClipboardItem]:
        pass

    @abstractmethod
    def prune(self) -> int:
        """Drop the oldest rows beyond ``max_history``; returns the number removed."""

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def close(self) -> None:
        pass
