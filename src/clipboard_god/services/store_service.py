"""Content-addressed clipboard history.

``ContentStore`` hides which backend is active: SQLite when it opens, the JSON
flat file otherwise. The choice is made once, at construction.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import ulid

from clipboard_god.config import StoreConfig
from clipboard_god.database import JsonStorage, PreparedItem, SqliteStorage, StorageBackend
from clipboard_god.exceptions import StorageError, StorageInitError
from clipboard_god.models import AddResult, ClipboardItem, ItemType, to_millis
from clipboard_god.schemas import ItemCandidate
from clipboard_god.services.notifier import HistoryNotifier
from clipboard_god.utils.content import hash_bytes, hash_text, image_bytes_from, normalize_text
from clipboard_god.utils.file_manager import ImageStore

logger = logging.getLogger(__name__)


class ContentStore:

    def __init__(
        self,
        config: StoreConfig,
        notifier: Optional[HistoryNotifier] = None,
        *,
        force_json: bool = False,
    ) -> None:
        self.config = config
        self.notifier = notifier or HistoryNotifier()
        self._lock = threading.RLock()
        self.images = ImageStore(config.images_dir)
        self.backend: StorageBackend = self._open_backend(force_json)
        self._history: List[ClipboardItem] = []
        # the configured cap may be lower than the one the history was written with
        try:
            removed = self.backend.prune()
            if removed:
                logger.info("Pruned %d item(s) over max_history=%d on open", removed, config.max_history)
        except StorageError as e:
            logger.error(f"Failed to prune history on open: {e}")
        self._refresh_mirror()
        logger.info("ContentStore ready (backend=%s, items=%d, max=%d)",
                    self.backend.name, len(self._history), config.max_history)

    def _open_backend(self, force_json: bool) -> StorageBackend:
        if not force_json:
            try:
                return SqliteStorage(self.config.db_path, self.images, self.config.max_history)
            except StorageInitError as e:
                logger.warning(f"SQLite backend unavailable, falling back to JSON: {e}")
        return JsonStorage(self.config.json_path, self.config.max_history)

    @property
    def backend_name(self) -> str:
        return self.backend.name

    @property
    def history(self) -> List[ClipboardItem]:
        with self._lock:
            return list(self._history)

    def latest_item(self) -> Optional[ClipboardItem]:
        with self._lock:
            return self._history[0] if self._history else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_item(self, candidate: Union[ItemCandidate, Dict[str, Any]]) -> AddResult:
        """Insert a snapshot or move its existing twin to the front.

        Never raises: invalid candidates and storage failures come back as
        ``AddResult(success=False)`` and the history mirror is left untouched.
        """
        try:
            if not isinstance(candidate, ItemCandidate):
                candidate = ItemCandidate.model_validate(candidate)
            prepared = self._prepare(candidate)
        except ValueError as e:
            logger.warning(f"Rejected clipboard candidate: {e}")
            return AddResult.failed(e)

        with self._lock:
            try:
                item_id, existed = self.backend.add(prepared)
            except StorageError as e:
                logger.error(f"Failed to store clipboard item: {e}")
                return AddResult.failed(e)
            self._refresh_mirror()
            history = list(self._history)

        logger.debug("Stored %s item %s (existed=%s)", prepared.type.value, item_id, existed)
        self.notifier.notify(history)
        return AddResult(id=item_id, existed=existed)

    @staticmethod
    def _prepare(candidate: ItemCandidate) -> PreparedItem:
        moment = candidate.timestamp or datetime.now()
        item_id = candidate.id or str(ulid.new())

        if candidate.type is ItemType.TEXT:
            raw = candidate.content
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            text = normalize_text(text)
            return PreparedItem(
                type=ItemType.TEXT,
                content_hash=hash_text(text),
                timestamp_ms=to_millis(moment),
                item_id=item_id,
                text=text,
            )

        payload = image_bytes_from(candidate.content)
        if not payload:
            raise ValueError("image payload could not be decoded")
        return PreparedItem(
            type=ItemType.IMAGE,
            content_hash=hash_bytes(payload),
            timestamp_ms=to_millis(moment),
            item_id=item_id,
            image_bytes=payload,
        )

    def set_max_history(self, n: int) -> int:
        """Change the cap; rows over the new cap are pruned right away."""
        with self._lock:
            self.config.max_history = n
            self.backend.max_history = self.config.max_history
            try:
                removed = self.backend.prune()
            except StorageError as e:
                logger.error(f"Failed to prune after max_history change: {e}")
                return 0
            self._refresh_mirror()
            history = list(self._history)

        logger.info("max_history set to %d (%d item(s) pruned)", n, removed)
        if removed:
            self.notifier.notify(history)
        return removed

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            try:
                deleted = self.backend.delete(item_id)
            except StorageError as e:
                logger.error(f"Failed to delete item {item_id}: {e}")
                return False
            if not deleted:
                return False
            self._refresh_mirror()
            history = list(self._history)

        self.notifier.notify(history)
        return True

    def clear(self) -> bool:
        with self._lock:
            try:
                self.backend.clear()
            except StorageError as e:
                logger.error(f"Failed to clear history: {e}")
                return False
            self._refresh_mirror()

        self.notifier.notify([])
        return True

    def _refresh_mirror(self) -> None:
        try:
            self._history = self.backend.get_history(self.config.max_history, 0)
        except StorageError as e:
            logger.error(f"Keeping previous history mirror: {e}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_history(self, limit: Optional[int] = None, offset: int = 0) -> List[ClipboardItem]:
        limit = self.config.max_history if limit is None else limit
        try:
            return self.backend.get_history(limit, offset)
        except StorageError as e:
            logger.error(f"Serving history from memory: {e}")
            with self._lock:
                return list(self._history[offset:offset + limit])

    def search(self, query: str, limit: int = 100) -> List[ClipboardItem]:
        if not query or not query.strip():
            return []
        try:
            return self.backend.search(query, limit)
        except StorageError as e:
            logger.warning(f"Search unavailable: {e}")
            return []

    def count(self) -> int:
        with self._lock:
            try:
                return self.backend.count()
            except StorageError:
                return len(self._history)

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> "ContentStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
