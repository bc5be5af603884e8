"""Flat-file history backend used when SQLite is unavailable.

The whole history lives in memory and ``history.json`` is rewritten after
every mutation by a background writer; rewrites requested while one is in
progress collapse into a single follow-up write.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from clipboard_god.database.base import PreparedItem, StorageBackend
from clipboard_god.exceptions import StorageWriteError
from clipboard_god.models import ClipboardItem, ItemType, from_millis
from clipboard_god.schemas import HistoryRecord
from clipboard_god.utils.content import decode_data_url, encode_data_url, hash_bytes, hash_text, normalize_text
from clipboard_god.utils.worker import LatestValueWorker

logger = logging.getLogger(__name__)


class JsonStorage(StorageBackend):
    name = "json"

    def __init__(self, json_path: Path, max_history: int):
        super().__init__(max_history)
        self.json_path = Path(json_path)
        self._lock = threading.RLock()
        self._entries: List[Dict[str, Any]] = []
        self._writer = LatestValueWorker(self._write_snapshot, name="history-json-writer")
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _load(self) -> None:
        if not self.json_path.exists():
            return

        try:
            raw = json.loads(self.json_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            backup = self.json_path.with_name(self.json_path.name + ".corrupt")
            logger.warning("Unreadable %s (%s), starting empty; original kept as %s",
                           self.json_path, exc, backup.name)
            try:
                os.replace(self.json_path, backup)
            except OSError as rename_exc:
                logger.warning("Could not set aside %s: %s", self.json_path, rename_exc)
            return

        if not isinstance(raw, list):
            logger.warning("Ignoring %s: expected a JSON array", self.json_path)
            return

        entries = []
        for position, value in enumerate(raw):
            try:
                record = HistoryRecord.model_validate(value)
            except ValidationError as exc:
                logger.warning("Skipping malformed history entry #%d: %s", position, exc.errors()[0]["msg"])
                continue
            content = normalize_text(record.content) if record.type is ItemType.TEXT else record.content
            content_hash = self._hash_record(record.type, content)
            if content_hash is None:
                logger.warning("Skipping history entry %s with undecodable image", record.id)
                continue
            entries.append({
                "id": record.id,
                "type": record.type,
                "content": content,
                "timestamp": record.timestamp,
                "hash": content_hash,
            })

        entries.sort(key=lambda e: e["timestamp"], reverse=True)
        self._entries = self._dedup(entries)
        logger.info("Loaded %d history item(s) from %s", len(self._entries), self.json_path)

    @staticmethod
    def _hash_record(item_type: ItemType, content: str) -> Optional[str]:
        if item_type is ItemType.TEXT:
            return hash_text(content)
        payload = decode_data_url(content)
        return hash_bytes(payload) if payload else None

    @staticmethod
    def _dedup(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        seen = set()
        unique = []
        for entry in entries:
            key = (entry["type"], entry["hash"])
            if key in seen:
                continue
            seen.add(key)
            unique.append(entry)
        return unique

    def _schedule_write(self) -> None:
        snapshot = [
            {"id": e["id"], "type": e["type"].value, "content": e["content"], "timestamp": e["timestamp"]}
            for e in self._entries
        ]
        self._writer.submit(snapshot)

    def _write_snapshot(self, snapshot: List[Dict[str, Any]]) -> None:
        tmp_path = self.json_path.with_name(self.json_path.name + ".tmp")
        try:
            self.json_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.json_path)
        except OSError as exc:
            error = StorageWriteError(f"Failed to write {self.json_path}", original_error=exc)
            logger.error("%s; in-memory history kept", error)

    def flush(self, timeout: Optional[float] = None) -> bool:
        return self._writer.flush(timeout)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, item: PreparedItem) -> Tuple[str, bool]:
        with self._lock:
            existing = next(
                (e for e in self._entries
                 if e["type"] is item.type and e["hash"] == item.content_hash),
                None,
            )
            if existing is not None:
                existing["timestamp"] = item.timestamp_ms
                self._entries.remove(existing)
                self._entries.insert(0, existing)
                self._sort()
                self._schedule_write()
                return existing["id"], True

            if item.type is ItemType.TEXT:
                content = item.text or ""
            else:
                content = encode_data_url(item.image_bytes or b"")

            self._entries.insert(0, {
                "id": item.item_id,
                "type": item.type,
                "content": content,
                "timestamp": item.timestamp_ms,
                "hash": item.content_hash,
            })
            self._sort()
            self._prune_locked()
            self._schedule_write()
            return item.item_id, False

    def _sort(self) -> None:
        # stable: among equal timestamps the most recently touched entry stays first
        self._entries.sort(key=lambda e: e["timestamp"], reverse=True)

    def _prune_locked(self) -> int:
        excess = len(self._entries) - self.max_history
        if excess <= 0:
            return 0
        del self._entries[-excess:]
        return excess

    def prune(self) -> int:
        with self._lock:
            removed = self._prune_locked()
            if removed:
                self._schedule_write()
            return removed

    def delete(self, item_id: str) -> bool:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e["id"] != item_id]
            if len(self._entries) == before:
                return False
            self._schedule_write()
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._schedule_write()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_history(self, limit: int, offset: int = 0) -> List[ClipboardItem]:
        with self._lock:
            window = self._entries[offset:offset + limit]
            return [self._to_item(e) for e in window]

    def search(self, query: str, limit: int = 100) -> List[ClipboardItem]:
        terms = [t.casefold() for t in query.split() if t.strip()]
        if not terms:
            return []
        with self._lock:
            matches = [
                e for e in self._entries
                if e["type"] is ItemType.TEXT
                and all(t in e["content"].casefold() for t in terms)
            ]
            return [self._to_item(e) for e in matches[:limit]]

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def _to_item(entry: Dict[str, Any]) -> ClipboardItem:
        return ClipboardItem(
            id=entry["id"],
            type=entry["type"],
            content=entry["content"],
            content_hash=entry["hash"],
            timestamp=from_millis(entry["timestamp"]),
        )

    def close(self) -> None:
        self._writer.stop(timeout=2.0)
