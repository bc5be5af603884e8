"""SQLite history backend.

Layout of ``db.sqlite``::

    history(id, item_id, type, content, image_path, image_thumb, hash, timestamp, meta)
    history_fts(content)   -- FTS5, rowid == history.id, text rows only

Every mutation (dedup lookup, insert, FTS row, prune) runs inside one
``BEGIN IMMEDIATE`` transaction. Orphaned image files are collected after the
transaction commits.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from clipboard_god.database.base import PreparedItem, StorageBackend
from clipboard_god.exceptions import StorageError, StorageInitError, StorageWriteError
from clipboard_god.models import ClipboardItem, ItemType, from_millis
from clipboard_god.utils.file_manager import ImageStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id TEXT,
    type TEXT NOT NULL,
    content TEXT,
    image_path TEXT,
    image_thumb TEXT,
    hash TEXT,
    timestamp INTEGER,
    meta TEXT
);
CREATE INDEX IF NOT EXISTS idx_history_timestamp ON history(timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_history_hash ON history(hash);
"""

_COLUMNS = "id, item_id, type, content, image_path, image_thumb, hash, timestamp"


class SqliteStorage(StorageBackend):
    name = "sqlite"

    def __init__(self, db_path: Path, images: ImageStore, max_history: int):
        super().__init__(max_history)
        self.db_path = Path(db_path)
        self.images = images
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        self.has_fts = False

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._setup()
        except (sqlite3.Error, OSError) as exc:
            self.close()
            raise StorageInitError(f"Cannot open {self.db_path}", original_error=exc) from exc

        self._collect_garbage()

    def _setup(self) -> None:
        conn = self._conn
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.executescript(_SCHEMA)
        self._ensure_column("history", "image_thumb", "TEXT")
        try:
            conn.execute(
                'CREATE VIRTUAL TABLE IF NOT EXISTS history_fts USING fts5(content, tokenize="unicode61")')
            self.has_fts = True
        except sqlite3.OperationalError as exc:
            logger.warning("FTS5 not available in this SQLite build, search disabled: %s", exc)
            self.has_fts = False

    def _ensure_column(self, table: str, column: str, definition: str) -> None:
        columns = {row["name"] for row in self._conn.execute(f"PRAGMA table_info({table})")}
        if column not in columns:
            logger.info("Migrating %s: adding column %s", table, column)
            self._conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("database is closed")
        return self._conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, item: PreparedItem) -> Tuple[str, bool]:
        image_path = image_thumb = None
        if item.type is ItemType.IMAGE:
            try:
                saved, thumb = self.images.save_image(item.image_bytes or b"", item.content_hash)
            except OSError as exc:
                raise StorageWriteError("Failed to write image blob", original_error=exc) from exc
            image_path = str(saved)
            image_thumb = str(thumb) if thumb else None

        try:
            with self._transaction() as conn:
                existing = conn.execute(
                    "SELECT id, item_id FROM history WHERE hash = ? AND type = ?",
                    (item.content_hash, item.type.value),
                ).fetchone()
                if existing:
                    if item.type is ItemType.IMAGE:
                        conn.execute(
                            "UPDATE history SET timestamp = ?, image_path = ?, image_thumb = ? WHERE id = ?",
                            (item.timestamp_ms, image_path, image_thumb, existing["id"]),
                        )
                    else:
                        conn.execute(
                            "UPDATE history SET timestamp = ? WHERE id = ?",
                            (item.timestamp_ms, existing["id"]),
                        )
                    return existing["item_id"] or str(existing["id"]), True

                cursor = conn.execute(
                    "INSERT INTO history (item_id, type, content, image_path, image_thumb, hash, timestamp, meta) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, NULL)",
                    (item.item_id, item.type.value, item.text, image_path, image_thumb,
                     item.content_hash, item.timestamp_ms),
                )
                if self.has_fts and item.type is ItemType.TEXT:
                    conn.execute(
                        "INSERT INTO history_fts(rowid, content) VALUES (?, ?)",
                        (cursor.lastrowid, item.text or ""),
                    )
                removed = self._prune_in(conn)
        except sqlite3.Error as exc:
            raise StorageWriteError("Failed to insert history row", original_error=exc) from exc

        if removed:
            self._collect_garbage()
        return item.item_id, False

    def prune(self) -> int:
        try:
            with self._transaction() as conn:
                removed = self._prune_in(conn)
        except sqlite3.Error as exc:
            raise StorageWriteError("Failed to prune history", original_error=exc) from exc
        if removed:
            self._collect_garbage()
        return removed

    def _prune_in(self, conn: sqlite3.Connection) -> int:
        count = conn.execute("SELECT COUNT(*) FROM history").fetchone()[0]
        excess = count - self.max_history
        if excess <= 0:
            return 0

        rows = conn.execute(
            "SELECT id FROM history ORDER BY timestamp ASC, id ASC LIMIT ?", (excess,)
        ).fetchall()
        ids = [row["id"] for row in rows]
        self._delete_rows(conn, ids)
        logger.debug("Pruned %d history row(s) over cap %d", len(ids), self.max_history)
        return len(ids)

    def _delete_rows(self, conn: sqlite3.Connection, ids: List[int]) -> None:
        if not ids:
            return
        placeholders = ",".join("?" for _ in ids)
        conn.execute(f"DELETE FROM history WHERE id IN ({placeholders})", ids)
        if self.has_fts:
            conn.execute(f"DELETE FROM history_fts WHERE rowid IN ({placeholders})", ids)

    def delete(self, item_id: str) -> bool:
        try:
            with self._transaction() as conn:
                rows = conn.execute(
                    "SELECT id FROM history WHERE item_id = ?", (item_id,)).fetchall()
                self._delete_rows(conn, [row["id"] for row in rows])
        except sqlite3.Error as exc:
            raise StorageWriteError(f"Failed to delete item {item_id}", original_error=exc) from exc
        if rows:
            self._collect_garbage()
        return bool(rows)

    def clear(self) -> None:
        try:
            with self._transaction() as conn:
                conn.execute("DELETE FROM history")
                if self.has_fts:
                    conn.execute("DELETE FROM history_fts")
        except sqlite3.Error as exc:
            raise StorageWriteError("Failed to clear history", original_error=exc) from exc
        self._collect_garbage()

    def _collect_garbage(self) -> int:
        try:
            with self._lock:
                rows = self._connection().execute(
                    "SELECT DISTINCT hash FROM history WHERE type = ? AND hash IS NOT NULL",
                    (ItemType.IMAGE.value,),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Skipping image garbage collection: %s", exc)
            return 0
        return self.images.collect_garbage(row["hash"] for row in rows)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_history(self, limit: int, offset: int = 0) -> List[ClipboardItem]:
        try:
            with self._lock:
                rows = self._connection().execute(
                    f"SELECT {_COLUMNS} FROM history ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError("Failed to read history", original_error=exc) from exc
        return [self._row_to_item(row) for row in rows]

    def search(self, query: str, limit: int = 100) -> List[ClipboardItem]:
        if not self.has_fts:
            return []
        try:
            with self._lock:
                rows = self._connection().execute(
                    "SELECT h.id, h.item_id, h.type, h.content, h.image_path, h.image_thumb, h.hash, h.timestamp "
                    "FROM history h JOIN history_fts ON history_fts.rowid = h.id "
                    "WHERE history_fts MATCH ? ORDER BY h.timestamp DESC LIMIT ?",
                    (query, limit),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("Search failed for %r: %s", query, exc)
            return []
        return [self._row_to_item(row) for row in rows]

    def count(self) -> int:
        try:
            with self._lock:
                return self._connection().execute("SELECT COUNT(*) FROM history").fetchone()[0]
        except sqlite3.Error as exc:
            raise StorageError("Failed to count history", original_error=exc) from exc

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> ClipboardItem:
        item_type = ItemType(row["type"])
        is_image = item_type is ItemType.IMAGE
        return ClipboardItem(
            id=row["item_id"] or str(row["id"]),
            type=item_type,
            content=row["image_path"] if is_image else row["content"],
            content_hash=row["hash"],
            timestamp=from_millis(row["timestamp"] or 0),
            image_path=row["image_path"] if is_image else None,
            image_thumb_path=row["image_thumb"] if is_image else None,
        )

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                except sqlite3.Error as exc:
                    logger.warning("Error closing %s: %s", self.db_path, exc)
                self._conn = None
