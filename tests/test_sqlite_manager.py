import sqlite3

import pytest

from clipboard_god.database import PreparedItem, SqliteStorage
from clipboard_god.models import ItemType
from clipboard_god.utils.content import hash_text
from clipboard_god.utils.file_manager import ImageStore


def text_item(text, ts):
    return PreparedItem(
        type=ItemType.TEXT,
        content_hash=hash_text(text),
        timestamp_ms=ts,
        item_id=f"id-{ts}",
        text=text,
    )


@pytest.fixture
def images(tmp_path):
    return ImageStore(tmp_path / "images")


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db.sqlite"


@pytest.fixture
def storage(db_path, images):
    backend = SqliteStorage(db_path, images, max_history=50)
    yield backend
    backend.close()


def test_schema_and_wal(storage, db_path):
    conn = sqlite3.connect(str(db_path))
    try:
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        columns = {row[1] for row in conn.execute("PRAGMA table_info(history)")}
    finally:
        conn.close()

    assert mode.lower() == "wal"
    assert {"id", "type", "content", "image_path", "image_thumb", "hash", "timestamp"} <= columns


def test_missing_thumbnail_column_is_added(db_path, images):
    conn = sqlite3.connect(str(db_path))
    conn.executescript("""
        CREATE TABLE history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            item_id TEXT,
            type TEXT NOT NULL,
            content TEXT,
            image_path TEXT,
            hash TEXT,
            timestamp INTEGER,
            meta TEXT
        );
        INSERT INTO history (item_id, type, content, hash, timestamp) VALUES ('legacy', 'text', 'from v1', 'h', 1);
    """)
    conn.close()

    backend = SqliteStorage(db_path, images, max_history=50)
    try:
        [item] = backend.get_history(10)
        assert item.id == "legacy"
        assert item.image_thumb_path is None
    finally:
        backend.close()


def test_ordering_breaks_ties_by_insertion(storage):
    storage.add(text_item("first", 100))
    storage.add(PreparedItem(ItemType.TEXT, hash_text("second"), 100, "id-second", text="second"))

    assert [i.content for i in storage.get_history(10)] == ["second", "first"]


def test_fts_search_and_cleanup_on_prune(db_path, images):
    backend = SqliteStorage(db_path, images, max_history=2)
    try:
        if not backend.has_fts:
            pytest.skip("SQLite built without FTS5")
        backend.add(text_item("needle in haystack", 1))
        backend.add(text_item("plain hay", 2))
        assert [i.content for i in backend.search("needle")] == ["needle in haystack"]

        backend.add(text_item("another entry", 3))
        assert backend.search("needle") == []
        assert backend.count() == 2
    finally:
        backend.close()


def test_bad_fts_query_returns_empty(storage):
    storage.add(text_item("anything", 1))
    assert storage.search('"unbalanced') == []


def test_delete_by_item_id(storage):
    storage.add(text_item("bye", 1))
    assert storage.delete("id-1")
    assert not storage.delete("id-1")
    assert storage.count() == 0


def test_closed_storage_raises_storage_error(db_path, images):
    from clipboard_god.exceptions import StorageError, StorageWriteError

    backend = SqliteStorage(db_path, images, max_history=5)
    backend.close()

    with pytest.raises(StorageWriteError):
        backend.add(text_item("late", 1))
    with pytest.raises(StorageError):
        backend.get_history(5)
