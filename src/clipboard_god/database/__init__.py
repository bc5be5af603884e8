"""
History storage backends for clipboard-god.

SQLite is preferred; the JSON flat file is the fallback.
"""

from clipboard_god.database.base import PreparedItem, StorageBackend
from clipboard_god.database.json_manager import JsonStorage
from clipboard_god.database.sqlite_manager import SqliteStorage

__all__ = [
    'JsonStorage',
    'PreparedItem',
    'SqliteStorage',
    'StorageBackend',
]
