"""Service layer for clipboard-god."""

from clipboard_god.services.capture_service import CaptureService
from clipboard_god.services.clipboard_service import ClipboardSampler
from clipboard_god.services.notifier import HistoryNotifier
from clipboard_god.services.paste_service import PasteService, PasteState
from clipboard_god.services.store_service import ContentStore

__all__ = [
    "CaptureService",
    "ClipboardSampler",
    "ContentStore",
    "HistoryNotifier",
    "PasteService",
    "PasteState",
]
