"""Clipboard sampler for clipboard-god.

Polls the OS clipboard on a background timer thread and records genuine
changes in the ``ContentStore``. A tick only compares against the newest
stored item (or the change still queued for storage), so a value that was
displaced from the top of the history reappears there when copied again (the
store collapses it onto the existing row and refreshes its timestamp). A
change whose write failed is picked up again on the next tick.
"""

import logging
import threading
from datetime import datetime
from typing import Optional, Tuple

from clipboard_god.clipboard.base import ClipboardBackend, has_image, has_text
from clipboard_god.models import ItemType
from clipboard_god.schemas import ItemCandidate
from clipboard_god.services.store_service import ContentStore
from clipboard_god.utils.content import encode_data_url, hash_bytes, hash_text, normalize_text
from clipboard_god.utils.worker import LatestValueWorker

logger = logging.getLogger(__name__)

Snapshot = Tuple[ItemType, str]


class ClipboardSampler:
    """Samples the clipboard every ``poll_interval`` seconds."""

    def __init__(
        self,
        clipboard: ClipboardBackend,
        store: ContentStore,
        poll_interval: float = 1.0,
        auto_start: bool = False,
    ) -> None:
        self.clipboard = clipboard
        self.store = store
        self.poll_interval = poll_interval
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._is_running = False
        self._writer = LatestValueWorker(self._persist, name="clipboard-sampler-writer")

        # submitted to the writer but not yet handled by the store
        self._pending: Optional[Snapshot] = None

        if auto_start:
            self.start()

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ---------------------------------------------------------------------
    # Lifecycle management
    # ---------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._is_running:
                logger.debug("ClipboardSampler already running")
                return

            logger.info("Starting ClipboardSampler (interval=%ss)", self.poll_interval)
            self._stop_event.clear()
            self._is_running = True
            self._poll_thread = threading.Thread(
                target=self._poll_loop, name="clipboard-sampler", daemon=True)
            self._poll_thread.start()

    def stop(self) -> None:
        """Stop polling. Safe to call repeatedly or before ``start``."""
        with self._lock:
            if not self._is_running:
                return

            logger.info("Stopping ClipboardSampler")
            self._is_running = False
            self._stop_event.set()

        # join thread outside the lock
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=max(1.0, self.poll_interval * 2))
            self._poll_thread = None
        self._writer.flush(timeout=2.0)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for the store write triggered by the last change."""
        return self._writer.flush(timeout)

    # ---------------------------------------------------------------------
    # Sampling
    # ---------------------------------------------------------------------
    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Error while sampling the clipboard")
            self._stop_event.wait(self.poll_interval)

    def poll_once(self) -> bool:
        """Sample once; returns True when a change was detected and queued."""
        observed = self._read_clipboard()
        if observed is None:
            return False

        snapshot, candidate = observed
        with self._lock:
            if snapshot == self._reference():
                return False
            self._pending = snapshot

        logger.info("Clipboard changed: %s", candidate.type.value)
        self._writer.submit((snapshot, candidate))
        return True

    def _reference(self) -> Optional[Snapshot]:
        if self._pending is not None:
            return self._pending
        latest = self.store.latest_item()
        if latest is None or not latest.content_hash:
            return None
        return latest.type, latest.content_hash

    def _read_clipboard(self) -> Optional[Tuple[Snapshot, ItemCandidate]]:
        formats = self.clipboard.available_formats()
        if not formats:
            return None

        if has_text(formats):
            text = self.clipboard.read_text()
            normalized = normalize_text(text or "")
            if not normalized:
                return None
            candidate = ItemCandidate(type=ItemType.TEXT, content=normalized, timestamp=datetime.now())
            return (ItemType.TEXT, hash_text(normalized)), candidate

        if has_image(formats):
            png = self.clipboard.read_image()
            if not png:
                return None
            candidate = ItemCandidate(
                type=ItemType.IMAGE, content=encode_data_url(png), timestamp=datetime.now())
            return (ItemType.IMAGE, hash_bytes(png)), candidate

        return None

    def _persist(self, change: Tuple[Snapshot, ItemCandidate]) -> None:
        snapshot, candidate = change
        try:
            result = self.store.add_item(candidate)
        finally:
            with self._lock:
                if self._pending == snapshot:
                    self._pending = None
        if not result.success:
            logger.warning("Clipboard change not stored, retrying next tick: %s", result.error)

    # ---------------------------------------------------------------------
    # Context manager helpers
    # ---------------------------------------------------------------------
    def __enter__(self) -> "ClipboardSampler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
