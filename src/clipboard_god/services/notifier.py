import logging
import threading
from typing import Callable, List, Sequence

from clipboard_god.models import ClipboardItem

logger = logging.getLogger(__name__)

HistoryListener = Callable[[List[ClipboardItem]], None]


class HistoryNotifier:
    """Fans history changes out to registered listeners, in registration order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: List[HistoryListener] = []

    def add_listener(self, listener: HistoryListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: HistoryListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                logger.debug("remove_listener: %r was not registered", listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, history: Sequence[ClipboardItem]) -> None:
        with self._lock:
            listeners = list(self._listeners)

        snapshot = list(history)
        for listener in listeners:
            try:
                listener(list(snapshot))
            except Exception:
                logger.exception("History listener %r failed", listener)
