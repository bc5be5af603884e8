import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_EMPTY = object()


class LatestValueWorker:
    """Background thread with a single pending slot.

    ``submit`` never blocks: a value that has not been picked up yet is
    replaced by the newer one, so bursts collapse into one handler call.
    """

    def __init__(self, handler: Callable[[Any], None], name: str = "latest-value-worker") -> None:
        self._handler = handler
        self._name = name
        self._cond = threading.Condition()
        self._pending: Any = _EMPTY
        self._busy = False
        self._stopped = False
        self._thread: Optional[threading.Thread] = None

    def submit(self, value: Any) -> bool:
        with self._cond:
            if self._stopped:
                logger.debug("%s is stopped, dropping value", self._name)
                return False
            if self._pending is not _EMPTY:
                logger.debug("%s collapsing pending value", self._name)
            self._pending = value
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._thread.start()
            self._cond.notify_all()
        return True

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until the pending value (if any) has been handled."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._pending is _EMPTY and not self._busy, timeout)

    def stop(self, timeout: float = 1.0) -> None:
        """Drain the pending value, then let the thread exit."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._pending is _EMPTY and not self._stopped:
                    self._cond.wait()
                if self._pending is _EMPTY:
                    return
                value, self._pending = self._pending, _EMPTY
                self._busy = True

            try:
                self._handler(value)
            except Exception:
                logger.exception("Error in %s handler", self._name)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()
