"""Write-then-paste service.

States: ``IDLE -> WRITING -> EXECUTING -> IDLE`` on the success path and
``IDLE -> WRITING -> IDLE`` when the clipboard write fails. At most one paste
runs at a time; a concurrent request is rejected with ``BusyError`` and a
repeat of the item accepted within ``dedup_window`` seconds is absorbed as a
successful no-op.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

from clipboard_god.clipboard.base import ClipboardBackend
from clipboard_god.exceptions import BusyError, PasteExecutionError, PasteWriteError
from clipboard_god.models import ClipboardItem, ItemType, PasteResult
from clipboard_god.paste.base import PasteDriver
from clipboard_god.utils.content import image_bytes_from, to_png

logger = logging.getLogger(__name__)

PasteRequest = Union[ClipboardItem, Dict[str, Any]]
CompletionCallback = Callable[[PasteResult], None]


class PasteState(str, Enum):
    IDLE = "idle"
    WRITING = "writing"
    EXECUTING = "executing"


def _field(item: PasteRequest, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


class PasteService:

    def __init__(
        self,
        clipboard: ClipboardBackend,
        driver: PasteDriver,
        *,
        dedup_window: float = 1.0,
        suppression_window: float = 0.2,
        focus_delay: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.clipboard = clipboard
        self.driver = driver
        self.dedup_window = dedup_window
        self.suppression_window = suppression_window
        self.focus_delay = focus_delay
        self._sleep = sleep
        self._clock = clock

        self._guard = threading.Lock()
        self._paste_lock = threading.Lock()
        self._state = PasteState.IDLE
        self._last_paste: Tuple[Optional[str], float] = (None, float("-inf"))
        self._suppressed = False
        self._suppress_timer: Optional[threading.Timer] = None

    @property
    def state(self) -> PasteState:
        return self._state

    @property
    def is_suppressed(self) -> bool:
        """True while a paste is in flight and briefly afterwards."""
        return self._suppressed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def write_and_paste(
        self,
        item: PasteRequest,
        on_complete: Optional[CompletionCallback] = None,
    ) -> PasteResult:
        """Write ``item`` to the clipboard and paste it into the focused app.

        Never raises; the outcome is returned and also handed to
        ``on_complete`` when given.
        """
        item_id = _field(item, "id")
        item_id = str(item_id) if item_id is not None else None
        now = self._clock()

        rejection: Optional[PasteResult] = None
        with self._guard:
            last_id, last_time = self._last_paste
            if item_id is not None and item_id == last_id and now - last_time < self.dedup_window:
                logger.info("Ignoring duplicate paste request for %s", item_id)
                rejection = PasteResult(success=True, duplicate=True)
            elif not self._paste_lock.acquire(blocking=False):
                logger.info("Paste already in progress, rejecting request for %s", item_id)
                rejection = PasteResult.failed(BusyError("A paste is already in progress"))
            else:
                self._last_paste = (item_id, now)
                self._raise_suppression()

        if rejection is not None:
            return self._complete(rejection, on_complete)

        try:
            result = self._run(item)
        except Exception as exc:
            logger.exception("Unexpected error while pasting %s", item_id)
            result = PasteResult.failed(PasteExecutionError("Unexpected paste failure", original_error=exc))
        finally:
            self._state = PasteState.IDLE
            self._paste_lock.release()
            self._schedule_suppression_clear()

        return self._complete(result, on_complete)

    def submit(self, item: PasteRequest, on_complete: Optional[CompletionCallback] = None) -> threading.Thread:
        """Run ``write_and_paste`` on a background thread."""
        thread = threading.Thread(
            target=self.write_and_paste, args=(item, on_complete), name="paste-request", daemon=True)
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def _run(self, item: PasteRequest) -> PasteResult:
        try:
            item_type = ItemType(_field(item, "type", ItemType.TEXT))
        except ValueError as exc:
            return PasteResult.failed(PasteWriteError("Unknown item type", original_error=exc))

        self._state = PasteState.WRITING
        if self.focus_delay:
            self._sleep(self.focus_delay)
        try:
            self._write(item, item_type)
        except PasteWriteError as exc:
            logger.error("Clipboard write failed: %s", exc)
            return PasteResult.failed(exc)

        self._state = PasteState.EXECUTING
        delay = self.driver.settle_delay(item_type)
        if delay:
            self._sleep(delay)
        try:
            outcome = self.driver.paste(item_type)
        except PasteExecutionError as exc:
            logger.error("Paste failed: %s", exc)
            return PasteResult.failed(exc)

        return PasteResult(success=True, method=outcome.method, injected=outcome.injected)

    def _write(self, item: PasteRequest, item_type: ItemType) -> None:
        if item_type is ItemType.TEXT:
            content = _field(item, "content")
            if content is None:
                raise PasteWriteError("Text item has no content")
            if not self.clipboard.write_text(str(content)):
                raise PasteWriteError("Clipboard rejected text write")
            return

        source = _field(item, "content") or _field(item, "image_path")
        try:
            raw = image_bytes_from(source)
        except OSError as exc:
            raise PasteWriteError("Cannot read stored image", original_error=exc) from exc
        png = to_png(raw) if raw else None
        if png is None:
            raise PasteWriteError("Cannot decode image data for the clipboard")
        if not self.clipboard.write_image(png):
            raise PasteWriteError("Clipboard rejected image write")

    # ------------------------------------------------------------------
    # Suppression window
    # ------------------------------------------------------------------
    def _raise_suppression(self) -> None:
        if self._suppress_timer is not None:
            self._suppress_timer.cancel()
            self._suppress_timer = None
        self._suppressed = True

    def _schedule_suppression_clear(self) -> None:
        with self._guard:
            if self._suppress_timer is not None:
                self._suppress_timer.cancel()
            timer = threading.Timer(self.suppression_window, self._clear_suppression)
            timer.daemon = True
            self._suppress_timer = timer
            timer.start()

    def _clear_suppression(self) -> None:
        with self._guard:
            if self._paste_lock.locked():
                return
            self._suppressed = False
            self._suppress_timer = None

    @staticmethod
    def _complete(result: PasteResult, on_complete: Optional[CompletionCallback]) -> PasteResult:
        if on_complete is not None:
            try:
                on_complete(result)
            except Exception:
                logger.exception("Paste completion callback failed")
        return result

    def close(self) -> None:
        with self._guard:
            if self._suppress_timer is not None:
                self._suppress_timer.cancel()
                self._suppress_timer = None
            self._suppressed = False
