import logging
from dataclasses import dataclass
from typing import Optional

from clipboard_god.clipboard import ClipboardBackend, get_clipboard
from clipboard_god.config import AppConfig
from clipboard_god.paste import PasteDriver, get_paste_driver
from clipboard_god.services import CaptureService, ContentStore, HistoryNotifier, PasteService
from clipboard_god.utils.process import CommandRunner

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything the components share, built once at startup."""

    config: AppConfig
    runner: CommandRunner
    notifier: HistoryNotifier
    store: ContentStore
    clipboard: ClipboardBackend
    paste: PasteService
    capture: CaptureService

    @classmethod
    def create(
        cls,
        config: AppConfig,
        *,
        clipboard: Optional[ClipboardBackend] = None,
        runner: Optional[CommandRunner] = None,
        paste_driver: Optional[PasteDriver] = None,
    ) -> "AppContext":
        runner = runner or CommandRunner()
        notifier = HistoryNotifier()
        store = ContentStore(config.store, notifier, force_json=config.force_json_store)
        clipboard = clipboard or get_clipboard(runner)
        driver = paste_driver or get_paste_driver(runner)
        logger.info("Using %s clipboard, %s paste driver",
                    type(clipboard).__name__, driver.name)

        paste = PasteService(
            clipboard,
            driver,
            dedup_window=config.paste_dedup_window,
            suppression_window=config.suppression_window,
        )
        capture = CaptureService(store, runner, timeout=config.capture_timeout)
        return cls(
            config=config,
            runner=runner,
            notifier=notifier,
            store=store,
            clipboard=clipboard,
            paste=paste,
            capture=capture,
        )

    def close(self) -> None:
        self.paste.close()
        self.store.close()
