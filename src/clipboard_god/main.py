#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from clipboard_god.config import AppConfig
from clipboard_god.context import AppContext
from clipboard_god.models import ClipboardItem, PasteResult
from clipboard_god.services import ClipboardSampler

logger = logging.getLogger(__name__)


class ClipboardGodApp:

    def __init__(self, context: AppContext):
        self.context = context
        self.sampler: Optional[ClipboardSampler] = None
        self.running = False

    def _on_history_changed(self, history: List[ClipboardItem]):
        if history:
            logger.debug(f"History changed: {len(history)} item(s), newest {history[0].type.value}")

    def start(self):
        if self.running:
            return

        config = self.context.config
        print(f"Starting clipboard-god - storage: {config.store.storage_root} "
              f"({self.context.store.backend_name}), max history: {config.store.max_history}")

        self.running = True
        self.context.notifier.add_listener(self._on_history_changed)
        self.sampler = ClipboardSampler(
            self.context.clipboard,
            self.context.store,
            poll_interval=config.poll_interval,
            auto_start=True,
        )
        print("clipboard-god running. Press Ctrl+C to stop")

    def stop(self):
        if not self.running:
            return

        self.running = False
        if self.sampler:
            self.sampler.stop()
        self.context.notifier.remove_listener(self._on_history_changed)
        self.context.close()
        print("clipboard-god stopped")

    def run_forever(self):
        self.start()

        try:
            while self.running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            self.stop()


def _preview(item: ClipboardItem, width: int = 60) -> str:
    if item.type.value == "text":
        text = (item.content or "").replace("\n", "\\n")
        return text if len(text) <= width else text[:width - 1] + "…"
    return f"[image] {item.image_path or ''}"


def _print_items(items: List[ClipboardItem]) -> None:
    for item in items:
        print(f"{item.id}  {item.timestamp:%Y-%m-%d %H:%M:%S}  {_preview(item)}")


def _report_paste(result: PasteResult) -> int:
    if result.success:
        if result.duplicate:
            print("Duplicate paste request ignored")
        elif not result.injected:
            print(f"Item copied; paste manually ({result.method})")
        else:
            print(f"Pasted via {result.method}")
        return 0
    print(f"Paste failed ({result.error_kind}): {result.error}", file=sys.stderr)
    return 1


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="clipboard-god - local clipboard history daemon"
    )

    parser.add_argument(
        "-m", "--max-history",
        type=int,
        default=None,
        help="Maximum number of history items (default: 8000)"
    )

    parser.add_argument(
        "-s", "--storage-root",
        type=Path,
        default=None,
        help="Storage directory (default: $XDG_CACHE_HOME/clipboard-god)"
    )

    parser.add_argument(
        "-i", "--poll-interval",
        type=float,
        default=None,
        help="Clipboard polling interval in seconds (default: 1.0)"
    )

    parser.add_argument(
        "--json-store",
        action="store_true",
        help="Use the history.json backend instead of SQLite"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--history", type=int, metavar="N", help="Print the N newest items and exit")
    actions.add_argument("--search", metavar="QUERY", help="Full-text search the history and exit")
    actions.add_argument("--paste", metavar="ID", help="Write the item with this id and paste it")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    config = AppConfig.from_env(
        max_history=args.max_history,
        storage_root=args.storage_root,
        poll_interval=args.poll_interval,
        force_json_store=True if args.json_store else None,
    )
    context = AppContext.create(config)

    if args.history is not None:
        _print_items(context.store.get_history(args.history, 0))
        context.close()
        return 0

    if args.search is not None:
        _print_items(context.store.search(args.search))
        context.close()
        return 0

    if args.paste is not None:
        item = next((i for i in context.store.history if i.id == args.paste), None)
        if item is None:
            print(f"No history item with id {args.paste}", file=sys.stderr)
            context.close()
            return 1
        code = _report_paste(context.paste.write_and_paste(item))
        context.close()
        return code

    app = ClipboardGodApp(context)

    def signal_handler(signum, frame):
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run_forever()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
