"""Screen-region capture through external tools.

Captures block on user interaction (selecting a region), so every capture is
bounded by a hard timeout and raises ``CaptureTimeoutError`` when it expires.
"""

import io
import logging
import platform
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from PIL import ImageGrab

from clipboard_god.exceptions import CaptureCancelledError, CaptureError, CaptureTimeoutError
from clipboard_god.models import AddResult, ItemType
from clipboard_god.services.store_service import ContentStore
from clipboard_god.utils.content import encode_data_url, to_png
from clipboard_god.utils.process import CommandRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_timeout(operation: Callable[[], T], timeout: float, description: str = "capture") -> T:
    """Run a blocking ``operation`` and give up after ``timeout`` seconds."""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="capture")
    future = executor.submit(operation)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        raise CaptureTimeoutError(f"{description} did not complete within {timeout:g}s") from None
    finally:
        executor.shutdown(wait=False)


class CaptureService:

    def __init__(
        self,
        store: ContentStore,
        runner: Optional[CommandRunner] = None,
        timeout: float = 30.0,
        system: Optional[str] = None,
    ) -> None:
        self.store = store
        self.runner = runner or CommandRunner()
        self.timeout = timeout
        self.system = system or platform.system()

    def region_commands(self, output: Path) -> List[List[str]]:
        """Interactive region-capture commands for this platform, in preference order."""
        target = str(output)
        if self.system == "Darwin":
            return [["screencapture", "-i", "-x", target]]
        if self.system == "Linux":
            return [
                ["gnome-screenshot", "-a", "-f", target],
                ["spectacle", "-r", "-b", "-n", "-o", target],
                ["scrot", "-s", "-o", target],
            ]
        return []

    def capture_region(self, timeout: Optional[float] = None) -> AddResult:
        """Let the user select a region, store it and return the insert result.

        Raises ``CaptureTimeoutError`` when the selection takes longer than the
        timeout and ``CaptureCancelledError`` when no image was produced.
        """
        timeout = self.timeout if timeout is None else timeout
        png = run_with_timeout(lambda: self._grab(timeout), timeout, "Screenshot capture")
        if not png:
            raise CaptureCancelledError("Screenshot capture was cancelled")
        return self.store.add_item({"type": ItemType.IMAGE, "content": encode_data_url(png)})

    def _grab(self, timeout: float) -> Optional[bytes]:
        if self.system == "Windows":
            return self._grab_windows()

        workdir = Path(tempfile.mkdtemp(prefix="clipboard-god-"))
        output = workdir / "capture.png"
        try:
            commands = [c for c in self.region_commands(output) if self.runner.which(c[0])]
            if not commands:
                raise CaptureError(f"No screenshot tool found for {self.system}")

            command = commands[0]
            logger.info("Capturing region with %s", command[0])
            result = self.runner.run(command, timeout=timeout)
            if not result.ok or not output.exists():
                logger.info("%s exited without an image (exit %s)", command[0], result.returncode)
                return None
            return to_png(output.read_bytes())
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    @staticmethod
    def _grab_windows() -> Optional[bytes]:
        image = ImageGrab.grab()
        output = io.BytesIO()
        image.save(output, format="PNG")
        return output.getvalue()
