import threading
import time
from pathlib import Path

import pytest
from PIL import Image

from clipboard_god.exceptions import CaptureCancelledError, CaptureError, CaptureTimeoutError
from clipboard_god.models import ItemType
from clipboard_god.services import CaptureService
from clipboard_god.services import capture_service
from clipboard_god.services.capture_service import run_with_timeout
from clipboard_god.utils.process import CommandResult

from conftest import FakeRunner, make_png


class ScreenshotRunner(FakeRunner):
    """Pretends to be an interactive screenshot tool."""

    def __init__(self, png=None, block=None, **kwargs):
        super().__init__(**kwargs)
        self.png = png
        self.block = block

    def run(self, command, timeout=5.0, input=None, capture_output=True):
        self.calls.append(list(command))
        if self.block is not None:
            self.block.wait(timeout=5.0)
        if self.png is None:
            return CommandResult(1, b"", b"cancelled")
        Path(command[-1]).write_bytes(self.png)
        return CommandResult(0, b"", b"")


def test_run_with_timeout_raises_timeout_error():
    release = threading.Event()
    try:
        with pytest.raises(TimeoutError):
            run_with_timeout(lambda: release.wait(5.0), 0.05, "Slow thing")
    finally:
        release.set()


def test_run_with_timeout_returns_value():
    assert run_with_timeout(lambda: 7, 1.0) == 7


def test_capture_region_stores_image(store):
    png = make_png((1, 2, 3))
    runner = ScreenshotRunner(png=png, installed={"scrot"})
    service = CaptureService(store, runner, system="Linux")

    result = service.capture_region()

    assert result.success
    assert runner.calls[0][0] == "scrot"
    assert store.latest_item().type is ItemType.IMAGE


def test_first_installed_tool_wins(store):
    runner = ScreenshotRunner(png=make_png(), installed={"gnome-screenshot", "scrot"})
    CaptureService(store, runner, system="Linux").capture_region()

    assert runner.calls[0][:2] == ["gnome-screenshot", "-a"]


def test_macos_uses_screencapture(store):
    runner = ScreenshotRunner(png=make_png(), installed={"screencapture"})
    CaptureService(store, runner, system="Darwin").capture_region()

    assert runner.calls[0][:3] == ["screencapture", "-i", "-x"]


def test_cancelled_selection(store):
    runner = ScreenshotRunner(png=None, installed={"scrot"})

    with pytest.raises(CaptureCancelledError):
        CaptureService(store, runner, system="Linux").capture_region()
    assert store.count() == 0


def test_no_tool_installed(store):
    with pytest.raises(CaptureError, match="No screenshot tool"):
        CaptureService(store, ScreenshotRunner(), system="Linux").capture_region()


def test_unresolved_selection_times_out(store):
    release = threading.Event()
    runner = ScreenshotRunner(png=make_png(), block=release, installed={"scrot"})
    service = CaptureService(store, runner, timeout=0.05, system="Linux")

    started = time.monotonic()
    try:
        with pytest.raises(CaptureTimeoutError):
            service.capture_region()
    finally:
        release.set()

    assert time.monotonic() - started < 2.0
    assert store.count() == 0


def test_windows_grabs_the_screen(store, monkeypatch):
    monkeypatch.setattr(capture_service.ImageGrab, "grab", lambda: Image.new("RGB", (40, 30), (5, 6, 7)))

    result = CaptureService(store, FakeRunner(), system="Windows").capture_region()

    assert result.success
    assert store.latest_item().type is ItemType.IMAGE
