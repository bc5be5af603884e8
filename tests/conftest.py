import io
from typing import Dict, List, Optional, Sequence

import pytest
from PIL import Image

from clipboard_god.clipboard.base import ClipboardBackend
from clipboard_god.config import StoreConfig
from clipboard_god.services import ContentStore, HistoryNotifier
from clipboard_god.utils.process import CommandResult, CommandRunner


def make_png(color=(255, 0, 0), size=(300, 200)) -> bytes:
    output = io.BytesIO()
    Image.new("RGB", size, color).save(output, format="PNG")
    return output.getvalue()


class FakeClipboard(ClipboardBackend):
    """In-memory clipboard that records writes."""

    def __init__(self):
        self.text: Optional[str] = None
        self.image: Optional[bytes] = None
        self.writes: List[tuple] = []
        self.fail_writes = False

    def set_text(self, text):
        self.text, self.image = text, None

    def set_image(self, png):
        self.text, self.image = None, png

    def available_formats(self):
        if self.text is not None:
            return ["text/plain"]
        if self.image is not None:
            return ["image/png"]
        return []

    def read_text(self):
        return self.text

    def read_image(self):
        return self.image

    def write_text(self, text):
        if self.fail_writes:
            return False
        self.writes.append(("text", text))
        self.set_text(text)
        return True

    def write_image(self, png):
        if self.fail_writes:
            return False
        self.writes.append(("image", png))
        self.set_image(png)
        return True


class FakeRunner(CommandRunner):
    """Command runner with a fixed set of installed tools and scripted exit codes."""

    def __init__(self, installed: Sequence[str] = (), results: Optional[Dict[str, int]] = None,
                 outputs: Optional[Dict[str, bytes]] = None):
        self.installed = set(installed)
        self.results = results or {}
        self.outputs = outputs or {}
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[bytes]] = []

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.installed else None

    def run(self, command, timeout=5.0, input=None, capture_output=True):
        command = list(command)
        self.calls.append(command)
        self.inputs.append(input)
        key = " ".join(command)
        code = self.results.get(key, self.results.get(command[0], 0))
        return CommandResult(code, self.outputs.get(key, b""), b"" if code == 0 else b"failed")


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def store_config(tmp_path):
    return StoreConfig(max_history=100, storage_root=tmp_path / "clipboard-god")


@pytest.fixture
def notifier():
    return HistoryNotifier()


@pytest.fixture
def store(store_config, notifier):
    content_store = ContentStore(store_config, notifier)
    yield content_store
    content_store.close()


@pytest.fixture
def json_store(store_config, notifier):
    content_store = ContentStore(store_config, notifier, force_json=True)
    yield content_store
    content_store.close()


@pytest.fixture
def fake_clipboard():
    return FakeClipboard()
