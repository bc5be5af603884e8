import time

from clipboard_god.exceptions import StorageWriteError
from clipboard_god.models import ItemType
from clipboard_god.services import ClipboardSampler

from conftest import make_png


def test_text_change_is_stored(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_text("copied\r\ntext")

    assert sampler.poll_once()
    assert sampler.flush(timeout=2.0)

    item = store.latest_item()
    assert item.type is ItemType.TEXT
    assert item.content == "copied\ntext"


def test_unchanged_clipboard_is_ignored(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_text("steady")

    assert sampler.poll_once()
    assert not sampler.poll_once()
    assert not sampler.poll_once()
    sampler.flush(timeout=2.0)
    assert store.count() == 1


def test_empty_clipboard_is_ignored(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)

    assert not sampler.poll_once()
    fake_clipboard.set_text("")
    assert not sampler.poll_once()


def test_copying_older_value_again_resurfaces_it(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)

    for text in ["A", "B", "A"]:
        fake_clipboard.set_text(text)
        assert sampler.poll_once()
        sampler.flush(timeout=2.0)
        time.sleep(0.005)

    assert [item.content for item in store.get_history()] == ["A", "B"]


def test_image_change_is_stored(store, fake_clipboard):
    png = make_png((10, 200, 30))
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_image(png)

    assert sampler.poll_once()
    sampler.flush(timeout=2.0)

    item = store.latest_item()
    assert item.type is ItemType.IMAGE
    assert item.image_path is not None


def test_seeded_from_newest_stored_item(store, fake_clipboard):
    store.add_item({"type": "text", "content": "from last session"})
    fake_clipboard.set_text("from last session")

    sampler = ClipboardSampler(fake_clipboard, store)

    assert not sampler.poll_once()


def test_stop_is_idempotent_and_safe_before_start(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store, poll_interval=0.01)
    sampler.stop()

    sampler.start()
    sampler.start()
    assert sampler.is_running
    sampler.stop()
    sampler.stop()
    assert not sampler.is_running


def test_background_polling_picks_up_changes(store, fake_clipboard):
    fake_clipboard.set_text("polled")

    with ClipboardSampler(fake_clipboard, store, poll_interval=0.01):
        deadline = time.monotonic() + 2.0
        while store.count() == 0 and time.monotonic() < deadline:
            time.sleep(0.01)

    assert store.latest_item().content == "polled"


def test_failing_clipboard_read_does_not_kill_the_loop(store, fake_clipboard):
    calls = []

    def flaky_formats():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("clipboard busy")
        return ["text/plain"]

    fake_clipboard.set_text("after error")
    fake_clipboard.available_formats = flaky_formats

    with ClipboardSampler(fake_clipboard, store, poll_interval=0.01):
        deadline = time.monotonic() + 2.0
        while store.count() == 0 and time.monotonic() < deadline:
            time.sleep(0.01)

    assert len(calls) > 1
    assert store.latest_item().content == "after error"


def test_unchanged_clipboard_returns_to_top_after_external_insert(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_text("T")
    assert sampler.poll_once()
    sampler.flush(timeout=2.0)

    store.add_item({"type": "image", "content": make_png((9, 9, 9))})
    assert store.latest_item().type is ItemType.IMAGE
    time.sleep(0.005)

    assert sampler.poll_once()
    sampler.flush(timeout=2.0)
    assert store.latest_item().content == "T"
    assert store.count() == 2


def test_unchanged_clipboard_is_recorded_again_after_clear(store, fake_clipboard):
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_text("survivor")
    sampler.poll_once()
    sampler.flush(timeout=2.0)

    store.clear()

    assert sampler.poll_once()
    sampler.flush(timeout=2.0)
    assert [item.content for item in store.get_history()] == ["survivor"]


def test_failed_write_is_retried_on_next_tick(store, fake_clipboard, monkeypatch):
    original_add = store.backend.add
    attempts = []

    def flaky_add(item):
        attempts.append(item)
        if len(attempts) == 1:
            raise StorageWriteError("database is locked")
        return original_add(item)

    monkeypatch.setattr(store.backend, "add", flaky_add)
    sampler = ClipboardSampler(fake_clipboard, store)
    fake_clipboard.set_text("keep me")

    assert sampler.poll_once()
    sampler.flush(timeout=2.0)
    assert store.count() == 0

    assert sampler.poll_once()
    sampler.flush(timeout=2.0)
    assert store.latest_item().content == "keep me"
    assert len(attempts) == 2
