import pytest

from clipboard_god import main as cli
from clipboard_god.config import AppConfig, StoreConfig
from clipboard_god.context import AppContext
from clipboard_god.paste.linux import X11PasteDriver

from conftest import FakeClipboard, FakeRunner


@pytest.fixture
def context(tmp_path):
    config = AppConfig(store=StoreConfig(max_history=10, storage_root=tmp_path))
    ctx = AppContext.create(
        config,
        clipboard=FakeClipboard(),
        runner=FakeRunner(installed={"xdotool"}),
        paste_driver=X11PasteDriver(FakeRunner(installed={"xdotool"})),
    )
    yield ctx
    ctx.close()


def test_parse_args_actions_are_exclusive():
    args = cli.parse_args(["--history", "5", "-m", "20"])
    assert args.history == 5
    assert args.max_history == 20

    with pytest.raises(SystemExit):
        cli.parse_args(["--history", "5", "--search", "x"])


def test_app_start_stop(context):
    app = cli.ClipboardGodApp(context)

    app.start()
    assert app.sampler.is_running
    assert context.notifier.listener_count == 1

    app.stop()
    app.stop()

    assert not app.running
    assert not app.sampler.is_running
    assert context.notifier.listener_count == 0


def test_history_action_prints_items(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "store"
    config = AppConfig(store=StoreConfig(storage_root=root))
    ctx = AppContext.create(config, clipboard=FakeClipboard(), runner=FakeRunner())
    ctx.store.add_item({"type": "text", "content": "line one\nline two"})
    ctx.close()

    code = cli.main(["--history", "5", "-s", str(root)])

    assert code == 0
    assert "line one\\nline two" in capsys.readouterr().out


def test_paste_unknown_id_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    code = cli.main(["--paste", "nope", "-s", str(tmp_path / "store")])

    assert code == 1
    assert "No history item" in capsys.readouterr().err
