from pathlib import Path

import pytest
from pydantic import ValidationError

from clipboard_god.config import AppConfig, StoreConfig, default_storage_root

ENV_VARS = (
    "CLIPBOARD_GOD_MAX_HISTORY",
    "CLIPBOARD_GOD_STORAGE_ROOT",
    "CLIPBOARD_GOD_POLL_INTERVAL",
    "CLIPBOARD_GOD_JSON_STORE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # set first so teardown also removes whatever load_dotenv() exported
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults(tmp_path):
    config = AppConfig.from_env(env_path=tmp_path / "missing.env")

    assert config.store.max_history == 8000
    assert config.poll_interval == 1.0
    assert config.paste_dedup_window == 1.0
    assert config.suppression_window == 0.2
    assert config.capture_timeout == 30.0
    assert config.force_json_store is False


def test_storage_root_follows_xdg_cache_home(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))

    assert default_storage_root() == tmp_path / "clipboard-god"
    assert StoreConfig().db_path == tmp_path / "clipboard-god" / "db.sqlite"


def test_environment_values(monkeypatch, tmp_path):
    monkeypatch.setenv("CLIPBOARD_GOD_MAX_HISTORY", "250")
    monkeypatch.setenv("CLIPBOARD_GOD_STORAGE_ROOT", str(tmp_path / "store"))
    monkeypatch.setenv("CLIPBOARD_GOD_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("CLIPBOARD_GOD_JSON_STORE", "yes")

    config = AppConfig.from_env(env_path=tmp_path / "missing.env")

    assert config.store.max_history == 250
    assert config.store.storage_root == tmp_path / "store"
    assert config.store.images_dir == tmp_path / "store" / "images"
    assert config.poll_interval == 0.5
    assert config.force_json_store is True


def test_dotenv_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("CLIPBOARD_GOD_MAX_HISTORY=42\n", encoding="utf-8")

    config = AppConfig.from_env(env_path=env_file)

    assert config.store.max_history == 42


def test_overrides_win_and_none_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv("CLIPBOARD_GOD_MAX_HISTORY", "250")

    config = AppConfig.from_env(
        env_path=tmp_path / "missing.env",
        max_history=5,
        storage_root=Path("/tmp/elsewhere"),
        poll_interval=None,
    )

    assert config.store.max_history == 5
    assert config.store.storage_root == Path("/tmp/elsewhere")
    assert config.poll_interval == 1.0


def test_invalid_max_history_is_rejected():
    with pytest.raises(ValidationError):
        StoreConfig(max_history=0)

    config = StoreConfig(max_history=3)
    with pytest.raises(ValidationError):
        config.max_history = -1
    assert config.max_history == 3
