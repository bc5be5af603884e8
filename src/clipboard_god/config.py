from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

APP_DIR_NAME = "clipboard-god"


def default_storage_root() -> Path:
    cache_base = os.getenv("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(cache_base) / APP_DIR_NAME


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class StoreConfig(BaseModel):
    """Process-wide store settings; assignments are validated."""

    model_config = ConfigDict(validate_assignment=True)

    max_history: int = Field(default=8000, gt=0)
    storage_root: Path = Field(default_factory=default_storage_root)

    @property
    def db_path(self) -> Path:
        return self.storage_root / "db.sqlite"

    @property
    def json_path(self) -> Path:
        return self.storage_root / "history.json"

    @property
    def images_dir(self) -> Path:
        return self.storage_root / "images"


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    store: StoreConfig = Field(default_factory=StoreConfig)
    poll_interval: float = Field(default=1.0, gt=0)
    paste_dedup_window: float = Field(default=1.0, ge=0)
    suppression_window: float = Field(default=0.2, ge=0)
    capture_timeout: float = Field(default=30.0, gt=0)
    force_json_store: bool = False

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None, **overrides: Any) -> "AppConfig":
        """Build a config from ``.env``/environment, then apply non-None overrides."""
        load_dotenv(dotenv_path=env_path or Path.cwd() / ".env")

        store_values: Dict[str, Any] = {}
        max_history = os.getenv("CLIPBOARD_GOD_MAX_HISTORY")
        if max_history:
            store_values["max_history"] = int(max_history)
        storage_root = os.getenv("CLIPBOARD_GOD_STORAGE_ROOT")
        if storage_root:
            store_values["storage_root"] = Path(storage_root).expanduser()

        values: Dict[str, Any] = {}
        poll_interval = os.getenv("CLIPBOARD_GOD_POLL_INTERVAL")
        if poll_interval:
            values["poll_interval"] = float(poll_interval)
        values["force_json_store"] = _to_bool(os.getenv("CLIPBOARD_GOD_JSON_STORE"))

        for key in ("max_history", "storage_root"):
            if overrides.get(key) is not None:
                store_values[key] = overrides.pop(key)
        values.update({k: v for k, v in overrides.items() if v is not None})

        return cls(store=StoreConfig(**store_values), **values)
