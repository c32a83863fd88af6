"""On-disk locations for the sheet cache and the optional HTTP cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "toursearch"
DATA_DIR_ENV: Final[str] = "TOURSEARCH_DATA_DIR"
SHEET_CACHE_FILENAME: Final[str] = "sheet_cache.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Cache directory; created on first use unless ``ensure=False``."""

    data_dir: Path
    sheet_cache_filename: str = SHEET_CACHE_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def cache_file(self, filename: str, *, ensure: bool = True) -> Path:
        directory = self.resolve_data_dir()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / filename

    def sheet_cache_path(self, *, ensure: bool = True) -> Path:
        return self.cache_file(self.sheet_cache_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self.cache_file(self.http_cache_filename, ensure=ensure)

    def sheet_cache_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.sheet_cache_path()}"


def _user_cache_dir() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_CACHE_HOME")
    return Path(xdg) if xdg else Path.home() / ".cache"


def get_storage_config() -> StorageConfig:
    """``TOURSEARCH_DATA_DIR`` when set, else ``toursearch`` under the user cache dir."""

    override = optional_env_var(DATA_DIR_ENV)
    data_dir = Path(override) if override else _user_cache_dir() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir.expanduser().resolve())
