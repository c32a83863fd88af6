from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from toursearch.config import StorageConfig, get_storage_config
from toursearch.config import storage as storage_module


def test_storage_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("TOURSEARCH_DATA_DIR", str(custom))

    config = get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()


def test_storage_defaults_to_xdg_cache(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))

    config = get_storage_config()

    assert config.data_dir == (tmp_path / "xdg" / "toursearch").resolve()


def test_sheet_cache_uri_creates_data_dir(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path / "data-dir")

    uri = config.sheet_cache_uri()

    expected_path = (tmp_path / "data-dir" / storage_module.SHEET_CACHE_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_http_cache_path_without_ensure(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path / "lazy")

    path = config.http_cache_path(ensure=False)

    assert path.name == storage_module.HTTP_CACHE_FILENAME
    assert not path.parent.exists()
