from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from toursearch.config import StorageConfig
from toursearch.domain.reconciliation import (
    CatalogBuilder,
    ReconciliationPolicy,
    ResolverPolicy,
    SourcePrecedence,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TOURSEARCH_BUSINESS_URL",
        "TOURSEARCH_SHEET_URL",
        "TOURSEARCH_SHEET_MODE",
        "TOURSEARCH_SHEET_API_KEY",
        "TOURSEARCH_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def storage(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path / "data")


@pytest.fixture
def builder() -> CatalogBuilder:
    return CatalogBuilder()


@pytest.fixture
def standalone_builder() -> CatalogBuilder:
    policy = ReconciliationPolicy(resolver=ResolverPolicy(include_standalone_entries=True))
    return CatalogBuilder(policy)


@pytest.fixture
def enriching_builder() -> CatalogBuilder:
    """Secondary sources fill gaps but never replace tour text."""

    policy = ReconciliationPolicy(
        precedence=SourcePrecedence(business_replaces_native=False, sheet_replaces_native=False)
    )
    return CatalogBuilder(policy)
