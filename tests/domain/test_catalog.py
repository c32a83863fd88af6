from __future__ import annotations

import pytest

from tests.helpers.records import entity
from toursearch.domain.catalog import EMPTY_CATALOG, Catalog, CatalogInvariantError
from toursearch.domain.model import ConfidenceTier, IdentityKey, SourceKind


def test_catalog_lookup_and_navigation() -> None:
    parent = entity("pano-1", "Lobby")
    child = entity("hs-1", "Desk", parent_ref=parent.identity_key)
    catalog = Catalog((parent, child))

    assert len(catalog) == 2
    assert parent.identity_key in catalog
    assert catalog.get(IdentityKey(SourceKind.TOUR, "hs-1")) == child
    assert catalog.parent_of(child) == parent
    assert catalog.parent_of(parent) is None
    assert catalog.children_of(parent) == (child,)


def test_catalog_is_immutable() -> None:
    catalog = Catalog((entity("pano-1", "Lobby"),))

    with pytest.raises(AttributeError):
        catalog.entities = ()  # type: ignore[misc]


def test_empty_catalog() -> None:
    assert EMPTY_CATALOG.is_empty
    assert list(EMPTY_CATALOG) == []


def test_catalog_rejects_duplicate_keys() -> None:
    with pytest.raises(CatalogInvariantError, match="Duplicate"):
        Catalog((entity("a", "One"), entity("a", "Two")))


def test_catalog_rejects_empty_labels() -> None:
    with pytest.raises(CatalogInvariantError, match="Empty label"):
        Catalog((entity("a", "  "),))


def test_catalog_rejects_dangling_parent_refs() -> None:
    orphan = entity("hs-1", "Desk", parent_ref=IdentityKey(SourceKind.TOUR, "missing"))

    with pytest.raises(CatalogInvariantError, match="not in the catalog"):
        Catalog((orphan,))


def test_standalone_entities_may_point_outside_catalog() -> None:
    standalone = entity(
        "b-1",
        "Shop",
        source=SourceKind.BUSINESS,
        parent_ref=IdentityKey(SourceKind.TOUR, "missing"),
        is_standalone=True,
    )

    assert len(Catalog((standalone,))) == 1


def test_unmatched_secondary_must_be_standalone() -> None:
    loose = entity("s-1", "Pool", source=SourceKind.SHEET, match_confidence=ConfidenceTier.NONE)

    with pytest.raises(CatalogInvariantError, match="not standalone"):
        Catalog((loose,))
