from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tests.helpers.records import business, sample_tour, sheet, tour
from toursearch.domain.model import ConfidenceTier, EntityType, IdentityKey, SourceKind
from toursearch.domain.reconciliation import (
    CatalogBuilder,
    FilterMode,
    FilterPolicy,
    ListFilter,
    ReconciliationPolicy,
    SourcePrecedence,
    build_catalog,
    match_pool,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    import pytest

    from toursearch.domain.model import CatalogEntity
    from toursearch.domain.reconciliation import MatchCandidate, SecondaryEntry


def test_business_record_replaces_empty_native_label(builder: CatalogBuilder) -> None:
    catalog = builder.build(
        [tour("Room-1", "", tags=["Room-1"])],
        [business("Room-1", "Main Room 1")],
    )

    merged = catalog.get(IdentityKey(SourceKind.TOUR, "Room-1"))
    assert merged is not None
    assert merged.label == "Main Room 1"
    assert merged.match_confidence is ConfidenceTier.EXACT
    assert len(catalog) == 1


def test_sheet_record_enriches_without_replacing(enriching_builder: CatalogBuilder) -> None:
    catalog = enriching_builder.build(
        [tour("pano-1", "Lobby", tags=["MyCoolTag_01"])],
        sheet_records=[
            sheet("", "Tagged Cool Tag", tag="MyCoolTag_01", image_url="cool.png"),
        ],
    )

    (merged,) = catalog.entities
    assert merged.label == "Lobby"
    assert merged.image_ref == "cool.png"
    assert merged.match_confidence is ConfidenceTier.MEDIUM


def test_unmatched_sheet_record_becomes_standalone_after_native_order(
    standalone_builder: CatalogBuilder,
) -> None:
    catalog = standalone_builder.build(sample_tour(), sheet_records=[sheet("s-9", "Rooftop bar")])

    standalone = catalog.get(IdentityKey(SourceKind.SHEET, "s-9"))
    assert standalone is not None
    assert standalone.is_standalone
    assert standalone.navigation_ref is None
    assert standalone.match_confidence is ConfidenceTier.NONE
    native_orders = [
        entity.playlist_order
        for entity in catalog
        if entity.is_native and entity.playlist_order is not None
    ]
    assert standalone.playlist_order is not None
    assert standalone.playlist_order > max(native_orders)


def test_shared_tag_is_consumed_by_first_sheet_record(
    standalone_builder: CatalogBuilder,
) -> None:
    catalog, report = standalone_builder.build_with_report(
        sample_tour(),
        sheet_records=[sheet("s-1", "Spa", tag="T"), sheet("s-2", "Spa", tag="T")],
    )

    sheet_entities = [entity for entity in catalog if entity.source is SourceKind.SHEET]
    assert [entity.native_id for entity in sheet_entities] == ["s-1"]
    assert report.standalone[SourceKind.SHEET] == 1
    assert report.dropped[SourceKind.SHEET] == 1


def test_secondary_matching_two_targets_attaches_to_one(builder: CatalogBuilder) -> None:
    catalog = builder.build(
        [tour("a", "First", tags=["shared"]), tour("b", "Second", tags=["shared"])],
        sheet_records=[sheet("", "Shared name", tag="shared")],
    )

    matched = [entity for entity in catalog if entity.match_confidence > ConfidenceTier.NONE]
    assert [entity.native_id for entity in matched] == ["a"]
    other = catalog.get(IdentityKey(SourceKind.TOUR, "b"))
    assert other is not None
    assert other.label == "Second"


def test_ambiguous_matches_are_reported(builder: CatalogBuilder) -> None:
    _catalog, report = builder.build_with_report(
        [tour("a", "First", tags=["shared"]), tour("b", "Second", tags=["shared"])],
        sheet_records=[sheet("", "Shared name", tag="shared")],
    )

    (warning,) = report.ambiguities
    assert warning.chosen == IdentityKey(SourceKind.TOUR, "a")
    assert warning.rule == "first"
    assert report.ambiguous[SourceKind.SHEET] == 1
    assert "Ambiguous match" in str(warning)


def test_business_pass_runs_before_sheet_pass(builder: CatalogBuilder) -> None:
    catalog, report = builder.build_with_report(
        [tour("pano-1", "Lobby")],
        [business("pano-1", "Hotel lobby")],
        [sheet("pano-1", "Sheet lobby")],
    )

    (merged,) = catalog.entities
    assert merged.label == "Hotel lobby"
    assert merged.matched_sources == (SourceKind.BUSINESS,)
    assert report.dropped[SourceKind.SHEET] == 1


def test_catalog_invariants_hold(standalone_builder: CatalogBuilder) -> None:
    catalog = standalone_builder.build(
        [*sample_tour(), tour("blank", "")],
        [business("hs-1", "Concierge"), business("b-2", "Gift shop", match_tags=["gift"])],
        [sheet("", "", tag="Garden"), sheet("s-1", "Pool")],
    )

    keys = [entity.identity_key for entity in catalog]
    assert len(keys) == len(set(keys))
    assert all(entity.label.strip() for entity in catalog)
    for entity in catalog:
        if entity.matched_sources:
            assert entity.match_confidence >= ConfidenceTier.WEAK
        if entity.is_standalone:
            assert entity.match_confidence is ConfidenceTier.NONE
            assert not entity.is_native


def test_build_is_deterministic(standalone_builder: CatalogBuilder) -> None:
    def build() -> tuple[CatalogEntity, ...]:
        return standalone_builder.build(
            [tour("a", "", tags=["x"]), tour("b", "", tags=["x"]), *sample_tour()],
            [business("b-1", "Ambiguous", match_tags=["x"])],
            [sheet("s-1", "Pool"), sheet("s-2", "", tag="desk")],
        ).entities

    first = build()
    second = build()

    assert first == second
    assert [entity.navigation_ref for entity in first] == [
        entity.navigation_ref for entity in second
    ]


def test_children_get_parent_labels_and_dangling_parents_are_cleared(
    builder: CatalogBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        catalog, report = builder.build_with_report(
            [*sample_tour(), tour("orphan", "Lost", parent_native_id="missing")]
        )

    reception = catalog.get(IdentityKey(SourceKind.TOUR, "hs-1"))
    orphan = catalog.get(IdentityKey(SourceKind.TOUR, "orphan"))
    assert reception is not None
    assert reception.parent_label == "Lobby"
    assert orphan is not None
    assert orphan.parent_ref is None
    assert report.dangling_parents == 1
    assert "dangling parent" in caplog.text


def test_filters_drop_tour_entities_before_matching() -> None:
    policy = ReconciliationPolicy(
        filters=FilterPolicy(
            element_types=ListFilter(mode=FilterMode.BLACKLIST, values=("Webframe",))
        )
    )
    catalog, report = CatalogBuilder(policy).build_with_report(
        sample_tour(), [business("frame-1", "Booking")]
    )

    assert IdentityKey(SourceKind.TOUR, "frame-1") not in catalog
    assert report.filtered[SourceKind.TOUR] == 1
    assert report.accepted[SourceKind.BUSINESS] == 0


def test_failed_pass_contributes_no_entities(builder: CatalogBuilder) -> None:
    def flaky_match(
        targets: Sequence[CatalogEntity],
        pool: Sequence[SecondaryEntry],
    ) -> tuple[MatchCandidate, ...]:
        if any(entry.source is SourceKind.SHEET for entry in pool):
            raise RuntimeError("boom")
        return match_pool(targets, pool)

    flaky = CatalogBuilder(builder.policy, match=flaky_match)
    catalog, report = flaky.build_with_report(
        [tour("pano-1", "Lobby"), tour("pano-2", "Garden")],
        [business("pano-1", "Hotel lobby")],
        [sheet("pano-2", "Sheet garden")],
    )

    assert report.failed_passes == [SourceKind.SHEET]
    labels = {entity.native_id: entity.label for entity in catalog}
    assert labels == {"pano-1": "Hotel lobby", "pano-2": "Garden"}


def test_empty_inputs_build_empty_catalog(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        catalog = build_catalog()

    assert catalog.is_empty
    assert "Empty catalog" in caplog.text


def test_malformed_records_are_counted_not_raised(builder: CatalogBuilder) -> None:
    catalog, report = builder.build_with_report(
        [tour("", "No id"), tour("pano-1", "Lobby")],
        [business("", "No id")],
    )

    assert len(catalog) == 1
    assert report.malformed[SourceKind.TOUR] == 1
    assert report.malformed[SourceKind.BUSINESS] == 1


def test_entity_types_are_detected_during_build(builder: CatalogBuilder) -> None:
    catalog = builder.build(sample_tour())

    types = {entity.native_id: entity.entity_type for entity in catalog}
    assert types == {
        "pano-1": EntityType.PANORAMA,
        "hs-1": EntityType.HOTSPOT,
        "frame-1": EntityType.WEBFRAME,
        "pano-2": EntityType.PANORAMA,
        "video-1": EntityType.VIDEO,
    }


def test_sheet_pass_enriches_entity_already_matched_by_business() -> None:
    policy = ReconciliationPolicy(
        precedence=SourcePrecedence(business_replaces_native=True, sheet_replaces_native=False)
    )
    catalog = CatalogBuilder(policy).build(
        [tour("pano-1", "Lobby", tags=["lobby-tag"])],
        [business("pano-1", "Hotel lobby", image_url="biz.png")],
        [
            sheet(
                "",
                "Sheet lobby",
                tag="lobby-tag",
                image_url="sheet.png",
                description="Check-in desk",
            )
        ],
    )

    (merged,) = catalog.entities
    assert merged.matched_sources == (SourceKind.BUSINESS, SourceKind.SHEET)
    assert merged.label == "Hotel lobby"
    assert merged.description == "Check-in desk"
    assert merged.image_ref == "biz.png"
    assert merged.match_confidence is ConfidenceTier.EXACT
    assert merged.boost_weight == policy.boosts.matched_replaced
