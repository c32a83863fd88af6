from __future__ import annotations

import pytest

from tests.helpers.records import business, sheet, tour
from toursearch.domain.errors import MalformedRecordError
from toursearch.domain.model import EntityType, IdentityKey, SourceKind
from toursearch.domain.reconciliation import (
    detect_entity_type,
    normalize_record,
    normalize_records,
)


@pytest.mark.parametrize(
    ("class_hint", "properties", "label", "expected"),
    [
        ("FramePanoramaOverlay", {}, "", EntityType.WEBFRAME),
        ("HotspotPanoramaOverlay", {"hasPanoramaAction": True}, "", EntityType.HOTSPOT),
        ("HotspotPanoramaOverlay", {"hasText": True}, "", EntityType.TEXT),
        ("HotspotPanoramaOverlay", {"isPolygon": True}, "", EntityType.POLYGON),
        ("HotspotPanoramaOverlay", {}, "Image", EntityType.IMAGE),
        ("SpriteModel3DObject", {}, "3D sprite", EntityType.HOTSPOT_3D),
        ("SpriteModel3DObject", {}, "goto lobby", EntityType.HOTSPOT),
        ("PanoramaPlayListItem", {}, "", EntityType.PANORAMA),
        (None, {"url": "https://example.org"}, "", EntityType.WEBFRAME),
        (None, {"data": {"video": "clip.mp4"}}, "", EntityType.VIDEO),
        (None, {"vertices": [1, 2, 3]}, "", EntityType.POLYGON),
        (None, {}, "polygon area", EntityType.POLYGON),
        (None, {}, "Kitchen", EntityType.ELEMENT),
    ],
)
def test_detect_entity_type_by_class_shape_and_label(
    class_hint: str | None,
    properties: dict[str, object],
    label: str,
    expected: EntityType,
) -> None:
    detected = detect_entity_type(class_hint=class_hint, properties=properties, label=label)

    assert detected is expected


def test_detect_entity_type_info_label_beats_every_hint() -> None:
    detected = detect_entity_type(
        class_hint="FramePanoramaOverlay",
        label="Info-Reception",
        explicit_hint="Video",
    )

    assert detected is EntityType.HOTSPOT


def test_detect_entity_type_explicit_hint_beats_class() -> None:
    detected = detect_entity_type(class_hint="FramePanoramaOverlay", explicit_hint="model")

    assert detected is EntityType.MODEL_3D


def test_normalize_tour_record_trims_and_links_parent() -> None:
    record = tour(
        " hs-1 ",
        "  Reception ",
        subtitle=" Front desk ",
        tags=["desk", " ", ""],
        parent_native_id="pano-1",
        media_id="media-7",
        playlist_index=3.0,
        thumbnail="thumb.jpg",
        properties={"description": " Ask here "},
    )

    entity = normalize_record(record, ordinal=4)

    assert entity.identity_key == IdentityKey(SourceKind.TOUR, "hs-1")
    assert entity.label == "Reception"
    assert entity.original_label == "Reception"
    assert entity.subtitle == "Front desk"
    assert entity.description == "Ask here"
    assert entity.tags == frozenset({"desk"})
    assert entity.parent_ref == IdentityKey(SourceKind.TOUR, "pano-1")
    assert entity.media_id == "media-7"
    assert entity.playlist_order == 3.0
    assert entity.image_ref == "thumb.jpg"
    assert entity.image_source is SourceKind.TOUR
    assert entity.ordinal == 4


def test_normalize_business_record_defaults_to_business_type() -> None:
    entity = normalize_record(
        business("b-1", "Cafe", local_image_path="img/cafe.png"),
        ordinal=0,
    )

    assert entity.entity_type is EntityType.BUSINESS
    assert entity.image_ref == "img/cafe.png"
    assert entity.image_source is SourceKind.BUSINESS


def test_normalize_sheet_record_keys_by_id_then_tag_then_name() -> None:
    by_id = normalize_record(sheet("s-1", "Name", tag="T"), ordinal=0)
    by_tag = normalize_record(sheet("", "Name", tag="T"), ordinal=1)
    by_name = normalize_record(sheet("", "Name"), ordinal=2)

    assert by_id.native_id == "s-1"
    assert by_tag.native_id == "T"
    assert by_name.native_id == "Name"
    assert by_tag.tags == frozenset({"T"})


@pytest.mark.parametrize(
    "record",
    [tour("  "), business(""), sheet()],
)
def test_normalize_record_rejects_records_without_identity(record: object) -> None:
    with pytest.raises(MalformedRecordError):
        normalize_record(record, ordinal=0)


def test_normalize_records_skips_malformed_and_duplicates() -> None:
    result = normalize_records(
        [
            business("b-1", "Cafe"),
            business("", "No id"),
            business("b-1", "Cafe again"),
            business("b-2", "Bar", match_tags=["bar"], element_type="Hotspot"),
        ]
    )

    assert [entity.native_id for entity in result.entities] == ["b-1", "b-2"]
    assert len(result.malformed) == 2
    assert [entry.source_index for entry in result.secondaries] == [0, 3]
    assert result.secondaries[1].type_hint is EntityType.HOTSPOT
    assert result.secondaries[1].match_tags == frozenset({"bar"})


def test_normalize_records_builds_no_secondaries_for_tour() -> None:
    result = normalize_records([tour("pano-1", "Lobby")])

    assert len(result.entities) == 1
    assert result.secondaries == []
