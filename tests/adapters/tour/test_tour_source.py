from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from toursearch.adapters.tour import JsonTourSource, NavigationHandle, TourExportError
from toursearch.domain.model import EntityType, IdentityKey, SourceKind
from toursearch.domain.reconciliation import build_catalog

if TYPE_CHECKING:
    from pathlib import Path

TOUR_DOCUMENT = {
    "playlist": [
        {
            "id": "pano-1",
            "class": "PanoramaPlayListItem",
            "label": "Lobby",
            "subtitle": "Ground floor",
            "mediaId": "media-1",
            "thumbnail": "lobby.jpg",
            "overlays": [
                {
                    "id": "hs-1",
                    "class": "HotspotPanoramaOverlay",
                    "label": "Reception",
                    "tags": ["desk"],
                    "data": {"hasPanoramaAction": True},
                },
                {"id": "web-1", "label": "Booking", "url": "https://example.org/book"},
            ],
        },
        {
            "id": "model-1",
            "class": "Model3DPlayListItem",
            "label": "Statue",
            "overlays": [
                {"id": "sprite-1", "class": "SpriteModel3DObject", "label": "3D info sprite"},
            ],
        },
    ]
}


def test_load_records_flattens_playlist_and_overlays() -> None:
    records = JsonTourSource(TOUR_DOCUMENT).load_records()

    assert [record.native_id for record in records] == [
        "pano-1",
        "hs-1",
        "web-1",
        "model-1",
        "sprite-1",
    ]
    pano, hotspot, web, model, sprite = records
    assert pano.media_id == "media-1"
    assert pano.thumbnail == "lobby.jpg"
    assert pano.playlist_index == 0.0
    assert pano.navigation_handle == NavigationHandle(playlist_index=0)
    assert hotspot.parent_native_id == "pano-1"
    assert hotspot.properties["hasPanoramaAction"] is True
    assert hotspot.tags == ("desk",)
    assert web.playlist_index == 1.0
    assert web.properties["url"] == "https://example.org/book"
    assert web.navigation_handle == NavigationHandle(
        playlist_index=0, overlay_index=1, overlay_id="web-1"
    )
    assert model.playlist_index == 1.0
    assert sprite.playlist_index == 1000.0
    assert sprite.parent_native_id == "model-1"


def test_tour_records_build_typed_catalog() -> None:
    catalog = build_catalog(JsonTourSource(TOUR_DOCUMENT).load_records())

    types = {entity.native_id: entity.entity_type for entity in catalog}
    assert types == {
        "pano-1": EntityType.PANORAMA,
        "hs-1": EntityType.HOTSPOT,
        "web-1": EntityType.WEBFRAME,
        "model-1": EntityType.MODEL_3D,
        "sprite-1": EntityType.HOTSPOT_3D,
    }


def test_from_path_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "tour.json"
    path.write_text(json.dumps(TOUR_DOCUMENT), encoding="utf-8")

    records = JsonTourSource.from_path(path).load_records()

    assert len(records) == 5


def test_from_path_errors(tmp_path: Path) -> None:
    not_object = tmp_path / "list.json"
    not_object.write_text("[]", encoding="utf-8")

    with pytest.raises(TourExportError, match="Cannot read"):
        JsonTourSource.from_path(tmp_path / "missing.json")
    with pytest.raises(TourExportError, match="JSON object"):
        JsonTourSource.from_path(not_object)


def test_invalid_document_raises() -> None:
    with pytest.raises(TourExportError, match="Invalid tour export"):
        JsonTourSource({"playlist": [{"overlays": "nope"}]}).load_records()


def test_items_and_overlays_without_id_get_positional_ids() -> None:
    document = {
        "playlist": [
            {
                "id": "pano-1",
                "label": "Lobby",
                "overlays": [{"class": "HotspotPanoramaOverlay", "label": "Door"}],
            },
            {
                "class": "PanoramaPlayListItem",
                "overlays": [{"class": "HotspotPanoramaOverlay"}],
            },
        ]
    }

    records = JsonTourSource(document).load_records()

    assert [(record.native_id, record.positional_id) for record in records] == [
        ("pano-1", False),
        ("pano-1#0", True),
        ("#1", True),
        ("#1#0", True),
    ]
    assert records[3].parent_native_id == "#1"
    assert records[1].navigation_handle == NavigationHandle(playlist_index=0, overlay_index=0)

    catalog = build_catalog(records)
    labels = {entity.native_id: entity.label for entity in catalog}
    assert labels["pano-1#0"] == "Door"
    assert labels["#1"] == "Panorama 2"
    assert labels["#1#0"] == "Hotspot 3"
    hotspot = catalog.get(IdentityKey(SourceKind.TOUR, "#1#0"))
    assert hotspot is not None
    assert hotspot.parent_label == "Panorama 2"
