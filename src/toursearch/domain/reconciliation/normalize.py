"""Normalization stage: raw source records to catalog entities.

Responsibilities of this stage:
- resolve an ``EntityType`` for every record
- trim and default text fields, drop blank tags
- seed ``playlist_order`` from native ordering
- reject records without usable identity (logged, never raised)

The stage is a pure transform; it knows nothing about other sources.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import singledispatch
from typing import TYPE_CHECKING, Any

from toursearch.domain.errors import MalformedRecordError
from toursearch.domain.model import (
    BusinessRecord,
    CatalogEntity,
    EntityType,
    IdentityKey,
    SheetRecord,
    SourceKind,
    TourRecord,
)

from .contracts import SecondaryEntry

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from toursearch.domain.model import SourceRecord

log = logging.getLogger(__name__)

_HOTSPOT_CLASS = "HotspotPanoramaOverlay"
_SPRITE_CLASSES = frozenset({"SpriteModel3DObject", "SpriteHotspotObject", "Sprite3DObject"})

_CLASS_TYPES: dict[str, EntityType] = {
    "FramePanoramaOverlay": EntityType.WEBFRAME,
    "QuadVideoPanoramaOverlay": EntityType.VIDEO,
    "VideoPanoramaOverlay": EntityType.VIDEO,
    "ImagePanoramaOverlay": EntityType.IMAGE,
    "TextPanoramaOverlay": EntityType.TEXT,
    _HOTSPOT_CLASS: EntityType.HOTSPOT,
    "HotspotPanoramaOverlayTextImage": EntityType.HOTSPOT,
    "ProjectedImagePanoramaOverlay": EntityType.PROJECTED_IMAGE,
    "Model3DObject": EntityType.MODEL_3D_OBJECT,
    "Panorama": EntityType.PANORAMA,
    "PanoramaPlayListItem": EntityType.PANORAMA,
    "Model3D": EntityType.MODEL_3D,
    "Model3DPlayListItem": EntityType.MODEL_3D,
    **dict.fromkeys(_SPRITE_CLASSES, EntityType.HOTSPOT_3D),
}

_PROPERTY_TYPES: tuple[tuple[str, EntityType], ...] = (
    ("url", EntityType.WEBFRAME),
    ("video", EntityType.VIDEO),
    ("vertices", EntityType.POLYGON),
    ("polygon", EntityType.POLYGON),
    ("model3d", EntityType.MODEL_3D_OBJECT),
    ("sprite3d", EntityType.HOTSPOT_3D),
)

_LABEL_PATTERNS: tuple[tuple[str, EntityType], ...] = (
    ("web", EntityType.WEBFRAME),
    ("video", EntityType.VIDEO),
    ("image", EntityType.IMAGE),
    ("text", EntityType.TEXT),
    ("polygon", EntityType.POLYGON),
    ("goto", EntityType.HOTSPOT),
    ("info", EntityType.HOTSPOT),
    ("3d-model", EntityType.MODEL_3D_OBJECT),
    ("model3d", EntityType.MODEL_3D_OBJECT),
    ("3d-hotspot", EntityType.HOTSPOT_3D),
    ("sprite", EntityType.HOTSPOT_3D),
)


@dataclass(slots=True)
class NormalizationResult:
    """Entities produced from one source plus the records that were rejected."""

    entities: list[CatalogEntity] = field(default_factory=list["CatalogEntity"])
    secondaries: list[SecondaryEntry] = field(default_factory=list["SecondaryEntry"])
    malformed: list[MalformedRecordError] = field(default_factory=list["MalformedRecordError"])


def detect_entity_type(
    *,
    class_hint: str | None = None,
    properties: Mapping[str, Any] | None = None,
    label: str = "",
    explicit_hint: str | None = None,
) -> EntityType:
    """Resolve the entity type from hints, most specific first."""

    folded_label = label.casefold()
    if "info-" in folded_label or "info_" in folded_label:
        return EntityType.HOTSPOT

    explicit = EntityType.parse(explicit_hint)
    if explicit is not None:
        return explicit

    props = properties or {}
    if class_hint and class_hint in _CLASS_TYPES:
        return _type_from_class(class_hint, props, folded_label)

    by_shape = _type_from_properties(props)
    if by_shape is not None:
        return by_shape

    for pattern, entity_type in _LABEL_PATTERNS:
        if pattern in folded_label:
            return entity_type
    return EntityType.ELEMENT


def _type_from_class(class_hint: str, props: Mapping[str, Any], folded_label: str) -> EntityType:
    if class_hint == _HOTSPOT_CLASS:
        if props.get("hasPanoramaAction"):
            return EntityType.HOTSPOT
        if props.get("hasText"):
            return EntityType.TEXT
        if props.get("isPolygon") or "polygon" in folded_label:
            return EntityType.POLYGON
        if folded_label == "image":
            return EntityType.IMAGE
        return EntityType.HOTSPOT
    if class_hint in _SPRITE_CLASSES:
        if any(word in folded_label for word in ("3d", "model", "sprite")):
            return EntityType.HOTSPOT_3D
        if any(word in folded_label for word in ("goto", "info", "hotspot")):
            return EntityType.HOTSPOT
    return _CLASS_TYPES[class_hint]


def _type_from_properties(props: Mapping[str, Any]) -> EntityType | None:
    nested = props.get("data")
    for name, entity_type in _PROPERTY_TYPES:
        if props.get(name):
            return entity_type
        if isinstance(nested, Mapping) and nested.get(name):  # type: ignore[union-attr]
            return entity_type
    return None


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _clean_tags(tags: Iterable[object]) -> frozenset[str]:
    return frozenset(cleaned for cleaned in (_clean(tag) for tag in tags) if cleaned)


@singledispatch
def normalize_record(record: object, *, ordinal: int) -> CatalogEntity:
    """Convert one raw record into a ``CatalogEntity``.

    Raises ``MalformedRecordError`` when the record cannot be identified;
    ``normalize_records`` turns that into a logged skip.
    """

    raise TypeError(f"Unsupported record type: {type(record).__name__}")


@normalize_record.register
def _(record: TourRecord, *, ordinal: int) -> CatalogEntity:
    native_id = _clean(record.native_id)
    if not native_id:
        raise MalformedRecordError(SourceKind.TOUR, ordinal, "missing native id")
    label = _clean(record.label)
    parent_id = _clean(record.parent_native_id)
    return CatalogEntity(
        identity_key=IdentityKey(SourceKind.TOUR, native_id),
        entity_type=detect_entity_type(
            class_hint=record.class_hint,
            properties=record.properties,
            label=label,
            explicit_hint=record.entity_type_hint,
        ),
        label=label,
        original_label=label,
        subtitle=_clean(record.subtitle),
        description=_clean(record.properties.get("description")),
        tags=_clean_tags(record.tags),
        parent_ref=IdentityKey(SourceKind.TOUR, parent_id) if parent_id else None,
        navigation_ref=record.navigation_handle,
        playlist_order=record.playlist_index,
        image_ref=_clean(record.thumbnail) or None,
        image_source=SourceKind.TOUR if _clean(record.thumbnail) else None,
        ordinal=ordinal,
        positional_id=record.positional_id,
        media_id=_clean(record.media_id),
    )


@normalize_record.register
def _(record: BusinessRecord, *, ordinal: int) -> CatalogEntity:
    record_id = _clean(record.id)
    if not record_id:
        raise MalformedRecordError(SourceKind.BUSINESS, ordinal, "missing id")
    name = _clean(record.name)
    parent_id = _clean(record.parent_id)
    image = _clean(record.image_url) or _clean(record.local_image_path)
    return CatalogEntity(
        identity_key=IdentityKey(SourceKind.BUSINESS, record_id),
        entity_type=EntityType.parse(record.element_type) or EntityType.BUSINESS,
        label=name,
        original_label=name,
        subtitle=_clean(record.description),
        description=_clean(record.description),
        tags=_clean_tags(record.match_tags),
        parent_ref=IdentityKey(SourceKind.TOUR, parent_id) if parent_id else None,
        image_ref=image or None,
        image_source=SourceKind.BUSINESS if image else None,
        ordinal=ordinal,
    )


@normalize_record.register
def _(record: SheetRecord, *, ordinal: int) -> CatalogEntity:
    record_id = _clean(record.id)
    tag = _clean(record.tag)
    name = _clean(record.name)
    if not (record_id or tag or name):
        raise MalformedRecordError(SourceKind.SHEET, ordinal, "no id, tag or name")
    parent_id = _clean(record.parent_id)
    return CatalogEntity(
        identity_key=IdentityKey(SourceKind.SHEET, record_id or tag or name),
        entity_type=detect_entity_type(explicit_hint=record.element_type, label=name),
        label=name,
        original_label=name,
        subtitle=_clean(record.description),
        description=_clean(record.description),
        tags=_clean_tags((tag,)),
        parent_ref=IdentityKey(SourceKind.TOUR, parent_id) if parent_id else None,
        image_ref=_clean(record.image_url) or None,
        image_source=SourceKind.SHEET if _clean(record.image_url) else None,
        ordinal=ordinal,
    )


def normalize_records(records: Sequence[SourceRecord]) -> NormalizationResult:
    """Normalize a whole source, skipping malformed records.

    Business and sheet records also yield a ``SecondaryEntry`` for matching.
    Entities whose identity key repeats an earlier one are skipped too.
    """

    result = NormalizationResult()
    seen: set[IdentityKey] = set()
    for ordinal, record in enumerate(records):
        try:
            entity = normalize_record(record, ordinal=ordinal)
        except MalformedRecordError as exc:
            log.warning("Skipping record: %s", exc)
            result.malformed.append(exc)
            continue
        if entity.identity_key in seen:
            exc = MalformedRecordError(
                entity.source, ordinal, f"duplicate identity key {entity.identity_key}"
            )
            log.warning("Skipping record: %s", exc)
            result.malformed.append(exc)
            continue
        seen.add(entity.identity_key)
        result.entities.append(entity)
        if isinstance(record, BusinessRecord | SheetRecord):
            result.secondaries.append(_secondary_entry(record, entity, ordinal))
    return result


def _secondary_entry(
    record: BusinessRecord | SheetRecord,
    entity: CatalogEntity,
    ordinal: int,
) -> SecondaryEntry:
    type_hint = EntityType.parse(record.element_type)
    return SecondaryEntry(
        entity=entity,
        record_id=_clean(record.id),
        match_tags=entity.tags,
        name=entity.label,
        type_hint=type_hint,
        source_index=ordinal,
    )
