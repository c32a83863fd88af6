"""Raw inbound records delivered by source adapters.

Records are plain data: adapters build them from provider payloads, the
normalizer turns them into ``CatalogEntity`` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True, kw_only=True)
class TourRecord:
    """One element of the native tour structure (panorama, overlay, 3D object)."""

    native_id: str
    # native_id was derived from the playlist position, the export has none
    positional_id: bool = False
    label: str = ""
    subtitle: str = ""
    tags: tuple[str, ...] = ()
    entity_type_hint: str | None = None
    class_hint: str | None = None
    properties: dict[str, Any] = field(default_factory=dict["str", "Any"])
    parent_native_id: str | None = None
    media_id: str | None = None
    playlist_index: float | None = None
    navigation_handle: Any = None
    thumbnail: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class BusinessRecord:
    id: str
    name: str = ""
    description: str = ""
    match_tags: tuple[str, ...] = ()
    image_url: str | None = None
    local_image_path: str | None = None
    element_type: str | None = None
    parent_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class SheetRecord:
    id: str = ""
    tag: str = ""
    name: str = ""
    description: str = ""
    image_url: str | None = None
    element_type: str | None = None
    parent_id: str | None = None


type SourceRecord = TourRecord | BusinessRecord | SheetRecord
