"""Flatten a tour document into ``TourRecord`` values.

Exports do not always give every playlist item or overlay an ``id``. Those
get a stable positional id (``#<item>`` for items, ``<parent id>#<overlay>``
for overlays) so they still reach the catalog, flagged as ``positional_id``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from toursearch.domain.model import TourRecord

if TYPE_CHECKING:
    from .schema import TourDocument, TourOverlay, TourPlaylistItem

CHILD_ORDER_STRIDE = 1000


@dataclass(frozen=True, slots=True)
class NavigationHandle:
    """Where to send the player: a playlist item and optionally one of its overlays."""

    playlist_index: int
    overlay_index: int | None = None
    overlay_id: str | None = None


def item_native_id(item: TourPlaylistItem, index: int) -> str:
    return item.id or f"#{index}"


def translate_document(document: TourDocument) -> list[TourRecord]:
    records: list[TourRecord] = []
    for index, item in enumerate(document.playlist):
        records.append(translate_item(item, index))
        records.extend(
            translate_overlay(overlay, parent=item, parent_index=index, overlay_index=position)
            for position, overlay in enumerate(item.overlays)
        )
    return records


def translate_item(item: TourPlaylistItem, index: int) -> TourRecord:
    return TourRecord(
        native_id=item_native_id(item, index),
        positional_id=not item.id,
        label=item.label,
        subtitle=item.subtitle,
        tags=tuple(item.tags),
        entity_type_hint=item.type,
        class_hint=item.class_name,
        properties=item.properties(),
        media_id=item.media_id,
        playlist_index=float(index),
        navigation_handle=NavigationHandle(playlist_index=index),
        thumbnail=item.thumbnail,
    )


def translate_overlay(
    overlay: TourOverlay,
    *,
    parent: TourPlaylistItem,
    parent_index: int,
    overlay_index: int,
) -> TourRecord:
    parent_id = item_native_id(parent, parent_index)
    return TourRecord(
        native_id=overlay.id or f"{parent_id}#{overlay_index}",
        positional_id=not overlay.id,
        label=overlay.label,
        subtitle=overlay.subtitle,
        tags=tuple(overlay.tags),
        entity_type_hint=overlay.type,
        class_hint=overlay.class_name,
        properties=overlay.properties(),
        parent_native_id=parent_id,
        playlist_index=float(parent_index * CHILD_ORDER_STRIDE + overlay_index),
        navigation_handle=NavigationHandle(
            playlist_index=parent_index,
            overlay_index=overlay_index,
            overlay_id=overlay.id or None,
        ),
    )
