"""Translate business feed entries into domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from toursearch.domain.model import BusinessRecord

if TYPE_CHECKING:
    from .schema import BusinessEntry


def translate_entry(entry: BusinessEntry) -> BusinessRecord:
    return BusinessRecord(
        id=entry.id.strip(),
        name=entry.name.strip(),
        description=entry.description.strip(),
        match_tags=tuple(tag.strip() for tag in entry.match_tags if tag.strip()),
        image_url=(entry.image_url or "").strip() or None,
        local_image_path=(entry.local_image_path or "").strip() or None,
        element_type=(entry.element_type or "").strip() or None,
        parent_id=(entry.parent_id or "").strip() or None,
    )
