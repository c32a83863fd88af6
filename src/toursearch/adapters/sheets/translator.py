"""Translate spreadsheet rows into domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from toursearch.domain.model import SheetRecord

if TYPE_CHECKING:
    from .schema import SheetRow


def translate_row(row: SheetRow) -> SheetRecord:
    return SheetRecord(
        id=row.id.strip(),
        tag=row.tag.strip(),
        name=row.name.strip(),
        description=row.description.strip(),
        image_url=row.resolved_image.strip() or None,
        element_type=row.resolved_type.strip() or None,
        parent_id=row.parent_id.strip() or None,
    )
