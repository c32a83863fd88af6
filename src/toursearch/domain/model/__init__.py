"""Public domain model surface."""

from __future__ import annotations

from toursearch.domain.model.entity import CatalogEntity, IdentityKey
from toursearch.domain.model.enums import ConfidenceTier, EntityType, MatchMethod, SourceKind
from toursearch.domain.model.records import BusinessRecord, SheetRecord, SourceRecord, TourRecord

__all__ = [
    "BusinessRecord",
    "CatalogEntity",
    "ConfidenceTier",
    "EntityType",
    "IdentityKey",
    "MatchMethod",
    "SheetRecord",
    "SourceKind",
    "SourceRecord",
    "TourRecord",
]
