"""
Catalog entity: the unit of search.

Entities are immutable. Stages that change field values (merge, label
finalization) produce copies via ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from toursearch.domain.model.enums import ConfidenceTier, SourceKind

if TYPE_CHECKING:
    from toursearch.domain.model.enums import EntityType, MatchMethod


@dataclass(frozen=True, slots=True, order=True)
class IdentityKey:
    """(source, native id) pair identifying one catalog entity."""

    source: SourceKind
    native_id: str

    def __str__(self) -> str:
        return f"{self.source}:{self.native_id}"


@dataclass(frozen=True, slots=True, kw_only=True)
class CatalogEntity:
    identity_key: IdentityKey
    entity_type: EntityType
    label: str = ""
    original_label: str = ""
    subtitle: str = ""
    description: str = ""
    tags: frozenset[str] = field(default_factory=frozenset["str"])
    parent_ref: IdentityKey | None = None
    parent_label: str = ""
    navigation_ref: Any = field(default=None, compare=False)
    match_confidence: ConfidenceTier = ConfidenceTier.NONE
    match_method: MatchMethod | None = None
    matched_sources: tuple[SourceKind, ...] = ()
    boost_weight: float = 1.0
    is_standalone: bool = False
    playlist_order: float | None = None
    image_ref: str | None = None
    image_source: SourceKind | None = None
    ordinal: int = 0
    positional_id: bool = False
    media_id: str = ""

    @property
    def source(self) -> SourceKind:
        return self.identity_key.source

    @property
    def native_id(self) -> str:
        return self.identity_key.native_id

    @property
    def is_native(self) -> bool:
        return self.identity_key.source is SourceKind.TOUR

    @property
    def is_child(self) -> bool:
        return self.parent_ref is not None

    @property
    def folded_tags(self) -> frozenset[str]:
        return frozenset(tag.casefold() for tag in self.tags)

    def has_tag(self, tag: str) -> bool:
        return tag.casefold() in self.folded_tags

    def with_changes(self, **changes: Any) -> CatalogEntity:
        return replace(self, **changes)
