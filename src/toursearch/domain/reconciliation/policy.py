"""Reconciliation policy values.

Responsibilities of these types:
- pre-catalog allow/block filtering of entities
- per-source precedence (does a secondary source replace tour text?)
- label fallback toggles and boost multipliers for the merge stage
- tie-break order for ambiguous secondary-to-tour candidates

Everything here is immutable and validated on construction, so the builder
can trust it without further checks.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from toursearch.domain.model import EntityType, SourceKind

if TYPE_CHECKING:
    from toursearch.domain.model import CatalogEntity


class PolicyError(ValueError):
    """Raised when policy values are inconsistent."""


class FilterMode(StrEnum):
    NONE = "none"
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"


@dataclass(frozen=True, slots=True)
class ListFilter:
    mode: FilterMode = FilterMode.NONE
    values: tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return self.mode is not FilterMode.NONE and bool(self.values)

    def admits(self, candidates: Iterable[str], *, substring: bool = False) -> bool:
        """Return whether ``candidates`` pass the filter.

        Whitelists need at least one candidate to hit a value; blacklists reject
        on any hit. With ``substring`` a value matches when it is contained in a
        candidate instead of being equal to it.
        """

        if not self.active:
            return True
        items = [candidate for candidate in candidates if candidate]
        hit = any(
            (value in item) if substring else (value == item)
            for item in items
            for value in self.values
        )
        if self.mode is FilterMode.WHITELIST:
            return hit
        return not hit


@dataclass(frozen=True, slots=True, kw_only=True)
class FilterPolicy:
    element_types: ListFilter = field(default_factory=ListFilter)
    labels: ListFilter = field(default_factory=ListFilter)
    tags: ListFilter = field(default_factory=ListFilter)
    panorama_labels: ListFilter = field(default_factory=ListFilter)
    media_indexes: ListFilter = field(default_factory=ListFilter)
    include_completely_blank: bool = True
    skip_empty_labels: bool = False
    min_label_length: int = 0

    def admits(self, entity: CatalogEntity) -> bool:
        label = entity.original_label or entity.label
        if entity.entity_type is EntityType.PANORAMA and not entity.is_child:
            return self._admits_panorama(entity, label)
        return self._admits_element(entity, label)

    def _admits_panorama(self, entity: CatalogEntity, label: str) -> bool:
        if not self.element_types.admits((entity.entity_type.value,)):
            return False
        if not self.panorama_labels.admits((label, entity.subtitle)):
            return False
        if label or entity.subtitle or entity.tags:
            return True
        if not self.media_indexes.admits((_order_key(entity),)):
            return False
        return self.include_completely_blank

    def _admits_element(self, entity: CatalogEntity, label: str) -> bool:
        if not label and self.skip_empty_labels:
            return False
        if label and 0 < len(label) < self.min_label_length:
            return False
        if not self.element_types.admits((entity.entity_type.value,)):
            return False
        if label and not self.labels.admits((label,), substring=True):
            return False
        if entity.tags:
            return self.tags.admits(entity.tags)
        return not (self.tags.active and self.tags.mode is FilterMode.WHITELIST)


def _order_key(entity: CatalogEntity) -> str:
    if entity.playlist_order is None:
        return ""
    return str(int(entity.playlist_order))


@dataclass(frozen=True, slots=True, kw_only=True)
class LabelFallback:
    use_subtitle: bool = True
    use_tags: bool = True
    use_element_type: bool = True
    placeholder_text: str = "Untitled"

    def __post_init__(self) -> None:
        if not self.placeholder_text.strip():
            raise PolicyError("placeholder_text must not be blank")


@dataclass(frozen=True, slots=True, kw_only=True)
class BoostWeights:
    matched_replaced: float = 3.0
    matched_enriched: float = 2.5
    labeled_native: float = 1.5
    unlabeled_native: float = 1.0
    child_element: float = 0.8
    standalone: float = 1.5

    def __post_init__(self) -> None:
        if self.child_element <= 0 or self.standalone <= 0:
            raise PolicyError("Boost weights must be positive")
        ordered = (
            self.matched_replaced >= self.matched_enriched
            and self.matched_enriched > self.labeled_native
            and self.labeled_native > self.unlabeled_native
            and self.unlabeled_native > self.child_element
        )
        if not ordered:
            raise PolicyError(
                "Boost weights must satisfy matched_replaced >= matched_enriched > "
                "labeled_native > unlabeled_native > child_element"
            )


class TieBreaker(StrEnum):
    TYPE_HINT = "type_hint"
    DESCRIPTION = "description"


DEFAULT_TIE_BREAKERS: tuple[TieBreaker, ...] = (TieBreaker.TYPE_HINT, TieBreaker.DESCRIPTION)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolverPolicy:
    include_standalone_entries: bool = False
    tie_breakers: tuple[TieBreaker, ...] = DEFAULT_TIE_BREAKERS

    def __post_init__(self) -> None:
        if len(set(self.tie_breakers)) != len(self.tie_breakers):
            raise PolicyError("tie_breakers must not repeat")


@dataclass(frozen=True, slots=True, kw_only=True)
class SourcePrecedence:
    """Whether each secondary source replaces native label/subtitle on a match."""

    business_replaces_native: bool = True
    sheet_replaces_native: bool = True

    def replaces_native(self, source: SourceKind) -> bool:
        if source is SourceKind.BUSINESS:
            return self.business_replaces_native
        if source is SourceKind.SHEET:
            return self.sheet_replaces_native
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationPolicy:
    filters: FilterPolicy = field(default_factory=FilterPolicy)
    labels: LabelFallback = field(default_factory=LabelFallback)
    boosts: BoostWeights = field(default_factory=BoostWeights)
    resolver: ResolverPolicy = field(default_factory=ResolverPolicy)
    precedence: SourcePrecedence = field(default_factory=SourcePrecedence)
