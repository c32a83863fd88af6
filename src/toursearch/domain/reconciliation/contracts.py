"""Shared reconciliation contract components.

This module intentionally holds only:
- the secondary-record view consumed by matcher and resolver
- candidate and resolution dataclasses/enums passed between stages
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from toursearch.domain.errors import AmbiguousMatchWarning
    from toursearch.domain.model import (
        CatalogEntity,
        ConfidenceTier,
        EntityType,
        MatchMethod,
        SourceKind,
    )

    from .policy import TieBreaker


@dataclass(frozen=True, slots=True, kw_only=True)
class SecondaryEntry:
    """A normalized business/sheet record plus the raw keys used for matching.

    ``entity`` is what the record would look like as a standalone catalog
    entry; ``record_id`` is the raw id (possibly empty, unlike the identity key).
    """

    entity: CatalogEntity
    record_id: str
    match_tags: frozenset[str]
    name: str
    type_hint: EntityType | None
    source_index: int

    @property
    def source(self) -> SourceKind:
        return self.entity.source

    @property
    def folded_tags(self) -> frozenset[str]:
        return frozenset(tag.casefold() for tag in self.match_tags)


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchCandidate:
    """One plausible (tour entity, secondary record) correspondence."""

    target: CatalogEntity
    secondary: SecondaryEntry
    method: MatchMethod
    order: int

    @property
    def tier(self) -> ConfidenceTier:
        return self.method.tier


class ResolutionStatus(StrEnum):
    ACCEPTED = "accepted"
    STANDALONE = "standalone"
    DROPPED = "dropped"


class DropReason(StrEnum):
    CONSUMED_ID = "consumed_id"
    CONSUMED_TAG = "consumed_tag"
    DUPLICATE_LABEL = "duplicate_label"
    STANDALONE_DISABLED = "standalone_disabled"
    FILTERED = "filtered"


@dataclass(frozen=True, slots=True, kw_only=True)
class AcceptedResolution:
    secondary: SecondaryEntry
    candidate: MatchCandidate
    ambiguity: AmbiguousMatchWarning | None = None
    status: Literal[ResolutionStatus.ACCEPTED] = ResolutionStatus.ACCEPTED

    @property
    def target(self) -> CatalogEntity:
        return self.candidate.target

    @property
    def tie_break(self) -> TieBreaker | Literal["first"] | None:
        return self.ambiguity.rule if self.ambiguity is not None else None


@dataclass(frozen=True, slots=True, kw_only=True)
class StandaloneResolution:
    secondary: SecondaryEntry
    status: Literal[ResolutionStatus.STANDALONE] = ResolutionStatus.STANDALONE


@dataclass(frozen=True, slots=True, kw_only=True)
class DroppedResolution:
    secondary: SecondaryEntry
    reason: DropReason
    status: Literal[ResolutionStatus.DROPPED] = ResolutionStatus.DROPPED


type Resolution = AcceptedResolution | StandaloneResolution | DroppedResolution
