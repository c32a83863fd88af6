"""Port for the external fuzzy-match index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from toursearch.domain.model import CatalogEntity


@dataclass(frozen=True, slots=True)
class ScoredMatch:
    """One index hit. ``score`` runs from 0.0 (perfect) to 1.0 (no match)."""

    entity: CatalogEntity
    score: float
    highlights: tuple[tuple[int, int], ...] = ()


@runtime_checkable
class MatchIndex(Protocol):
    """Weighted fuzzy index over a frozen catalog."""

    def search(self, query: str, *, limit: int | None = None) -> list[ScoredMatch]: ...


__all__ = ["MatchIndex", "ScoredMatch"]
