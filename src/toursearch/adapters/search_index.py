"""Weighted fuzzy-match index over a frozen catalog, backed by rapidfuzz.

Each entity is scored per field with ``fuzz.partial_ratio``; the best
weighted field wins. Scores run from 0.0 (perfect) to 1.0 (no match) and are
raised to the entity's boost weight, so boosted entities sort earlier without
changing which entities pass the threshold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from rapidfuzz import fuzz

from toursearch.domain.ports.search import ScoredMatch

if TYPE_CHECKING:
    from collections.abc import Mapping

    from toursearch.domain.catalog import Catalog
    from toursearch.domain.model import CatalogEntity

log = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "label": 1.0,
        "description": 0.9,
        "subtitle": 0.8,
        "tags": 0.6,
        "parent_label": 0.3,
    }
)
DEFAULT_THRESHOLD = 0.4


@dataclass(frozen=True, slots=True)
class _IndexedEntry:
    entity: CatalogEntity
    fields: tuple[tuple[float, tuple[str, ...]], ...]


@dataclass(slots=True)
class FuzzyIndex:
    """``MatchIndex`` implementation; build one per catalog."""

    catalog: Catalog
    threshold: float = DEFAULT_THRESHOLD
    field_weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_FIELD_WEIGHTS)
    _entries: tuple[_IndexedEntry, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self._entries = tuple(self._index(entity) for entity in self.catalog)
        log.debug("Indexed %d entities", len(self._entries))

    def _index(self, entity: CatalogEntity) -> _IndexedEntry:
        values: dict[str, tuple[str, ...]] = {
            "label": (entity.label,),
            "description": (entity.description,),
            "subtitle": (entity.subtitle,),
            "tags": tuple(sorted(entity.tags)),
            "parent_label": (entity.parent_label,),
        }
        fields = tuple(
            (weight, tuple(value for value in values[name] if value.strip()))
            for name, weight in self.field_weights.items()
            if name in values and weight > 0
        )
        return _IndexedEntry(entity, fields)

    def search(self, query: str, *, limit: int | None = None) -> list[ScoredMatch]:
        term = query.strip()
        if not term:
            return []

        scored: list[tuple[float, int, ScoredMatch]] = []
        for position, entry in enumerate(self._entries):
            relevance = _relevance(term, entry)
            score = 1.0 - relevance
            if score > self.threshold:
                continue
            boosted = score ** max(entry.entity.boost_weight, 1e-6)
            highlights = _label_highlights(term, entry.entity.label, self.threshold)
            scored.append((boosted, position, ScoredMatch(entry.entity, boosted, highlights)))

        scored.sort(key=lambda item: (item[0], item[1]))
        matches = [match for _score, _position, match in scored]
        return matches[:limit] if limit is not None else matches


def _relevance(term: str, entry: _IndexedEntry) -> float:
    best = 0.0
    for weight, values in entry.fields:
        for value in values:
            ratio = fuzz.partial_ratio(term, value, processor=str.lower) / 100.0
            best = max(best, ratio * weight)
    return best


def _label_highlights(term: str, label: str, threshold: float) -> tuple[tuple[int, int], ...]:
    if not label:
        return ()
    alignment = fuzz.partial_ratio_alignment(
        term, label, processor=str.lower, score_cutoff=(1.0 - threshold) * 100
    )
    if alignment is None or alignment.dest_end <= alignment.dest_start:
        return ()
    return ((alignment.dest_start, alignment.dest_end),)


__all__ = ["DEFAULT_FIELD_WEIGHTS", "DEFAULT_THRESHOLD", "FuzzyIndex"]
