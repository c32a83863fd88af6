"""Query result ranking and grouping.

Turns raw index hits into display-ready groups:
- group by entity type (with the business-group override)
- order hits inside a group by native playlist order, then label, then parent label
- order groups by a fixed type priority, unlisted types last in discovery order
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from toursearch.domain.model import EntityType, SourceKind
from toursearch.domain.ports.search import ScoredMatch
from toursearch.domain.reconciliation.policy import ListFilter, PolicyError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from toursearch.domain.catalog import Catalog
    from toursearch.domain.model import CatalogEntity, IdentityKey
    from toursearch.domain.ports.search import MatchIndex

log = logging.getLogger(__name__)

WILDCARD = "*"
EXACT_PREFIX = "="

TYPE_PRIORITY: tuple[str, ...] = (
    EntityType.PANORAMA,
    EntityType.HOTSPOT,
    EntityType.MODEL_3D,
    EntityType.HOTSPOT_3D,
    EntityType.POLYGON,
    EntityType.VIDEO,
    EntityType.WEBFRAME,
    EntityType.IMAGE,
    EntityType.TEXT,
    EntityType.PROJECTED_IMAGE,
    EntityType.ELEMENT,
    EntityType.BUSINESS,
)
_PRIORITY_INDEX = {name: index for index, name in enumerate(TYPE_PRIORITY)}


class BusinessGroupOverride(StrEnum):
    TYPE = "type"
    BUSINESS = "business"


@dataclass(frozen=True, slots=True, kw_only=True)
class RankingPolicy:
    min_query_length: int = 2
    business_data_enabled: bool = True
    business_group_override: BusinessGroupOverride = BusinessGroupOverride.TYPE
    display_labels: Mapping[str, str] = field(default_factory=dict["str", "str"])
    result_types: ListFilter = field(default_factory=ListFilter)
    max_results: int | None = None

    def __post_init__(self) -> None:
        if self.min_query_length < 0:
            raise PolicyError("min_query_length must not be negative")
        if self.max_results is not None and self.max_results < 1:
            raise PolicyError("max_results must be positive")

    def group_label(self, group_key: str) -> str:
        return self.display_labels.get(group_key, group_key)


@dataclass(frozen=True, slots=True)
class SearchHit:
    """One result row: the entity plus what the renderer needs to draw it."""

    entity: CatalogEntity
    score: float
    highlights: tuple[tuple[int, int], ...] = ()

    @property
    def label(self) -> str:
        return self.entity.label

    @property
    def subtitle(self) -> str:
        return self.entity.subtitle

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(sorted(self.entity.tags))

    @property
    def image_ref(self) -> str | None:
        return self.entity.image_ref

    @property
    def navigation_ref(self) -> Any:
        return self.entity.navigation_ref

    @property
    def parent_ref(self) -> IdentityKey | None:
        return self.entity.parent_ref

    def highlighted_label(self, start: str = "[", end: str = "]") -> str:
        label = self.entity.label
        parts: list[str] = []
        cursor = 0
        for span_start, span_end in sorted(self.highlights):
            if span_start < cursor or span_end <= span_start:
                continue
            parts.extend((label[cursor:span_start], start, label[span_start:span_end], end))
            cursor = span_end
        parts.append(label[cursor:])
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class ResultGroup:
    entity_type: str
    label: str
    hits: tuple[SearchHit, ...] = ()

    @property
    def count(self) -> int:
        return len(self.hits)

    @property
    def entities(self) -> tuple[CatalogEntity, ...]:
        return tuple(hit.entity for hit in self.hits)


@dataclass(frozen=True, slots=True)
class SearchResponse:
    query: str
    groups: tuple[ResultGroup, ...] = ()
    too_short: bool = False
    exact: bool = False
    wildcard: bool = False

    @property
    def total(self) -> int:
        return sum(group.count for group in self.groups)

    @property
    def is_empty(self) -> bool:
        return not self.groups


@dataclass(slots=True)
class ResultRanker:
    policy: RankingPolicy = field(default_factory=RankingPolicy)

    def group_key(self, entity: CatalogEntity) -> str:
        business_backed = (
            entity.source is SourceKind.BUSINESS or SourceKind.BUSINESS in entity.matched_sources
        )
        if (
            business_backed
            and self.policy.business_data_enabled
            and self.policy.business_group_override is BusinessGroupOverride.BUSINESS
        ):
            return EntityType.BUSINESS.value
        return entity.entity_type.value

    def rank(self, matches: Iterable[ScoredMatch]) -> tuple[ResultGroup, ...]:
        grouped: dict[str, list[SearchHit]] = {}
        seen: set[IdentityKey] = set()
        for match in matches:
            key = match.entity.identity_key
            if key in seen:
                continue
            seen.add(key)
            hit = SearchHit(match.entity, match.score, match.highlights)
            grouped.setdefault(self.group_key(match.entity), []).append(hit)

        discovery = list(grouped)
        ordered_keys = sorted(
            discovery,
            key=lambda name: (
                _PRIORITY_INDEX.get(name, len(TYPE_PRIORITY)),
                discovery.index(name),
            ),
        )
        groups: list[ResultGroup] = []
        for name in ordered_keys:
            if not self.policy.result_types.admits((name,)):
                continue
            hits = sorted(grouped[name], key=_hit_sort_key)
            groups.append(ResultGroup(name, self.policy.group_label(name), tuple(hits)))
        return self._limit(tuple(groups))

    def _limit(self, groups: tuple[ResultGroup, ...]) -> tuple[ResultGroup, ...]:
        remaining = self.policy.max_results
        if remaining is None:
            return groups
        limited: list[ResultGroup] = []
        for group in groups:
            if remaining <= 0:
                break
            hits = group.hits[:remaining]
            remaining -= len(hits)
            limited.append(ResultGroup(group.entity_type, group.label, hits))
        return tuple(limited)


def _hit_sort_key(hit: SearchHit) -> tuple[bool, float, str, str]:
    order = hit.entity.playlist_order
    return (order is None, order or 0.0, hit.entity.label, hit.entity.parent_label)


def search(
    catalog: Catalog,
    index: MatchIndex,
    query: str,
    *,
    policy: RankingPolicy | None = None,
) -> SearchResponse:
    """Run ``query`` against ``index`` and rank the hits.

    ``*`` returns the whole catalog with score 0; a leading ``=`` asks for a
    case-insensitive exact label match instead of fuzzy search.
    """

    ranker = ResultRanker(policy or RankingPolicy())
    text = query.strip()

    if text == WILDCARD:
        matches = [ScoredMatch(entity, 0.0) for entity in catalog]
        return SearchResponse(query, ranker.rank(matches), wildcard=True)

    exact = text.startswith(EXACT_PREFIX)
    term = text.removeprefix(EXACT_PREFIX).strip() if exact else text
    if not term or len(term) < ranker.policy.min_query_length:
        log.debug("Query %r shorter than %d characters", query, ranker.policy.min_query_length)
        return SearchResponse(query, too_short=True, exact=exact)

    if exact:
        folded = term.casefold()
        matches = [
            ScoredMatch(entity, 0.0, ((0, len(entity.label)),))
            for entity in catalog
            if entity.label.casefold() == folded
        ]
    else:
        matches = index.search(term)
    return SearchResponse(query, ranker.rank(matches), exact=exact)
