from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from tests.helpers.records import entity
from toursearch.domain.catalog import Catalog
from toursearch.domain.model import EntityType, SourceKind
from toursearch.domain.ports import ScoredMatch
from toursearch.domain.ranking import (
    BusinessGroupOverride,
    RankingPolicy,
    ResultRanker,
    SearchHit,
    search,
)
from toursearch.domain.reconciliation import FilterMode, ListFilter, PolicyError


@dataclass(slots=True)
class FakeIndex:
    matches: list[ScoredMatch] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)

    def search(self, query: str, *, limit: int | None = None) -> list[ScoredMatch]:
        self.queries.append(query)
        return list(self.matches)


@pytest.fixture
def five_entity_catalog() -> Catalog:
    return Catalog(
        (
            entity("h-5", "Desk", entity_type=EntityType.HOTSPOT, playlist_order=5.0),
            entity("p-1", "Beta", entity_type=EntityType.PANORAMA, playlist_order=1.0),
            entity("v-1", "Clip", entity_type=EntityType.VIDEO),
            entity("p-0", "Alpha", entity_type=EntityType.PANORAMA, playlist_order=0.0),
            entity("h-2", "Door", entity_type=EntityType.HOTSPOT, playlist_order=2.0),
        )
    )


def test_wildcard_returns_every_entity_grouped_and_ordered(five_entity_catalog: Catalog) -> None:
    index = FakeIndex()

    response = search(five_entity_catalog, index, "*")

    assert response.wildcard
    assert response.total == 5
    assert [group.entity_type for group in response.groups] == ["Panorama", "Hotspot", "Video"]
    assert [hit.label for hit in response.groups[0].hits] == ["Alpha", "Beta"]
    assert [hit.label for hit in response.groups[1].hits] == ["Door", "Desk"]
    assert all(hit.score == 0.0 for group in response.groups for hit in group.hits)
    assert index.queries == []


def test_short_query_is_flagged(five_entity_catalog: Catalog) -> None:
    index = FakeIndex()

    response = search(five_entity_catalog, index, " a ")

    assert response.too_short
    assert response.is_empty
    assert index.queries == []


def test_exact_query_matches_labels_case_insensitively(five_entity_catalog: Catalog) -> None:
    response = search(five_entity_catalog, FakeIndex(), "=DOOR")

    assert response.exact
    (group,) = response.groups
    (hit,) = group.hits
    assert hit.label == "Door"
    assert hit.highlights == ((0, 4),)


def test_fuzzy_query_goes_through_index(five_entity_catalog: Catalog) -> None:
    door = five_entity_catalog.entities[4]
    index = FakeIndex([ScoredMatch(door, 0.1), ScoredMatch(door, 0.2)])

    response = search(five_entity_catalog, index, "dor")

    assert index.queries == ["dor"]
    assert response.total == 1


def test_business_backed_entities_group_by_override() -> None:
    shop = entity(
        "p-1",
        "Shop",
        entity_type=EntityType.PANORAMA,
        matched_sources=(SourceKind.BUSINESS,),
    )
    matches = [ScoredMatch(shop, 0.0)]

    by_business = ResultRanker(
        RankingPolicy(business_group_override=BusinessGroupOverride.BUSINESS)
    ).rank(matches)
    by_type = ResultRanker(RankingPolicy()).rank(matches)
    disabled = ResultRanker(
        RankingPolicy(
            business_group_override=BusinessGroupOverride.BUSINESS,
            business_data_enabled=False,
        )
    ).rank(matches)

    assert by_business[0].entity_type == "Business"
    assert by_type[0].entity_type == "Panorama"
    assert disabled[0].entity_type == "Panorama"


def test_unlisted_types_follow_priority_list() -> None:
    matches = [
        ScoredMatch(entity("m", "Statue", entity_type=EntityType.MODEL_3D_OBJECT), 0.1),
        ScoredMatch(entity("b", "Cafe", entity_type=EntityType.BUSINESS), 0.2),
        ScoredMatch(entity("p", "Lobby", entity_type=EntityType.PANORAMA), 0.3),
    ]

    groups = ResultRanker().rank(matches)

    assert [group.entity_type for group in groups] == ["Panorama", "Business", "Model3DObject"]


def test_hits_sort_by_order_then_label_then_parent_label() -> None:
    matches = [
        ScoredMatch(entity("x", "Zulu", playlist_order=None), 0.0),
        ScoredMatch(entity("y", "Door", parent_label="West", playlist_order=1.0), 0.0),
        ScoredMatch(entity("z", "Door", parent_label="East", playlist_order=1.0), 0.0),
        ScoredMatch(entity("w", "Attic", playlist_order=0.0), 0.0),
    ]

    (group,) = ResultRanker().rank(matches)

    assert [hit.entity.native_id for hit in group.hits] == ["w", "z", "y", "x"]


def test_display_labels_result_types_and_limit() -> None:
    matches = [
        ScoredMatch(entity("p", "Lobby", entity_type=EntityType.PANORAMA), 0.0),
        ScoredMatch(entity("h1", "Desk", entity_type=EntityType.HOTSPOT), 0.0),
        ScoredMatch(entity("h2", "Door", entity_type=EntityType.HOTSPOT), 0.0),
    ]
    policy = RankingPolicy(
        display_labels={"Hotspot": "Points of interest"},
        result_types=ListFilter(FilterMode.WHITELIST, ("Hotspot",)),
        max_results=1,
    )

    (group,) = ResultRanker(policy).rank(matches)

    assert group.label == "Points of interest"
    assert group.count == 1


def test_ranking_policy_validation() -> None:
    with pytest.raises(PolicyError):
        RankingPolicy(max_results=0)


def test_highlighted_label() -> None:
    hit = SearchHit(entity("a", "Main Room"), 0.1, ((5, 9),))

    assert hit.highlighted_label() == "Main [Room]"
    assert hit.highlighted_label("<b>", "</b>") == "Main <b>Room</b>"
