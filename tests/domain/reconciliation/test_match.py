from __future__ import annotations

from typing import TYPE_CHECKING

from tests.helpers.records import business, entity, sheet
from toursearch.domain.model import MatchMethod
from toursearch.domain.reconciliation import find_candidates, match_pool, normalize_records
from toursearch.domain.reconciliation.match import match_method

if TYPE_CHECKING:
    from toursearch.domain.model import BusinessRecord, SheetRecord
    from toursearch.domain.reconciliation import SecondaryEntry


def _secondaries(*records: BusinessRecord | SheetRecord) -> list[SecondaryEntry]:
    return normalize_records(list(records)).secondaries


def test_match_method_prefers_exact_id_over_tag_and_label() -> None:
    target = entity("Room-1", "Room", tags=["Room-1"])
    (secondary,) = _secondaries(business("Room-1", "Room", match_tags=["Room-1"]))

    assert match_method(target, secondary) is MatchMethod.EXACT_ID


def test_match_method_matches_media_id() -> None:
    target = entity("overlay-9", "", media_id="media-3")
    (secondary,) = _secondaries(business("media-3", "Gallery"))

    assert match_method(target, secondary) is MatchMethod.EXACT_ID


def test_match_method_tags_compare_case_insensitively() -> None:
    target = entity("pano-1", "", tags=["MyCoolTag_01"])
    (secondary,) = _secondaries(sheet("", "Tagged", tag="mycooltag_01"))

    assert match_method(target, secondary) is MatchMethod.TAG


def test_match_method_label_uses_original_label() -> None:
    target = entity("pano-1", "Renamed", original_label="Lobby")
    (secondary,) = _secondaries(business("x", " lobby "))

    assert match_method(target, secondary) is MatchMethod.LABEL


def test_match_method_returns_none_without_shared_keys() -> None:
    target = entity("pano-1", "Lobby", tags=["a"])
    (secondary,) = _secondaries(business("x", "Garden", match_tags=["b"]))

    assert match_method(target, secondary) is None


def test_match_pool_orders_by_secondary_then_target() -> None:
    targets = [
        entity("t-1", "", tags=["shared"], ordinal=0),
        entity("t-2", "", tags=["shared"], ordinal=1),
    ]
    pool = _secondaries(
        business("b-1", "", match_tags=["shared"]),
        business("t-2", ""),
    )

    candidates = match_pool(targets, pool)

    assert [(c.secondary.record_id, c.target.native_id, c.order) for c in candidates] == [
        ("b-1", "t-1", 0),
        ("b-1", "t-2", 1),
        ("t-2", "t-2", 1),
    ]
    assert candidates[2].method is MatchMethod.EXACT_ID


def test_find_candidates_for_single_target() -> None:
    target = entity("t-1", "Lobby", tags=["x"], ordinal=5)
    pool = _secondaries(
        business("a", "Lobby"),
        business("b", "Other"),
        business("c", "", match_tags=["X"]),
    )

    candidates = find_candidates(target, pool)

    assert [c.secondary.record_id for c in candidates] == ["a", "c"]
    assert [c.method for c in candidates] == [MatchMethod.LABEL, MatchMethod.TAG]
    assert all(c.order == 5 for c in candidates)


def test_match_method_ignores_positional_ids() -> None:
    target = entity("#1", "", positional_id=True)
    (secondary,) = _secondaries(business("#1", "Guessed"))

    assert match_method(target, secondary) is None
