"""Cross-source candidate matching.

Responsibilities of this stage:
- pair each secondary record with every tour entity it plausibly describes
- annotate each pair with the strongest ``MatchMethod`` that connected them

Out of scope for this stage:
- choosing between candidates (see ``resolve``)
- consumption bookkeeping
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from toursearch.domain.model import MatchMethod

from .contracts import MatchCandidate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toursearch.domain.model import CatalogEntity

    from .contracts import SecondaryEntry


class MatchPool(Protocol):
    """Find all (target, secondary) candidate pairs for one secondary pool."""

    def __call__(
        self,
        targets: Sequence[CatalogEntity],
        pool: Sequence[SecondaryEntry],
    ) -> tuple[MatchCandidate, ...]: ...


def match_method(target: CatalogEntity, secondary: SecondaryEntry) -> MatchMethod | None:
    """Return the strongest method linking ``secondary`` to ``target``.

    Strategies are tried in fixed priority order: exact id (native id or
    media id), shared tag, then case-insensitive label equality.
    """

    record_id = secondary.record_id.strip()
    if record_id and record_id in _target_ids(target):
        return MatchMethod.EXACT_ID
    if secondary.folded_tags & target.folded_tags:
        return MatchMethod.TAG
    name = secondary.name.strip().casefold()
    if name and name == target.original_label.strip().casefold():
        return MatchMethod.LABEL
    return None


def _target_ids(target: CatalogEntity) -> set[str]:
    native_id = "" if target.positional_id else target.native_id.strip()
    return {key for key in (native_id, target.media_id.strip()) if key}


def find_candidates(
    target: CatalogEntity,
    pool: Sequence[SecondaryEntry],
) -> tuple[MatchCandidate, ...]:
    """All candidates for a single tour entity, in pool order."""

    candidates: list[MatchCandidate] = []
    for secondary in pool:
        method = match_method(target, secondary)
        if method is not None:
            candidates.append(
                MatchCandidate(
                    target=target,
                    secondary=secondary,
                    method=method,
                    order=target.ordinal,
                )
            )
    return tuple(candidates)


def match_pool(
    targets: Sequence[CatalogEntity],
    pool: Sequence[SecondaryEntry],
) -> tuple[MatchCandidate, ...]:
    """All candidate pairs ordered by (secondary order, target order).

    Performs no filtering: a secondary may match several targets and a target
    several secondaries.
    """

    candidates: list[MatchCandidate] = []
    for secondary in pool:
        for order, target in enumerate(targets):
            method = match_method(target, secondary)
            if method is None:
                continue
            candidates.append(
                MatchCandidate(target=target, secondary=secondary, method=method, order=order)
            )
    return tuple(candidates)
