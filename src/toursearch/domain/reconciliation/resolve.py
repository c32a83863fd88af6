"""Candidate resolution and deduplication.

Responsibilities of this stage:
- collapse the matcher's N-to-1 candidates into at most one target per secondary
- break confidence ties deterministically, logging each ambiguity
- track consumed ids/tags across every pass of a build, claimed targets per pass
- decide standalone emission for unmatched secondary records

Out of scope for this stage:
- field merging and label fallback (see ``merge``)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from toursearch.domain.errors import AmbiguousMatchWarning

from .contracts import (
    AcceptedResolution,
    DroppedResolution,
    DropReason,
    ResolutionStatus,
    StandaloneResolution,
)
from .policy import ResolverPolicy, TieBreaker

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from toursearch.domain.model import CatalogEntity, IdentityKey

    from .contracts import MatchCandidate, Resolution, SecondaryEntry

log = logging.getLogger(__name__)

type LabelFor = Callable[[CatalogEntity], str]
type Admits = Callable[[CatalogEntity], bool]


@dataclass(slots=True)
class ConsumptionState:
    """Keys used up by earlier resolutions of the same build.

    Ids are compared verbatim (after trimming); tags and labels casefolded.
    """

    consumed_ids: set[str] = field(default_factory=set["str"])
    consumed_tags: set[str] = field(default_factory=set["str"])
    claimed_targets: set[IdentityKey] = field(default_factory=set["IdentityKey"])
    emitted_labels: set[str] = field(default_factory=set["str"])

    def start_pass(self) -> None:
        """Target claims last one pass; consumed keys and emitted labels last the build."""

        self.claimed_targets.clear()

    def consume(self, secondary: SecondaryEntry) -> None:
        if secondary.record_id.strip():
            self.consumed_ids.add(secondary.record_id.strip())
        self.consumed_tags.update(secondary.folded_tags)

    def copy(self) -> ConsumptionState:
        return ConsumptionState(
            consumed_ids=set(self.consumed_ids),
            consumed_tags=set(self.consumed_tags),
            claimed_targets=set(self.claimed_targets),
            emitted_labels=set(self.emitted_labels),
        )

    def record_label(self, label: str) -> None:
        if label.strip():
            self.emitted_labels.add(label.strip().casefold())

    def has_label(self, label: str) -> bool:
        return label.strip().casefold() in self.emitted_labels

    def consumed_reason(self, secondary: SecondaryEntry) -> DropReason | None:
        if secondary.record_id.strip() in self.consumed_ids:
            return DropReason.CONSUMED_ID
        if secondary.folded_tags & self.consumed_tags:
            return DropReason.CONSUMED_TAG
        return None


@dataclass(slots=True)
class ResolutionResult:
    resolutions: tuple[Resolution, ...] = ()

    @property
    def accepted(self) -> tuple[AcceptedResolution, ...]:
        return tuple(r for r in self.resolutions if isinstance(r, AcceptedResolution))

    @property
    def standalone(self) -> tuple[StandaloneResolution, ...]:
        return tuple(r for r in self.resolutions if isinstance(r, StandaloneResolution))

    @property
    def dropped(self) -> tuple[DroppedResolution, ...]:
        return tuple(r for r in self.resolutions if isinstance(r, DroppedResolution))

    def counts(self) -> dict[ResolutionStatus, int]:
        counts = dict.fromkeys(ResolutionStatus, 0)
        for resolution in self.resolutions:
            counts[resolution.status] += 1
        return counts


def _keep_label(entity: CatalogEntity) -> str:
    return entity.label


def _admit_all(_entity: CatalogEntity) -> bool:
    return True


@dataclass(slots=True)
class Resolver:
    """Stateful resolver shared by the business and sheet passes of one build."""

    policy: ResolverPolicy = field(default_factory=ResolverPolicy)
    label_for: LabelFor = _keep_label
    admits: Admits = _admit_all
    state: ConsumptionState = field(default_factory=ConsumptionState)

    def seed_labels(self, entities: Iterable[CatalogEntity]) -> None:
        for entity in entities:
            self.state.record_label(self.label_for(entity))

    def resolve(
        self,
        candidates: Sequence[MatchCandidate],
        secondaries: Sequence[SecondaryEntry],
    ) -> ResolutionResult:
        return ResolutionResult(tuple(self.iter_resolutions(candidates, secondaries)))

    def iter_resolutions(
        self,
        candidates: Sequence[MatchCandidate],
        secondaries: Sequence[SecondaryEntry],
    ) -> Iterator[Resolution]:
        """Yield one resolution per secondary, in secondary order.

        Consumption state is updated before each yield, so a consumer that
        records emitted labels between steps sees them honoured by later rows.
        """

        by_secondary: dict[IdentityKey, list[MatchCandidate]] = defaultdict(list)
        for candidate in candidates:
            by_secondary[candidate.secondary.entity.identity_key].append(candidate)
        for secondary in secondaries:
            key = secondary.entity.identity_key
            yield self.resolve_secondary(secondary, by_secondary.get(key, ()))

    def resolve_secondary(
        self,
        secondary: SecondaryEntry,
        candidates: Sequence[MatchCandidate],
    ) -> Resolution:
        reason = self.state.consumed_reason(secondary)
        if reason is not None:
            log.debug("Dropping %s: %s", secondary.entity.identity_key, reason)
            return DroppedResolution(secondary=secondary, reason=reason)

        claimed = self.state.claimed_targets
        open_candidates = [c for c in candidates if c.target.identity_key not in claimed]
        if open_candidates:
            chosen, ambiguity = self._choose(secondary, open_candidates)
            self.state.consume(secondary)
            self.state.claimed_targets.add(chosen.target.identity_key)
            return AcceptedResolution(secondary=secondary, candidate=chosen, ambiguity=ambiguity)

        return self._unmatched(secondary)

    def _unmatched(self, secondary: SecondaryEntry) -> Resolution:
        if not self.policy.include_standalone_entries:
            return DroppedResolution(secondary=secondary, reason=DropReason.STANDALONE_DISABLED)
        if not self.admits(secondary.entity):
            return DroppedResolution(secondary=secondary, reason=DropReason.FILTERED)
        label = self.label_for(secondary.entity)
        if self.state.has_label(label):
            log.debug("Dropping %s: label %r already emitted", secondary.entity.identity_key, label)
            return DroppedResolution(secondary=secondary, reason=DropReason.DUPLICATE_LABEL)
        self.state.consume(secondary)
        self.state.record_label(label)
        return StandaloneResolution(secondary=secondary)

    def _choose(
        self,
        secondary: SecondaryEntry,
        candidates: list[MatchCandidate],
    ) -> tuple[MatchCandidate, AmbiguousMatchWarning | None]:
        best_tier = max(candidate.tier for candidate in candidates)
        tied = [candidate for candidate in candidates if candidate.tier == best_tier]
        if len(tied) == 1:
            return tied[0], None

        remaining = tied
        for breaker in self.policy.tie_breakers:
            narrowed = _narrow(breaker, secondary, remaining)
            if len(narrowed) == 1:
                return narrowed[0], _log_ambiguity(secondary, tied, narrowed[0], breaker)
            if narrowed:
                remaining = narrowed

        return remaining[0], _log_ambiguity(secondary, tied, remaining[0], "first")


def _narrow(
    breaker: TieBreaker,
    secondary: SecondaryEntry,
    tied: list[MatchCandidate],
) -> list[MatchCandidate]:
    if breaker is TieBreaker.TYPE_HINT:
        if secondary.type_hint is None:
            return tied
        return [c for c in tied if c.target.entity_type is secondary.type_hint]
    lengths = [len(_detail(c.target)) for c in tied]
    longest = max(lengths)
    if longest == 0:
        return tied
    return [c for c, length in zip(tied, lengths, strict=True) if length == longest]


def _detail(entity: CatalogEntity) -> str:
    return entity.description.strip() or entity.subtitle.strip()


def _log_ambiguity(
    secondary: SecondaryEntry,
    tied: list[MatchCandidate],
    chosen: MatchCandidate,
    rule: TieBreaker | Literal["first"],
) -> AmbiguousMatchWarning:
    warning = AmbiguousMatchWarning(
        secondary=secondary.entity.identity_key,
        candidates=tuple(candidate.target.identity_key for candidate in tied),
        tier=int(chosen.tier),
        chosen=chosen.target.identity_key,
        rule=rule,
    )
    log.warning("%s", warning)
    return warning
