"""Orchestrator for catalog reconciliation.

The builder runs normalize -> match -> resolve -> merge over the tour source
first, then the business pass, then the sheet pass, sharing one ``Resolver``
so later passes respect keys consumed by earlier ones. Nothing raised inside a
pass escapes ``build``: a failing pass contributes no entities.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toursearch.domain.catalog import Catalog
from toursearch.domain.model import SourceKind

from .contracts import AcceptedResolution, DropReason, StandaloneResolution
from .match import match_pool
from .merge import Merger
from .normalize import normalize_records
from .policy import ReconciliationPolicy
from .resolve import Resolver

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from toursearch.domain.errors import AmbiguousMatchWarning
    from toursearch.domain.model import (
        BusinessRecord,
        CatalogEntity,
        IdentityKey,
        SheetRecord,
        TourRecord,
    )

    from .match import MatchPool

log = logging.getLogger(__name__)

type EntityMap = dict[IdentityKey, CatalogEntity]


@dataclass(slots=True)
class BuildReport:
    """Per-build counters, mostly for logging and the CLI summary."""

    normalized: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    malformed: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    filtered: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    accepted: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    standalone: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    dropped: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    ambiguous: Counter[SourceKind] = field(default_factory=Counter["SourceKind"])
    ambiguities: list[AmbiguousMatchWarning] = field(
        default_factory=list["AmbiguousMatchWarning"]
    )
    failed_passes: list[SourceKind] = field(default_factory=list["SourceKind"])
    dangling_parents: int = 0


@dataclass(slots=True)
class CatalogBuilder:
    """Build a frozen ``Catalog`` from the three record sources."""

    policy: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)
    match: MatchPool = match_pool
    merger: Merger = field(init=False)

    def __post_init__(self) -> None:
        self.merger = Merger(self.policy)

    def build(
        self,
        tour_records: Sequence[TourRecord] = (),
        business_records: Sequence[BusinessRecord] = (),
        sheet_records: Sequence[SheetRecord] = (),
    ) -> Catalog:
        catalog, _report = self.build_with_report(tour_records, business_records, sheet_records)
        return catalog

    def build_with_report(
        self,
        tour_records: Sequence[TourRecord] = (),
        business_records: Sequence[BusinessRecord] = (),
        sheet_records: Sequence[SheetRecord] = (),
    ) -> tuple[Catalog, BuildReport]:
        report = BuildReport()
        resolver = Resolver(
            policy=self.policy.resolver,
            label_for=self.merger.derive_label,
            admits=self.policy.filters.admits,
        )

        entities: EntityMap = {}
        try:
            entities = self._tour_pass(tour_records, report)
        except Exception:
            log.exception("Tour pass failed; continuing without tour entities")
            report.failed_passes.append(SourceKind.TOUR)
        resolver.seed_labels(entities.values())

        secondary_passes: tuple[tuple[SourceKind, Sequence[BusinessRecord | SheetRecord]], ...] = (
            (SourceKind.BUSINESS, business_records),
            (SourceKind.SHEET, sheet_records),
        )
        for source, records in secondary_passes:
            if not records:
                continue
            saved_state = resolver.state.copy()
            try:
                entities = self._secondary_pass(source, records, entities, resolver, report)
            except Exception:
                log.exception("%s pass failed; continuing without its entities", source)
                resolver.state = saved_state
                report.failed_passes.append(source)

        catalog = Catalog(self._finalize(entities.values(), report))
        if catalog.is_empty:
            log.info("Empty catalog: all sources were empty, unavailable or filtered out")
        else:
            log.info(
                "Built catalog with %d entities (accepted=%d standalone=%d dropped=%d)",
                len(catalog),
                report.accepted.total(),
                report.standalone.total(),
                report.dropped.total(),
            )
        return catalog, report

    def _tour_pass(self, records: Sequence[TourRecord], report: BuildReport) -> EntityMap:
        result = normalize_records(records)
        report.normalized[SourceKind.TOUR] += len(result.entities)
        report.malformed[SourceKind.TOUR] += len(result.malformed)
        entities: EntityMap = {}
        for entity in result.entities:
            if not self.policy.filters.admits(entity):
                report.filtered[SourceKind.TOUR] += 1
                continue
            entities[entity.identity_key] = entity
        return entities

    def _secondary_pass(
        self,
        source: SourceKind,
        records: Sequence[BusinessRecord | SheetRecord],
        entities: EntityMap,
        resolver: Resolver,
        report: BuildReport,
    ) -> EntityMap:
        result = normalize_records(records)
        report.normalized[source] += len(result.entities)
        report.malformed[source] += len(result.malformed)

        resolver.state.start_pass()
        working = dict(entities)
        targets = [entity for entity in working.values() if entity.is_native]
        candidates = self.match(targets, result.secondaries)
        base_order = _next_playlist_order(working.values())
        replaces_native = self.policy.precedence.replaces_native(source)

        for resolution in resolver.iter_resolutions(candidates, result.secondaries):
            if isinstance(resolution, AcceptedResolution):
                key = resolution.target.identity_key
                merged = self.merger.merge_matched(
                    working[key],
                    resolution.secondary,
                    resolution.candidate,
                    replaces_native=replaces_native,
                )
                working[key] = merged
                resolver.state.record_label(self.merger.derive_label(merged))
                report.accepted[source] += 1
                if resolution.ambiguity is not None:
                    report.ambiguous[source] += 1
                    report.ambiguities.append(resolution.ambiguity)
            elif isinstance(resolution, StandaloneResolution):
                secondary = resolution.secondary
                standalone = self.merger.merge_standalone(
                    secondary,
                    playlist_order=base_order + secondary.source_index,
                )
                working[standalone.identity_key] = standalone
                report.standalone[source] += 1
            else:
                report.dropped[source] += 1
                if resolution.reason is DropReason.FILTERED:
                    report.filtered[source] += 1
        return working

    def _finalize(
        self,
        entities: Iterable[CatalogEntity],
        report: BuildReport,
    ) -> tuple[CatalogEntity, ...]:
        finalized = [self.merger.finalize_native(entity) for entity in entities]
        labels = {entity.identity_key: entity.label for entity in finalized}
        linked: list[CatalogEntity] = []
        for entity in finalized:
            if entity.parent_ref is None:
                linked.append(entity)
                continue
            parent_label = labels.get(entity.parent_ref)
            if parent_label is None:
                log.warning(
                    "Clearing dangling parent %s on %s", entity.parent_ref, entity.identity_key
                )
                report.dangling_parents += 1
                linked.append(entity.with_changes(parent_ref=None, parent_label=""))
                continue
            linked.append(entity.with_changes(parent_label=parent_label))
        return tuple(linked)


def _next_playlist_order(entities: Iterable[CatalogEntity]) -> float:
    """First order value past every entity already in the catalog."""

    entities = list(entities)
    orders = [entity.playlist_order for entity in entities if entity.playlist_order is not None]
    if not orders:
        return float(len(entities))
    return max(max(orders) + 1, float(len(entities)))


def build_catalog(
    tour_records: Sequence[TourRecord] = (),
    business_records: Sequence[BusinessRecord] = (),
    sheet_records: Sequence[SheetRecord] = (),
    *,
    policy: ReconciliationPolicy | None = None,
) -> Catalog:
    """Build a catalog with a fresh ``CatalogBuilder``."""

    builder = CatalogBuilder(policy or ReconciliationPolicy())
    return builder.build(tour_records, business_records, sheet_records)
