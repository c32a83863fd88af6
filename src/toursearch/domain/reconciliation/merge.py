"""Field merging, label fallback and boost assignment.

Responsibilities of this stage:
- combine an accepted (tour entity, secondary record) pair into one entity
- build standalone entities for unmatched secondary records
- guarantee a non-empty label for every entity via the fallback chain
- assign boost weights from the configured multipliers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toursearch.domain.model import ConfidenceTier, SourceKind

from .policy import ReconciliationPolicy

if TYPE_CHECKING:
    from toursearch.domain.model import CatalogEntity

    from .contracts import MatchCandidate, SecondaryEntry


@dataclass(slots=True)
class Merger:
    policy: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)

    def derive_label(self, entity: CatalogEntity) -> str:
        """First non-empty of: label, subtitle, tags, type-based name, placeholder."""

        labels = self.policy.labels
        if entity.label.strip():
            return entity.label.strip()
        if labels.use_subtitle and entity.subtitle.strip():
            return entity.subtitle.strip()
        if labels.use_tags and entity.tags:
            return ", ".join(sorted(entity.tags))
        if entity.native_id and not entity.positional_id:
            suffix = f"({entity.native_id})"
        else:
            suffix = str(entity.ordinal)
        if labels.use_element_type:
            return f"{entity.entity_type} {suffix}"
        return f"{labels.placeholder_text.strip()} {suffix}"

    def merge_matched(
        self,
        target: CatalogEntity,
        secondary: SecondaryEntry,
        candidate: MatchCandidate,
        *,
        replaces_native: bool | None = None,
    ) -> CatalogEntity:
        """Apply ``secondary`` on top of ``target`` (which may already be merged)."""

        incoming = secondary.entity
        if replaces_native is None:
            replaces_native = self.policy.precedence.replaces_native(incoming.source)

        if replaces_native:
            label = incoming.label or target.label
            subtitle = incoming.subtitle or target.subtitle
        else:
            label = target.label or incoming.label
            subtitle = target.subtitle or incoming.subtitle

        entity_type = target.entity_type
        if replaces_native and incoming.source is SourceKind.BUSINESS and secondary.type_hint:
            entity_type = secondary.type_hint

        boosts = self.policy.boosts
        boost = boosts.matched_replaced if replaces_native else boosts.matched_enriched
        if target.matched_sources:
            boost = max(boost, target.boost_weight)

        image_ref, image_source = _merged_image(target, incoming)
        stronger = candidate.tier > target.match_confidence
        return target.with_changes(
            entity_type=entity_type,
            label=label,
            subtitle=subtitle,
            description=incoming.description or target.description,
            tags=target.tags | incoming.tags,
            image_ref=image_ref,
            image_source=image_source,
            match_confidence=max(target.match_confidence, candidate.tier),
            match_method=candidate.method if stronger else target.match_method,
            matched_sources=(*target.matched_sources, incoming.source),
            boost_weight=boost,
        )

    def merge_standalone(
        self,
        secondary: SecondaryEntry,
        *,
        playlist_order: float,
    ) -> CatalogEntity:
        entity = secondary.entity
        return entity.with_changes(
            label=self.derive_label(entity),
            navigation_ref=None,
            match_confidence=ConfidenceTier.NONE,
            match_method=None,
            is_standalone=True,
            boost_weight=self.policy.boosts.standalone,
            playlist_order=playlist_order,
        )

    def finalize_native(self, entity: CatalogEntity) -> CatalogEntity:
        """Fix the label and, for unmatched tour entities, the boost weight."""

        label = self.derive_label(entity)
        if entity.matched_sources or entity.is_standalone:
            return entity.with_changes(label=label)
        boosts = self.policy.boosts
        if entity.is_child:
            boost = boosts.child_element
        elif entity.original_label:
            boost = boosts.labeled_native
        else:
            boost = boosts.unlabeled_native
        return entity.with_changes(label=label, boost_weight=boost)


_IMAGE_RANK: dict[SourceKind, int] = {
    SourceKind.BUSINESS: 0,
    SourceKind.SHEET: 1,
    SourceKind.TOUR: 2,
}


def _merged_image(
    target: CatalogEntity,
    incoming: CatalogEntity,
) -> tuple[str | None, SourceKind | None]:
    if not incoming.image_ref or incoming.image_source is None:
        return target.image_ref, target.image_source
    if target.image_ref and target.image_source is not None:
        if _IMAGE_RANK[target.image_source] <= _IMAGE_RANK[incoming.image_source]:
            return target.image_ref, target.image_source
    return incoming.image_ref, incoming.image_source
