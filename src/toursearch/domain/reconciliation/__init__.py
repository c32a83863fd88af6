"""Reconciliation core: three record sources in, one frozen catalog out.

Layered flow:
1) normalize raw records into catalog entities
2) match secondary records against tour entities
3) resolve candidates into 1:1 mappings, tracking consumed keys
4) merge fields and derive labels/boosts
5) freeze into a ``Catalog``
"""

from __future__ import annotations

from .contracts import (
    AcceptedResolution,
    DroppedResolution,
    DropReason,
    MatchCandidate,
    Resolution,
    ResolutionStatus,
    SecondaryEntry,
    StandaloneResolution,
)
from .engine import BuildReport, CatalogBuilder, build_catalog
from .match import find_candidates, match_pool
from .merge import Merger
from .normalize import NormalizationResult, detect_entity_type, normalize_record, normalize_records
from .policy import (
    BoostWeights,
    FilterMode,
    FilterPolicy,
    LabelFallback,
    ListFilter,
    PolicyError,
    ReconciliationPolicy,
    ResolverPolicy,
    SourcePrecedence,
    TieBreaker,
)
from .resolve import ConsumptionState, ResolutionResult, Resolver

__all__ = [
    "AcceptedResolution",
    "BoostWeights",
    "BuildReport",
    "CatalogBuilder",
    "ConsumptionState",
    "DropReason",
    "DroppedResolution",
    "FilterMode",
    "FilterPolicy",
    "LabelFallback",
    "ListFilter",
    "MatchCandidate",
    "Merger",
    "NormalizationResult",
    "PolicyError",
    "ReconciliationPolicy",
    "Resolution",
    "ResolutionResult",
    "ResolutionStatus",
    "Resolver",
    "ResolverPolicy",
    "SecondaryEntry",
    "SourcePrecedence",
    "StandaloneResolution",
    "TieBreaker",
    "build_catalog",
    "detect_entity_type",
    "find_candidates",
    "match_pool",
    "normalize_record",
    "normalize_records",
]
