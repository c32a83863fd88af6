"""Frozen searchable catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from toursearch.domain.errors import CatalogError
from toursearch.domain.model import ConfidenceTier

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from toursearch.domain.model import CatalogEntity, IdentityKey


class CatalogInvariantError(CatalogError):
    """A catalog was assembled from entities that break its invariants."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Catalog:
    """Immutable entity list with identity-key lookup.

    Invariants checked on construction:
    - identity keys are unique
    - labels are non-empty
    - parent refs of non-standalone entities resolve inside the catalog
    - a secondary-source entity with confidence 0 is standalone
    """

    entities: tuple[CatalogEntity, ...] = ()
    built_at: datetime = field(default_factory=_utcnow)
    _by_key: Mapping[IdentityKey, CatalogEntity] = field(
        init=False, repr=False, compare=False, default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        by_key: dict[IdentityKey, CatalogEntity] = {}
        for entity in self.entities:
            if entity.identity_key in by_key:
                raise CatalogInvariantError(f"Duplicate identity key {entity.identity_key}")
            by_key[entity.identity_key] = entity
        object.__setattr__(self, "_by_key", MappingProxyType(by_key))
        self.validate()

    def validate(self) -> None:
        for entity in self.entities:
            if not entity.label.strip():
                raise CatalogInvariantError(f"Empty label on {entity.identity_key}")
            if (
                entity.parent_ref is not None
                and not entity.is_standalone
                and entity.parent_ref not in self._by_key
            ):
                raise CatalogInvariantError(
                    f"Parent {entity.parent_ref} of {entity.identity_key} is not in the catalog"
                )
            if (
                not entity.is_native
                and entity.match_confidence is ConfidenceTier.NONE
                and not entity.is_standalone
            ):
                raise CatalogInvariantError(
                    f"Unmatched secondary entity {entity.identity_key} is not standalone"
                )

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[CatalogEntity]:
        return iter(self.entities)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    @property
    def is_empty(self) -> bool:
        return not self.entities

    def get(self, key: IdentityKey) -> CatalogEntity | None:
        return self._by_key.get(key)

    def parent_of(self, entity: CatalogEntity) -> CatalogEntity | None:
        if entity.parent_ref is None:
            return None
        return self._by_key.get(entity.parent_ref)

    def children_of(self, entity: CatalogEntity) -> tuple[CatalogEntity, ...]:
        key = entity.identity_key
        return tuple(child for child in self.entities if child.parent_ref == key)


EMPTY_CATALOG = Catalog()
