"""Error taxonomy for catalog building.

None of these escape ``CatalogBuilder.build``; they are raised inside adapters
and stages and converted into "fewer entities" at the builder boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from toursearch.domain.model import IdentityKey, SourceKind
    from toursearch.domain.reconciliation.policy import TieBreaker


class CatalogError(RuntimeError):
    """Base class for catalog reconciliation errors."""


class SourceUnavailableError(CatalogError):
    """A source feed could not be fetched or parsed."""

    def __init__(self, source: SourceKind, message: str) -> None:
        super().__init__(f"{source} source unavailable: {message}")
        self.source = source


class MalformedRecordError(CatalogError):
    """A raw record lacks the fields needed to identify it."""

    def __init__(self, source: SourceKind, ordinal: int, reason: str) -> None:
        super().__init__(f"Malformed {source} record #{ordinal}: {reason}")
        self.source = source
        self.ordinal = ordinal
        self.reason = reason


@dataclass(frozen=True, slots=True)
class AmbiguousMatchWarning:
    """A secondary record tied with several targets at its best tier.

    Logged and kept on the build report; never raised.
    """

    secondary: IdentityKey
    candidates: tuple[IdentityKey, ...]
    tier: int
    chosen: IdentityKey
    rule: TieBreaker | Literal["first"]

    def __str__(self) -> str:
        return (
            f"Ambiguous match for {self.secondary} ({len(self.candidates)} candidates "
            f"at tier {self.tier}); chose {self.chosen} by {self.rule}"
        )
