"""Ports for loading source records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toursearch.domain.model import BusinessRecord, SheetRecord, TourRecord


@runtime_checkable
class TourSourceAdapter(Protocol):
    """Fixed contract for reading the native tour structure.

    The reconciliation core never inspects the host tour object directly; an
    adapter flattens it into ``TourRecord`` values.
    """

    def load_records(self) -> Sequence[TourRecord]: ...


@runtime_checkable
class BusinessRecordFetcher(Protocol):
    """Async port for retrieving the business feed."""

    async def __call__(self) -> Sequence[BusinessRecord]: ...


@runtime_checkable
class SheetRecordFetcher(Protocol):
    """Async port for retrieving the spreadsheet feed."""

    async def __call__(self) -> Sequence[SheetRecord]: ...


__all__ = ["BusinessRecordFetcher", "SheetRecordFetcher", "TourSourceAdapter"]
