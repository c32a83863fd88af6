"""Domain port definitions for adapters."""

from __future__ import annotations

from .search import MatchIndex, ScoredMatch
from .sources import BusinessRecordFetcher, SheetRecordFetcher, TourSourceAdapter

__all__ = [
    "BusinessRecordFetcher",
    "MatchIndex",
    "ScoredMatch",
    "SheetRecordFetcher",
    "TourSourceAdapter",
]
