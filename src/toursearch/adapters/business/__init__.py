"""Business feed adapter."""

from __future__ import annotations

from .client import BusinessFeedClient, BusinessFeedError
from .fetcher import fetch_business_records, parse_business_entries

__all__ = [
    "BusinessFeedClient",
    "BusinessFeedError",
    "fetch_business_records",
    "parse_business_entries",
]
