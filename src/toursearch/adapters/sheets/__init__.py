"""Spreadsheet feed adapter."""

from __future__ import annotations

from .cache import SheetCache
from .client import SheetFeedClient, SheetFeedError
from .fetcher import fetch_sheet_records, parse_sheet_rows
from .parser import export_url, parse_payload

__all__ = [
    "SheetCache",
    "SheetFeedClient",
    "SheetFeedError",
    "export_url",
    "fetch_sheet_records",
    "parse_payload",
    "parse_sheet_rows",
]
