"""Spreadsheet payload parsing.

Supported layouts:
- CSV with a header row
- JSON array of row objects
- Google Sheets API v3 (``feed.entry[]`` with ``gsx$<column>.$t`` cells)
- Google Sheets API v4 (``values`` matrix, first row is the header)
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from typing import Any
from urllib.parse import urlencode

from toursearch.config.sources import SheetMode

log = logging.getLogger(__name__)

type RawRow = dict[str, Any]

_SHEET_ID = re.compile(r"/d/([a-zA-Z0-9_-]+)")
_V3_PREFIX = "gsx$"


class SheetParseError(ValueError):
    """Raised when a payload matches none of the supported layouts."""


def export_url(url: str, mode: SheetMode, *, api_key: str | None = None) -> str:
    """Turn a Google Sheets view URL into a CSV export URL and append the API key."""

    fetch_url = url
    if mode is SheetMode.CSV and "/export?format=csv" not in url:
        is_google = "docs.google.com/spreadsheets" in url or "spreadsheets.google.com" in url
        match = _SHEET_ID.search(url)
        if is_google and "/export" not in url and match:
            fetch_url = f"https://docs.google.com/spreadsheets/d/{match.group(1)}/export?format=csv"
    if api_key:
        separator = "&" if "?" in fetch_url else "?"
        fetch_url = f"{fetch_url}{separator}{urlencode({'key': api_key})}"
    return fetch_url


def parse_payload(text: str, mode: SheetMode) -> list[RawRow]:
    if mode is SheetMode.CSV:
        return parse_csv(text)
    return parse_json(text)


def parse_csv(text: str) -> list[RawRow]:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    reader = csv.DictReader(io.StringIO("\n".join(lines)), skipinitialspace=True)
    if reader.fieldnames is None:
        return []
    reader.fieldnames = [name.strip().lstrip("\ufeff") for name in reader.fieldnames]
    rows: list[RawRow] = []
    for row in reader:
        # short rows pad with None; long rows collect overflow under the None key
        rows.append(
            {
                key: (value or "").strip()
                for key, value in row.items()
                if key is not None and isinstance(value, str | None)
            }
        )
    return rows


def parse_json(text: str) -> list[RawRow]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SheetParseError(f"Spreadsheet JSON is invalid: {exc}") from exc
    return rows_from_json(data)


def rows_from_json(data: Any) -> list[RawRow]:
    if isinstance(data, dict):
        feed = data.get("feed")
        if isinstance(feed, dict) and isinstance(feed.get("entry"), list):
            return [_v3_row(entry) for entry in feed["entry"] if isinstance(entry, dict)]
        if isinstance(data.get("values"), list):
            return _v4_rows(data["values"])
        log.warning("Spreadsheet JSON is a single object; treating it as one row")
        return [data]
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    raise SheetParseError(f"Unsupported spreadsheet JSON payload of type {type(data).__name__}")


def _v3_row(entry: dict[str, Any]) -> RawRow:
    row: RawRow = {}
    for key, cell in entry.items():
        if not key.startswith(_V3_PREFIX):
            continue
        row[key.removeprefix(_V3_PREFIX)] = cell.get("$t", "") if isinstance(cell, dict) else cell
    return row


def _v4_rows(values: list[Any]) -> list[RawRow]:
    if not values or not isinstance(values[0], list):
        return []
    headers = [str(header).strip() for header in values[0]]
    rows: list[RawRow] = []
    for raw in values[1:]:
        if not isinstance(raw, list):
            continue
        rows.append(
            {header: raw[index] if index < len(raw) else "" for index, header in enumerate(headers)}
        )
    return rows
