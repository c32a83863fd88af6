"""Spreadsheet feed entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from .client import SheetFeedClient
from .schema import SheetRow
from .translator import translate_row

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toursearch.config.sources import SheetSourceConfig
    from toursearch.domain.model import SheetRecord

    from .cache import SheetCache
    from .parser import RawRow

log = getLogger(__name__)


class SheetRowsClient(Protocol):
    @property
    def cache_key(self) -> str: ...

    async def fetch_rows_async(self) -> list[RawRow]: ...


async def fetch_sheet_records(
    *,
    config: SheetSourceConfig,
    client: SheetRowsClient | None = None,
    cache: SheetCache | None = None,
) -> list[SheetRecord]:
    """Fetch the spreadsheet feed, serving fresh cache entries when allowed.

    Raises ``SheetFeedError`` when the feed is unavailable and no fresh cache
    entry exists.
    """

    active_client = client or SheetFeedClient(config=config)
    cache_key = active_client.cache_key
    if not config.use_cache:
        cache = None

    rows = cache.get(cache_key) if cache is not None else None
    if rows is None:
        rows = await active_client.fetch_rows_async()
        if cache is not None:
            cache.put(cache_key, rows)
    return parse_sheet_rows(rows)


def parse_sheet_rows(rows: Sequence[RawRow]) -> list[SheetRecord]:
    records: list[SheetRecord] = []
    for index, raw in enumerate(rows):
        try:
            row = SheetRow.model_validate(raw)
        except ValidationError as exc:
            log.warning("Skipping spreadsheet row #%d: %s", index, exc.errors()[0]["msg"])
            continue
        records.append(translate_row(row))
    return records
