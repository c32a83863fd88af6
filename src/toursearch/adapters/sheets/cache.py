"""Time-boxed SQLite cache for spreadsheet feed payloads.

One row per feed URL holding the parsed rows as JSON plus the write time.
Rows older than the TTL are ignored by ``get`` and overwritten by ``put``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Float, MetaData, String, Table, Text, create_engine, delete, select

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()

sheet_cache_table = Table(
    "sheet_cache",
    metadata,
    Column("feed_url", String, primary_key=True),
    Column("payload", Text, nullable=False),
    Column("written_at", Float, nullable=False),
)


class SheetCache:
    def __init__(
        self,
        engine: Engine,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.engine = engine
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        metadata.create_all(engine)

    @classmethod
    def from_uri(
        cls,
        uri: str,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> SheetCache:
        return cls(create_engine(uri), ttl_seconds=ttl_seconds, clock=clock)

    def get(self, feed_url: str) -> list[dict[str, Any]] | None:
        """Return cached rows for ``feed_url`` or ``None`` when missing or stale."""

        with self.engine.connect() as conn:
            row = conn.execute(
                select(sheet_cache_table.c.payload, sheet_cache_table.c.written_at).where(
                    sheet_cache_table.c.feed_url == feed_url
                )
            ).first()
        if row is None:
            return None
        age = self._clock() - row.written_at
        if age > self.ttl_seconds:
            log.debug("Sheet cache entry for %s is stale (%.0fs old)", feed_url, age)
            return None
        try:
            payload = json.loads(row.payload)
        except json.JSONDecodeError:
            log.warning("Discarding corrupt sheet cache entry for %s", feed_url)
            return None
        if not isinstance(payload, list):
            return None
        log.debug("Serving %d spreadsheet rows from cache", len(payload))
        return payload

    def put(self, feed_url: str, rows: list[dict[str, Any]]) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(sheet_cache_table).where(sheet_cache_table.c.feed_url == feed_url))
            conn.execute(
                sheet_cache_table.insert().values(
                    feed_url=feed_url,
                    payload=json.dumps(rows),
                    written_at=self._clock(),
                )
            )

    def clear(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(sheet_cache_table))
