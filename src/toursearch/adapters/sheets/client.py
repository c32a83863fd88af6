"""Spreadsheet feed HTTP client."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from toursearch.adapters.http_resilience import ResilientClient
from toursearch.domain.errors import SourceUnavailableError
from toursearch.domain.model import SourceKind

from .parser import RawRow, SheetParseError, export_url, parse_payload

if TYPE_CHECKING:
    from collections.abc import Callable

    from toursearch.config.http_resilience import ResilienceConfig
    from toursearch.config.sources import SheetSourceConfig

log = getLogger(__name__)


class SheetFeedError(SourceUnavailableError):
    """Raised when the spreadsheet feed cannot be fetched or parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(SourceKind.SHEET, message)


class SheetFeedClient:
    """Fetches the spreadsheet feed and returns its raw rows."""

    def __init__(
        self,
        *,
        config: SheetSourceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient

    @property
    def feed_url(self) -> str:
        if not self._config.url:
            raise SheetFeedError("No spreadsheet URL configured")
        return export_url(self._config.url, self._config.mode, api_key=self._config.api_key)

    @property
    def cache_key(self) -> str:
        """The feed URL without the API key; safe to store and log."""

        if not self._config.url:
            raise SheetFeedError("No spreadsheet URL configured")
        return export_url(self._config.url, self._config.mode)

    def fetch_rows(self) -> list[RawRow]:
        return asyncio.run(self.fetch_rows_async())

    async def fetch_rows_async(self) -> list[RawRow]:
        url = self.feed_url
        try:
            async with self._client_factory(self._config.resilience) as client:
                body = await client.fetch_text(url)
        except httpx.HTTPError as exc:
            raise SheetFeedError(f"Failed to fetch spreadsheet: {self._redact(str(exc))}") from exc
        try:
            rows = parse_payload(body, self._config.mode)
        except SheetParseError as exc:
            raise SheetFeedError(str(exc)) from exc
        log.info("Fetched %d spreadsheet rows", len(rows))
        return rows

    def _redact(self, text: str) -> str:
        api_key = self._config.api_key
        return text.replace(api_key, "<api key>") if api_key else text
