"""Business feed client (HTTP or local JSON file)."""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from toursearch.adapters.http_resilience import ResilientClient
from toursearch.domain.errors import SourceUnavailableError
from toursearch.domain.model import SourceKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from toursearch.config.http_resilience import ResilienceConfig
    from toursearch.config.sources import BusinessSourceConfig

log = getLogger(__name__)


class BusinessFeedError(SourceUnavailableError):
    """Raised when the business feed cannot be fetched or decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(SourceKind.BUSINESS, message)


class BusinessFeedClient:
    """Low-level loader returning the raw list of business entries."""

    def __init__(
        self,
        *,
        config: BusinessSourceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient

    def fetch_payload(self) -> list[Any]:
        return asyncio.run(self.fetch_payload_async())

    async def fetch_payload_async(self) -> list[Any]:
        location = self._config.location
        if not location:
            raise BusinessFeedError("No business feed location configured")
        if _is_url(location):
            payload = await self._fetch_remote(location)
        else:
            payload = await asyncio.to_thread(_read_local, Path(location))
        if not isinstance(payload, list):
            log.warning("Business feed is not an array; wrapping single entry")
            payload = [payload]
        return payload

    async def _fetch_remote(self, url: str) -> Any:
        try:
            async with self._client_factory(self._config.resilience) as client:
                body = await client.fetch_text(url)
        except httpx.HTTPError as exc:
            raise BusinessFeedError(f"Failed to fetch {url}: {exc}") from exc
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise BusinessFeedError(f"Business feed at {url} is not valid JSON") from exc


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _read_local(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise BusinessFeedError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise BusinessFeedError(f"{path} is not valid JSON: {exc}") from exc
