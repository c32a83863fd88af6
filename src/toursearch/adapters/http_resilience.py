"""Shared HTTP client for the business and spreadsheet feeds.

Each feed gets its own client built from a ``ResilienceConfig``: retries via
httpx-retries, an optional aiolimiter rate limit and an optional hishel cache.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypedDict

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from toursearch.config.http_resilience import (
        CacheConfig,
        ResilienceConfig,
        ResponseHook,
        RetryPolicy,
    )
    from toursearch.config.storage import StorageConfig

log = logging.getLogger(__name__)


class _FeedClientOptions(TypedDict, total=False):
    base_url: str
    timeout: float
    headers: dict[str, str]
    event_hooks: dict[str, list[ResponseHook]]
    transport: httpx.AsyncBaseTransport
    follow_redirects: bool


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """Async feed client; use as ``async with ResilientClient(config) as client``.

    ``transport`` replaces the network transport underneath the retry layer;
    tests pass an ``httpx.MockTransport`` here.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        storage: StorageConfig | None = None,
    ) -> None:
        self.config = config
        limit = config.ratelimit
        self._limiter = AsyncLimiter(limit.max_calls, limit.per_seconds) if limit else None

        options: _FeedClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(transport=transport, retry=build_retry(config.retry)),
            "follow_redirects": True,
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url
        if config.default_headers:
            options["headers"] = dict(config.default_headers)
        if config.response_hooks:
            options["event_hooks"] = {"response": list(config.response_hooks)}

        cache_storage = _cache_storage(config.cache, storage)
        if cache_storage is None:
            self._client = httpx.AsyncClient(**options)
        else:
            self._client = AsyncCacheClient(**options, storage=cache_storage)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)

    async def fetch_text(self, url: str) -> str:
        """GET ``url`` and return its body; non-2xx responses raise ``httpx.HTTPStatusError``."""

        response = await self.get(url)
        # Sheets API keys travel in the query string
        logged_url = response.url.copy_remove_param("key")
        log.debug("%s feed: GET %s -> %d", self.config.name, logged_url, response.status_code)
        response.raise_for_status()
        return response.text


def _cache_storage(
    config: CacheConfig | None,
    storage: StorageConfig | None,
) -> AsyncSqliteStorage | None:
    if config is None or not config.enabled:
        return None

    match config.backend:
        case "memory":
            database_path = ":memory:"
        case "sqlite" if config.sqlite_path:
            database_path = config.sqlite_path
        case "sqlite" if storage is not None:
            database_path = str(storage.http_cache_path())
        case "sqlite":
            raise ValueError("sqlite HTTP cache needs sqlite_path or a storage config")
        case _:
            raise ValueError(f"Unsupported cache backend: {config.backend}")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )
