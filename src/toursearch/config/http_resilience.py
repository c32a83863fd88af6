"""HTTP client settings for the feed sources."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal

import httpx

from toursearch import __version__

if TYPE_CHECKING:
    from collections.abc import Mapping

ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]

DEFAULT_FEED_TIMEOUT_SECONDS = 10.0
FEED_HEADERS: Mapping[str, str] = MappingProxyType(
    {"User-Agent": f"toursearch/{__version__}", "Accept": "application/json, text/csv, */*"}
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Feeds are read-only, so only idempotent methods are retried."""

    total: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 10.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD"})
    status_forcelist: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = False


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = DEFAULT_FEED_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    response_hooks: tuple[ResponseHook, ...] = ()
    default_headers: Mapping[str, str] | None = None

    def with_timeout(self, seconds: float) -> ResilienceConfig:
        if seconds <= 0:
            raise ValueError(f"{self.name} timeout must be positive, got {seconds}")
        return replace(self, timeout_seconds=seconds)


def feed_resilience(name: str) -> ResilienceConfig:
    """Default settings for one feed: short timeout, two retries, no HTTP cache.

    The spreadsheet feed has its own TTL cache, and the business feed is small
    enough to fetch on every rebuild. The feed tables of the search config can
    add a rate limit and an HTTP cache on top.
    """

    return ResilienceConfig(name=name, default_headers=FEED_HEADERS)
