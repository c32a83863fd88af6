"""Feed source configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import ResilienceConfig, feed_resilience

BUSINESS_URL_ENV = "TOURSEARCH_BUSINESS_URL"
SHEET_URL_ENV = "TOURSEARCH_SHEET_URL"
SHEET_MODE_ENV = "TOURSEARCH_SHEET_MODE"
SHEET_API_KEY_ENV = "TOURSEARCH_SHEET_API_KEY"

SHEETS_API_HOST = "sheets.googleapis.com"

DEFAULT_SHEET_CACHE_TTL_SECONDS = 60 * 60


class SheetMode(StrEnum):
    CSV = "csv"
    JSON = "json"

    @classmethod
    def parse(cls, value: str) -> SheetMode:
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(
                f"Unknown sheet mode {value!r}; expected one of: {choices}"
            ) from None


@dataclass(frozen=True, slots=True)
class BusinessSourceConfig:
    """Business feed: an HTTP(S) URL or a local JSON file path."""

    enabled: bool = False
    location: str | None = None
    replaces_native: bool = True
    resilience: ResilienceConfig = field(default_factory=lambda: feed_resilience("business"))

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.location)


@dataclass(frozen=True, slots=True)
class SheetSourceConfig:
    enabled: bool = False
    url: str | None = None
    mode: SheetMode = SheetMode.CSV
    api_key: str | None = None
    replaces_native: bool = True
    use_cache: bool = True
    cache_ttl_seconds: float = DEFAULT_SHEET_CACHE_TTL_SECONDS
    resilience: ResilienceConfig = field(default_factory=lambda: feed_resilience("sheets"))

    def __post_init__(self) -> None:
        if self.cache_ttl_seconds < 0:
            raise ConfigurationError("cache_ttl_seconds must not be negative")

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.url)

    @property
    def needs_api_key(self) -> bool:
        return self.mode is SheetMode.JSON and SHEETS_API_HOST in (self.url or "")


def business_location_from_env() -> str | None:
    return optional_env_var(BUSINESS_URL_ENV)


def sheet_settings_from_env() -> tuple[str | None, SheetMode | None, str | None]:
    """(url, mode, api key) taken from the environment, each ``None`` when unset."""

    mode = optional_env_var(SHEET_MODE_ENV)
    return (
        optional_env_var(SHEET_URL_ENV),
        SheetMode.parse(mode) if mode else None,
        optional_env_var(SHEET_API_KEY_ENV),
    )


def sheet_api_key_from_env() -> str:
    """API key for Sheets API v4 URLs, which cannot be read anonymously."""

    return require_env_vars([SHEET_API_KEY_ENV])[SHEET_API_KEY_ENV]
