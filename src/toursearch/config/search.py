"""Search configuration: TOML file plus environment overrides.

Example document::

    min_query_length = 2
    include_standalone_entries = true
    business_group_override = "type"

    [business]
    enabled = true
    url = "https://example.org/business.json"
    replaces_native = true

    [business.http_cache]
    backend = "sqlite"
    ttl_seconds = 600

    [sheets]
    enabled = true
    url = "https://docs.google.com/spreadsheets/d/<id>/edit"
    mode = "csv"
    replaces_native = false
    cache_ttl_seconds = 3600
    timeout_seconds = 5

    [sheets.rate_limit]
    max_calls = 2
    per_seconds = 1

    [filters.element_types]
    mode = "blacklist"
    values = ["Text"]

    [labels]
    placeholder_text = "Untitled"

    [display_labels]
    Panorama = "Rooms"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from toursearch.domain.ranking import BusinessGroupOverride, RankingPolicy
from toursearch.domain.reconciliation.policy import (
    BoostWeights,
    FilterPolicy,
    LabelFallback,
    ListFilter,
    PolicyError,
    ReconciliationPolicy,
    ResolverPolicy,
    SourcePrecedence,
)

from .errors import ConfigurationError
from .schema import SearchDocument
from .sources import (
    BusinessSourceConfig,
    SheetSourceConfig,
    business_location_from_env,
    sheet_api_key_from_env,
    sheet_settings_from_env,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class SearchConfig:
    min_query_length: int = 2
    max_results: int | None = None
    include_standalone_entries: bool = False
    business: BusinessSourceConfig = field(default_factory=BusinessSourceConfig)
    sheets: SheetSourceConfig = field(default_factory=SheetSourceConfig)
    filters: FilterPolicy = field(default_factory=FilterPolicy)
    labels: LabelFallback = field(default_factory=LabelFallback)
    boosts: BoostWeights = field(default_factory=BoostWeights)
    business_group_override: BusinessGroupOverride = BusinessGroupOverride.TYPE
    display_labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    result_types: ListFilter = field(default_factory=ListFilter)
    resolver: ResolverPolicy = field(default_factory=ResolverPolicy)

    def reconciliation_policy(self) -> ReconciliationPolicy:
        return ReconciliationPolicy(
            filters=self.filters,
            labels=self.labels,
            boosts=self.boosts,
            resolver=replace(
                self.resolver,
                include_standalone_entries=self.include_standalone_entries,
            ),
            precedence=SourcePrecedence(
                business_replaces_native=self.business.replaces_native,
                sheet_replaces_native=self.sheets.replaces_native,
            ),
        )

    def ranking_policy(self) -> RankingPolicy:
        return RankingPolicy(
            min_query_length=self.min_query_length,
            max_results=self.max_results,
            business_data_enabled=self.business.active,
            business_group_override=self.business_group_override,
            display_labels=self.display_labels,
            result_types=self.result_types,
        )


def load_search_config(path: Path | None = None, *, use_env: bool = True) -> SearchConfig:
    """Load ``path`` (defaults when ``None``) and apply environment overrides."""

    document: dict[str, Any] = {}
    if path is not None:
        try:
            with path.open("rb") as handle:
                document = tomllib.load(handle)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    config = parse_search_config(document)
    if use_env:
        config = apply_env_overrides(config)
    log.debug("Loaded search config from %s", path or "defaults")
    return config


def parse_search_config(document: Mapping[str, Any]) -> SearchConfig:
    """Build a ``SearchConfig`` from an already decoded TOML/JSON document."""

    try:
        parsed = SearchDocument.model_validate(document)
        return SearchConfig(
            min_query_length=parsed.min_query_length,
            max_results=parsed.max_results,
            include_standalone_entries=parsed.include_standalone_entries,
            business=parsed.business.to_config(),
            sheets=parsed.sheets.to_config(),
            filters=parsed.filters.to_policy(),
            labels=parsed.labels.to_policy(),
            boosts=parsed.boosts.to_policy(),
            business_group_override=parsed.business_group_override,
            display_labels=MappingProxyType(dict(parsed.display_labels)),
            result_types=parsed.result_types.to_policy(),
            resolver=parsed.resolver.to_policy(),
        )
    except ValidationError as exc:
        raise ConfigurationError(_describe(exc)) from exc
    except PolicyError as exc:
        raise ConfigurationError(str(exc)) from exc


def apply_env_overrides(config: SearchConfig) -> SearchConfig:
    """Feed locations from the environment win over the file; setting one enables it."""

    business = config.business
    location = business_location_from_env()
    if location:
        business = replace(business, location=location, enabled=True)

    sheets = config.sheets
    url, mode, api_key = sheet_settings_from_env()
    if url:
        sheets = replace(sheets, url=url, enabled=True)
    if mode is not None:
        sheets = replace(sheets, mode=mode)
    if api_key:
        sheets = replace(sheets, api_key=api_key)
    if sheets.active and sheets.needs_api_key and not sheets.api_key:
        sheets = replace(sheets, api_key=sheet_api_key_from_env())

    return replace(config, business=business, sheets=sheets)


def _describe(exc: ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors(include_url=False)
    )
    return f"Invalid search config: {problems}"
