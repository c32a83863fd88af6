"""Pydantic models for the tables of a search configuration document."""

from __future__ import annotations

from dataclasses import replace
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
)

from toursearch.domain.ranking import BusinessGroupOverride
from toursearch.domain.reconciliation.policy import (
    DEFAULT_TIE_BREAKERS,
    BoostWeights,
    FilterMode,
    FilterPolicy,
    LabelFallback,
    ListFilter,
    ResolverPolicy,
    TieBreaker,
)

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig
from .sources import (
    DEFAULT_SHEET_CACHE_TTL_SECONDS,
    BusinessSourceConfig,
    SheetMode,
    SheetSourceConfig,
)


def _lowered(value: object) -> object:
    return value.strip().lower() if isinstance(value, str) else value


_CASE_INSENSITIVE = BeforeValidator(_lowered)
_BOOSTS = BoostWeights()

DisplayLabel = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]


class ConfigTable(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ListFilterTable(ConfigTable):
    mode: Annotated[FilterMode, _CASE_INSENSITIVE] = FilterMode.NONE
    values: list[StrictStr | StrictInt] = Field(default_factory=list)

    def to_policy(self) -> ListFilter:
        cleaned = (str(value).strip() for value in self.values)
        return ListFilter(mode=self.mode, values=tuple(value for value in cleaned if value))


class FiltersTable(ConfigTable):
    element_types: ListFilterTable = Field(default_factory=ListFilterTable)
    labels: ListFilterTable = Field(default_factory=ListFilterTable)
    tags: ListFilterTable = Field(default_factory=ListFilterTable)
    panorama_labels: ListFilterTable = Field(default_factory=ListFilterTable)
    media_indexes: ListFilterTable = Field(default_factory=ListFilterTable)
    include_completely_blank: StrictBool = True
    skip_empty_labels: StrictBool = False
    min_label_length: StrictInt = Field(default=0, ge=0)

    def to_policy(self) -> FilterPolicy:
        return FilterPolicy(
            element_types=self.element_types.to_policy(),
            labels=self.labels.to_policy(),
            tags=self.tags.to_policy(),
            panorama_labels=self.panorama_labels.to_policy(),
            media_indexes=self.media_indexes.to_policy(),
            include_completely_blank=self.include_completely_blank,
            skip_empty_labels=self.skip_empty_labels,
            min_label_length=self.min_label_length,
        )


class LabelsTable(ConfigTable):
    use_subtitle: StrictBool = True
    use_tags: StrictBool = True
    use_element_type: StrictBool = True
    placeholder_text: StrictStr = "Untitled"

    def to_policy(self) -> LabelFallback:
        return LabelFallback(**self.model_dump())


class BoostsTable(ConfigTable):
    matched_replaced: StrictFloat = _BOOSTS.matched_replaced
    matched_enriched: StrictFloat = _BOOSTS.matched_enriched
    labeled_native: StrictFloat = _BOOSTS.labeled_native
    unlabeled_native: StrictFloat = _BOOSTS.unlabeled_native
    child_element: StrictFloat = _BOOSTS.child_element
    standalone: StrictFloat = _BOOSTS.standalone

    def to_policy(self) -> BoostWeights:
        return BoostWeights(**self.model_dump())


class ResolverTable(ConfigTable):
    tie_breakers: tuple[Annotated[TieBreaker, _CASE_INSENSITIVE], ...] = DEFAULT_TIE_BREAKERS

    def to_policy(self) -> ResolverPolicy:
        return ResolverPolicy(tie_breakers=self.tie_breakers)


class RateLimitTable(ConfigTable):
    max_calls: StrictInt = Field(gt=0)
    per_seconds: StrictFloat = Field(gt=0)


class HttpCacheTable(ConfigTable):
    """hishel response cache; a sqlite cache without ``path`` lives in the data dir."""

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: StrictStr | None = None
    ttl_seconds: StrictFloat | None = Field(default=None, ge=0)


class FeedTable(ConfigTable):
    enabled: StrictBool = False
    url: StrictStr | None = None
    replaces_native: StrictBool = True
    timeout_seconds: StrictFloat | None = Field(default=None, gt=0)
    rate_limit: RateLimitTable | None = None
    http_cache: HttpCacheTable | None = None

    def resilience(self, defaults: ResilienceConfig) -> ResilienceConfig:
        config = defaults
        if self.timeout_seconds is not None:
            config = config.with_timeout(self.timeout_seconds)
        if self.rate_limit is not None:
            config = replace(
                config,
                ratelimit=RateLimit(self.rate_limit.max_calls, self.rate_limit.per_seconds),
            )
        if self.http_cache is not None:
            config = replace(
                config,
                cache=CacheConfig(
                    backend=self.http_cache.backend,
                    sqlite_path=self.http_cache.path,
                    default_ttl_seconds=self.http_cache.ttl_seconds,
                ),
            )
        return config


class BusinessTable(FeedTable):
    def to_config(self) -> BusinessSourceConfig:
        defaults = BusinessSourceConfig()
        return BusinessSourceConfig(
            enabled=self.enabled,
            location=self.url or None,
            replaces_native=self.replaces_native,
            resilience=self.resilience(defaults.resilience),
        )


class SheetsTable(FeedTable):
    mode: Annotated[SheetMode, _CASE_INSENSITIVE] = SheetMode.CSV
    api_key: StrictStr | None = None
    use_cache: StrictBool = True
    cache_ttl_seconds: StrictFloat = Field(default=DEFAULT_SHEET_CACHE_TTL_SECONDS, ge=0)

    def to_config(self) -> SheetSourceConfig:
        defaults = SheetSourceConfig()
        return SheetSourceConfig(
            enabled=self.enabled,
            url=self.url or None,
            mode=self.mode,
            api_key=self.api_key or None,
            replaces_native=self.replaces_native,
            use_cache=self.use_cache,
            cache_ttl_seconds=self.cache_ttl_seconds,
            resilience=self.resilience(defaults.resilience),
        )


class SearchDocument(ConfigTable):
    """Top level of the TOML file; every table is optional."""

    min_query_length: StrictInt = Field(default=2, ge=0)
    max_results: StrictInt | None = Field(default=None, ge=1)
    include_standalone_entries: StrictBool = False
    business_group_override: Annotated[BusinessGroupOverride, _CASE_INSENSITIVE] = (
        BusinessGroupOverride.TYPE
    )
    business: BusinessTable = Field(default_factory=BusinessTable)
    sheets: SheetsTable = Field(default_factory=SheetsTable)
    filters: FiltersTable = Field(default_factory=FiltersTable)
    labels: LabelsTable = Field(default_factory=LabelsTable)
    boosts: BoostsTable = Field(default_factory=BoostsTable)
    resolver: ResolverTable = Field(default_factory=ResolverTable)
    display_labels: dict[str, DisplayLabel] = Field(default_factory=dict)
    result_types: ListFilterTable = Field(default_factory=ListFilterTable)
