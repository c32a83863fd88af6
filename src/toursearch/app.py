"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from toursearch.adapters.business import BusinessFeedClient, fetch_business_records
from toursearch.adapters.http_resilience import ResilientClient
from toursearch.adapters.search_index import FuzzyIndex
from toursearch.adapters.sheets import SheetCache, SheetFeedClient, fetch_sheet_records
from toursearch.config import SearchConfig, get_storage_config
from toursearch.domain.catalog import EMPTY_CATALOG
from toursearch.domain.errors import SourceUnavailableError
from toursearch.domain.model import SourceKind
from toursearch.domain.ranking import search
from toursearch.domain.reconciliation import BuildReport, CatalogBuilder

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toursearch.config import StorageConfig
    from toursearch.config.http_resilience import ResilienceConfig
    from toursearch.domain.catalog import Catalog
    from toursearch.domain.model import BusinessRecord, SheetRecord, TourRecord
    from toursearch.domain.ports import (
        BusinessRecordFetcher,
        MatchIndex,
        SheetRecordFetcher,
        TourSourceAdapter,
    )
    from toursearch.domain.ranking import SearchResponse

type IndexFactory = Callable[[Catalog], MatchIndex]

log = getLogger(__name__)


class CatalogService:
    """Owns the current catalog and its index; rebuilds swap both at once.

    Queries always see either the previous catalog or the next one, never a
    partially built one.
    """

    def __init__(
        self,
        *,
        tour: TourSourceAdapter | None = None,
        config: SearchConfig | None = None,
        business_fetcher: BusinessRecordFetcher | None = None,
        sheet_fetcher: SheetRecordFetcher | None = None,
        sheet_cache: SheetCache | None = None,
        storage: StorageConfig | None = None,
        index_factory: IndexFactory = FuzzyIndex,
    ) -> None:
        self.config = config or SearchConfig()
        self._tour = tour
        self._storage = storage
        self._sheet_cache = sheet_cache
        self._business_fetcher = business_fetcher or self._default_business_fetcher
        self._sheet_fetcher = sheet_fetcher or self._default_sheet_fetcher
        self._index_factory = index_factory
        self._builder = CatalogBuilder(self.config.reconciliation_policy())
        self._state: tuple[Catalog, MatchIndex] = (EMPTY_CATALOG, index_factory(EMPTY_CATALOG))
        self.last_report: BuildReport | None = None

    @property
    def catalog(self) -> Catalog:
        return self._state[0]

    @property
    def index(self) -> MatchIndex:
        return self._state[1]

    def rebuild_sync(self) -> Catalog:
        return asyncio.run(self.rebuild())

    async def rebuild(self) -> Catalog:
        """Fetch every source concurrently, build a fresh catalog and swap it in."""

        tour_records = self._load_tour()
        business_result, sheet_result = await asyncio.gather(
            self._fetch_business(),
            self._fetch_sheets(),
            return_exceptions=True,
        )
        business_records = _records_or_empty(SourceKind.BUSINESS, business_result)
        sheet_records = _records_or_empty(SourceKind.SHEET, sheet_result)

        catalog, report = self._builder.build_with_report(
            tour_records, business_records, sheet_records
        )
        index = self._index_factory(catalog)
        self._state = (catalog, index)
        self.last_report = report
        log.info(
            "Catalog rebuilt: tour=%d business=%d sheet=%d -> %d entities",
            len(tour_records),
            len(business_records),
            len(sheet_records),
            len(catalog),
        )
        return catalog

    def search(self, query: str) -> SearchResponse:
        catalog, index = self._state
        return search(catalog, index, query, policy=self.config.ranking_policy())

    def _load_tour(self) -> Sequence[TourRecord]:
        if self._tour is None:
            return ()
        try:
            return self._tour.load_records()
        except SourceUnavailableError as exc:
            log.warning("Source unavailable: %s", exc)
            return ()

    async def _fetch_business(self) -> Sequence[BusinessRecord]:
        if not self.config.business.active:
            return ()
        return await self._business_fetcher()

    async def _fetch_sheets(self) -> Sequence[SheetRecord]:
        if not self.config.sheets.active:
            return ()
        return await self._sheet_fetcher()

    async def _default_business_fetcher(self) -> list[BusinessRecord]:
        client = BusinessFeedClient(
            config=self.config.business, client_factory=self._client_factory
        )
        return await fetch_business_records(config=self.config.business, client=client)

    async def _default_sheet_fetcher(self) -> list[SheetRecord]:
        sheets = self.config.sheets
        cache = self._sheet_cache
        if cache is None and sheets.use_cache:
            storage = self._storage or get_storage_config()
            cache = SheetCache.from_uri(
                storage.sheet_cache_uri(), ttl_seconds=sheets.cache_ttl_seconds
            )
            self._sheet_cache = cache
        client = SheetFeedClient(config=sheets, client_factory=self._client_factory)
        return await fetch_sheet_records(config=sheets, client=client, cache=cache)

    def _client_factory(self, resilience: ResilienceConfig) -> ResilientClient:
        cache = resilience.cache
        if self._storage is None and cache is not None and cache.backend == "sqlite":
            self._storage = get_storage_config()
        return ResilientClient(resilience, storage=self._storage)


def _records_or_empty[R](
    source: SourceKind, result: Sequence[R] | BaseException
) -> Sequence[R]:
    if isinstance(result, SourceUnavailableError):
        log.warning("Source unavailable: %s", result)
        return ()
    if isinstance(result, Exception):
        log.error("Unexpected failure fetching %s records", source, exc_info=result)
        return ()
    if isinstance(result, BaseException):
        raise result
    return result
