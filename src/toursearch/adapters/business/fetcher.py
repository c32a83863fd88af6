"""Business feed entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError

from .client import BusinessFeedClient
from .schema import BusinessEntry
from .translator import translate_entry

if TYPE_CHECKING:
    from toursearch.config.sources import BusinessSourceConfig
    from toursearch.domain.model import BusinessRecord

log = getLogger(__name__)


class BusinessPayloadClient(Protocol):
    async def fetch_payload_async(self) -> list[Any]: ...


async def fetch_business_records(
    *,
    config: BusinessSourceConfig,
    client: BusinessPayloadClient | None = None,
) -> list[BusinessRecord]:
    """Fetch and translate the business feed.

    Raises ``BusinessFeedError`` when the feed itself is unavailable; entries that
    fail validation are skipped with a warning.
    """

    active_client = client or BusinessFeedClient(config=config)
    payload = await active_client.fetch_payload_async()
    return parse_business_entries(payload)


def parse_business_entries(payload: list[Any]) -> list[BusinessRecord]:
    records: list[BusinessRecord] = []
    for index, item in enumerate(payload):
        try:
            entry = BusinessEntry.model_validate(item)
        except ValidationError as exc:
            log.warning("Skipping business entry #%d: %s", index, exc.errors()[0]["msg"])
            continue
        records.append(translate_entry(entry))
    log.info("Loaded %d business entries", len(records))
    return records
