# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from toursearch.adapters.tour import JsonTourSource
from toursearch.app import CatalogService
from toursearch.common import configure_logging
from toursearch.config import ConfigurationError, load_search_config
from toursearch.domain.errors import SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from toursearch.domain.catalog import Catalog
    from toursearch.domain.model import CatalogEntity
    from toursearch.domain.ranking import SearchResponse

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and query a virtual tour search catalog")
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML search configuration (defaults apply when omitted)",
    )
    parser.add_argument(
        "--tour",
        type=Path,
        help="Exported tour structure (JSON with a playlist of panoramas and overlays)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    catalog = subparsers.add_parser("catalog", help="Build the catalog and list its entities")
    catalog.add_argument(
        "--json",
        action="store_true",
        help="Print the catalog as JSON instead of a table",
    )

    search = subparsers.add_parser("search", help="Run a query against the catalog")
    search.add_argument(
        "query",
        type=str,
        help='Query text; "*" lists everything, a leading "=" asks for an exact label',
    )
    search.add_argument(
        "--limit",
        type=int,
        help="Maximum number of hits to print",
    )

    return parser.parse_args(list(argv))


def _entity_row(entity: CatalogEntity) -> dict[str, Any]:
    return {
        "id": str(entity.identity_key),
        "type": entity.entity_type.value,
        "label": entity.label,
        "subtitle": entity.subtitle,
        "tags": sorted(entity.tags),
        "parent": str(entity.parent_ref) if entity.parent_ref else None,
        "confidence": int(entity.match_confidence),
        "standalone": entity.is_standalone,
        "boost": entity.boost_weight,
        "order": entity.playlist_order,
        "image": entity.image_ref,
    }


def _print_catalog(catalog: Catalog, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([_entity_row(entity) for entity in catalog], indent=2))
        return
    for entity in catalog:
        parent = f"  < {entity.parent_label}" if entity.parent_label else ""
        print(f"{entity.entity_type.value:<14} {entity.label}{parent}  ({entity.identity_key})")
    print(f"{len(catalog)} entities")


def _print_response(response: SearchResponse, *, limit: int | None) -> None:
    if response.too_short:
        print(f"Query {response.query!r} is too short")
        return
    if response.is_empty:
        print("No results")
        return
    remaining = limit
    for group in response.groups:
        if remaining is not None and remaining <= 0:
            break
        hits = group.hits if remaining is None else group.hits[:remaining]
        print(f"{group.label} ({group.count})")
        for hit in hits:
            subtitle = f" - {hit.subtitle}" if hit.subtitle else ""
            print(f"  {hit.highlighted_label()}{subtitle}  [{hit.score:.3f}]")
        if remaining is not None:
            remaining -= len(hits)


def _build_service(args: argparse.Namespace) -> CatalogService:
    config = load_search_config(args.config)
    tour = JsonTourSource.from_path(args.tour) if args.tour is not None else None
    return CatalogService(tour=tour, config=config)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO, force=True)

    try:
        service = _build_service(parsed_args)
    except (ConfigurationError, SourceUnavailableError):
        log.exception("CLI configuration error")
        sys.exit(2)

    try:
        catalog = service.rebuild_sync()
        if parsed_args.command == "catalog":
            _print_catalog(catalog, as_json=parsed_args.json)
        elif parsed_args.command == "search":
            _print_response(service.search(parsed_args.query), limit=parsed_args.limit)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
