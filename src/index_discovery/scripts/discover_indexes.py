#!/usr/bin/env python
"""Probe every configured query combination and report missing indexes.

Each query combination is sent to the backend's list endpoint one at a time.
Queries rejected for a missing composite index are collected into a report
(``missing-indexes.json``) together with a synthesized index definition.

Usage:
    python -m index_discovery.scripts.discover_indexes \
        [--collection orders --collection members] \
        [--report missing-indexes.json] \
        [--update-catalog [--catalog firestore.indexes.json]]

Environment:
    BACKEND_BASE_URL, BACKEND_AUTH_TOKEN and REQUEST_TIMEOUT configure the
    HTTP executor.
"""

import argparse
import asyncio
import sys

from index_discovery.adapters.http_executor import HttpQueryExecutor
from index_discovery.config import Settings, get_settings
from index_discovery.core.exceptions import CatalogError
from index_discovery.core.logging import get_logger, setup_logging
from index_discovery.query_configs import get_collection_configs
from index_discovery.schemas.query import CollectionConfig
from index_discovery.services.catalog import load_catalog, save_catalog, save_report
from index_discovery.services.discovery import DiscoveryResult, IndexDiscoveryService

logger = get_logger(__name__)


def select_collections(names: list[str] | None) -> list[CollectionConfig]:
    """Built-in configs, optionally restricted to ``names``.

    Raises:
        ValueError: If a name is not configured.
    """
    configs = list(get_collection_configs())
    if not names:
        return configs

    known = {c.collection_name: c for c in configs}
    unknown = [name for name in names if name not in known]
    if unknown:
        raise ValueError(f"Unknown collection(s): {', '.join(unknown)}")
    return [known[name] for name in names]


async def discover(
    settings: Settings,
    collections: list[CollectionConfig],
    report_path: str,
    catalog_path: str,
    update: bool,
) -> DiscoveryResult:
    """Run discovery over HTTP, write the report and optionally the catalog."""
    catalog = load_catalog(catalog_path)

    async with HttpQueryExecutor(settings, collections) as executor:
        service = IndexDiscoveryService(
            executor,
            result_limit=settings.result_limit,
            cross_check=settings.cross_check_links,
        )
        result = await service.run(collections, catalog)

    save_report(result.report, report_path)

    if update and result.new_indexes:
        save_catalog(result.catalog, catalog_path)

    return result


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Find queries that need a composite index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Probe every collection and write missing-indexes.json
  python -m index_discovery.scripts.discover_indexes

  # Probe orders only and append new indexes to the catalog
  python -m index_discovery.scripts.discover_indexes --collection orders --update-catalog
        """,
    )
    parser.add_argument(
        "--collection",
        action="append",
        dest="collections",
        help="Collection to probe (repeatable; default: all configured collections)",
    )
    parser.add_argument(
        "--report",
        default=settings.report_path,
        help=f"Report file to write (default: {settings.report_path})",
    )
    parser.add_argument(
        "--catalog",
        default=settings.catalog_path,
        help=f"Index catalog (default: {settings.catalog_path})",
    )
    parser.add_argument(
        "--update-catalog",
        action="store_true",
        help="Append newly discovered indexes to the catalog",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        collections = select_collections(args.collections)
    except ValueError as e:
        parser.error(str(e))

    try:
        result = asyncio.run(
            discover(settings, collections, args.report, args.catalog, args.update_catalog)
        )
    except CatalogError as e:
        logger.error(f"Discovery failed: {e.message}")
        sys.exit(1)

    summary = result.report.summary
    if summary.total_indexes_needed:
        logger.warning(
            f"{summary.total_indexes_needed} query(ies) need an index; see {args.report}"
        )
        if not args.update_catalog:
            logger.info("Next: run update-indexes to add them to the catalog")
    else:
        logger.info("Every query has a matching index")

    sys.exit(1 if result.failures or result.mismatches else 0)


if __name__ == "__main__":
    main()
