#!/usr/bin/env python
"""Merge the indexes of a discovery report into the index catalog.

Reads the report written by ``discover-indexes`` (``missing-indexes.json``),
drops definitions already present in the catalog and appends the rest to
``firestore.indexes.json``. Existing entries are never altered.

Usage:
    python -m index_discovery.scripts.update_indexes \
        [--report missing-indexes.json] \
        [--catalog firestore.indexes.json] \
        [--dry-run]
"""

import argparse
import sys

from index_discovery.config import get_settings
from index_discovery.core.exceptions import CatalogError
from index_discovery.core.logging import get_logger, setup_logging
from index_discovery.services.catalog import (
    extract_index_definitions,
    load_catalog,
    load_report,
    save_catalog,
    update_catalog,
)

logger = get_logger(__name__)


def update_indexes(report_path: str, catalog_path: str, dry_run: bool = False) -> int:
    """Merge the report's definitions into the catalog.

    Args:
        report_path: Discovery report to read.
        catalog_path: Catalog file to update.
        dry_run: Only log what would be added.

    Returns:
        Number of definitions added (or that would be added).
    """
    report = load_report(report_path)
    candidates = extract_index_definitions(report)
    if not candidates:
        logger.info("No index definitions in the report; every query has an index")
        return 0

    catalog = load_catalog(catalog_path)
    updated, merge = update_catalog(catalog, candidates)

    if not merge.unique_new:
        logger.info(f"Nothing to add: {merge.skipped_count} index(es) already in {catalog_path}")
        return 0

    for definition in merge.unique_new:
        fields = ", ".join(f.describe() for f in definition.fields)
        logger.info(f"  + {definition.collection_group}: {fields}")

    if dry_run:
        logger.info(f"Dry run: {len(merge.unique_new)} index(es) would be added")
        return len(merge.unique_new)

    save_catalog(updated, catalog_path)
    logger.info(
        f"Added {len(merge.unique_new)} index(es), skipped {merge.skipped_count}, "
        f"{len(updated.indexes)} in total"
    )
    logger.info("Next: firebase deploy --only firestore:indexes")
    return len(merge.unique_new)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Merge discovered index definitions into the index catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Merge the default report into the default catalog
  python -m index_discovery.scripts.update_indexes

  # Preview without writing
  python -m index_discovery.scripts.update_indexes --dry-run
        """,
    )
    parser.add_argument(
        "--report",
        default=settings.report_path,
        help=f"Discovery report to read (default: {settings.report_path})",
    )
    parser.add_argument(
        "--catalog",
        default=settings.catalog_path,
        help=f"Index catalog to update (default: {settings.catalog_path})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the indexes that would be added without writing the catalog",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        update_indexes(args.report, args.catalog, dry_run=args.dry_run)
    except CatalogError as e:
        logger.error(f"Catalog update failed: {e.message}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
