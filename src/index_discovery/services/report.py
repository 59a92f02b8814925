"""Assembles the missing-index discovery report."""

from datetime import UTC, datetime

from index_discovery.core.models import CollectionTally
from index_discovery.schemas.indexes import IndexDefinition
from index_discovery.schemas.report import (
    CollectionReport,
    CollectionSummary,
    CollectionTotals,
    DiscoveryReport,
    MissingIndexEntry,
    ReportSummary,
)

INSTRUCTIONS = [
    "Create the missing indexes listed in this report:",
    "",
    "[Option 1: copy the index definitions (recommended)]",
    "1. Review the indexDefinition of each missing index",
    "2. Copy the indexDefinition object",
    "3. Paste it into the indexes array of firestore.indexes.json",
    "4. Run firebase deploy --only firestore:indexes to deploy the indexes",
    "",
    "[Option 2: through the Firebase console]",
    "1. Open the link given in errorMessage / url",
    "2. Let the console create the index",
    "3. Once built, run firebase firestore:indexes > firestore.indexes.json",
    "",
    "[Option 3: automatic catalog update]",
    "1. Run update-indexes",
    "2. Follow the printed instructions",
]


def build_report(
    tallies: dict[str, CollectionTally],
    definitions: dict[tuple[str, str], IndexDefinition],
    generated_at: datetime | None = None,
) -> DiscoveryReport:
    """Build the report from per-collection tallies.

    Args:
        tallies: Counters and index errors keyed by collection name, in run order.
        definitions: Synthesized definition per ``(collection, query_name)``.
        generated_at: Report timestamp; defaults to now (UTC).

    Returns:
        DiscoveryReport: Summary, per-collection details and instructions.
    """
    collections: dict[str, CollectionReport] = {}
    summary = ReportSummary(total_collections=len(tallies))

    for name, tally in tallies.items():
        entries = [
            MissingIndexEntry(
                query_name=error.query_name,
                params=error.params,
                error_message=error.raw_error_message,
                url=error.console_url,
                index_definition=definitions[(name, error.query_name)],
            )
            for error in tally.errors
        ]
        collections[name] = CollectionReport(
            summary=CollectionSummary(
                total_queries=tally.total,
                successful_queries=tally.successful,
                failed_queries=tally.failed,
                indexes_needed=len(entries),
            ),
            missing_indexes=entries,
        )

        summary.total_queries += tally.total
        summary.total_successful += tally.successful
        summary.total_failed += tally.failed
        summary.total_indexes_needed += len(entries)
        summary.by_collection[name] = CollectionTotals(
            queries=tally.total, indexes_needed=len(entries)
        )

    return DiscoveryReport(
        generated_at=generated_at or datetime.now(UTC),
        summary=summary,
        collections=collections,
        instructions=list(INSTRUCTIONS),
    )
