"""Drives named query combinations through an executor to find missing indexes."""

from dataclasses import dataclass, field

from index_discovery.core.exceptions import (
    DecodeError,
    IndexRequiredFailure,
    MalformedLinkError,
    QueryExecutionError,
)
from index_discovery.core.logging import get_logger
from index_discovery.core.models import CollectionTally, DiscoveryError, QueryFailure
from index_discovery.schemas.indexes import Catalog, IndexDefinition
from index_discovery.schemas.query import (
    CollectionConfig,
    NamedQuery,
    validate_collection_configs,
)
from index_discovery.schemas.report import DiscoveryReport
from index_discovery.services.catalog import MergeResult, index_key, update_catalog
from index_discovery.services.classifier import classify
from index_discovery.services.executor import QueryExecutor
from index_discovery.services.link_parser import find_console_url, parse_link
from index_discovery.services.report import build_report
from index_discovery.services.synthesizer import synthesize

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexMismatch:
    """Synthesized definition that disagrees with the backend's console link."""

    collection: str
    query_name: str
    synthesized: IndexDefinition
    console: IndexDefinition | None
    reason: str


@dataclass
class DiscoveryResult:
    """Everything one discovery run produced."""

    report: DiscoveryReport
    merge: MergeResult
    catalog: Catalog
    discovery_errors: list[DiscoveryError] = field(default_factory=list)
    failures: list[QueryFailure] = field(default_factory=list)
    mismatches: list[IndexMismatch] = field(default_factory=list)

    @property
    def new_indexes(self) -> list[IndexDefinition]:
        """Definitions that were not in the catalog yet."""
        return self.merge.unique_new


@dataclass
class _RunState:
    tallies: dict[str, CollectionTally] = field(default_factory=dict)
    definitions: dict[tuple[str, str], IndexDefinition] = field(default_factory=dict)
    failures: list[QueryFailure] = field(default_factory=list)
    mismatches: list[IndexMismatch] = field(default_factory=list)


class IndexDiscoveryService:
    """Probes every configured query combination, one at a time.

    Queries run strictly sequentially so that each index error can be
    attributed to the query that caused it.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        result_limit: int = 1,
        cross_check: bool = True,
    ):
        """Initialize the discovery service.

        Args:
            executor: Capability that runs a query against a collection.
            result_limit: Result limit passed with every probe.
            cross_check: Compare synthesized definitions with console links
                found in index errors.
        """
        self.executor = executor
        self.result_limit = result_limit
        self.cross_check = cross_check

    async def run(
        self,
        collections: list[CollectionConfig],
        catalog: Catalog | None = None,
    ) -> DiscoveryResult:
        """Probe all collections, build the report and merge new indexes.

        Args:
            collections: Collections and their query combinations.
            catalog: Currently persisted catalog; empty when omitted. It is
                not mutated.

        Returns:
            DiscoveryResult: Report, merge statistics, updated catalog and
            every recorded outcome.

        Raises:
            ValueError: If two configs name the same collection.
        """
        validate_collection_configs(collections)
        if catalog is None:
            catalog = Catalog()
        state = _RunState()

        for config in collections:
            tally = state.tallies.setdefault(config.collection_name, CollectionTally())
            logger.info(
                f"Probing {config.collection_name}: {len(config.queries)} query combination(s)"
            )
            for query in config.queries:
                await self._probe(config, query, tally, state)

        report = build_report(state.tallies, state.definitions)
        candidates = report.index_definitions()
        updated_catalog, merge = update_catalog(catalog, candidates)

        logger.info(
            f"Discovery complete: {report.summary.total_queries} queries, "
            f"{report.summary.total_successful} succeeded, "
            f"{report.summary.total_indexes_needed} need an index, "
            f"{len(merge.unique_new)} new for the catalog ({merge.skipped_count} already known)"
        )
        if state.failures:
            logger.warning(f"{len(state.failures)} query(ies) failed for other reasons")
        if state.mismatches:
            logger.warning(
                f"{len(state.mismatches)} synthesized index(es) disagree with console links"
            )

        return DiscoveryResult(
            report=report,
            merge=merge,
            catalog=updated_catalog,
            discovery_errors=[e for t in state.tallies.values() for e in t.errors],
            failures=state.failures,
            mismatches=state.mismatches,
        )

    async def _probe(
        self,
        config: CollectionConfig,
        query: NamedQuery,
        tally: CollectionTally,
        state: _RunState,
    ) -> None:
        collection = config.collection_name
        tally.total += 1

        try:
            await self.executor.execute(collection, query.params, self.result_limit)
        except IndexRequiredFailure as e:
            tally.failed += 1
            error = DiscoveryError(
                collection=collection,
                query_name=query.name,
                params=dict(query.params),
                raw_error_message=e.message,
                console_url=find_console_url(e.message),
            )
            tally.errors.append(error)
            definition = synthesize(
                classify(collection, query.params, config.classification), collection
            )
            state.definitions[(collection, query.name)] = definition
            logger.info(f"  Missing index: {collection} / {query.name}")

            if self.cross_check and error.console_url:
                mismatch = self._cross_check(error, error.console_url, definition)
                if mismatch:
                    state.mismatches.append(mismatch)
        except Exception as e:
            tally.failed += 1
            state.failures.append(
                QueryFailure(
                    collection=collection,
                    query_name=query.name,
                    params=dict(query.params),
                    error=str(e),
                    error_type=e.__class__.__name__,
                )
            )
            logger.error(
                f"  Query failed (not an index error): {collection} / {query.name}: {e}",
                exc_info=not isinstance(e, QueryExecutionError),
            )
        else:
            tally.successful += 1
            logger.info(f"  OK: {collection} / {query.name}")

    def _cross_check(
        self, error: DiscoveryError, console_url: str, definition: IndexDefinition
    ) -> IndexMismatch | None:
        try:
            console = parse_link(console_url).to_index_definition()
        except (MalformedLinkError, DecodeError) as e:
            logger.warning(
                f"Cannot decode console link for {error.collection} / {error.query_name}: "
                f"{e.message}"
            )
            return IndexMismatch(
                collection=error.collection,
                query_name=error.query_name,
                synthesized=definition,
                console=None,
                reason=f"undecodable console link: {e.message}",
            )

        if index_key(console) == index_key(definition):
            return None

        if console.collection_group != definition.collection_group:
            reason = (
                f"collection group differs: synthesized '{definition.collection_group}', "
                f"console '{console.collection_group}'"
            )
        else:
            reason = "field list differs"
        logger.warning(
            f"Synthesized index for {error.collection} / {error.query_name} differs from the "
            f"console link: synthesized={definition.to_json_dict()['fields']} "
            f"console={console.to_json_dict()['fields']}"
        )
        return IndexMismatch(
            collection=error.collection,
            query_name=error.query_name,
            synthesized=definition,
            console=console,
            reason=reason,
        )
