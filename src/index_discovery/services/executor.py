"""Query executor capability consumed by the discovery orchestrator."""

from collections.abc import Mapping
from typing import Any, Protocol


class QueryExecutor(Protocol):
    """Runs a query shape against a collection.

    Implementations return any success value, raise
    :class:`~index_discovery.core.exceptions.IndexRequiredFailure` carrying the
    raw backend message when a composite index is missing, and raise any other
    exception for unrelated failures.
    """

    async def execute(self, collection: str, params: Mapping[str, Any], limit: int) -> Any:
        """Run ``params`` against ``collection``, fetching at most ``limit`` results."""
        ...
