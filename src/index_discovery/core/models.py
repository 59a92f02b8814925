"""Domain models passed between the classifier, synthesizer and orchestrator."""

from dataclasses import dataclass, field
from typing import Any, Literal

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class QueryShape:
    """Normalized description of a query, independent of literal filter values."""

    collection: str
    equality_fields: tuple[str, ...] = ()
    range_fields: tuple[str, ...] = ()
    order_by_field: str = "createdAt"
    order_direction: SortOrder = "desc"


@dataclass(frozen=True)
class DiscoveryError:
    """A query the backend rejected because a composite index is missing."""

    collection: str
    query_name: str
    params: dict[str, Any]
    raw_error_message: str
    console_url: str | None = None


@dataclass(frozen=True)
class QueryFailure:
    """A query that failed for a reason other than a missing index."""

    collection: str
    query_name: str
    params: dict[str, Any]
    error: str
    error_type: str = "Exception"


@dataclass(frozen=True)
class WireField:
    """One decoded (field number, wire type, value) triple."""

    field_number: int
    wire_type: int
    value: int | bytes


@dataclass
class CollectionTally:
    """Per-collection counters collected while a discovery run progresses."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[DiscoveryError] = field(default_factory=list)
