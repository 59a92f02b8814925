"""Missing-index discovery report schemas (``missing-indexes.json``)."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from index_discovery.schemas.indexes import IndexDefinition

_CAMEL = ConfigDict(populate_by_name=True)


class CollectionSummary(BaseModel):
    """Query counters for one collection."""

    model_config = _CAMEL

    total_queries: int = Field(0, alias="totalQueries")
    successful_queries: int = Field(0, alias="successfulQueries")
    failed_queries: int = Field(0, alias="failedQueries")
    indexes_needed: int = Field(0, alias="indexesNeeded")


class MissingIndexEntry(BaseModel):
    """A query that needs an index, together with the synthesized definition."""

    model_config = _CAMEL

    query_name: str = Field(..., alias="queryName")
    params: dict[str, Any] = Field(default_factory=dict)
    error_message: str = Field(..., alias="errorMessage")
    url: str | None = Field(None, description="Console link embedded in the backend error")
    index_definition: IndexDefinition = Field(..., alias="indexDefinition")


class CollectionReport(BaseModel):
    """Summary and missing indexes of one collection."""

    model_config = _CAMEL

    summary: CollectionSummary = Field(default_factory=CollectionSummary)
    missing_indexes: list[MissingIndexEntry] = Field(default_factory=list, alias="missingIndexes")


class CollectionTotals(BaseModel):
    """Compact per-collection counters used in the report summary."""

    model_config = _CAMEL

    queries: int = 0
    indexes_needed: int = Field(0, alias="indexesNeeded")


class ReportSummary(BaseModel):
    """Totals across every probed collection."""

    model_config = _CAMEL

    total_collections: int = Field(0, alias="totalCollections")
    total_queries: int = Field(0, alias="totalQueries")
    total_successful: int = Field(0, alias="totalSuccessful")
    total_failed: int = Field(0, alias="totalFailed")
    total_indexes_needed: int = Field(0, alias="totalIndexesNeeded")
    by_collection: dict[str, CollectionTotals] = Field(default_factory=dict, alias="byCollection")


class DiscoveryReport(BaseModel):
    """Write-once output of a discovery run.

    Example:
    ```json
    {
        "generatedAt": "2025-10-01T12:30:45.123Z",
        "summary": {
            "totalCollections": 1,
            "totalQueries": 2,
            "totalSuccessful": 1,
            "totalFailed": 1,
            "totalIndexesNeeded": 1,
            "byCollection": {"orders": {"queries": 2, "indexesNeeded": 1}}
        },
        "collections": {"orders": {"summary": {...}, "missingIndexes": [...]}},
        "instructions": ["..."]
    }
    ```
    """

    model_config = _CAMEL

    generated_at: datetime = Field(..., alias="generatedAt")
    summary: ReportSummary
    collections: dict[str, CollectionReport] = Field(default_factory=dict)
    instructions: list[str] = Field(default_factory=list)

    def index_definitions(self) -> list[IndexDefinition]:
        """All synthesized definitions, in collection then query order."""
        return [
            entry.index_definition
            for collection in self.collections.values()
            for entry in collection.missing_indexes
        ]

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize using report key names, omitting absent attributes."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
