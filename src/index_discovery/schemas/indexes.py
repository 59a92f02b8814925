"""Index definition and catalog schemas.

Field names follow the ``firestore.indexes.json`` layout, for example:

```json
{
    "collectionGroup": "orders",
    "queryScope": "COLLECTION",
    "fields": [
        {"fieldPath": "memberId", "order": "ASCENDING"},
        {"fieldPath": "createdAt", "order": "DESCENDING"},
        {"fieldPath": "__name__", "order": "DESCENDING"}
    ],
    "density": "SPARSE_ALL"
}
```
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from index_discovery.core.constants import DENSITY_SPARSE_ALL, QUERY_SCOPE_COLLECTION
from index_discovery.core.exceptions import DecodeError


class Direction(str, Enum):
    """Index field ordering."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


def direction_for(order: str) -> Direction:
    """Map a query sort order onto an index direction; only ``"asc"`` is ascending."""
    return Direction.ASCENDING if order == "asc" else Direction.DESCENDING


class IndexFieldSpec(BaseModel):
    """One field of a composite index.

    A field is ordered, an array field (``arrayConfig``) or a vector field
    (``vectorConfig``). Keys this model does not know are kept so that catalog
    entries are written back unchanged.
    """

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, use_enum_values=False, extra="allow"
    )

    field_path: str = Field(..., alias="fieldPath", min_length=1)
    order: Direction | None = None
    array_config: str | None = Field(None, alias="arrayConfig")
    vector_config: dict[str, Any] | None = Field(None, alias="vectorConfig")

    @model_validator(mode="after")
    def _check_mode(self) -> "IndexFieldSpec":
        modes = [m for m in (self.order, self.array_config, self.vector_config) if m is not None]
        if len(modes) != 1:
            raise ValueError(
                "an index field needs exactly one of 'order', 'arrayConfig' or 'vectorConfig'"
            )
        return self

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize using catalog key names, omitting absent attributes."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def describe(self) -> str:
        """Short ``path MODE`` label for log output."""
        if self.order is not None:
            return f"{self.field_path} {self.order.value}"
        if self.array_config is not None:
            return f"{self.field_path} {self.array_config}"
        return f"{self.field_path} VECTOR"


class IndexDefinition(BaseModel):
    """A composite index as stored in the catalog."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    collection_group: str = Field(..., alias="collectionGroup", min_length=1)
    query_scope: str = Field(QUERY_SCOPE_COLLECTION, alias="queryScope")
    fields: tuple[IndexFieldSpec, ...] = Field(..., min_length=1)
    density: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize using catalog key names, omitting absent attributes."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Catalog(BaseModel):
    """The persisted index catalog (``firestore.indexes.json``)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    indexes: list[IndexDefinition] = Field(default_factory=list)
    field_overrides: list[dict[str, Any]] = Field(default_factory=list, alias="fieldOverrides")

    def with_indexes(self, new_indexes: list[IndexDefinition]) -> "Catalog":
        """Return a copy of the catalog with ``new_indexes`` appended."""
        return self.model_copy(update={"indexes": [*self.indexes, *new_indexes]})

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize using catalog key names, omitting absent attributes."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ParsedLink(BaseModel):
    """Index specification decoded from a console ``create_composite`` link."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    collection_group: str | None = Field(None, alias="collectionGroup")
    query_scope: str = Field(QUERY_SCOPE_COLLECTION, alias="queryScope")
    fields: tuple[IndexFieldSpec, ...] = ()

    def to_index_definition(self) -> IndexDefinition:
        """Convert the decoded link into a catalog entry."""
        if not self.collection_group:
            raise DecodeError("Console link does not name a collection group")
        if not self.fields:
            raise DecodeError("Console link does not list any index fields")
        return IndexDefinition(
            collection_group=self.collection_group,
            query_scope=self.query_scope,
            fields=self.fields,
            density=DENSITY_SPARSE_ALL,
        )
