"""Derives a composite index definition from the shape of a query.

Field order is what makes a composite index usable, so the rules are fixed:

1. equality fields, ascending, in declaration order;
2. range fields, ascending, except a range on the sort field which takes the
   sort direction;
3. the sort field, unless already present, in which case its direction is
   overwritten with the sort direction;
4. ``__name__`` in the sort direction, always last.

Each field path appears at most once.
"""

from collections.abc import Mapping
from typing import Any

from index_discovery.core.constants import (
    DENSITY_SPARSE_ALL,
    DOCUMENT_KEY_FIELD,
    QUERY_SCOPE_COLLECTION,
)
from index_discovery.core.models import QueryShape
from index_discovery.schemas.indexes import (
    Direction,
    IndexDefinition,
    IndexFieldSpec,
    direction_for,
)
from index_discovery.schemas.query import ParamClassification
from index_discovery.services.classifier import classify


def synthesize(shape: QueryShape, collection_group: str | None = None) -> IndexDefinition:
    """Build the composite index a query shape needs.

    Args:
        shape: Classified query.
        collection_group: Collection group of the index; defaults to
            ``shape.collection``.

    Returns:
        IndexDefinition: Definition ending with the ``__name__`` tie-break.
    """
    sort_direction = direction_for(shape.order_direction)
    fields: list[IndexFieldSpec] = []
    seen: set[str] = set()

    for path in shape.equality_fields:
        if path not in seen:
            fields.append(IndexFieldSpec(field_path=path, order=Direction.ASCENDING))
            seen.add(path)

    for path in shape.range_fields:
        if path not in seen:
            order = sort_direction if path == shape.order_by_field else Direction.ASCENDING
            fields.append(IndexFieldSpec(field_path=path, order=order))
            seen.add(path)

    if shape.order_by_field not in seen:
        fields.append(IndexFieldSpec(field_path=shape.order_by_field, order=sort_direction))
        seen.add(shape.order_by_field)
    else:
        position = next(i for i, f in enumerate(fields) if f.field_path == shape.order_by_field)
        fields[position] = IndexFieldSpec(field_path=shape.order_by_field, order=sort_direction)

    # A query sorting or filtering on the document key still gets exactly one,
    # trailing, __name__ entry.
    fields = [f for f in fields if f.field_path != DOCUMENT_KEY_FIELD]
    fields.append(IndexFieldSpec(field_path=DOCUMENT_KEY_FIELD, order=sort_direction))

    return IndexDefinition(
        collection_group=collection_group or shape.collection,
        query_scope=QUERY_SCOPE_COLLECTION,
        fields=tuple(fields),
        density=DENSITY_SPARSE_ALL,
    )


def synthesize_from_params(
    collection: str,
    params: Mapping[str, Any],
    classification: ParamClassification,
) -> IndexDefinition:
    """Classify ``params`` and synthesize the index for the resulting shape."""
    return synthesize(classify(collection, params, classification))
