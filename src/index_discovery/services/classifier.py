"""Turns concrete query parameters into a normalized query shape."""

from collections.abc import Mapping
from typing import Any

from index_discovery.core.logging import get_logger
from index_discovery.core.models import QueryShape
from index_discovery.schemas.query import ParamClassification

logger = get_logger(__name__)


def _present(params: Mapping[str, Any], name: str) -> bool:
    return params.get(name) is not None


def _sort_param(params: Mapping[str, Any], name: str, default: str) -> str:
    value = params.get(name)
    if value is None or value == "":
        return default
    return str(value)


def classify(
    collection: str,
    params: Mapping[str, Any],
    classification: ParamClassification,
) -> QueryShape:
    """Classify query parameters by the role they play in an index.

    Only presence matters: the values themselves are validated by the backend.
    A filter parameter is present when its value is not ``None``. The sort
    parameters are stricter: an empty value, as sent by a blank form field,
    also falls back to the default sort.

    Args:
        collection: Collection the query runs against.
        params: Query parameters as sent to the backend.
        classification: The collection's parameter classification.

    Returns:
        QueryShape: Equality fields, range fields and sort of the query.
    """
    equality: list[str] = []
    for implicit in classification.implicit_equality:
        if implicit.unless_param is None or not _present(params, implicit.unless_param):
            equality.append(implicit.field)
    for param, field_name in classification.equality.items():
        if _present(params, param) and field_name not in equality:
            equality.append(field_name)

    range_fields: list[str] = []
    for param, field_name in classification.range.items():
        if _present(params, param) and field_name not in range_fields:
            range_fields.append(field_name)

    order_by = classification.order_by
    order_by_field = _sort_param(params, order_by.field_param, order_by.default_field)
    raw_direction = _sort_param(params, order_by.direction_param, order_by.default_direction)
    order_direction = "asc" if raw_direction == "asc" else "desc"

    known = {
        *classification.equality,
        *classification.range,
        order_by.field_param,
        order_by.direction_param,
        *classification.ignored,
        *(i.unless_param for i in classification.implicit_equality if i.unless_param),
    }
    unclassified = sorted(name for name in params if name not in known)
    if unclassified:
        logger.debug(f"Ignoring unclassified parameters for {collection}: {unclassified}")

    return QueryShape(
        collection=collection,
        equality_fields=tuple(equality),
        range_fields=tuple(range_fields),
        order_by_field=str(order_by_field),
        order_direction=order_direction,
    )
