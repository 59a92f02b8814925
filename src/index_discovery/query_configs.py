"""Query combinations probed for each backend collection.

This is the single source of truth for what the list endpoints accept: each
collection declares how its parameters map onto index roles and which
combinations to try. Configs are validated when this module is imported.
"""

from functools import lru_cache

from index_discovery.schemas.query import (
    CollectionConfig,
    ImplicitEquality,
    NamedQuery,
    ParamClassification,
    validate_collection_configs,
)

MEMBER_ID = "test_member_123"
ORDER_STATUS = "pending"
MIN_CREATED_AT = "2025-01-01"
MAX_CREATED_AT = "2025-01-31"
MIN_AMOUNT = 100
MAX_AMOUNT = 1000

# Soft-deleted documents are filtered out (deletedAt == null) unless the
# caller asks for them.
SOFT_DELETE_FILTER = ImplicitEquality(field="deletedAt", unless_param="includeDeleted")


def _orders() -> CollectionConfig:
    queries = []
    for label, filters in (
        ("member", {"memberId": MEMBER_ID}),
        ("status", {"status": ORDER_STATUS}),
        ("member + status", {"memberId": MEMBER_ID, "status": ORDER_STATUS}),
    ):
        for sort_field in ("createdAt", "totalAmount"):
            for order in ("desc", "asc"):
                queries.append(
                    NamedQuery(
                        name=f"{label}, by {sort_field} {order}",
                        params={**filters, "orderBy": sort_field, "order": order},
                    )
                )
    queries.insert(0, NamedQuery(name="member, default sort", params={"memberId": MEMBER_ID}))

    for label, filters in (
        ("member", {"memberId": MEMBER_ID}),
        ("status", {"status": ORDER_STATUS}),
    ):
        date_range = {"minCreatedAt": MIN_CREATED_AT, "maxCreatedAt": MAX_CREATED_AT}
        amount_range = {"minAmount": MIN_AMOUNT, "maxAmount": MAX_AMOUNT}
        for bounds_label, bounds, sort_field in (
            ("from date", {"minCreatedAt": MIN_CREATED_AT}, "createdAt"),
            ("until date", {"maxCreatedAt": MAX_CREATED_AT}, "createdAt"),
            ("date range", date_range, "createdAt"),
            ("min amount", {"minAmount": MIN_AMOUNT}, "totalAmount"),
            ("max amount", {"maxAmount": MAX_AMOUNT}, "totalAmount"),
            ("amount range", amount_range, "totalAmount"),
        ):
            for order in ("asc", "desc"):
                queries.append(
                    NamedQuery(
                        name=f"{label} + {bounds_label}, by {sort_field} {order}",
                        params={**filters, **bounds, "orderBy": sort_field, "order": order},
                    )
                )

    queries.append(
        NamedQuery(
            name="amount range, default sort",
            params={"minAmount": MIN_AMOUNT, "maxAmount": MAX_AMOUNT},
            description="Range on totalAmount while sorting by the default createdAt",
        )
    )

    return CollectionConfig(
        collection_name="orders",
        endpoint="/api/admin/orders",
        classification=ParamClassification(
            equality=["memberId", "status"],
            range={
                "minCreatedAt": "createdAt",
                "maxCreatedAt": "createdAt",
                "minAmount": "totalAmount",
                "maxAmount": "totalAmount",
            },
        ),
        queries=queries,
    )


def _members() -> CollectionConfig:
    return CollectionConfig(
        collection_name="members",
        endpoint="/api/admin/members",
        classification=ParamClassification(
            equality=["isActive"],
            range={"minCreatedAt": "createdAt", "maxCreatedAt": "createdAt"},
            ignored=["limit", "cursor"],
            implicit_equality=[SOFT_DELETE_FILTER],
        ),
        queries=[
            NamedQuery(name="default sort", params={}),
            NamedQuery(name="from date", params={"minCreatedAt": MIN_CREATED_AT}),
            NamedQuery(name="until date", params={"maxCreatedAt": MAX_CREATED_AT}),
            NamedQuery(
                name="date range",
                params={"minCreatedAt": MIN_CREATED_AT, "maxCreatedAt": MAX_CREATED_AT},
            ),
            NamedQuery(name="active only", params={"isActive": True}),
            NamedQuery(name="inactive only", params={"isActive": False}),
            NamedQuery(name="including deleted", params={"includeDeleted": True}),
            NamedQuery(
                name="active + date range",
                params={
                    "isActive": True,
                    "minCreatedAt": MIN_CREATED_AT,
                    "maxCreatedAt": MAX_CREATED_AT,
                },
            ),
            NamedQuery(
                name="including deleted + date range",
                params={
                    "includeDeleted": True,
                    "minCreatedAt": MIN_CREATED_AT,
                    "maxCreatedAt": MAX_CREATED_AT,
                },
            ),
        ],
    )


def _products() -> CollectionConfig:
    queries = [NamedQuery(name="default sort", params={})]
    for label, filters in (("all", {}), ("category", {"category": "electronics"})):
        for sort_field in ("createdAt", "price"):
            for order in ("desc", "asc"):
                queries.append(
                    NamedQuery(
                        name=f"{label}, by {sort_field} {order}",
                        params={**filters, "orderBy": sort_field, "order": order},
                    )
                )
        for bounds_label, bounds in (
            ("min price", {"minPrice": MIN_AMOUNT}),
            ("max price", {"maxPrice": MAX_AMOUNT}),
            ("price range", {"minPrice": MIN_AMOUNT, "maxPrice": MAX_AMOUNT}),
        ):
            for order in ("asc", "desc"):
                queries.append(
                    NamedQuery(
                        name=f"{label} + {bounds_label}, by price {order}",
                        params={**filters, **bounds, "orderBy": "price", "order": order},
                    )
                )

    return CollectionConfig(
        collection_name="products",
        endpoint="/api/public/products",
        requires_auth=False,
        classification=ParamClassification(
            equality=["category"],
            range={"minPrice": "price", "maxPrice": "price"},
        ),
        queries=queries,
    )


def _admins() -> CollectionConfig:
    queries = []
    for label, filters in (
        ("all", {}),
        ("active", {"isActive": True}),
        ("including deleted", {"includeDeleted": True}),
    ):
        for order in ("desc", "asc"):
            queries.append(
                NamedQuery(
                    name=f"{label}, by createdAt {order}",
                    params={**filters, "orderBy": "createdAt", "order": order},
                )
            )
    queries.append(
        NamedQuery(
            name="active + date range",
            params={
                "isActive": True,
                "minCreatedAt": MIN_CREATED_AT,
                "maxCreatedAt": MAX_CREATED_AT,
            },
        )
    )

    return CollectionConfig(
        collection_name="admins",
        endpoint="/api/admin/admins",
        classification=ParamClassification(
            equality=["isActive"],
            range={"minCreatedAt": "createdAt", "maxCreatedAt": "createdAt"},
            implicit_equality=[SOFT_DELETE_FILTER],
        ),
        queries=queries,
    )


@lru_cache
def get_collection_configs() -> tuple[CollectionConfig, ...]:
    """All built-in collection configs, validated."""
    return tuple(validate_collection_configs([_orders(), _members(), _products(), _admins()]))


def get_collection_config(name: str) -> CollectionConfig | None:
    """Look up a built-in collection config by collection name."""
    return next((c for c in get_collection_configs() if c.collection_name == name), None)


# Fail at import time on a malformed config rather than mid-run.
get_collection_configs()
