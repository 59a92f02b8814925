"""Per-collection query parameter classification and probe configuration."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from index_discovery.core.constants import DEFAULT_ORDER_DIRECTION, DEFAULT_ORDER_FIELD


class OrderByParams(BaseModel):
    """Parameters selecting the sort field and direction, with their defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field_param: str = "orderBy"
    direction_param: str = "order"
    default_field: str = DEFAULT_ORDER_FIELD
    default_direction: Literal["asc", "desc"] = DEFAULT_ORDER_DIRECTION


class ImplicitEquality(BaseModel):
    """Equality filter the backend applies by itself, e.g. ``deletedAt == null``.

    The filter is dropped when ``unless_param`` is present in the query.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str
    unless_param: str | None = None


class ParamClassification(BaseModel):
    """How a collection's query parameters map onto index roles.

    Example:
    ```python
    ParamClassification(
        equality=["memberId", "status"],
        range={"minAmount": "totalAmount", "maxAmount": "totalAmount"},
    )
    ```
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    equality: dict[str, str] = Field(
        default_factory=dict,
        description="paramName -> fieldName, in the order the fields enter the index",
    )
    range: dict[str, str] = Field(
        default_factory=dict,
        description="paramName -> fieldName; several bounds may share one field",
    )
    order_by: OrderByParams = Field(default_factory=OrderByParams)
    ignored: list[str] = Field(default_factory=lambda: ["limit", "cursor"])
    implicit_equality: list[ImplicitEquality] = Field(default_factory=list)

    @field_validator("equality", mode="before")
    @classmethod
    def _names_as_identity_mapping(cls, value: Any) -> Any:
        if isinstance(value, list | tuple):
            return {name: name for name in value}
        return value

    @model_validator(mode="after")
    def _check_roles_disjoint(self) -> "ParamClassification":
        roles: dict[str, str] = {}
        declared = [
            *(("equality", name) for name in self.equality),
            *(("range", name) for name in self.range),
            ("order_by", self.order_by.field_param),
            ("order_by", self.order_by.direction_param),
            *(("ignored", name) for name in self.ignored),
        ]
        for role, name in declared:
            if name in roles and not (role == "order_by" and roles[name] == "order_by"):
                raise ValueError(f"parameter '{name}' is declared as both {roles[name]} and {role}")
            roles[name] = role
        if self.order_by.field_param == self.order_by.direction_param:
            raise ValueError("order_by field and direction parameters must differ")
        return self


class NamedQuery(BaseModel):
    """One query combination to probe against the backend."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    description: str | None = None


class CollectionConfig(BaseModel):
    """Everything needed to probe one collection for missing indexes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    collection_name: str = Field(..., min_length=1)
    endpoint: str = Field(..., description="REST path listing the collection")
    requires_auth: bool = True
    classification: ParamClassification
    queries: list[NamedQuery] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_query_names_unique(self) -> "CollectionConfig":
        names = [query.name for query in self.queries]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate query names in {self.collection_name}: {duplicates}")
        return self


def validate_collection_configs(configs: list[CollectionConfig]) -> list[CollectionConfig]:
    """Reject configuration lists that name the same collection twice."""
    seen: set[str] = set()
    for config in configs:
        if config.collection_name in seen:
            raise ValueError(f"collection '{config.collection_name}' is configured twice")
        seen.add(config.collection_name)
    return configs
