"""Index tooling endpoints: console link decoding and index synthesis."""

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from index_discovery.core.exceptions import NotFoundException
from index_discovery.core.logging import get_logger
from index_discovery.dependencies import CollectionConfigsDep
from index_discovery.schemas.indexes import IndexDefinition, IndexFieldSpec
from index_discovery.services.link_parser import parse_link
from index_discovery.services.synthesizer import synthesize_from_params

logger = get_logger(__name__)

router = APIRouter(prefix="/indexes", tags=["indexes"])


class ParseLinkRequest(BaseModel):
    """Request model for decoding a console index link."""

    url: str = Field(..., description="Console link carrying a create_composite parameter")


class ParseLinkResponse(BaseModel):
    """Decoded console link."""

    model_config = {"populate_by_name": True}

    collection_group: str | None = Field(None, alias="collectionGroup")
    fields: list[IndexFieldSpec]
    index_definition: IndexDefinition = Field(..., alias="indexDefinition")


class SynthesizeRequest(BaseModel):
    """Request model for synthesizing an index from query parameters."""

    collection: str = Field(..., description="Collection name, e.g. orders", min_length=1)
    params: dict[str, Any] = Field(default_factory=dict, description="Query parameters")


@router.post(
    "/parse-link",
    response_model=ParseLinkResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Decode Console Link",
    description="Decodes the index definition embedded in a console create_composite link",
    status_code=status.HTTP_200_OK,
)
async def parse_console_link(request: ParseLinkRequest) -> ParseLinkResponse:
    """Decode a console index link.

    Raises:
        MalformedLinkError: If the link has no create_composite parameter.
        DecodeError: If the payload cannot be decoded.
    """
    parsed = parse_link(request.url)
    definition = parsed.to_index_definition()
    logger.info(
        f"Decoded console link for {parsed.collection_group}: {len(parsed.fields)} field(s)"
    )
    return ParseLinkResponse(
        collection_group=parsed.collection_group,
        fields=list(parsed.fields),
        index_definition=definition,
    )


@router.post(
    "/synthesize",
    response_model=IndexDefinition,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Synthesize Index",
    description="Derives the composite index a query needs from its parameters",
    status_code=status.HTTP_200_OK,
)
async def synthesize_index(
    request: SynthesizeRequest,
    collections: CollectionConfigsDep,
) -> IndexDefinition:
    """Synthesize the index for a collection query.

    Raises:
        NotFoundException: If the collection is not configured.
    """
    config = next((c for c in collections if c.collection_name == request.collection), None)
    if config is None:
        raise NotFoundException(f"Unknown collection '{request.collection}'")

    return synthesize_from_params(config.collection_name, request.params, config.classification)
