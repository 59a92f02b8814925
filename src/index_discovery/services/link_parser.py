"""Decoder for console ``create_composite`` index links.

A console link carries the index to create as a URL-encoded, base64-encoded
protobuf message:

- field 1 (string): resource path, ``projects/.../collectionGroups/<name>/indexes/_``
- field 2 (varint): query scope (1 = COLLECTION, 2 = COLLECTION_GROUP)
- field 3 (message, repeated): index field, itself holding
  field 1 (string) = field path and field 2 (varint) = order (1 ASC, 2 DESC)
"""

import base64
import binascii
import re
from urllib.parse import unquote

from index_discovery.codec.wire_decoder import WireType, iter_fields
from index_discovery.core.constants import (
    CREATE_COMPOSITE_PARAM,
    F_FIELD_ORDER,
    F_FIELD_PATH,
    F_INDEX_FIELD,
    F_QUERY_SCOPE,
    F_RESOURCE_PATH,
    QUERY_SCOPE_COLLECTION,
    QUERY_SCOPE_COLLECTION_GROUP,
)
from index_discovery.core.exceptions import DecodeError, MalformedLinkError
from index_discovery.core.logging import get_logger
from index_discovery.schemas.indexes import Direction, IndexFieldSpec, ParsedLink

logger = get_logger(__name__)

ORDER_CODES = {1: Direction.ASCENDING, 2: Direction.DESCENDING}
QUERY_SCOPE_CODES = {1: QUERY_SCOPE_COLLECTION, 2: QUERY_SCOPE_COLLECTION_GROUP}

_PAYLOAD_RE = re.compile(rf"{CREATE_COMPOSITE_PARAM}=([^&\s]+)")
_COLLECTION_GROUP_RE = re.compile(r"collectionGroups/([^/]+)")
_CONSOLE_URL_RE = re.compile(rf"https?://[^\s\"'<>]*[?&]{CREATE_COMPOSITE_PARAM}=[^\s\"'<>]+")


def extract_collection_group(path: str) -> str | None:
    """Extract ``<name>`` from ``.../collectionGroups/<name>/...``."""
    match = _COLLECTION_GROUP_RE.search(path)
    return match.group(1) if match else None


def find_console_url(message: str | None) -> str | None:
    """Return the first console index link embedded in a backend error message."""
    if not message:
        return None
    match = _CONSOLE_URL_RE.search(message)
    return match.group(0) if match else None


def _decode_payload(value: str) -> bytes:
    text = unquote(value)
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"create_composite payload is not valid base64: {e}") from e


def _utf8(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{what} is not valid UTF-8") from e


def _parse_index_field(payload: bytes) -> IndexFieldSpec:
    field_path: str | None = None
    order: Direction | None = None

    for item in iter_fields(payload):
        if item.field_number == F_FIELD_PATH and item.wire_type == WireType.LENGTH_DELIMITED:
            field_path = _utf8(item.value, "Index field path")  # type: ignore[arg-type]
        elif item.field_number == F_FIELD_ORDER and item.wire_type == WireType.VARINT:
            order = ORDER_CODES.get(item.value)  # type: ignore[arg-type]
            if order is None:
                raise DecodeError(f"Unknown index field order code {item.value}")

    if not field_path or order is None:
        raise DecodeError("Index field entry is missing its path or order")
    return IndexFieldSpec(field_path=field_path, order=order)


def parse_index_payload(buffer: bytes) -> ParsedLink:
    """Interpret a decoded ``create_composite`` buffer.

    Args:
        buffer: Raw protobuf bytes.

    Returns:
        ParsedLink: Collection group, query scope and fields in encounter order.
    """
    collection_group: str | None = None
    query_scope = QUERY_SCOPE_COLLECTION
    fields: list[IndexFieldSpec] = []

    for item in iter_fields(buffer):
        if item.wire_type == WireType.LENGTH_DELIMITED:
            if item.field_number == F_RESOURCE_PATH:
                path = _utf8(item.value, "Resource path")  # type: ignore[arg-type]
                collection_group = extract_collection_group(path)
            elif item.field_number == F_INDEX_FIELD:
                fields.append(_parse_index_field(item.value))  # type: ignore[arg-type]
        elif item.wire_type == WireType.VARINT and item.field_number == F_QUERY_SCOPE:
            scope_code: int = item.value  # type: ignore[assignment]
            query_scope = QUERY_SCOPE_CODES.get(scope_code, QUERY_SCOPE_COLLECTION)

    logger.debug(
        f"Decoded index payload: collectionGroup={collection_group}, {len(fields)} field(s)"
    )
    return ParsedLink(collection_group=collection_group, query_scope=query_scope, fields=fields)


def parse_link(url: str) -> ParsedLink:
    """Decode the index specification embedded in a console link.

    Args:
        url: Console link such as
            ``https://console.firebase.google.com/.../indexes?create_composite=Cl...``.

    Returns:
        ParsedLink: Decoded collection group and ordered index fields.

    Raises:
        MalformedLinkError: If the link has no ``create_composite`` parameter.
        DecodeError: If the payload is not valid base64 or wire format.
    """
    match = _PAYLOAD_RE.search(url)
    if not match:
        raise MalformedLinkError("Invalid URL: No create_composite parameter found")

    return parse_index_payload(_decode_payload(match.group(1)))
