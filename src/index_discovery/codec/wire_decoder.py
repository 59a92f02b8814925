"""Reader for the protobuf wire format (varints and length-delimited runs).

The decoder knows nothing about the messages it walks: it yields raw
``(field_number, wire_type, value)`` triples and leaves interpretation to the
caller. Nested messages are decoded by running :func:`iter_fields` again over
a length-delimited value.
"""

from collections.abc import Iterator
from enum import IntEnum

from index_discovery.core.exceptions import DecodeError
from index_discovery.core.models import WireField


class WireType(IntEnum):
    """Protobuf wire types."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


_FIXED_WIDTHS = {WireType.FIXED64: 8, WireType.FIXED32: 4}


def read_varint(buffer: bytes, pos: int) -> tuple[int, int]:
    """Decode a base-128 varint starting at ``pos``.

    Args:
        buffer: Encoded bytes.
        pos: Offset of the first varint byte.

    Returns:
        tuple[int, int]: (value, offset just past the varint).

    Raises:
        DecodeError: If the buffer ends before the terminating byte.
    """
    value = 0
    index = 0
    while pos < len(buffer):
        byte = buffer[pos]
        pos += 1
        value |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return value, pos
        index += 1
    raise DecodeError(f"Truncated varint at offset {pos}")


def _take(buffer: bytes, pos: int, length: int) -> tuple[bytes, int]:
    end = pos + length
    if end > len(buffer):
        raise DecodeError(
            f"Value of {length} bytes at offset {pos} overruns {len(buffer)}-byte buffer"
        )
    return buffer[pos:end], end


def iter_fields(buffer: bytes, pos: int = 0) -> Iterator[WireField]:
    """Lazily yield every top-level field of an encoded message.

    Args:
        buffer: Encoded message bytes.
        pos: Offset to start reading from.

    Yields:
        WireField: Decoded triple; ``value`` is an int for varints and raw
        bytes for length-delimited and fixed-width fields.

    Raises:
        DecodeError: On truncated input or group/unknown wire types.
    """
    while pos < len(buffer):
        tag, pos = read_varint(buffer, pos)
        field_number = tag >> 3
        wire_type = tag & 0b111

        value: int | bytes
        if wire_type == WireType.VARINT:
            value, pos = read_varint(buffer, pos)
        elif wire_type == WireType.LENGTH_DELIMITED:
            length, pos = read_varint(buffer, pos)
            value, pos = _take(buffer, pos, length)
        elif wire_type in _FIXED_WIDTHS:
            # Opaque: nothing in an index payload uses fixed-width fields.
            value, pos = _take(buffer, pos, _FIXED_WIDTHS[WireType(wire_type)])
        else:
            raise DecodeError(f"Unsupported wire type {wire_type} for field {field_number}")

        yield WireField(field_number=field_number, wire_type=wire_type, value=value)
