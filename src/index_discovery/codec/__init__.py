"""Schema-agnostic protobuf wire-format decoding."""

from index_discovery.codec.wire_decoder import WireType, iter_fields, read_varint

__all__ = ["WireType", "iter_fields", "read_varint"]
