"""Constants shared by the decoder, synthesizer and catalog code."""

from typing import Final

# Reserved document-key field, always the last field of a composite index.
DOCUMENT_KEY_FIELD: Final[str] = "__name__"

QUERY_SCOPE_COLLECTION: Final[str] = "COLLECTION"
QUERY_SCOPE_COLLECTION_GROUP: Final[str] = "COLLECTION_GROUP"
DENSITY_SPARSE_ALL: Final[str] = "SPARSE_ALL"

# Console link query parameter carrying the base64 index payload.
CREATE_COMPOSITE_PARAM: Final[str] = "create_composite"

# Protobuf field numbers of the console link payload.
F_RESOURCE_PATH: Final[int] = 1
F_QUERY_SCOPE: Final[int] = 2
F_INDEX_FIELD: Final[int] = 3
F_FIELD_PATH: Final[int] = 1
F_FIELD_ORDER: Final[int] = 2

# Sort defaults applied when a query carries no explicit order parameters.
DEFAULT_ORDER_FIELD: Final[str] = "createdAt"
DEFAULT_ORDER_DIRECTION: Final[str] = "desc"

# Backend error markers identifying a missing composite index.
INDEX_ERROR_MARKERS: Final[tuple[str, ...]] = ("requires an index", "firestoreindexerror")
