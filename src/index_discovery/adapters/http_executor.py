"""Query executor that probes the backend's REST list endpoints over HTTP.

Each probe is a ``GET <endpoint>?limit=N&<params>``. The backend answers 200
when the query runs; a missing composite index surfaces as an error response
whose ``error`` mentions the index and whose ``stack[0]`` carries the raw
message with the console link.
"""

from collections.abc import Mapping
from typing import Any

import aiohttp

from index_discovery.config import Settings
from index_discovery.core.constants import INDEX_ERROR_MARKERS
from index_discovery.core.exceptions import IndexRequiredFailure, OtherExecutionFailure
from index_discovery.core.logging import get_logger
from index_discovery.schemas.query import CollectionConfig

logger = get_logger(__name__)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_params(params: Mapping[str, Any], limit: int) -> dict[str, str]:
    """Render probe parameters as a query string mapping (``limit`` first)."""
    rendered = {"limit": str(limit)}
    for name, value in params.items():
        if value is not None:
            rendered[name] = _query_value(value)
    return rendered


def is_index_error(body: Mapping[str, Any]) -> bool:
    """Whether an error body reports a missing composite index."""
    error = body.get("error")
    if not isinstance(error, str):
        return False
    lowered = error.lower()
    return any(marker in lowered for marker in INDEX_ERROR_MARKERS)


def index_error_message(body: Mapping[str, Any]) -> str:
    """Raw index error message; the backend puts the console link in ``stack[0]``."""
    stack = body.get("stack")
    if isinstance(stack, list) and stack and isinstance(stack[0], str):
        return stack[0]
    return str(body.get("error") or "Unknown error")


class HttpQueryExecutor:
    """Runs query probes against the backend REST API."""

    def __init__(
        self,
        settings: Settings,
        collections: list[CollectionConfig],
        session: aiohttp.ClientSession | None = None,
    ):
        """Initialize the executor.

        Args:
            settings: Application settings (base URL, token, timeout).
            collections: Collection configs providing endpoint and auth needs.
            session: Optional preconfigured session (primarily for tests).
        """
        self.settings = settings
        self.base_url = settings.backend_base_url.rstrip("/")
        self.configs = {config.collection_name: config for config in collections}
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the HTTP session if this executor created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpQueryExecutor":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self, config: CollectionConfig) -> dict[str, str]:
        if config.requires_auth and self.settings.backend_auth_token:
            return {"Authorization": f"Bearer {self.settings.backend_auth_token}"}
        return {}

    async def execute(self, collection: str, params: Mapping[str, Any], limit: int) -> Any:
        """Probe ``collection`` with ``params``.

        Returns:
            Any: The decoded JSON body of a successful response.

        Raises:
            IndexRequiredFailure: If the backend reports a missing index.
            OtherExecutionFailure: For any other error response.
        """
        config = self.configs.get(collection)
        if config is None:
            raise OtherExecutionFailure(f"No endpoint configured for collection '{collection}'")

        session = await self._get_session()
        url = f"{self.base_url}{config.endpoint}"
        query = build_query_params(params, limit)
        logger.debug(f"GET {url} {query}")

        try:
            async with session.get(url, params=query, headers=self._headers(config)) as response:
                body = await self._read_body(response)
                status = response.status
        except aiohttp.ClientError as e:
            raise OtherExecutionFailure(f"Request to {url} failed: {e}") from e

        if status == 200:
            return body

        if isinstance(body, Mapping) and is_index_error(body):
            raise IndexRequiredFailure(index_error_message(body))

        detail = body.get("error") if isinstance(body, Mapping) else body
        raise OtherExecutionFailure(f"HTTP {status}: {detail or 'Unknown error'}")

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return await response.text()
