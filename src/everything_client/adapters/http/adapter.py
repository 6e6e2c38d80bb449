"""HTTP adapter — Everything search over its HTTP server.

Talks to an Everything HTTP endpoint with ``httpx`` (async). Search
parameters go in the query string; responses are JSON.

Endpoints used:
  - ``GET /api/search``  -> ``{"results": [...], "total_results": n}``
  - ``GET /api/version`` -> ``{"version": "1.4.1.1024"}``
  - ``GET /api/status``  -> ``{"total_results", "indexing_complete", "percent_complete"}``
  - ``GET /api/rebuild``

Usage::

    adapter = HTTPAdapter(
        server_url="http://localhost:8080",
        username="admin",
        password="secret",
    )
    results = await adapter.search("*.pdf", SearchOptions(max_results=20))
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from everything_client.adapters.base.adapter import UNKNOWN_VERSION, EverythingAdapter
from everything_client.adapters.base.exceptions import (
    ConnectionError,
    EverythingError,
    HTTPError,
    SearchError,
)
from everything_client.models.query import SearchOptions
from everything_client.models.result import SearchResult, SearchStatus, coerce_bool, coerce_int
from everything_client.models.timestamps import unix_seconds_to_datetime

logger = logging.getLogger(__name__)

NOT_LOADED_PERCENT = 50


class HTTPAdapter(EverythingAdapter):
    """Adapter for Everything's HTTP server.

    Args:
        server_url: Base URL of the Everything HTTP server.
        username: Optional basic-auth username.
        password: Optional basic-auth password. Auth is only sent when both
            username and password are set.
        timeout: HTTP request timeout in seconds.
        poll_interval: Seconds between file-monitoring ticks.
        **httpx_kwargs: Additional keyword arguments passed to
            ``httpx.AsyncClient`` (e.g. ``transport`` for testing).
    """

    def __init__(
        self,
        server_url: str = "http://localhost:8080",
        username: str | None = None,
        password: str | None = None,
        timeout: float = 5.0,
        poll_interval: float = 1.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._username = username
        self._password = password
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._httpx_kwargs = httpx_kwargs
        self._client: httpx.AsyncClient | None = None
        self._connected = False

    @property
    def name(self) -> str:
        return "http"

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    # ── Connection ───────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Create an ``httpx.AsyncClient`` and probe ``/api/version``."""
        if self._connected:
            return

        auth = None
        if self._username and self._password:
            auth = httpx.BasicAuth(self._username, self._password)

        client = httpx.AsyncClient(
            base_url=self._server_url,
            timeout=httpx.Timeout(self._timeout),
            auth=auth,
            **self._httpx_kwargs,
        )

        try:
            resp = await client.get("/api/version")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            await client.aclose()
            raise ConnectionError(f"Failed to connect to Everything HTTP server: {e}") from e

        self._client = client
        self._connected = True
        logger.info("Connected to Everything HTTP server at %s", self._server_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        client, self._client = self._client, None
        self._connected = False
        if client is not None:
            try:
                await client.aclose()
            except Exception:
                logger.debug("Error closing HTTP client", exc_info=True)

    def is_connected(self) -> bool:
        return self._connected

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET ``path`` and decode the JSON body.

        Raises:
            HTTPError: On transport errors, non-2xx status or a non-JSON body.
        """
        if not self._connected:
            await self.connect()
        assert self._client is not None

        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise HTTPError(f"HTTP request failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise HTTPError(f"Invalid JSON from {path}: {e}") from e

    # ── Search ───────────────────────────────────────────────────────────

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Execute a search via ``/api/search``."""
        if not self._connected:
            await self.connect()

        options = options or SearchOptions()
        try:
            data = await self._get_json("/api/search", params=self._build_params(query, options))
            results = self.parse_search_results(data)
        except EverythingError as e:
            raise SearchError(f"Search failed: {e}") from e

        logger.debug("HTTP search %r returned %d results", query, len(results))
        return results

    @staticmethod
    def _build_params(query: str, options: SearchOptions) -> dict[str, str]:
        params: dict[str, str] = {"search": options.apply_filters(query)}

        if options.match_case:
            params["case"] = "1"
        if options.match_whole_word:
            params["whole_word"] = "1"
        if options.regex:
            params["regex"] = "1"
        if options.match_path:
            params["match_path"] = "1"
        if options.max_results is not None:
            params["max_results"] = str(options.max_results)
        if options.offset is not None:
            params["offset"] = str(options.offset)
        if options.sort_by:
            sort = options.sort_by
            if options.sort_order == "desc":
                sort += "_desc"
            params["sort"] = sort

        return params

    # ── Schema mapping ───────────────────────────────────────────────────

    @classmethod
    def parse_search_results(cls, data: Any) -> list[SearchResult]:
        """Map an ``/api/search`` body to canonical results.

        Raises:
            SearchError: If the body has no ``results`` list of objects.
        """
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise SearchError("Malformed search response: expected an object with a 'results' list")

        results: list[SearchResult] = []
        for index, item in enumerate(data["results"]):
            if not isinstance(item, dict):
                raise SearchError(f"Malformed search response: result {index} is not an object")
            results.append(cls.map_to_standard_schema(item))
        return results

    @staticmethod
    def map_to_standard_schema(item: dict[str, Any]) -> SearchResult:
        """Map one HTTP result object to ``SearchResult``.

        Sizes, timestamps and flags may arrive as numbers or strings;
        timestamps are Unix seconds.
        """
        is_directory = item.get("is_directory")
        if is_directory is None and "type" in item:
            is_directory = str(item["type"]).lower() == "folder"
        is_read_only = item.get("is_readonly", item.get("is_read_only"))

        return SearchResult.build(
            name=item.get("name"),
            path=item.get("path"),
            full_path=item.get("full_path"),
            size=item.get("size"),
            date_modified=unix_seconds_to_datetime(item.get("date_modified")),
            date_created=unix_seconds_to_datetime(item.get("date_created")),
            date_accessed=unix_seconds_to_datetime(item.get("date_accessed")),
            attributes=item.get("attributes"),
            is_directory=None if is_directory is None else coerce_bool(is_directory),
            is_hidden=coerce_bool(item.get("is_hidden")),
            is_system=coerce_bool(item.get("is_system")),
            is_read_only=coerce_bool(is_read_only),
        )

    # ── Metadata ─────────────────────────────────────────────────────────

    async def get_version(self) -> str:
        data = await self._get_json("/api/version")
        version = data.get("version") if isinstance(data, dict) else None
        return str(version) if version else UNKNOWN_VERSION

    async def rebuild_index(self) -> None:
        await self._get_json("/api/rebuild")
        logger.info("Requested index rebuild from %s", self._server_url)

    async def get_search_status(self) -> SearchStatus:
        data = await self._get_json("/api/status")
        if not isinstance(data, dict):
            raise HTTPError("Malformed status response: expected an object")

        indexing_complete = bool(data.get("indexing_complete", True))
        percent = data.get("percent_complete")
        if percent is None or percent == "":
            percent_complete = 100 if indexing_complete else NOT_LOADED_PERCENT
        else:
            percent_complete = min(coerce_int(percent), 100)

        return SearchStatus(
            total_results=coerce_int(data.get("total_results", data.get("totalResults"))),
            indexing_complete=indexing_complete,
            percent_complete=percent_complete,
        )
