"""Base adapter interface — The capability contract every transport implements.

Everything can be reached through a spawned ``es.exe`` process, the native
SDK library, or its HTTP server. Each of those is an adapter implementing
this interface. The adapter is responsible for:
  1. Managing its own connection state (``connect`` / ``disconnect``)
  2. Translating ``SearchOptions`` into the transport's native query
  3. Normalizing the native response into ``SearchResult`` objects
  4. Reporting version and index status

Adapters are peers; the only behavior they share is file monitoring,
implemented once here on top of ``search()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from everything_client.core.monitor import FileChangeCallback, FileMonitor
from everything_client.models.query import SearchOptions
from everything_client.models.result import SearchResult, SearchStatus

UNKNOWN_VERSION = "unknown"
"""Returned by ``get_version()`` when the transport reports no version."""

MONITOR_QUERY = "*"


class EverythingAdapter(ABC):
    """Abstract base class for Everything transport adapters.

    All adapters must implement:
      - connect() / disconnect() / is_connected(): connection lifecycle
      - search(): execute a query and return canonical results
      - get_version(), rebuild_index(), get_search_status(): engine metadata

    Every operation except ``disconnect()`` and ``is_connected()`` connects
    implicitly when the adapter is not yet connected.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name (e.g., 'cli', 'http')."""

    @property
    @abstractmethod
    def poll_interval(self) -> float:
        """Seconds between file-monitoring ticks for this transport."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish whatever the transport needs for ``search()`` to succeed.

        Idempotent: a no-op when already connected.

        Raises:
            ConnectionError: If the transport probe fails.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Release held resources and mark the adapter unconnected.

        Never raises and is safe to call repeatedly.
        """

    @abstractmethod
    def is_connected(self) -> bool:
        """Return the connection flag without side effects."""

    @abstractmethod
    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Execute a search and return normalized results.

        Args:
            query: Search text in Everything syntax.
            options: Search modifiers; unsupported ones are ignored.

        Returns:
            Results in the order produced by the transport.

        Raises:
            SearchError: If the query fails or its response cannot be parsed.
        """

    @abstractmethod
    async def get_version(self) -> str:
        """Return the engine version string, or ``UNKNOWN_VERSION``."""

    @abstractmethod
    async def rebuild_index(self) -> None:
        """Ask the engine to rebuild its index. Returns once acknowledged."""

    @abstractmethod
    async def get_search_status(self) -> SearchStatus:
        """Return best-effort index status."""

    def monitor_file_changes(self, callback: FileChangeCallback) -> FileMonitor:
        """Poll for file changes and report them to ``callback``.

        Must be called from within a running event loop. The first poll only
        records a baseline; later polls invoke ``callback`` with the
        differences whenever there are any.

        Args:
            callback: Receives a non-empty ``list[FileChange]``. May be a
                coroutine function.

        Returns:
            A callable handle; call it to stop monitoring.
        """
        return FileMonitor(
            snapshot=self._snapshot,
            callback=callback,
            interval=self.poll_interval,
            name=self.name,
        ).start()

    async def _snapshot(self) -> list[SearchResult]:
        return await self.search(MONITOR_QUERY)
