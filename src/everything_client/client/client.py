"""Everything client — One stable interface over whichever adapter is active.

Usage::

    async with create_client(ClientSettings(adapter="http")) as client:
        results = await client.search("*.pdf", SearchOptions(max_results=20))

        stop = client.monitor_file_changes(print)
        await asyncio.sleep(30)
        stop()
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from everything_client.adapters.base.adapter import EverythingAdapter
from everything_client.adapters.base.exceptions import EverythingError
from everything_client.adapters.base.registry import AdapterRegistry, default_registry
from everything_client.config.settings import ClientSettings
from everything_client.core.monitor import FileChangeCallback, FileMonitor
from everything_client.models.query import SearchOptions
from everything_client.models.result import SearchResult, SearchStatus

logger = logging.getLogger(__name__)


class EverythingClient:
    """Facade forwarding every call to a single adapter.

    The client adds no behavior of its own; it exists so callers depend on
    one type regardless of the transport underneath.

    Args:
        adapter: The adapter all operations are delegated to.
    """

    def __init__(self, adapter: EverythingAdapter) -> None:
        self._adapter = adapter

    @property
    def adapter(self) -> EverythingAdapter:
        return self._adapter

    async def __aenter__(self) -> EverythingClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.disconnect()

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Search for files and directories."""
        return await self._adapter.search(query, options)

    async def connect(self) -> None:
        """Connect to the Everything service."""
        await self._adapter.connect()

    async def disconnect(self) -> None:
        """Disconnect from the Everything service."""
        await self._adapter.disconnect()

    def is_connected(self) -> bool:
        return self._adapter.is_connected()

    async def get_version(self) -> str:
        """Get the Everything version."""
        return await self._adapter.get_version()

    async def rebuild_index(self) -> None:
        """Ask Everything to rebuild its index."""
        await self._adapter.rebuild_index()

    async def get_search_status(self) -> SearchStatus:
        """Get the current index status."""
        return await self._adapter.get_search_status()

    def monitor_file_changes(self, callback: FileChangeCallback) -> FileMonitor:
        """Monitor file changes; call the returned handle to stop."""
        return self._adapter.monitor_file_changes(callback)


def create_client(
    settings: ClientSettings | None = None,
    *,
    registry: AdapterRegistry | None = None,
    **overrides: Any,
) -> EverythingClient:
    """Create a client for the adapter selected by ``settings``.

    Args:
        settings: Client configuration. Loaded from the environment if None.
        registry: Adapter registry to resolve names from. Defaults to the
            built-in adapters.
        **overrides: Extra constructor keyword arguments for the selected
            adapter (e.g. ``transport`` for the HTTP adapter).

    Returns:
        An unconnected ``EverythingClient``.

    Raises:
        AdapterNotFoundError: If the configured adapter is not registered.
    """
    settings = settings or ClientSettings()
    registry = registry or default_registry()
    adapter = select_adapter(settings, registry, **overrides)
    logger.debug("Created Everything client with %s adapter", adapter.name)
    return EverythingClient(adapter)


def select_adapter(
    settings: ClientSettings,
    registry: AdapterRegistry,
    **overrides: Any,
) -> EverythingAdapter:
    """Instantiate the configured adapter, resolving ``auto`` from the platform.

    ``auto`` prefers the native SDK on Windows (falling back to ``es.exe``
    if it cannot be constructed) and the HTTP server everywhere else.
    """
    if settings.adapter != "auto":
        return _create(settings, registry, settings.adapter, overrides)

    if sys.platform == "win32":
        try:
            return _create(settings, registry, "ipc", overrides)
        except EverythingError:
            logger.info("IPC adapter unavailable, falling back to CLI", exc_info=True)
            return _create(settings, registry, "cli", overrides)

    return _create(settings, registry, "http", overrides)


def _create(
    settings: ClientSettings,
    registry: AdapterRegistry,
    name: str,
    overrides: dict[str, Any],
) -> EverythingAdapter:
    return registry.create(name, **{**settings.adapter_kwargs(name), **overrides})
