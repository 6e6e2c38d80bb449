"""Adapter Registry — Maps adapter names to adapter classes.

The client factory resolves ``ClientSettings.adapter`` through a registry,
so a new transport only needs to implement ``EverythingAdapter`` and be
registered here.
"""

from __future__ import annotations

import logging
from typing import Any

from everything_client.adapters.base.adapter import EverythingAdapter
from everything_client.adapters.base.exceptions import AdapterNotFoundError

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Registry of adapter classes.

    Example:
        >>> registry = AdapterRegistry()
        >>> registry.register("http", HTTPAdapter)
        >>> adapter = registry.create("http", server_url="http://localhost:8080")
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[EverythingAdapter]] = {}

    def register(self, name: str, adapter_class: type[EverythingAdapter]) -> None:
        """Register an adapter class.

        Args:
            name: Unique name for this adapter type.
            adapter_class: The adapter class to register.
        """
        if name in self._classes:
            logger.warning("Overwriting existing adapter registration: %s", name)
        self._classes[name] = adapter_class
        logger.debug("Registered adapter: %s", name)

    def create(self, name: str, **kwargs: Any) -> EverythingAdapter:
        """Instantiate a registered adapter.

        The adapter is returned unconnected.

        Args:
            name: The registered adapter name.
            **kwargs: Keyword arguments passed to the adapter constructor.

        Raises:
            AdapterNotFoundError: If no adapter is registered under this name.
        """
        if name not in self._classes:
            raise AdapterNotFoundError(
                f"No adapter registered with name '{name}'. "
                f"Available adapters: {list(self._classes.keys())}"
            )
        return self._classes[name](**kwargs)

    def __contains__(self, name: object) -> bool:
        return name in self._classes

    @property
    def registered_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._classes.keys())


def default_registry() -> AdapterRegistry:
    """Return a new registry holding the built-in ``cli``, ``ipc`` and ``http`` adapters."""
    from everything_client.adapters.cli.adapter import CLIAdapter
    from everything_client.adapters.http.adapter import HTTPAdapter
    from everything_client.adapters.ipc.adapter import IPCAdapter

    registry = AdapterRegistry()
    registry.register("cli", CLIAdapter)
    registry.register("ipc", IPCAdapter)
    registry.register("http", HTTPAdapter)
    return registry
