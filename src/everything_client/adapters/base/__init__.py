"""Base adapter interface — Abstract contract for Everything transports."""

from everything_client.adapters.base.adapter import UNKNOWN_VERSION, EverythingAdapter
from everything_client.adapters.base.registry import AdapterRegistry, default_registry

__all__ = ["UNKNOWN_VERSION", "AdapterRegistry", "EverythingAdapter", "default_registry"]
