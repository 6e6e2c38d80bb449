"""Everything adapter for the native SDK library (Windows only)."""

from everything_client.adapters.ipc.adapter import IPCAdapter

__all__ = ["IPCAdapter"]
