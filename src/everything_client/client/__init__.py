"""everything-client facade — One interface over the CLI, native and HTTP transports.

Quick start::

    from everything_client.client import create_client

    async with create_client() as client:
        for result in await client.search("*.iso"):
            print(result.full_path, result.size)
"""

from everything_client.client.client import EverythingClient, create_client, select_adapter

__all__ = ["EverythingClient", "create_client", "select_adapter"]
