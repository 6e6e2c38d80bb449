"""Everything adapter for the HTTP server."""

from everything_client.adapters.http.adapter import HTTPAdapter

__all__ = ["HTTPAdapter"]
