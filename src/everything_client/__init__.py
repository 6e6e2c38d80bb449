"""everything-client — A unified async client for the Everything desktop search engine."""

from everything_client.adapters.base.exceptions import (
    ConnectionError,
    EverythingError,
    SearchError,
)
from everything_client.client import EverythingClient, create_client
from everything_client.config.settings import ClientSettings
from everything_client.models import ChangeType, FileChange, SearchOptions, SearchResult, SearchStatus

__version__ = "0.1.0"

__all__ = [
    "ChangeType",
    "ClientSettings",
    "ConnectionError",
    "EverythingClient",
    "EverythingError",
    "FileChange",
    "SearchError",
    "SearchOptions",
    "SearchResult",
    "SearchStatus",
    "__version__",
    "create_client",
]
