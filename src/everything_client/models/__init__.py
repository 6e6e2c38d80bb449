"""Canonical data models shared by all adapters."""

from everything_client.models.query import SearchOptions
from everything_client.models.result import ChangeType, FileChange, SearchResult, SearchStatus

__all__ = ["ChangeType", "FileChange", "SearchOptions", "SearchResult", "SearchStatus"]
