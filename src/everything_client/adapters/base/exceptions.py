"""Adapter-specific exceptions."""


class EverythingError(Exception):
    """Base exception for all everything-client errors."""


class ConnectionError(EverythingError):
    """Raised when the adapter cannot reach the search engine."""


class SearchError(EverythingError):
    """Raised when a search fails or returns an unparseable response."""


class CLIError(EverythingError):
    """Raised when an ``es.exe`` operation other than search fails."""


class IPCError(EverythingError):
    """Raised when the native call interface fails or is unavailable."""


class HTTPError(EverythingError):
    """Raised when an HTTP operation other than search fails."""


class ConfigurationError(EverythingError):
    """Raised when client or adapter configuration is invalid."""


class AdapterNotFoundError(ConfigurationError):
    """Raised when a requested adapter is not registered."""
