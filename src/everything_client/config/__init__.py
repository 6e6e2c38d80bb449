"""Client configuration."""

from everything_client.config.settings import ClientSettings

__all__ = ["ClientSettings"]
