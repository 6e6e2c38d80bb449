"""Everything adapter for the ``es.exe`` command-line interface."""

from everything_client.adapters.cli.adapter import CLIAdapter

__all__ = ["CLIAdapter"]
