"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from everything_client.config.settings import ClientSettings
from everything_client.models.result import SearchResult
from everything_client.models.timestamps import from_unix_ms


@pytest.fixture
def settings() -> ClientSettings:
    """Create a test ClientSettings instance that ignores .env files."""
    return ClientSettings(
        _env_file=None,  # type: ignore[call-arg]
        adapter="http",
        http={"server_url": "http://everything.test", "poll_interval": 0.01},
    )


@pytest.fixture
def make_result() -> Callable[..., SearchResult]:
    """Factory for results identified by full path with a Unix-ms modification time."""

    def _make(full_path: str, modified_ms: int = 0, size: int = 0) -> SearchResult:
        return SearchResult.build(
            full_path=full_path,
            size=size,
            date_modified=from_unix_ms(modified_ms),
        )

    return _make
