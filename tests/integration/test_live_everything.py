"""Integration tests against a running Everything instance."""

from __future__ import annotations

import pytest

from everything_client.adapters.cli.adapter import CLIAdapter
from everything_client.adapters.http.adapter import HTTPAdapter
from everything_client.adapters.ipc.adapter import IPCAdapter
from everything_client.models.query import SearchOptions

pytestmark = [pytest.mark.integration]


@pytest.fixture
async def http_adapter(http_server_url):
    adapter = HTTPAdapter(server_url=http_server_url)
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


class TestHTTPServer:
    async def test_version(self, http_adapter) -> None:
        assert await http_adapter.get_version()

    async def test_search_respects_max_results(self, http_adapter) -> None:
        results = await http_adapter.search("*", SearchOptions(max_results=5))
        assert len(results) <= 5
        assert all(r.full_path for r in results)


class TestWindowsTransports:
    @pytest.mark.parametrize("adapter_class", [CLIAdapter, IPCAdapter])
    async def test_search_windows_directory(self, windows_only, adapter_class) -> None:
        adapter = adapter_class()
        try:
            results = await adapter.search("windows", SearchOptions(max_results=10, include_files=False))
        finally:
            await adapter.disconnect()
        assert all(r.is_directory for r in results)
