"""Integration test fixtures — A live Everything instance.

The HTTP tests expect Everything's HTTP server to be enabled, by default at
``http://localhost:8080`` (override with ``EVERYTHING_TEST_HTTP_URL``). The
CLI and native tests only run on Windows with Everything running.
"""

from __future__ import annotations

import os
import sys

import httpx
import pytest


@pytest.fixture(scope="session")
def http_server_url() -> str:
    """Skip unless an Everything HTTP server answers ``/api/version``."""
    url = os.environ.get("EVERYTHING_TEST_HTTP_URL", "http://localhost:8080")
    try:
        httpx.get(f"{url}/api/version", timeout=2).raise_for_status()
    except httpx.HTTPError:
        pytest.skip(f"Everything HTTP server not available at {url}")
    return url


@pytest.fixture(scope="session")
def windows_only() -> None:
    if sys.platform != "win32":
        pytest.skip("Everything CLI and SDK transports require Windows")
