"""Tests for the es.exe CLI adapter with the subprocess layer mocked out."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from everything_client.adapters.base.adapter import UNKNOWN_VERSION
from everything_client.adapters.base.exceptions import CLIError, ConnectionError, SearchError
from everything_client.adapters.cli.adapter import CLIAdapter, resolve_cli_path
from everything_client.models.query import SearchOptions
from everything_client.models.timestamps import UNIX_EPOCH


def fake_process(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


class FakeExec:
    """Stands in for ``asyncio.create_subprocess_exec``, keyed by the first switch."""

    def __init__(self, responses: dict[str, MagicMock | Exception] | None = None) -> None:
        self.responses = {"-h": fake_process("usage")}
        self.responses.update(responses or {})
        self.calls: list[tuple[str, ...]] = []

    async def __call__(self, program: str, *args: str, **kwargs) -> MagicMock:
        self.calls.append((program, *args))
        key = "-csv" if "-csv" in args else args[0]
        response = self.responses[key]
        if isinstance(response, Exception):
            raise response
        return response

    def args_for(self, switch: str) -> tuple[str, ...]:
        return next(call[1:] for call in self.calls if switch in call)


@pytest.fixture
def adapter() -> CLIAdapter:
    return CLIAdapter(cli_path="es", timeout=1.0)


# ── Path resolution ──────────────────────────────────────────────────────────


class TestResolveCliPath:
    def test_existing_path_is_used(self, tmp_path) -> None:
        exe = tmp_path / "es.exe"
        exe.write_bytes(b"")
        assert resolve_cli_path(str(exe)) == str(exe)

    def test_missing_path_falls_back(self, tmp_path) -> None:
        with patch("everything_client.adapters.cli.adapter.BUNDLED_BIN_DIR", tmp_path):
            assert resolve_cli_path(str(tmp_path / "missing.exe")) == "es"

    def test_bundled_copy_is_preferred_over_path_lookup(self, tmp_path) -> None:
        (tmp_path / "es64.exe").write_bytes(b"")
        (tmp_path / "es32.exe").write_bytes(b"")
        with patch("everything_client.adapters.cli.adapter.BUNDLED_BIN_DIR", tmp_path):
            assert resolve_cli_path(None).startswith(str(tmp_path))


# ── Connection ───────────────────────────────────────────────────────────────


class TestConnection:
    async def test_connect_runs_help(self, adapter: CLIAdapter) -> None:
        fake = FakeExec()
        with patch("asyncio.create_subprocess_exec", fake):
            await adapter.connect()
            await adapter.connect()
        assert adapter.is_connected()
        assert fake.calls == [("es", "-h")]

    async def test_missing_executable_raises_connection_error(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-h": FileNotFoundError("es")})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(ConnectionError):
            await adapter.connect()
        assert not adapter.is_connected()

    async def test_nonzero_exit_raises_connection_error(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-h": fake_process(stderr="IPC window not found", returncode=8)})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(ConnectionError, match="IPC window"):
            await adapter.connect()

    async def test_disconnect_twice(self, adapter: CLIAdapter) -> None:
        with patch("asyncio.create_subprocess_exec", FakeExec()):
            await adapter.connect()
        await adapter.disconnect()
        await adapter.disconnect()
        assert not adapter.is_connected()


# ── Search ───────────────────────────────────────────────────────────────────


class TestSearch:
    async def test_parses_csv_output(self, adapter: CLIAdapter) -> None:
        output = 'Filename\r\n"C:\\docs\\a,b.txt"\r\nC:\\docs\\sub\\\r\n\r\nC:\\x.log\r\n'
        fake = FakeExec({"-csv": fake_process(output)})
        with patch("asyncio.create_subprocess_exec", fake):
            results = await adapter.search("docs")

        assert [r.full_path for r in results] == [
            "C:\\docs\\a,b.txt",
            "C:\\docs\\sub",
            "C:\\x.log",
        ]
        assert results[0].name == "a,b.txt"
        assert results[0].path == "C:\\docs"
        assert not results[0].is_directory
        assert results[1].is_directory
        assert results[2].size == 0
        assert results[2].date_modified == UNIX_EPOCH

    async def test_empty_output(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-csv": fake_process("")})
        with patch("asyncio.create_subprocess_exec", fake):
            assert await adapter.search("nothing") == []

    async def test_arguments(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-csv": fake_process("")})
        options = SearchOptions(
            match_case=True,
            match_whole_word=True,
            max_results=5,
            offset=10,
            sort_by="size",
            sort_order="desc",
            include_directories=False,
        )
        with patch("asyncio.create_subprocess_exec", fake):
            await adapter.search("*.iso", options)

        assert fake.args_for("-csv") == (
            "-case",
            "-whole-word",
            "-n",
            "5",
            "-o",
            "10",
            "/o-s",
            "-csv",
            "*.iso file:",
        )

    async def test_unmapped_sort_is_ignored(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-csv": fake_process("")})
        with patch("asyncio.create_subprocess_exec", fake):
            await adapter.search("x", SearchOptions(sort_by="run-count"))
        assert fake.args_for("-csv") == ("-csv", "x")

    async def test_stderr_raises_search_error(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-csv": fake_process("C:\\a", stderr="Error 3")})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(SearchError, match="Error 3"):
            await adapter.search("a")

    async def test_nonzero_exit_raises_search_error(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-csv": fake_process(returncode=1)})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(SearchError):
            await adapter.search("a")

    async def test_timeout_kills_process(self) -> None:
        adapter = CLIAdapter(cli_path="es", timeout=0.01)
        slow = fake_process()
        slow.returncode = None

        async def hang():
            await asyncio.sleep(10)

        slow.communicate = AsyncMock(side_effect=hang)
        fake = FakeExec({"-csv": slow})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(SearchError):
            await adapter.search("a")
        slow.kill.assert_called_once()

    async def test_cancellation_kills_process(self, adapter: CLIAdapter) -> None:
        slow = fake_process()
        slow.returncode = None
        started = asyncio.Event()

        async def hang():
            started.set()
            await asyncio.sleep(10)

        slow.communicate = AsyncMock(side_effect=hang)
        fake = FakeExec({"-csv": slow})
        with patch("asyncio.create_subprocess_exec", fake):
            task = asyncio.create_task(adapter.search("a"))
            await asyncio.wait_for(started.wait(), timeout=1.0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        slow.kill.assert_called_once()
        slow.wait.assert_awaited()


# ── Metadata ─────────────────────────────────────────────────────────────────


class TestMetadata:
    async def test_get_version(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-version": fake_process("1.1.0.27\r\n")})
        with patch("asyncio.create_subprocess_exec", fake):
            assert await adapter.get_version() == "1.1.0.27"

    async def test_get_version_empty(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-version": fake_process("")})
        with patch("asyncio.create_subprocess_exec", fake):
            assert await adapter.get_version() == UNKNOWN_VERSION

    async def test_get_version_failure(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-version": fake_process(returncode=2)})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(CLIError):
            await adapter.get_version()

    async def test_rebuild_index(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-rebuild": fake_process()})
        with patch("asyncio.create_subprocess_exec", fake):
            await adapter.rebuild_index()
        assert ("es", "-rebuild") in fake.calls

    async def test_rebuild_failure(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-rebuild": fake_process(stderr="access denied")})
        with patch("asyncio.create_subprocess_exec", fake), pytest.raises(CLIError):
            await adapter.rebuild_index()

    async def test_status_counts_last_query(self, adapter: CLIAdapter) -> None:
        fake = FakeExec(
            {
                "-csv": fake_process(""),
                "-get-result-count": fake_process("42\r\n"),
            }
        )
        with patch("asyncio.create_subprocess_exec", fake):
            await adapter.search("*.mp3")
            status = await adapter.get_search_status()

        assert fake.args_for("-get-result-count") == ("-get-result-count", "*.mp3")
        assert status.total_results == 42
        assert status.indexing_complete
        assert status.percent_complete == 100

    async def test_status_without_prior_search(self, adapter: CLIAdapter) -> None:
        fake = FakeExec({"-get-result-count": fake_process("7")})
        with patch("asyncio.create_subprocess_exec", fake):
            status = await adapter.get_search_status()
        assert fake.args_for("-get-result-count") == ("-get-result-count", "*")
        assert status.total_results == 7


def test_defaults() -> None:
    adapter = CLIAdapter(cli_path="es")
    assert adapter.name == "cli"
    assert adapter.poll_interval == 10.0
    assert adapter.cli_path == "es"
    assert not adapter.is_connected()
