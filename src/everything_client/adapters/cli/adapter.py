"""CLI adapter — Everything search through the ``es.exe`` command-line tool.

Each operation spawns ``es.exe`` with ``asyncio.create_subprocess_exec`` and
parses its standard output. Searches request CSV output (``-csv``), which
carries one full path per row; the command-line tool reports neither sizes
nor timestamps in that mode, so those fields normalize to zero / epoch.

Usage::

    adapter = CLIAdapter(cli_path=r"C:\\Tools\\es.exe")
    results = await adapter.search("report", SearchOptions(max_results=10))
"""

from __future__ import annotations

import asyncio
import contextlib
import csv
import io
import logging
import sys
from pathlib import Path

from everything_client.adapters.base.adapter import UNKNOWN_VERSION, EverythingAdapter
from everything_client.adapters.base.exceptions import CLIError, ConnectionError, SearchError
from everything_client.models.query import SearchOptions
from everything_client.models.result import PATH_SEPARATOR, SearchResult, SearchStatus, coerce_int

logger = logging.getLogger(__name__)

BUNDLED_BIN_DIR = Path(__file__).resolve().parents[2] / "assets" / "bin"
CSV_HEADER = "filename"

# DIR-style sort switches understood by es.exe, keyed by (sort_by, sort_order)
_SORT_SWITCHES: dict[tuple[str, str], str] = {
    ("name", "asc"): "/on",
    ("name", "desc"): "/o-n",
    ("size", "asc"): "/os",
    ("size", "desc"): "/o-s",
    ("date", "asc"): "/od",
    ("date", "desc"): "/o-d",
    ("path", "asc"): "-s",
}


def resolve_cli_path(cli_path: str | None = None) -> str:
    """Locate the ``es.exe`` executable.

    Order: an existing user-supplied path, a copy bundled under
    ``assets/bin``, then bare ``es`` for a ``PATH`` lookup.
    """
    if cli_path and Path(cli_path).exists():
        return cli_path

    bundled = BUNDLED_BIN_DIR / ("es64.exe" if sys.maxsize > 2**32 else "es32.exe")
    if bundled.exists():
        return str(bundled)

    return "es"


class CLIAdapter(EverythingAdapter):
    """Adapter that drives the ``es.exe`` command-line interface.

    Args:
        cli_path: Path to ``es.exe``. Falls back to a bundled copy or ``es``
            on ``PATH``.
        timeout: Per-invocation timeout in seconds.
        poll_interval: Seconds between file-monitoring ticks.
    """

    def __init__(
        self,
        cli_path: str | None = None,
        timeout: float = 10.0,
        poll_interval: float = 10.0,
    ) -> None:
        self._cli_path = resolve_cli_path(cli_path)
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._connected = False
        self._last_query: str | None = None

    @property
    def name(self) -> str:
        return "cli"

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def cli_path(self) -> str:
        return self._cli_path

    # ── Process plumbing ─────────────────────────────────────────────────

    async def _run(self, *args: str) -> tuple[str, str, int]:
        """Run ``es.exe`` with ``args`` and return ``(stdout, stderr, returncode)``.

        Raises:
            OSError: If the executable cannot be started.
            TimeoutError: If the process outlives ``timeout``. The process is
                killed on timeout or cancellation.
        """
        process = await asyncio.create_subprocess_exec(
            self._cli_path,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            process.returncode or 0,
        )

    async def _run_checked(self, *args: str) -> str:
        """Run ``es.exe`` and treat stderr output or a non-zero exit as failure."""
        stdout, stderr, returncode = await self._run(*args)
        if stderr.strip():
            raise RuntimeError(stderr.strip())
        if returncode != 0:
            raise RuntimeError(f"es.exe exited with code {returncode}")
        return stdout

    # ── Connection ───────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Verify that ``es.exe`` can be executed."""
        if self._connected:
            return

        try:
            _, stderr, returncode = await self._run("-h")
        except (OSError, TimeoutError) as e:
            raise ConnectionError(f"Failed to connect to Everything CLI: {e}") from e
        if returncode != 0:
            detail = stderr.strip() or f"exit code {returncode}"
            raise ConnectionError(f"Failed to connect to Everything CLI: {detail}")

        self._connected = True
        logger.info("Connected to Everything CLI at %s", self._cli_path)

    async def disconnect(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    # ── Search ───────────────────────────────────────────────────────────

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Run ``es.exe -csv`` and parse its output."""
        if not self._connected:
            await self.connect()

        options = options or SearchOptions()
        self._last_query = query
        args = self._build_args(query, options)

        try:
            stdout = await self._run_checked(*args)
        except (OSError, TimeoutError, RuntimeError) as e:
            raise SearchError(f"Search failed: {e}") from e

        results = self.parse_csv_results(stdout)
        logger.debug("CLI search %r returned %d results", query, len(results))
        return results

    @staticmethod
    def _build_args(query: str, options: SearchOptions) -> list[str]:
        args: list[str] = []

        if options.match_case:
            args.append("-case")
        if options.match_whole_word:
            args.append("-whole-word")
        if options.regex:
            args.append("-regex")
        if options.match_path:
            args.append("-match-path")
        if options.max_results is not None:
            args.extend(["-n", str(options.max_results)])
        if options.offset is not None:
            args.extend(["-o", str(options.offset)])
        if options.sort_by:
            switch = _SORT_SWITCHES.get((options.sort_by, options.sort_order))
            if switch:
                args.append(switch)

        args.append("-csv")
        args.append(options.apply_filters(query))
        return args

    # ── Schema mapping ───────────────────────────────────────────────────

    @classmethod
    def parse_csv_results(cls, output: str) -> list[SearchResult]:
        """Parse ``es.exe -csv`` output into canonical results.

        The first column of every row is the full path; a leading
        ``Filename`` header row is skipped.
        """
        results: list[SearchResult] = []
        rows = csv.reader(io.StringIO(output.strip()))
        for line_no, row in enumerate(rows):
            if not row or not row[0].strip():
                continue
            full_path = row[0].strip()
            if line_no == 0 and full_path.lower() == CSV_HEADER:
                continue
            results.append(cls.map_to_standard_schema(full_path))
        return results

    @staticmethod
    def map_to_standard_schema(full_path: str) -> SearchResult:
        """Map one full path to ``SearchResult``.

        Directories are recognized by a trailing separator, the only signal
        the CSV output carries.
        """
        return SearchResult.build(
            full_path=full_path,
            is_directory=full_path.endswith(PATH_SEPARATOR),
        )

    # ── Metadata ─────────────────────────────────────────────────────────

    async def get_version(self) -> str:
        if not self._connected:
            await self.connect()

        try:
            stdout = await self._run_checked("-version")
        except (OSError, TimeoutError, RuntimeError) as e:
            raise CLIError(f"Failed to get version: {e}") from e
        return stdout.strip() or UNKNOWN_VERSION

    async def rebuild_index(self) -> None:
        if not self._connected:
            await self.connect()

        try:
            await self._run_checked("-rebuild")
        except (OSError, TimeoutError, RuntimeError) as e:
            raise CLIError(f"Failed to rebuild index: {e}") from e
        logger.info("Requested index rebuild via %s", self._cli_path)

    async def get_search_status(self) -> SearchStatus:
        """Count results for the last query; the CLI cannot report index progress."""
        if not self._connected:
            await self.connect()

        try:
            stdout = await self._run_checked("-get-result-count", self._last_query or "*")
        except (OSError, TimeoutError, RuntimeError) as e:
            raise CLIError(f"Failed to get search status: {e}") from e

        return SearchStatus(
            total_results=coerce_int(stdout.strip()),
            indexing_complete=True,
            percent_complete=100,
        )
