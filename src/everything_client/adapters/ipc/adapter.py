"""IPC adapter — Everything search through the native SDK library.

Loads ``Everything64.dll`` / ``Everything32.dll`` with ``ctypes`` and drives
the SDK's global query state: set the search text and modifiers, run
``Everything_QueryW``, then read each result through the per-index getters.
The SDK talks to the running Everything service over Windows IPC, so this
adapter is only available on Windows.

SDK calls block, so every query-and-readout sequence runs in a worker
thread; a lock keeps sequences from interleaving on the SDK's single global
query state.

Usage::

    adapter = IPCAdapter()
    await adapter.connect()
    results = await adapter.search("*.mp4", SearchOptions(sort_by="size", sort_order="desc"))
"""

from __future__ import annotations

import asyncio
import contextlib
import ctypes
import logging
import sys
from pathlib import Path
from typing import Any

from everything_client.adapters.base.adapter import EverythingAdapter
from everything_client.adapters.base.exceptions import (
    ConnectionError,
    IPCError,
    SearchError,
)
from everything_client.models.query import SearchOptions
from everything_client.models.result import SearchResult, SearchStatus
from everything_client.models.timestamps import filetime_to_datetime

logger = logging.getLogger(__name__)

BUNDLED_BIN_DIR = Path(__file__).resolve().parents[2] / "assets" / "bin"

DEFAULT_MAX_RESULTS = 1000
NOT_LOADED_PERCENT = 50

# Everything_SetRequestFlags
REQUEST_FILE_NAME = 0x00000001
REQUEST_PATH = 0x00000002
REQUEST_SIZE = 0x00000010
REQUEST_DATE_CREATED = 0x00000020
REQUEST_DATE_MODIFIED = 0x00000040
REQUEST_DATE_ACCESSED = 0x00000080
REQUEST_ATTRIBUTES = 0x00000100

RESULT_REQUEST_FLAGS = (
    REQUEST_FILE_NAME
    | REQUEST_PATH
    | REQUEST_SIZE
    | REQUEST_DATE_CREATED
    | REQUEST_DATE_MODIFIED
    | REQUEST_DATE_ACCESSED
    | REQUEST_ATTRIBUTES
)

# Everything_SetSort codes, keyed by (sort_by, sort_order)
SORT_CODES: dict[tuple[str, str], int] = {
    ("name", "asc"): 1,
    ("name", "desc"): 2,
    ("path", "asc"): 3,
    ("path", "desc"): 4,
    ("size", "asc"): 5,
    ("size", "desc"): 6,
    ("date", "asc"): 13,
    ("date", "desc"): 14,
    ("run-count", "asc"): 19,
    ("run-count", "desc"): 20,
}

# Everything_GetLastError codes
ERROR_NAMES: dict[int, str] = {
    0: "EVERYTHING_OK",
    1: "EVERYTHING_ERROR_MEMORY",
    2: "EVERYTHING_ERROR_IPC",
    3: "EVERYTHING_ERROR_REGISTERCLASSEX",
    4: "EVERYTHING_ERROR_CREATEWINDOW",
    5: "EVERYTHING_ERROR_CREATETHREAD",
    6: "EVERYTHING_ERROR_INVALIDINDEX",
    7: "EVERYTHING_ERROR_INVALIDCALL",
    8: "EVERYTHING_ERROR_INVALIDREQUEST",
    9: "EVERYTHING_ERROR_INVALIDPARAMETER",
}

# (function name, restype, argtypes)
_SIGNATURES: list[tuple[str, Any, list[Any]]] = [
    ("Everything_SetSearchW", None, [ctypes.c_wchar_p]),
    ("Everything_SetMatchPath", None, [ctypes.c_int]),
    ("Everything_SetMatchCase", None, [ctypes.c_int]),
    ("Everything_SetMatchWholeWord", None, [ctypes.c_int]),
    ("Everything_SetRegex", None, [ctypes.c_int]),
    ("Everything_SetMax", None, [ctypes.c_uint32]),
    ("Everything_SetOffset", None, [ctypes.c_uint32]),
    ("Everything_SetSort", None, [ctypes.c_uint32]),
    ("Everything_SetRequestFlags", None, [ctypes.c_uint32]),
    ("Everything_QueryW", ctypes.c_int, [ctypes.c_int]),
    ("Everything_GetNumResults", ctypes.c_uint32, []),
    ("Everything_GetTotResults", ctypes.c_uint32, []),
    ("Everything_GetResultFileNameW", ctypes.c_wchar_p, [ctypes.c_uint32]),
    ("Everything_GetResultPathW", ctypes.c_wchar_p, [ctypes.c_uint32]),
    ("Everything_GetResultSize", ctypes.c_int, [ctypes.c_uint32, ctypes.POINTER(ctypes.c_longlong)]),
    ("Everything_GetResultDateModified", ctypes.c_int, [ctypes.c_uint32, ctypes.POINTER(ctypes.c_ulonglong)]),
    ("Everything_GetResultDateCreated", ctypes.c_int, [ctypes.c_uint32, ctypes.POINTER(ctypes.c_ulonglong)]),
    ("Everything_GetResultDateAccessed", ctypes.c_int, [ctypes.c_uint32, ctypes.POINTER(ctypes.c_ulonglong)]),
    ("Everything_GetResultAttributes", ctypes.c_uint32, [ctypes.c_uint32]),
    ("Everything_IsFolderResult", ctypes.c_int, [ctypes.c_uint32]),
    ("Everything_GetLastError", ctypes.c_uint32, []),
    ("Everything_GetMajorVersion", ctypes.c_uint32, []),
    ("Everything_GetMinorVersion", ctypes.c_uint32, []),
    ("Everything_GetRevision", ctypes.c_uint32, []),
    ("Everything_GetBuildNumber", ctypes.c_uint32, []),
    ("Everything_RebuildDB", ctypes.c_int, []),
    ("Everything_IsDBLoaded", ctypes.c_int, []),
    ("Everything_Reset", None, []),
]


def is_supported_platform() -> bool:
    """Whether the native SDK can be used on this platform."""
    return sys.platform == "win32"


def resolve_dll_path(dll_path: str | None = None) -> str:
    """Locate the Everything SDK library.

    Order: an existing user-supplied path, a copy bundled under
    ``assets/bin``, then the bare DLL name for the Windows loader.
    """
    if dll_path and Path(dll_path).exists():
        return dll_path

    dll_name = "Everything64.dll" if sys.maxsize > 2**32 else "Everything32.dll"
    bundled = BUNDLED_BIN_DIR / dll_name
    if bundled.exists():
        return str(bundled)

    return dll_name


def load_everything_library(path: str) -> Any:
    """Load the SDK library and declare the function signatures it exports."""
    loader = getattr(ctypes, "WinDLL", ctypes.CDLL)
    lib = loader(path)
    for func_name, restype, argtypes in _SIGNATURES:
        func = getattr(lib, func_name)
        func.restype = restype
        func.argtypes = argtypes
    return lib


def _error_message(code: int) -> str:
    return f"{ERROR_NAMES.get(code, 'EVERYTHING_ERROR_UNKNOWN')} ({code})"


class IPCAdapter(EverythingAdapter):
    """Adapter for the native Everything SDK (Windows only).

    Args:
        dll_path: Path to the SDK DLL. Falls back to a bundled copy or the
            bare DLL name.
        timeout: Seconds to wait for a native query sequence.
        poll_interval: Seconds between file-monitoring ticks.
        default_max_results: Result cap applied when a search sets none.

    Raises:
        IPCError: If constructed on a platform other than Windows.
    """

    def __init__(
        self,
        dll_path: str | None = None,
        timeout: float = 5.0,
        poll_interval: float = 5.0,
        default_max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        if not is_supported_platform():
            raise IPCError("IPC adapter is only available on Windows")

        self._dll_path = resolve_dll_path(dll_path)
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._default_max_results = default_max_results
        self._lib: Any = None
        self._connected = False
        self._last_query: str | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "ipc"

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def dll_path(self) -> str:
        return self._dll_path

    async def _call(self, func: Any, *args: Any) -> Any:
        """Run a blocking native sequence in a worker thread, one at a time.

        A sequence that outlives ``timeout`` keeps the lock until its thread
        returns.
        """
        async with self._lock:
            worker = asyncio.ensure_future(asyncio.to_thread(func, *args))
            try:
                return await asyncio.wait_for(asyncio.shield(worker), timeout=self._timeout)
            except TimeoutError:
                logger.warning("Native call exceeded %.1fs; waiting for it to finish", self._timeout)
                with contextlib.suppress(Exception):
                    await worker
                raise

    async def _ensure_connected(self) -> Any:
        if not self._connected:
            await self.connect()
        if self._lib is None:
            raise ConnectionError("Not connected to Everything")
        return self._lib

    # ── Connection ───────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Load the SDK library and run a probe query."""
        if self._connected:
            return

        try:
            lib = await self._call(self._load_and_probe)
        except Exception as e:
            raise ConnectionError(f"Failed to connect to Everything: {e}") from e

        self._lib = lib
        self._connected = True
        logger.info("Connected to Everything via %s", self._dll_path)

    def _load_and_probe(self) -> Any:
        lib = load_everything_library(self._dll_path)

        if not lib.Everything_IsDBLoaded():
            raise IPCError("Everything service is not running or database is not loaded")

        lib.Everything_Reset()
        lib.Everything_SetSearchW("*")
        lib.Everything_SetMax(1)
        if not lib.Everything_QueryW(1):
            raise IPCError(f"Probe query failed: {_error_message(lib.Everything_GetLastError())}")
        lib.Everything_Reset()
        return lib

    async def disconnect(self) -> None:
        self._lib = None
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    # ── Search ───────────────────────────────────────────────────────────

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Run a native query and read back every result."""
        lib = await self._ensure_connected()
        options = options or SearchOptions()

        try:
            results = await self._call(self._query, lib, query, options)
        except Exception as e:
            raise SearchError(f"Search failed: {e}") from e

        self._last_query = query
        logger.debug("IPC search %r returned %d results", query, len(results))
        return results

    def _query(self, lib: Any, query: str, options: SearchOptions) -> list[SearchResult]:
        lib.Everything_Reset()
        lib.Everything_SetSearchW(options.apply_filters(query))
        lib.Everything_SetMatchPath(int(options.match_path))
        lib.Everything_SetMatchCase(int(options.match_case))
        lib.Everything_SetMatchWholeWord(int(options.match_whole_word))
        lib.Everything_SetRegex(int(options.regex))
        lib.Everything_SetMax(
            options.max_results if options.max_results is not None else self._default_max_results
        )
        lib.Everything_SetOffset(options.offset or 0)
        lib.Everything_SetRequestFlags(RESULT_REQUEST_FLAGS)

        if options.sort_by:
            sort_code = SORT_CODES.get((options.sort_by, options.sort_order))
            if sort_code:
                lib.Everything_SetSort(sort_code)

        if not lib.Everything_QueryW(1):
            raise IPCError(f"Query failed: {_error_message(lib.Everything_GetLastError())}")

        count = lib.Everything_GetNumResults()
        return [self.map_to_standard_schema(lib, index) for index in range(count)]

    # ── Schema mapping ───────────────────────────────────────────────────

    @staticmethod
    def map_to_standard_schema(lib: Any, index: int) -> SearchResult:
        """Read result ``index`` through the per-index getters and normalize it.

        Getters that fail leave their value at zero, which normalizes to
        ``0`` / epoch.
        """
        size = ctypes.c_longlong(0)
        modified = ctypes.c_ulonglong(0)
        created = ctypes.c_ulonglong(0)
        accessed = ctypes.c_ulonglong(0)

        if not lib.Everything_GetResultSize(index, ctypes.pointer(size)):
            size.value = 0
        if not lib.Everything_GetResultDateModified(index, ctypes.pointer(modified)):
            modified.value = 0
        if not lib.Everything_GetResultDateCreated(index, ctypes.pointer(created)):
            created.value = 0
        if not lib.Everything_GetResultDateAccessed(index, ctypes.pointer(accessed)):
            accessed.value = 0

        return SearchResult.build(
            name=lib.Everything_GetResultFileNameW(index),
            path=lib.Everything_GetResultPathW(index),
            size=size.value,
            date_modified=filetime_to_datetime(modified.value),
            date_created=filetime_to_datetime(created.value),
            date_accessed=filetime_to_datetime(accessed.value),
            attributes=lib.Everything_GetResultAttributes(index),
            is_directory=bool(lib.Everything_IsFolderResult(index)),
        )

    # ── Metadata ─────────────────────────────────────────────────────────

    async def get_version(self) -> str:
        lib = await self._ensure_connected()

        def _read() -> str:
            return ".".join(
                str(part)
                for part in (
                    lib.Everything_GetMajorVersion(),
                    lib.Everything_GetMinorVersion(),
                    lib.Everything_GetRevision(),
                    lib.Everything_GetBuildNumber(),
                )
            )

        try:
            return await self._call(_read)
        except Exception as e:
            raise IPCError(f"Failed to get version: {e}") from e

    async def rebuild_index(self) -> None:
        lib = await self._ensure_connected()

        try:
            await self._call(lib.Everything_RebuildDB)
        except Exception as e:
            raise IPCError(f"Failed to rebuild index: {e}") from e
        logger.info("Requested index rebuild via %s", self._dll_path)

    async def get_search_status(self) -> SearchStatus:
        """Report DB load state and the total for the last query.

        The SDK exposes no load progress, so an unloaded database reports a
        fixed 50 %.
        """
        lib = await self._ensure_connected()

        def _read() -> SearchStatus:
            loaded = bool(lib.Everything_IsDBLoaded())
            total = lib.Everything_GetTotResults()
            if total == 0 and self._last_query:
                lib.Everything_Reset()
                lib.Everything_SetSearchW(self._last_query)
                lib.Everything_QueryW(1)
                total = lib.Everything_GetTotResults()
            return SearchStatus(
                total_results=total,
                indexing_complete=loaded,
                percent_complete=100 if loaded else NOT_LOADED_PERCENT,
            )

        try:
            return await self._call(_read)
        except Exception as e:
            raise IPCError(f"Failed to get search status: {e}") from e
