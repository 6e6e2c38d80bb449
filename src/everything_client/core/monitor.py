"""File monitor — Polling task that reports snapshot differences.

The engine exposes no change-notification API on any transport, so changes
are discovered by repeating a wildcard search and diffing each snapshot with
the previous one. Each ``FileMonitor`` owns one ``asyncio.Task`` and its own
baseline; several monitors on one adapter never share state.

Lifecycle of one tick:
  1. Stop requested? Exit.
  2. Run the snapshot search.
  3. First snapshot: store it as the baseline, nothing else.
  4. Otherwise diff against the baseline, replace the baseline, and invoke
     the callback if the diff is non-empty (and no stop was requested
     meanwhile).
  5. Wait ``interval`` seconds, or until a stop is requested.

Errors raised by the search or the callback are logged and swallowed so a
transient failure does not end the subscription.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from everything_client.core.changes import detect_changes
from everything_client.models.result import FileChange, SearchResult

logger = logging.getLogger(__name__)

FileChangeCallback = Callable[[list[FileChange]], Any]
"""Receives a non-empty list of changes; may be a plain or a coroutine function."""

SnapshotSource = Callable[[], Awaitable[list[SearchResult]]]


class FileMonitor:
    """Handle for one running file-change subscription.

    Calling the handle (or ``stop()``) prevents any further ticks. A tick
    already in flight runs to completion but will not invoke the callback.

    Args:
        snapshot: Coroutine function returning the current snapshot.
        callback: Called with each non-empty change list.
        interval: Seconds to wait between the end of one tick and the start
            of the next.
        name: Label used in log messages and the task name.
    """

    def __init__(
        self,
        snapshot: SnapshotSource,
        callback: FileChangeCallback,
        interval: float,
        name: str = "monitor",
    ) -> None:
        self._snapshot = snapshot
        self._callback = callback
        self._interval = interval
        self._name = name
        self._previous: list[SearchResult] | None = None
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> FileMonitor:
        """Schedule the polling task on the running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._run(),
                name=f"everything-{self._name}-monitor",
            )
            logger.debug("Started %s file monitor (interval %.1fs)", self._name, self._interval)
        return self

    def stop(self) -> None:
        """Request the monitor to stop. Idempotent."""
        if not self._stop_event.is_set():
            self._stop_event.set()
            logger.debug("Stopped %s file monitor", self._name)

    def __call__(self) -> None:
        self.stop()

    async def wait_closed(self) -> None:
        """Wait until the polling task has exited."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await self._tick()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                pass

    async def _tick(self) -> None:
        try:
            current = await self._snapshot()
            previous, self._previous = self._previous, current
            if previous is None:
                return

            changes = detect_changes(previous, current)
            if not changes or self._stop_event.is_set():
                return

            outcome = self._callback(changes)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.warning("Error monitoring file changes via %s", self._name, exc_info=True)
