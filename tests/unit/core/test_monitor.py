"""Tests for the polling file monitor."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

from everything_client.core.monitor import FileMonitor
from everything_client.models.result import ChangeType

INTERVAL = 0.01


async def _wait_for(condition, timeout: float = 1.0) -> None:
    async def poll() -> None:
        while not condition():
            await asyncio.sleep(INTERVAL / 2)

    await asyncio.wait_for(poll(), timeout=timeout)


def _snapshots(*snapshots):
    """Return a snapshot source yielding each snapshot in turn, then repeating the last."""
    remaining = list(snapshots)

    async def source():
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return source


class TestFileMonitor:
    async def test_first_snapshot_only_seeds_baseline(self, make_result) -> None:
        snapshot = AsyncMock(return_value=[make_result("C:\\a")])
        callback = MagicMock()
        monitor = FileMonitor(snapshot, callback, interval=INTERVAL).start()

        await _wait_for(lambda: snapshot.await_count >= 3)
        monitor.stop()
        await monitor.wait_closed()

        callback.assert_not_called()

    async def test_reports_changes_after_baseline(self, make_result) -> None:
        source = _snapshots(
            [make_result("C:\\a", 1)],
            [make_result("C:\\a", 2), make_result("C:\\b")],
        )
        callback = MagicMock()
        monitor = FileMonitor(source, callback, interval=INTERVAL).start()

        await _wait_for(lambda: callback.called)
        monitor()
        await monitor.wait_closed()

        callback.assert_called_once()
        changes = callback.call_args.args[0]
        assert {(c.path, c.type) for c in changes} == {
            ("C:\\a", ChangeType.MODIFIED),
            ("C:\\b", ChangeType.ADDED),
        }

    async def test_async_callback_is_awaited(self, make_result) -> None:
        source = _snapshots([], [make_result("C:\\new")])
        callback = AsyncMock()
        monitor = FileMonitor(source, callback, interval=INTERVAL).start()

        await _wait_for(lambda: callback.await_count >= 1)
        monitor.stop()
        await monitor.wait_closed()

        callback.assert_awaited_once()

    async def test_stop_is_idempotent_and_ends_task(self) -> None:
        monitor = FileMonitor(AsyncMock(return_value=[]), MagicMock(), interval=10).start()
        assert monitor.running

        monitor.stop()
        monitor.stop()
        await asyncio.wait_for(monitor.wait_closed(), timeout=1.0)

        assert monitor.stopped
        assert not monitor.running

    async def test_no_searches_after_stop(self) -> None:
        snapshot = AsyncMock(return_value=[])
        monitor = FileMonitor(snapshot, MagicMock(), interval=INTERVAL).start()
        await _wait_for(lambda: snapshot.await_count >= 1)

        monitor.stop()
        await monitor.wait_closed()
        count = snapshot.await_count
        await asyncio.sleep(INTERVAL * 5)

        assert snapshot.await_count == count

    async def test_search_errors_do_not_end_monitoring(self, make_result) -> None:
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 2:
                raise RuntimeError("transient")
            if calls < 3:
                return []
            return [make_result("C:\\late")]

        callback = MagicMock()
        monitor = FileMonitor(flaky, callback, interval=INTERVAL).start()

        await _wait_for(lambda: callback.called)
        monitor.stop()
        await monitor.wait_closed()

        assert calls >= 3
        assert callback.call_args.args[0][0].path == "C:\\late"

    async def test_callback_errors_are_swallowed(self, make_result) -> None:
        counter = iter(range(1000))

        async def growing():
            return [make_result(f"C:\\f{next(counter)}")]

        callback = MagicMock(side_effect=ValueError("boom"))
        monitor = FileMonitor(growing, callback, interval=INTERVAL).start()

        await _wait_for(lambda: callback.call_count >= 2)
        assert monitor.running
        monitor.stop()
        await monitor.wait_closed()

    async def test_monitors_are_independent(self, make_result) -> None:
        source_a = _snapshots([], [make_result("C:\\a")])
        source_b = AsyncMock(return_value=[])
        callback_a = MagicMock()
        callback_b = MagicMock()

        monitor_a = FileMonitor(source_a, callback_a, interval=INTERVAL, name="a").start()
        monitor_b = FileMonitor(source_b, callback_b, interval=INTERVAL, name="b").start()

        await _wait_for(lambda: callback_a.called)
        monitor_a.stop()
        await monitor_a.wait_closed()
        assert monitor_b.running

        monitor_b.stop()
        await monitor_b.wait_closed()
        callback_b.assert_not_called()

    async def test_stop_during_tick_suppresses_callback(self, make_result) -> None:
        ticks = 0
        monitor: FileMonitor

        async def stop_then_change():
            nonlocal ticks
            ticks += 1
            if ticks == 1:
                return []
            monitor.stop()
            return [make_result("C:\\appeared")]

        callback = MagicMock()
        monitor = FileMonitor(stop_then_change, callback, interval=INTERVAL).start()
        await asyncio.wait_for(monitor.wait_closed(), timeout=1.0)

        assert ticks == 2
        callback.assert_not_called()
