"""Tests for connectivity monitoring and probing."""

import asyncio

from rider_offline.monitor import ConnectivityMonitor, HttpConnectivityProbe


class TestConnectivityMonitor:
    """Edge reporting."""

    def test_listeners_only_see_changes(self):
        monitor = ConnectivityMonitor(initially_connected=True)
        seen = []
        monitor.subscribe(seen.append)

        for state in (True, False, False, True, True):
            monitor.set_connected(state)

        assert seen == [False, True]
        assert monitor.is_connected is True

    def test_unsubscribe(self):
        monitor = ConnectivityMonitor()
        seen = []
        unsubscribe = monitor.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        monitor.set_connected(False)

        assert seen == []

    def test_failing_listener_does_not_block_others(self):
        monitor = ConnectivityMonitor()
        seen = []

        def broken(_):
            raise RuntimeError("listener bug")

        monitor.subscribe(broken)
        monitor.subscribe(seen.append)
        monitor.set_connected(False)

        assert seen == [False]


class TestHttpConnectivityProbe:
    """Polling a reachability check."""

    def test_check_once_reports_result(self):
        monitor = ConnectivityMonitor(initially_connected=False)
        results = iter([True, False])

        async def check():
            return next(results)

        probe = HttpConnectivityProbe(monitor, check)

        async def scenario():
            first = await probe.check_once()
            connected_after_first = monitor.is_connected
            second = await probe.check_once()
            return first, connected_after_first, second, monitor.is_connected

        assert asyncio.run(scenario()) == (True, True, False, False)

    def test_raising_check_counts_as_offline(self):
        monitor = ConnectivityMonitor(initially_connected=True)

        async def check():
            raise OSError("network unreachable")

        probe = HttpConnectivityProbe(monitor, check)

        assert asyncio.run(probe.check_once()) is False
        assert monitor.is_connected is False

    def test_start_and_stop(self):
        monitor = ConnectivityMonitor(initially_connected=False)
        calls = 0

        async def check():
            nonlocal calls
            calls += 1
            return True

        probe = HttpConnectivityProbe(monitor, check, interval=0.01)

        async def scenario():
            probe.start()
            await asyncio.sleep(0.05)
            await probe.stop()
            return probe.running

        assert asyncio.run(scenario()) is False
        assert calls >= 1
        assert monitor.is_connected is True
