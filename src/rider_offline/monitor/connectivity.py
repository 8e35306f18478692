"""Connectivity tracking and HTTP reachability probing."""

import asyncio
from typing import Awaitable, Callable

from rider_offline.events import Emitter, Listener, Unsubscribe
from rider_offline.logging import log_state_change, state_logger

logger = state_logger()


class ConnectivityMonitor:
    """Edge source for network reachability.

    Platform adapters (or HttpConnectivityProbe) push the current state with
    set_connected(); subscribers are only told about changes. The monitor
    does no retrying of its own.
    """

    def __init__(self, initially_connected: bool = True) -> None:
        """Initialize the monitor.

        Args:
            initially_connected: Assumed state before the first report
        """
        self._connected = initially_connected
        self._emitter: Emitter[bool] = Emitter()

    @property
    def is_connected(self) -> bool:
        """Last reported connectivity state."""
        return self._connected

    def subscribe(self, listener: Listener[bool]) -> Unsubscribe:
        """Register a listener called with the new state on every change."""
        return self._emitter.subscribe(listener)

    def set_connected(self, connected: bool) -> None:
        """Report the current reachability; notifies only on change."""
        connected = bool(connected)
        if connected == self._connected:
            return

        log_state_change(
            logger,
            "online" if self._connected else "offline",
            "online" if connected else "offline",
            trigger="connectivity",
        )
        self._connected = connected
        self._emitter.emit(connected)


class HttpConnectivityProbe:
    """Polls a reachability check and feeds the result to a monitor.

    Example:
        probe = HttpConnectivityProbe(monitor, client.check_health, interval=30)
        probe.start()
        ...
        await probe.stop()
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        check: Callable[[], Awaitable[bool]],
        interval: float = 30.0,
    ) -> None:
        """Initialize the probe.

        Args:
            monitor: Monitor receiving probe results
            check: Coroutine function returning True when the backend answers
            interval: Seconds between probes
        """
        self._monitor = monitor
        self._check = check
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> bool:
        """Run one probe and report it. A failing check counts as offline."""
        try:
            connected = await self._check()
        except Exception as e:
            logger.warning("Connectivity check failed: %s", e)
            connected = False
        self._monitor.set_connected(connected)
        return connected

    def start(self) -> None:
        """Start polling in a background task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self.interval)

    async def stop(self) -> None:
        """Stop polling and wait for the background task to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
