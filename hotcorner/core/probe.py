"""Foreground window probe.

Wraps the backend's STATUS query with a short-lived cache, coalesces
concurrent requests into one worker round trip, and runs the fixed-cadence
monitor timer that keeps suppression state current while the pointer is
nowhere near the corner.
"""

import dataclasses
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .backend import DesktopBackend, ForegroundCallback
from .constants import FOREGROUND_POLL_INTERVAL_MS, FOREGROUND_REFRESH_INTERVAL_MS
from .logging import Logger, get_logger
from .model import ForegroundInfo


class ForegroundProbe(QObject):
    """Cached, rate-limited access to the foreground window snapshot.

    Args:
        backend: Capability backend that performs the actual query
        clock: Monotonic clock in milliseconds
        interval_ms: Monitor cadence
        freshness_ms: How long a snapshot is served from cache
        logger: Logger instance (uses global if None)
        parent: Parent QObject
    """

    info_received = Signal(object)  # ForegroundInfo

    def __init__(
        self,
        backend: DesktopBackend,
        clock: Callable[[], float],
        interval_ms: int = FOREGROUND_POLL_INTERVAL_MS,
        freshness_ms: int = FOREGROUND_REFRESH_INTERVAL_MS,
        logger: Optional[Logger] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._backend = backend
        self._clock = clock
        self._freshness_ms = freshness_ms
        self._logger = logger or get_logger()

        self._latest: Optional[ForegroundInfo] = None
        self._in_flight = False
        self._waiters: list[ForegroundCallback] = []
        self._last_refresh_ms: Optional[float] = None

        self._monitor = QTimer(self)
        self._monitor.setInterval(interval_ms)
        self._monitor.timeout.connect(self._on_monitor_tick)

    @property
    def latest(self) -> ForegroundInfo:
        """Most recent snapshot (empty before the first answer)."""
        return self._latest or ForegroundInfo()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def monitoring(self) -> bool:
        return self._monitor.isActive()

    def is_fresh(self, now_ms: Optional[float] = None) -> bool:
        """Check if the cached snapshot is inside the freshness window."""
        if self._latest is None:
            return False
        now = self._clock() if now_ms is None else now_ms
        return now - self._latest.captured_at < self._freshness_ms

    def fetch(
        self,
        callback: Optional[ForegroundCallback] = None,
        force: bool = False,
    ) -> None:
        """Get a snapshot, from cache if fresh unless forced.

        Concurrent calls share one outstanding query.
        """
        if not force and self.is_fresh():
            if callback is not None:
                callback(self.latest)
            return

        if callback is not None:
            self._waiters.append(callback)
        if self._in_flight:
            return

        self._in_flight = True
        self._backend.probe_foreground(self._on_result)

    def refresh_if_stale(self, force: bool = False) -> None:
        """Throttled refresh used by the monitor timer and the poll loop."""
        now = self._clock()
        if (
            not force
            and self._last_refresh_ms is not None
            and now - self._last_refresh_ms < self._freshness_ms
        ):
            return
        self._last_refresh_ms = now
        self.fetch(force=force)

    def start_monitor(self) -> None:
        """Start the fixed-cadence refresh and query immediately."""
        if not self._monitor.isActive():
            self._monitor.start()
        self.refresh_if_stale(force=True)

    def stop_monitor(self) -> None:
        self._monitor.stop()

    def invalidate(self) -> None:
        """Forget the cached snapshot."""
        self._latest = None
        self._last_refresh_ms = None

    def _on_monitor_tick(self) -> None:
        self.refresh_if_stale(force=True)

    def _on_result(self, info: ForegroundInfo) -> None:
        info = dataclasses.replace(info, captured_at=self._clock())
        self._in_flight = False
        self._latest = info

        waiters, self._waiters = self._waiters, []
        self.info_received.emit(info)
        for waiter in waiters:
            waiter(info)
