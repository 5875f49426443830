"""Adaptive polling scheduler.

Self-rescheduling poll loop: after every tick the next delay is computed
from pointer movement, an idle streak and corner proximity, then a single
one-shot timer is armed. A still pointer relaxes towards
``IDLE_POLL_MAX_DELAY_MS``; a pointer close to the corner is polled at
least twice as often as the preset interval.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, QTimer

from .constants import (
    IDLE_POLL_MAX_DELAY_MS,
    IDLE_STEP_MS,
    IDLE_STREAK_CAP,
    INSTANT_IDLE_STEP_MS,
    INSTANT_IDLE_STREAK_CAP,
    MIN_POLL_DELAY_MS,
)
from .logging import Logger, get_logger
from .model import Point


@dataclass(frozen=True)
class PollSample:
    """What a poll tick observed."""

    point: Point
    near_corner: bool


def clamp_delay(delay_ms: int) -> int:
    """Bound a delay to [MIN_POLL_DELAY_MS, IDLE_POLL_MAX_DELAY_MS]."""
    return min(IDLE_POLL_MAX_DELAY_MS, max(MIN_POLL_DELAY_MS, delay_ms))


def compute_next_delay(
    base_interval_ms: int,
    moved: bool,
    idle_streak: int,
    near_corner: bool,
) -> tuple[int, int]:
    """Compute the delay before the next poll tick.

    Args:
        base_interval_ms: Active preset interval (0 for the instant preset)
        moved: Whether the pointer moved since the previous tick
        idle_streak: Current idle streak counter
        near_corner: Whether the pointer is inside the near-corner box

    Returns:
        Tuple of (delay_ms, new_idle_streak)
    """
    if base_interval_ms <= 0:
        if moved:
            idle_streak = 0
            delay = MIN_POLL_DELAY_MS
        else:
            idle_streak = min(idle_streak + 1, INSTANT_IDLE_STREAK_CAP)
            delay = MIN_POLL_DELAY_MS + idle_streak * INSTANT_IDLE_STEP_MS
    else:
        if moved:
            idle_streak = 0
            delay = max(MIN_POLL_DELAY_MS, base_interval_ms)
        else:
            idle_streak = min(idle_streak + 1, IDLE_STREAK_CAP)
            delay = base_interval_ms + idle_streak * IDLE_STEP_MS

    if near_corner:
        aggressive = (
            max(MIN_POLL_DELAY_MS, base_interval_ms // 2)
            if base_interval_ms > 0
            else MIN_POLL_DELAY_MS
        )
        delay = min(delay, aggressive)

    return clamp_delay(delay), idle_streak


class SingleShotTimer(Protocol):
    """Minimal one-shot timer used by the scheduler."""

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class QtSingleShotTimer(QObject):
    """SingleShotTimer on top of QTimer."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(delay_ms)

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class AdaptivePollScheduler:
    """Drives the poll tick on an adaptive cadence.

    Args:
        tick: Runs one poll and reports the pointer sample
        interval_source: Returns the active preset's base interval
        timer: One-shot timer implementation
        on_restart: Hook run by ``restart()`` before polling resumes
        logger: Logger instance (uses global if None)
    """

    def __init__(
        self,
        tick: Callable[[], PollSample],
        interval_source: Callable[[], int],
        timer: SingleShotTimer,
        on_restart: Optional[Callable[[], None]] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._tick = tick
        self._interval_source = interval_source
        self._timer = timer
        self._on_restart = on_restart
        self._logger = logger or get_logger()

        self._active = False
        self._idle_streak = 0
        self._last_point: Optional[Point] = None
        self._last_delay: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def idle_streak(self) -> int:
        return self._idle_streak

    @property
    def last_delay(self) -> Optional[int]:
        """Delay armed after the most recent tick."""
        return self._last_delay

    def start(self) -> None:
        """Reset movement tracking and run a tick immediately."""
        self.stop()
        self._active = True
        self._idle_streak = 0
        self._last_point = None
        self._last_delay = None
        self._run()

    def stop(self) -> None:
        self._active = False
        self._timer.cancel()

    def restart(self) -> None:
        """Restart after a speed change, clearing cooldown and engagement."""
        self.stop()
        if self._on_restart is not None:
            self._on_restart()
        self.start()

    def schedule(self, delay_ms: int) -> None:
        """Arm the one-shot timer for the next tick."""
        if not self._active:
            return
        self._last_delay = clamp_delay(delay_ms)
        self._timer.start(self._last_delay, self._run)

    def _run(self) -> None:
        if not self._active:
            return

        try:
            sample = self._tick()
        except Exception as e:
            self._logger.error(f"Poll tick failed: {e}", source="scheduler")
            self.schedule(IDLE_POLL_MAX_DELAY_MS)
            return

        moved = self._last_point is None or sample.point != self._last_point
        self._last_point = sample.point

        delay, self._idle_streak = compute_next_delay(
            self._interval_source(),
            moved,
            self._idle_streak,
            sample.near_corner,
        )
        self.schedule(delay)
