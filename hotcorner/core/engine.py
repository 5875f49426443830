"""Hot corner engine with engagement state machine.

Implements the core trigger logic:
- Engagement state machine (NOT_ENGAGED / ENGAGED) with cooldown
- Poll tick: pointer vs. target display and corner
- Suppression refresh from foreground snapshots
- Command handling for the tray menu
"""

import dataclasses
import time
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, Signal

from .backend import DesktopBackend
from .commands import (
    AddExclusion,
    ClearExclusions,
    Command,
    ExcludeFocusedApp,
    RemoveExclusion,
    SetCorner,
    SetDisplay,
    SetSpeed,
    ToggleFullscreenSuppression,
)
from .config import CornerConfigError, SettingsStore, load_config, save_config
from .constants import DEFAULT_DISPLAY_ID, SELF_TRIGGER_COOLDOWN_FLOOR_MS
from .logging import Logger, get_logger
from .model import (
    SPEED_PRESETS,
    Corner,
    DisplayBounds,
    DisplayInfo,
    EngagementState,
    ForegroundInfo,
    HotCornerConfig,
    Point,
    SuppressionDecision,
)
from .os_adapter import resolve_display
from .probe import ForegroundProbe
from .scheduler import AdaptivePollScheduler, PollSample, QtSingleShotTimer, SingleShotTimer
from .suppression import decide, describe


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class DesktopSource(Protocol):
    """Host windowing service: displays and pointer."""

    def displays(self) -> list[DisplayInfo]: ...

    def cursor(self) -> Point: ...


class CornerTrigger:
    """Engagement state machine for one corner.

    Fires the action once per stay in the corner. Leaving the corner (or
    the display) always clears the engagement. While the foreground is the
    engine's own task view, suppression and the preset cooldown are
    bypassed so the user can close it by revisiting the corner; only the
    short cooldown floor applies then.
    """

    def __init__(
        self,
        action: Callable[[], None],
        logger: Optional[Logger] = None,
    ) -> None:
        self._action = action
        self._logger = logger or get_logger()
        self._state = EngagementState.NOT_ENGAGED
        self._last_trigger_ms: float = 0.0
        self._has_triggered = False
        self._trigger_count = 0

    @property
    def state(self) -> EngagementState:
        return self._state

    @property
    def last_trigger_ms(self) -> float:
        """Monotonic time of the last trigger (0 if none since reset)."""
        return self._last_trigger_ms if self._has_triggered else 0.0

    @property
    def trigger_count(self) -> int:
        return self._trigger_count

    def reset(self) -> None:
        """Clear engagement and cooldown."""
        self._set_state(EngagementState.NOT_ENGAGED)
        self._last_trigger_ms = 0.0
        self._has_triggered = False

    def _set_state(self, new_state: EngagementState) -> None:
        if new_state is self._state:
            return
        old_state = self._state
        self._state = new_state
        self._logger.state_change(old_state.name, new_state.name)

    def evaluate(
        self,
        point: Point,
        bounds: Optional[DisplayBounds],
        corner: Corner,
        cooldown_ms: int,
        suppression: SuppressionDecision,
        now_ms: float,
    ) -> bool:
        """Run one corner test.

        Args:
            point: Current pointer position
            bounds: Target display bounds (None if no display is known)
            corner: Active corner
            cooldown_ms: Active preset cooldown
            suppression: Current suppression decision
            now_ms: Monotonic time in milliseconds

        Returns:
            True if the action fired
        """
        if bounds is None or not bounds.contains_point(point):
            self._set_state(EngagementState.NOT_ENGAGED)
            return False

        if not corner.contains(point, bounds):
            self._set_state(EngagementState.NOT_ENGAGED)
            return False

        # Fires only on entry; staying in the corner never re-fires
        if self._state is EngagementState.ENGAGED:
            return False

        bypass = suppression.task_view_like
        if suppression.suppressed and not bypass:
            return False

        if self._has_triggered:
            required = SELF_TRIGGER_COOLDOWN_FLOOR_MS if bypass else cooldown_ms
            if now_ms - self._last_trigger_ms < required:
                return False

        self._last_trigger_ms = now_ms
        self._has_triggered = True
        self._trigger_count += 1
        self._set_state(EngagementState.ENGAGED)
        self._logger.trigger(corner.value, bypass)
        self._action()
        return True


class HotCornerEngine(QObject):
    """Main engine object.

    Holds the configuration, engagement state machine, foreground probe,
    suppression decision and poll scheduler. Constructed once at startup;
    the tray talks to it only through ``dispatch()`` and its signals.

    Args:
        store: Preference store
        backend: Native capability backend
        desktop: Display and pointer source
        clock: Monotonic clock in milliseconds
        poll_timer: One-shot timer for the poll loop
        logger: Logger instance (uses global if None)
        parent: Parent QObject
    """

    config_changed = Signal(object)  # HotCornerConfig
    suppression_changed = Signal(bool)
    triggered = Signal()

    def __init__(
        self,
        store: SettingsStore,
        backend: DesktopBackend,
        desktop: DesktopSource,
        clock: Optional[Callable[[], float]] = None,
        poll_timer: Optional[SingleShotTimer] = None,
        logger: Optional[Logger] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._store = store
        self._backend = backend
        self._desktop = desktop
        self._clock = clock or monotonic_ms
        self._logger = logger or get_logger()

        self._config = load_config(store)
        self._suppression = SuppressionDecision()
        self._running = False

        self._trigger = CornerTrigger(self._perform_action, self._logger)
        self._probe = ForegroundProbe(backend, self._clock, logger=self._logger, parent=self)
        self._probe.info_received.connect(self._on_foreground)
        self._scheduler = AdaptivePollScheduler(
            self.poll_once,
            lambda: self._config.speed.interval_ms,
            poll_timer or QtSingleShotTimer(self),
            on_restart=self._trigger.reset,
            logger=self._logger,
        )

    @property
    def config(self) -> HotCornerConfig:
        return self._config

    @property
    def state(self) -> EngagementState:
        return self._trigger.state

    @property
    def trigger(self) -> CornerTrigger:
        return self._trigger

    @property
    def probe(self) -> ForegroundProbe:
        return self._probe

    @property
    def scheduler(self) -> AdaptivePollScheduler:
        return self._scheduler

    @property
    def suppression(self) -> SuppressionDecision:
        return self._suppression

    @property
    def is_running(self) -> bool:
        return self._running

    def displays(self) -> list[DisplayInfo]:
        return self._desktop.displays()

    # Lifecycle

    def start(self) -> None:
        """Start workers, foreground monitoring and the poll loop."""
        if self._running:
            return
        self._running = True
        self._logger.info(
            f"Engine started: corner={self._config.corner.value} "
            f"speed={self._config.speed.key} display={self._config.display_id}",
            source="engine",
        )
        self._backend.start()
        self._apply_monitoring()
        self._scheduler.start()

    def shutdown(self) -> None:
        """Stop polling and monitoring and shut the workers down.

        Safe to call more than once.
        """
        self._scheduler.stop()
        self._probe.stop_monitor()
        if not self._running:
            return
        self._running = False
        self._backend.stop()
        self._logger.info("Engine stopped", source="engine")

    # Poll tick

    def poll_once(self) -> PollSample:
        """Read the pointer, refresh probing near the corner, test the corner."""
        point = self._desktop.cursor()
        display = resolve_display(self._config.display_id, self._desktop.displays())
        bounds = display.bounds if display is not None else None

        near_corner = bounds is not None and self._config.corner.is_near(point, bounds)
        if near_corner and self._config.monitors_foreground:
            self._probe.refresh_if_stale()

        self.evaluate(point, bounds)
        return PollSample(point=point, near_corner=near_corner)

    def evaluate(self, point: Point, bounds: Optional[DisplayBounds]) -> bool:
        """Run the corner state machine for one pointer sample."""
        now = self._clock()
        self._update_suppression(now)
        return self._trigger.evaluate(
            point,
            bounds,
            self._config.corner,
            self._config.speed.cooldown_ms,
            self._suppression,
            now,
        )

    def _perform_action(self) -> None:
        self._backend.perform_action()
        self.triggered.emit()

    # Suppression

    def _on_foreground(self, info: ForegroundInfo) -> None:
        self._update_suppression(self._clock())

    def _update_suppression(self, now_ms: float) -> None:
        decision = decide(
            self._probe.latest,
            self._config,
            now_ms,
            self._trigger.last_trigger_ms,
        )
        changed = decision.suppressed != self._suppression.suppressed
        self._suppression = decision
        if changed:
            self._logger.suppression_change(decision.suppressed, describe(decision))
            self.suppression_changed.emit(decision.suppressed)

    def _apply_monitoring(self) -> None:
        if self._config.monitors_foreground:
            self._backend.set_probe_enabled(True)
            if self._running:
                self._probe.start_monitor()
        else:
            self._probe.stop_monitor()
            self._backend.set_probe_enabled(False)
            self._probe.invalidate()
        self._update_suppression(self._clock())

    # Commands

    def dispatch(self, command: Command) -> bool:
        """Apply a UI command.

        Returns:
            True if the configuration changed (or a probe was started for
            ExcludeFocusedApp), False if the command was rejected or a no-op
        """
        try:
            return self._apply(command)
        except CornerConfigError as e:
            self._logger.warning(f"Rejected command: {e}", source="engine")
            return False

    def _apply(self, command: Command) -> bool:
        config = self._config

        if isinstance(command, SetCorner):
            corner = Corner.parse(command.corner)
            if corner is None:
                raise CornerConfigError(f"unknown corner {command.corner!r}")
            self._trigger.reset()
            return self._commit(dataclasses.replace(config, corner=corner))

        if isinstance(command, SetDisplay):
            display_id = str(command.display_id).strip() or DEFAULT_DISPLAY_ID
            self._trigger.reset()
            return self._commit(dataclasses.replace(config, display_id=display_id))

        if isinstance(command, SetSpeed):
            preset = SPEED_PRESETS.get(command.speed)
            if preset is None:
                raise CornerConfigError(f"unknown speed {command.speed!r}")
            changed = self._commit(dataclasses.replace(config, speed=preset))
            if self._scheduler.active:
                self._scheduler.restart()
            else:
                self._trigger.reset()
            return changed

        if isinstance(command, ToggleFullscreenSuppression):
            enabled = (
                not config.disable_on_fullscreen
                if command.enabled is None
                else command.enabled
            )
            return self._commit(
                dataclasses.replace(config, disable_on_fullscreen=enabled),
                monitoring=True,
            )

        if isinstance(command, AddExclusion):
            program = command.program.strip()
            if not program or program.lower() in (p.lower() for p in config.excluded_programs):
                return False
            return self._commit(
                dataclasses.replace(
                    config,
                    excluded_programs=config.excluded_programs + (program,),
                ),
                monitoring=True,
            )

        if isinstance(command, RemoveExclusion):
            target = command.program.strip().lower()
            remaining = tuple(p for p in config.excluded_programs if p.lower() != target)
            if remaining == config.excluded_programs:
                return False
            return self._commit(
                dataclasses.replace(config, excluded_programs=remaining),
                monitoring=True,
            )

        if isinstance(command, ClearExclusions):
            if not config.excluded_programs:
                return False
            return self._commit(
                dataclasses.replace(config, excluded_programs=()),
                monitoring=True,
            )

        if isinstance(command, ExcludeFocusedApp):
            self._probe.fetch(self._exclude_focused, force=True)
            return True

        raise CornerConfigError(f"unsupported command {command!r}")

    def _exclude_focused(self, info: ForegroundInfo) -> None:
        if not info.exe:
            self._logger.warning("No focused program to exclude", source="engine")
            return
        self.dispatch(AddExclusion(info.exe))

    def _commit(self, config: HotCornerConfig, monitoring: bool = False) -> bool:
        if config == self._config:
            return False
        self._config = config
        save_config(self._store, config)
        if monitoring:
            self._apply_monitoring()
        else:
            self._update_suppression(self._clock())
        self.config_changed.emit(config)
        return True
