"""Global constants for the hot corner engine."""

from typing import Final

# Corner geometry
EDGE_THRESHOLD_PX: Final[int] = 30
"""Pointer distance from the display corner that counts as "in the corner"."""

NEAR_CORNER_THRESHOLD_PX: Final[int] = EDGE_THRESHOLD_PX * 2
"""Radius around the corner point where polling and probing speed up."""

# Polling cadence
MIN_POLL_DELAY_MS: Final[int] = 8
"""Fastest poll tick the scheduler will arm"""

IDLE_POLL_MAX_DELAY_MS: Final[int] = 450
"""Slowest poll tick while the pointer sits still"""

IDLE_STREAK_CAP: Final[int] = 8
IDLE_STEP_MS: Final[int] = 40

INSTANT_IDLE_STREAK_CAP: Final[int] = 10
INSTANT_IDLE_STEP_MS: Final[int] = 15

# Foreground probing
FOREGROUND_POLL_INTERVAL_MS: Final[int] = 650
"""Fixed cadence of the foreground monitor timer"""

FOREGROUND_REFRESH_INTERVAL_MS: Final[int] = 350
"""Freshness window of a cached ForegroundInfo snapshot"""

# Worker processes
WORKER_REQUEST_TIMEOUT_MS: Final[int] = 1500
"""Per-request timeout for STATUS queries"""

ACTION_WORKER_RESTART_MS: Final[int] = 250
STATUS_WORKER_RESTART_MS: Final[int] = 500

WORKER_EXIT_GRACE_MS: Final[int] = 300
"""Time a worker gets to honour EXIT before it is killed"""

MAX_STALE_RESPONSES: Final[int] = 3
"""Timed-out requests still awaiting their line before the worker counts as hung"""

# Self-trigger avoidance
SELF_TRIGGER_COOLDOWN_FLOOR_MS: Final[int] = 250
TASK_VIEW_RECENCY_MS: Final[int] = 5000

SHELL_PROCESS_NAMES: Final[tuple[str, ...]] = ("explorer.exe",)

SHELL_SURFACE_CLASS_MARKERS: Final[tuple[str, ...]] = (
    "multitaskingviewframe",
    "xamlexplorerhostislandwindow",
    "windows.ui.core.corewindow",
    "foregroundstaging",
)

SWITCHER_CLASS_MARKERS: Final[tuple[str, ...]] = (
    "taskswitcherwnd",
    "taskswitcheroverlaywnd",
)

TASK_VIEW_TITLE_MARKERS: Final[tuple[str, ...]] = (
    "task view",
    "task switching",
    "aufgabenansicht",
    "vue des tâches",
    "vista de tareas",
    "visualizzazione attività",
    "visão de tarefas",
    "taakweergave",
    "представление задач",
    "タスク ビュー",
    "任务视图",
    "작업 보기",
)

# Stored preference defaults
DEFAULT_DISPLAY_ID: Final[str] = "primary"
DEFAULT_CORNER: Final[str] = "top-left"
DEFAULT_SPEED: Final[str] = "fast"
DEFAULT_DISABLE_ON_FULLSCREEN: Final[bool] = True

# Logging
LOG_BUFFER_SIZE: Final[int] = 200
"""Circular log buffer capacity"""
