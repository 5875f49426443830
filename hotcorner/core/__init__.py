"""Core hot corner engine and utilities.

This package provides the core functionality for HotCorner:
- Data models (Point, DisplayBounds, Corner, SpeedPreset, etc.)
- Preference loading and validation
- Suppression policy and task view classification
- Worker processes, foreground probe and adaptive poll loop
- Hot corner engine with engagement state machine
- Logging with circular buffer
- Platform-specific adapters

Only constants and models are re-exported here so that the worker
process can import the package without loading Qt.
"""

from .constants import (
    DEFAULT_CORNER,
    DEFAULT_DISPLAY_ID,
    DEFAULT_SPEED,
    EDGE_THRESHOLD_PX,
    FOREGROUND_POLL_INTERVAL_MS,
    IDLE_POLL_MAX_DELAY_MS,
    LOG_BUFFER_SIZE,
    MIN_POLL_DELAY_MS,
    NEAR_CORNER_THRESHOLD_PX,
    WORKER_REQUEST_TIMEOUT_MS,
)
from .model import (
    SPEED_PRESETS,
    Classification,
    Corner,
    DisplayBounds,
    DisplayInfo,
    EngagementState,
    ForegroundInfo,
    HotCornerConfig,
    Point,
    SpeedPreset,
    SuppressionDecision,
)

__all__ = [
    # Constants
    "EDGE_THRESHOLD_PX",
    "NEAR_CORNER_THRESHOLD_PX",
    "MIN_POLL_DELAY_MS",
    "IDLE_POLL_MAX_DELAY_MS",
    "FOREGROUND_POLL_INTERVAL_MS",
    "WORKER_REQUEST_TIMEOUT_MS",
    "DEFAULT_DISPLAY_ID",
    "DEFAULT_CORNER",
    "DEFAULT_SPEED",
    "LOG_BUFFER_SIZE",
    # Models
    "EngagementState",
    "Classification",
    "Point",
    "DisplayBounds",
    "DisplayInfo",
    "Corner",
    "SpeedPreset",
    "SPEED_PRESETS",
    "ForegroundInfo",
    "SuppressionDecision",
    "HotCornerConfig",
]
