"""Core data models for the hot corner engine.

Defines coordinates, display geometry, corner predicates, speed presets,
foreground window snapshots and the engagement/suppression enums.
"""

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_CORNER,
    DEFAULT_DISABLE_ON_FULLSCREEN,
    DEFAULT_DISPLAY_ID,
    DEFAULT_SPEED,
    EDGE_THRESHOLD_PX,
    NEAR_CORNER_THRESHOLD_PX,
)


class EngagementState(Enum):
    """Corner engagement state machine states."""

    NOT_ENGAGED = auto()
    """Pointer is away from the corner, or has not fired yet"""

    ENGAGED = auto()
    """Action fired for the current stay in the corner"""


class Classification(Enum):
    """Foreground classification used for self-trigger avoidance."""

    NORMAL = auto()
    TASK_VIEW_LIKE = auto()


@dataclass(frozen=True)
class Point:
    """A pointer position in screen coordinates."""

    x: int
    y: int


@dataclass(frozen=True)
class DisplayBounds:
    """Rectangle of one display.

    Attributes:
        x: Left edge X coordinate (may be negative on multi-monitor setups)
        y: Top edge Y coordinate
        width: Width in pixels
        height: Height in pixels
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Right edge X coordinate."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Bottom edge Y coordinate."""
        return self.y + self.height

    def contains_point(self, point: Point) -> bool:
        """Check if the point lies on the display, edges included."""
        return (self.x <= point.x <= self.right and
                self.y <= point.y <= self.bottom)


@dataclass(frozen=True)
class DisplayInfo:
    """One entry of the display enumeration."""

    id: str
    label: str
    bounds: DisplayBounds
    is_primary: bool = False


class Corner(Enum):
    """The four screen corners a user can pick."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def label(self) -> str:
        """Human readable menu label."""
        return self.value.replace("-", " ").capitalize() + " corner"

    @classmethod
    def parse(cls, value: Any) -> Optional["Corner"]:
        """Return the corner for a stored key, or None if unknown."""
        try:
            return cls(str(value))
        except ValueError:
            return None

    def target(self, bounds: DisplayBounds) -> Point:
        """Exact corner point of the display."""
        left = self in (Corner.TOP_LEFT, Corner.BOTTOM_LEFT)
        top = self in (Corner.TOP_LEFT, Corner.TOP_RIGHT)
        return Point(
            bounds.x if left else bounds.right,
            bounds.y if top else bounds.bottom,
        )

    def contains(
        self,
        point: Point,
        bounds: DisplayBounds,
        threshold: int = EDGE_THRESHOLD_PX,
    ) -> bool:
        """Test whether the point is within the edge threshold of this corner."""
        if self in (Corner.TOP_LEFT, Corner.BOTTOM_LEFT):
            x_ok = point.x <= bounds.x + threshold
        else:
            x_ok = point.x >= bounds.right - threshold
        if self in (Corner.TOP_LEFT, Corner.TOP_RIGHT):
            y_ok = point.y <= bounds.y + threshold
        else:
            y_ok = point.y >= bounds.bottom - threshold
        return x_ok and y_ok

    def is_near(
        self,
        point: Point,
        bounds: DisplayBounds,
        threshold: int = NEAR_CORNER_THRESHOLD_PX,
    ) -> bool:
        """Check if the point is within the near-corner box around the target."""
        radius = max(EDGE_THRESHOLD_PX, threshold)
        target = self.target(bounds)
        return (abs(point.x - target.x) <= radius and
                abs(point.y - target.y) <= radius)


@dataclass(frozen=True)
class SpeedPreset:
    """Detection speed preset.

    Attributes:
        key: Stored identifier
        label: Menu label
        interval_ms: Base poll interval (0 means poll as fast as allowed)
        cooldown_ms: Minimum time between two triggers
    """

    key: str
    label: str
    interval_ms: int
    cooldown_ms: int


SPEED_PRESETS: dict[str, SpeedPreset] = {
    preset.key: preset
    for preset in (
        SpeedPreset("instant", "Instant", 0, 0),
        SpeedPreset("very-fast", "Very fast", 25, 650),
        SpeedPreset("fast", "Fast", 55, 900),
        SpeedPreset("medium", "Medium", 130, 1400),
        SpeedPreset("slow", "Slow", 220, 2000),
    )
}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


@dataclass(frozen=True)
class ForegroundInfo:
    """Snapshot of the OS foreground window as reported by the worker.

    ``captured_at`` is the monotonic millisecond timestamp at which the
    snapshot was received; it is not part of the wire format.
    """

    exe: str = ""
    title: str = ""
    class_name: str = ""
    process_name: str = ""
    is_fullscreen: bool = False
    is_real_fullscreen: bool = False
    is_maximized: bool = False
    is_borderless: bool = False
    is_task_view_like: bool = False
    captured_at: float = 0.0

    @property
    def is_empty(self) -> bool:
        """True when the probe produced no usable data."""
        return not (self.exe or self.title or self.class_name or self.process_name)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        captured_at: float = 0.0,
    ) -> "ForegroundInfo":
        """Build from a decoded STATUS object; unknown keys are ignored."""
        return cls(
            exe=str(data.get("exe") or ""),
            title=str(data.get("title") or ""),
            class_name=str(data.get("className") or ""),
            process_name=str(data.get("processName") or ""),
            is_fullscreen=_as_bool(data.get("isFullscreen", False)),
            is_real_fullscreen=_as_bool(data.get("isRealFullscreen", False)),
            is_maximized=_as_bool(data.get("isMaximized", False)),
            is_borderless=_as_bool(data.get("isBorderless", False)),
            is_task_view_like=_as_bool(data.get("isTaskViewLike", False)),
            captured_at=captured_at,
        )

    @classmethod
    def from_json(cls, line: str, captured_at: float = 0.0) -> "ForegroundInfo":
        """Parse one STATUS response line; malformed input yields an empty info."""
        try:
            data = json.loads(line or "{}")
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return cls.from_mapping(data, captured_at=captured_at)

    def to_wire(self) -> dict[str, Any]:
        """Encode with the camelCase keys of the worker protocol."""
        return {
            "exe": self.exe,
            "title": self.title,
            "className": self.class_name,
            "processName": self.process_name,
            "isFullscreen": self.is_fullscreen,
            "isRealFullscreen": self.is_real_fullscreen,
            "isMaximized": self.is_maximized,
            "isBorderless": self.is_borderless,
            "isTaskViewLike": self.is_task_view_like,
        }


@dataclass(frozen=True)
class SuppressionDecision:
    """Derived suppression state for the latest foreground snapshot."""

    suppressed: bool = False
    classification: Classification = Classification.NORMAL
    excluded: bool = False
    real_fullscreen: bool = False
    info_captured_at: float = 0.0

    @property
    def task_view_like(self) -> bool:
        return self.classification is Classification.TASK_VIEW_LIKE


@dataclass(frozen=True)
class HotCornerConfig:
    """Validated snapshot of the stored user preferences."""

    display_id: str = DEFAULT_DISPLAY_ID
    corner: Corner = Corner(DEFAULT_CORNER)
    speed: SpeedPreset = SPEED_PRESETS[DEFAULT_SPEED]
    disable_on_fullscreen: bool = DEFAULT_DISABLE_ON_FULLSCREEN
    excluded_programs: tuple[str, ...] = field(default_factory=tuple)

    @property
    def monitors_foreground(self) -> bool:
        """Foreground probing is only needed when something can suppress."""
        return self.disable_on_fullscreen or bool(self.excluded_programs)
