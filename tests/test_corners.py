"""Tests for corner geometry and the data models.

Verifies that:
- Each corner predicate only accepts points within the edge threshold
- The near-corner box is twice the edge threshold
- Display containment includes the right and bottom edges
- Foreground snapshots parse the camelCase wire keys and tolerate junk
"""

import pytest

from hotcorner.core.constants import EDGE_THRESHOLD_PX, NEAR_CORNER_THRESHOLD_PX
from hotcorner.core.model import (
    SPEED_PRESETS,
    Corner,
    DisplayBounds,
    ForegroundInfo,
    HotCornerConfig,
    Point,
)

BOUNDS = DisplayBounds(0, 0, 1920, 1080)
OFFSET = DisplayBounds(-1280, 200, 1280, 1024)


class TestCornerPredicates:
    """Test the per-corner proximity predicates."""

    @pytest.mark.parametrize(
        "corner,inside,outside",
        [
            (Corner.TOP_LEFT, Point(2, 2), Point(31, 2)),
            (Corner.TOP_RIGHT, Point(1918, 3), Point(1918, 31)),
            (Corner.BOTTOM_LEFT, Point(0, 1080), Point(40, 1080)),
            (Corner.BOTTOM_RIGHT, Point(1900, 1060), Point(1889, 1060)),
        ],
    )
    def test_inside_and_outside(self, corner: Corner, inside: Point, outside: Point) -> None:
        """Points within the threshold match, points beyond it do not."""
        assert corner.contains(inside, BOUNDS)
        assert not corner.contains(outside, BOUNDS)

    def test_threshold_is_inclusive(self) -> None:
        """A point exactly on the threshold still counts as in the corner."""
        edge = Point(EDGE_THRESHOLD_PX, EDGE_THRESHOLD_PX)
        assert Corner.TOP_LEFT.contains(edge, BOUNDS)
        assert not Corner.TOP_LEFT.contains(Point(EDGE_THRESHOLD_PX + 1, 0), BOUNDS)

    def test_other_corners_do_not_match(self) -> None:
        """The top-left point belongs to no other corner."""
        point = Point(1, 1)
        assert [c for c in Corner if c.contains(point, BOUNDS)] == [Corner.TOP_LEFT]

    def test_negative_origin_display(self) -> None:
        """Corners work on displays left of and below the primary."""
        assert Corner.TOP_LEFT.contains(Point(-1275, 205), OFFSET)
        assert Corner.BOTTOM_RIGHT.contains(Point(-5, 1220), OFFSET)
        assert not Corner.TOP_LEFT.contains(Point(5, 205), OFFSET)

    def test_target_points(self) -> None:
        assert Corner.TOP_LEFT.target(BOUNDS) == Point(0, 0)
        assert Corner.TOP_RIGHT.target(BOUNDS) == Point(1920, 0)
        assert Corner.BOTTOM_LEFT.target(BOUNDS) == Point(0, 1080)
        assert Corner.BOTTOM_RIGHT.target(BOUNDS) == Point(1920, 1080)


class TestNearCorner:
    """Test the near-corner box used for aggressive polling."""

    def test_near_box_is_twice_threshold(self) -> None:
        assert NEAR_CORNER_THRESHOLD_PX == 2 * EDGE_THRESHOLD_PX

    def test_near_but_not_in_corner(self) -> None:
        """A point 50 px away is near the corner but does not engage it."""
        point = Point(50, 50)
        assert Corner.TOP_LEFT.is_near(point, BOUNDS)
        assert not Corner.TOP_LEFT.contains(point, BOUNDS)

    def test_far_point(self) -> None:
        assert not Corner.TOP_LEFT.is_near(Point(61, 10), BOUNDS)
        assert not Corner.BOTTOM_RIGHT.is_near(Point(1800, 1000), BOUNDS)


class TestCornerParsing:
    """Test mapping of stored keys to corners."""

    def test_known_keys(self) -> None:
        for key in ("top-left", "top-right", "bottom-left", "bottom-right"):
            assert Corner.parse(key) is Corner(key)

    @pytest.mark.parametrize("value", ["middle", "", None, 3, "TOP-LEFT"])
    def test_unknown_keys(self, value: object) -> None:
        assert Corner.parse(value) is None

    def test_labels(self) -> None:
        assert Corner.BOTTOM_RIGHT.label == "Bottom right corner"


class TestDisplayBounds:
    """Test display containment."""

    def test_contains_edges(self) -> None:
        """Right and bottom edges are part of the display."""
        assert BOUNDS.contains_point(Point(1920, 1080))
        assert BOUNDS.contains_point(Point(0, 0))

    def test_outside(self) -> None:
        assert not BOUNDS.contains_point(Point(1921, 10))
        assert not BOUNDS.contains_point(Point(-1, 10))

    def test_right_bottom(self) -> None:
        assert OFFSET.right == 0
        assert OFFSET.bottom == 1224


class TestSpeedPresets:
    """Test the closed preset table."""

    def test_preset_values(self) -> None:
        expected = {
            "instant": (0, 0),
            "very-fast": (25, 650),
            "fast": (55, 900),
            "medium": (130, 1400),
            "slow": (220, 2000),
        }
        actual = {k: (p.interval_ms, p.cooldown_ms) for k, p in SPEED_PRESETS.items()}
        assert actual == expected

    def test_default_config(self) -> None:
        config = HotCornerConfig()
        assert config.corner is Corner.TOP_LEFT
        assert config.speed.key == "fast"
        assert config.display_id == "primary"
        assert config.disable_on_fullscreen is True
        assert config.monitors_foreground is True

    def test_monitoring_needs_flag_or_exclusions(self) -> None:
        assert not HotCornerConfig(disable_on_fullscreen=False).monitors_foreground
        assert HotCornerConfig(
            disable_on_fullscreen=False, excluded_programs=("game.exe",)
        ).monitors_foreground


class TestForegroundInfo:
    """Test parsing of STATUS response lines."""

    def test_parses_wire_keys(self) -> None:
        line = (
            '{"exe":"C:\\\\Games\\\\game.exe","title":"Game","className":"UnityWndClass",'
            '"processName":"game.exe","isFullscreen":true,"isRealFullscreen":true,'
            '"isMaximized":false,"isBorderless":true,"isTaskViewLike":false,"extra":1}'
        )
        info = ForegroundInfo.from_json(line, captured_at=42.0)

        assert info.exe == "C:\\Games\\game.exe"
        assert info.class_name == "UnityWndClass"
        assert info.process_name == "game.exe"
        assert info.is_real_fullscreen
        assert info.is_borderless
        assert not info.is_task_view_like
        assert info.captured_at == 42.0

    @pytest.mark.parametrize("line", ["", "{}", "not json", "[1, 2]", "null", '{"exe": '])
    def test_malformed_is_empty(self, line: str) -> None:
        """Anything unparseable behaves exactly like an empty response."""
        info = ForegroundInfo.from_json(line)
        assert info.is_empty
        assert not info.is_real_fullscreen

    def test_wire_keys_round_trip(self) -> None:
        info = ForegroundInfo(exe="a.exe", class_name="X", is_task_view_like=True)
        wire = info.to_wire()
        assert wire["className"] == "X"
        assert wire["isTaskViewLike"] is True
        assert "captured_at" not in wire
