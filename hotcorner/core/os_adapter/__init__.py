"""Platform-specific adapters.

This module provides the host windowing services the engine consumes:
- Platform detection flags
- Display enumeration (Qt screens, with an mss fallback)
- Pointer position (Qt cursor, with a pynput fallback)

Native input injection, foreground window inspection and DPI setup live in
submodules that only the worker process imports.
"""

import sys
from typing import Optional

from ..model import DisplayBounds, DisplayInfo, Point

# Platform detection
IS_WINDOWS: bool = sys.platform == "win32"
IS_MACOS: bool = sys.platform == "darwin"
IS_LINUX: bool = sys.platform.startswith("linux")


def _qt_gui_available() -> bool:
    try:
        from PySide6.QtGui import QGuiApplication
    except ImportError:
        return False
    return QGuiApplication.instance() is not None


def list_displays() -> list[DisplayInfo]:
    """Enumerate connected displays.

    Returns:
        One DisplayInfo per monitor, the primary flagged. Qt screens are
        used when a GUI application exists; otherwise mss monitors, where
        the first monitor is taken as primary.
    """
    if _qt_gui_available():
        from PySide6.QtGui import QGuiApplication

        primary = QGuiApplication.primaryScreen()
        displays = []
        for index, screen in enumerate(QGuiApplication.screens()):
            geom = screen.geometry()
            size = f"{geom.width()}x{geom.height()}"
            displays.append(
                DisplayInfo(
                    id=screen.name() or str(index),
                    label=f"{screen.name() or f'Display {index + 1}'} ({size})",
                    bounds=DisplayBounds(geom.x(), geom.y(), geom.width(), geom.height()),
                    is_primary=screen is primary,
                )
            )
        if displays:
            return displays

    try:
        import mss

        with mss.mss() as sct:
            # monitors[0] is the combined virtual screen
            return [
                DisplayInfo(
                    id=str(index),
                    label=f"Display {index} ({mon['width']}x{mon['height']})",
                    bounds=DisplayBounds(mon["left"], mon["top"], mon["width"], mon["height"]),
                    is_primary=index == 1,
                )
                for index, mon in enumerate(sct.monitors[1:], start=1)
            ]
    except Exception:
        return []


def resolve_display(
    display_id: str,
    displays: list[DisplayInfo],
) -> Optional[DisplayInfo]:
    """Find the targeted display, falling back to the primary one.

    Args:
        display_id: "primary" or a concrete display id
        displays: Current enumeration

    Returns:
        The matching display, the primary display, the first display, or
        None when nothing is connected
    """
    if not displays:
        return None
    if display_id != "primary":
        for display in displays:
            if display.id == str(display_id):
                return display
    for display in displays:
        if display.is_primary:
            return display
    return displays[0]


def get_cursor_position() -> Point:
    """Current pointer position in the same space as ``list_displays()``."""
    if _qt_gui_available():
        from PySide6.QtGui import QCursor

        pos = QCursor.pos()
        return Point(pos.x(), pos.y())

    from pynput.mouse import Controller

    x, y = Controller().position
    return Point(int(x), int(y))


class QtDesktop:
    """Display and pointer source bound to the running Qt application."""

    def displays(self) -> list[DisplayInfo]:
        return list_displays()

    def cursor(self) -> Point:
        return get_cursor_position()


__all__ = [
    "IS_WINDOWS",
    "IS_MACOS",
    "IS_LINUX",
    "QtDesktop",
    "get_cursor_position",
    "list_displays",
    "resolve_display",
]
