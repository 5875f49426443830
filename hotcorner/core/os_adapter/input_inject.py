"""Native keyboard injection for the corner action.

Runs inside the worker process. The action opens the system's window
switching surface: Win+Tab (Task View) on Windows, Ctrl+Up (Mission
Control) on macOS, and a Super tap (Activities overview) elsewhere.
"""

import time
from typing import Optional

from pynput.keyboard import Controller as KeyboardController
from pynput.keyboard import Key

from . import IS_MACOS, IS_WINDOWS

# Reused across TRIGGER commands in a long-lived worker
_keyboard: Optional[KeyboardController] = None


def _get_keyboard() -> KeyboardController:
    """Get or create the keyboard controller singleton."""
    global _keyboard
    if _keyboard is None:
        _keyboard = KeyboardController()
    return _keyboard


def send_task_view() -> None:
    """Send Win+Tab."""
    keyboard = _get_keyboard()
    with keyboard.pressed(Key.cmd):
        keyboard.press(Key.tab)
        keyboard.release(Key.tab)


def send_mission_control() -> None:
    """Send Ctrl+Up."""
    keyboard = _get_keyboard()
    with keyboard.pressed(Key.ctrl):
        keyboard.press(Key.up)
        keyboard.release(Key.up)


def send_overview() -> None:
    """Tap the Super key."""
    keyboard = _get_keyboard()
    keyboard.press(Key.cmd)
    time.sleep(0.01)
    keyboard.release(Key.cmd)


def perform_corner_action() -> None:
    """Perform the platform's window switching shortcut."""
    if IS_WINDOWS:
        send_task_view()
    elif IS_MACOS:
        send_mission_control()
    else:
        send_overview()
