"""UI components for HotCorner.

This package provides the PySide6 tray menu:
- TrayMenu: Tray icon whose menu emits engine commands
"""

from .tray import TrayMenu

__all__ = [
    "TrayMenu",
]
