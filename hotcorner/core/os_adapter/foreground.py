"""Foreground window inspection.

Runs inside the worker process and answers STATUS queries. On Windows the
foreground window's geometry, style, placement and class are read through
user32, and the owning process through psutil. Other platforms report an
empty object, which the engine treats as "nothing to suppress".
"""

import ctypes
import ntpath
from typing import Any, Final

import psutil

from ..suppression import looks_like_switcher
from . import IS_WINDOWS

# Window style bits
GWL_STYLE: Final[int] = -16
WS_CAPTION: Final[int] = 0x00C00000
WS_POPUP: Final[int] = 0x80000000
WS_THICKFRAME: Final[int] = 0x00040000
WS_OVERLAPPEDWINDOW: Final[int] = 0x00CF0000

MONITOR_DEFAULTTONEAREST: Final[int] = 2
SW_SHOWMAXIMIZED: Final[int] = 3

if IS_WINDOWS:
    from ctypes import wintypes

    class MONITORINFO(ctypes.Structure):
        """Windows MONITORINFO structure."""

        _fields_ = [
            ("cbSize", wintypes.DWORD),
            ("rcMonitor", wintypes.RECT),
            ("rcWork", wintypes.RECT),
            ("dwFlags", wintypes.DWORD),
        ]

    class WINDOWPLACEMENT(ctypes.Structure):
        """Windows WINDOWPLACEMENT structure."""

        _fields_ = [
            ("length", wintypes.UINT),
            ("flags", wintypes.UINT),
            ("showCmd", wintypes.UINT),
            ("ptMinPosition", wintypes.POINT),
            ("ptMaxPosition", wintypes.POINT),
            ("rcNormalPosition", wintypes.RECT),
        ]


def classify_window(
    win_width: int,
    win_height: int,
    mon_width: int,
    mon_height: int,
    style: int,
    maximized: bool,
) -> dict[str, bool]:
    """Derive the full-screen flags from geometry and window style.

    A window is "real" full-screen when it covers its monitor, is styled
    like an exclusive surface (borderless, popup, or not a regular
    overlapped window) and is not simply maximized.
    """
    covers = win_width >= mon_width and win_height >= mon_height
    has_caption = bool(style & WS_CAPTION)
    has_popup = bool(style & WS_POPUP)
    has_thick_frame = bool(style & WS_THICKFRAME)
    overlapped = (style & WS_OVERLAPPEDWINDOW) == WS_OVERLAPPEDWINDOW
    borderless = not has_caption and not has_thick_frame
    real = covers and (borderless or has_popup or not overlapped) and not maximized
    return {
        "isFullscreen": covers,
        "isRealFullscreen": real,
        "isMaximized": maximized,
        "isBorderless": borderless,
    }


def _window_text(user32: Any, hwnd: int) -> str:
    length = user32.GetWindowTextLengthW(hwnd)
    if length <= 0:
        return ""
    buffer = ctypes.create_unicode_buffer(length + 1)
    user32.GetWindowTextW(hwnd, buffer, length + 1)
    return buffer.value


def _class_name(user32: Any, hwnd: int) -> str:
    buffer = ctypes.create_unicode_buffer(256)
    user32.GetClassNameW(hwnd, buffer, 256)
    return buffer.value


def _process_path(pid: int) -> tuple[str, str]:
    try:
        process = psutil.Process(pid)
        name = process.name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return "", ""
    try:
        exe = process.exe()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        exe = ""
    return exe, name or ntpath.basename(exe)


def get_foreground_info() -> dict[str, Any]:
    """Describe the current foreground window.

    Returns:
        Dict with the STATUS wire keys, or {} when there is no foreground
        window or the platform is not Windows
    """
    if not IS_WINDOWS:
        return {}

    user32 = ctypes.windll.user32
    hwnd = user32.GetForegroundWindow()
    if not hwnd:
        return {}

    rect = wintypes.RECT()
    user32.GetWindowRect(hwnd, ctypes.byref(rect))

    info = MONITORINFO()
    info.cbSize = ctypes.sizeof(MONITORINFO)
    monitor = user32.MonitorFromWindow(hwnd, MONITOR_DEFAULTTONEAREST)
    user32.GetMonitorInfoW(monitor, ctypes.byref(info))

    get_long = getattr(user32, "GetWindowLongPtrW", user32.GetWindowLongW)
    get_long.restype = ctypes.c_ssize_t
    style = int(get_long(hwnd, GWL_STYLE)) & 0xFFFFFFFF

    placement = WINDOWPLACEMENT()
    placement.length = ctypes.sizeof(WINDOWPLACEMENT)
    maximized = bool(user32.GetWindowPlacement(hwnd, ctypes.byref(placement))) and (
        placement.showCmd == SW_SHOWMAXIMIZED
    )

    pid = wintypes.DWORD()
    user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
    exe, process_name = _process_path(pid.value)
    title = _window_text(user32, hwnd)
    class_name = _class_name(user32, hwnd)

    flags = classify_window(
        rect.right - rect.left,
        rect.bottom - rect.top,
        info.rcMonitor.right - info.rcMonitor.left,
        info.rcMonitor.bottom - info.rcMonitor.top,
        style,
        maximized,
    )
    return {
        "exe": exe,
        "title": title,
        "className": class_name,
        "processName": process_name,
        **flags,
        "isTaskViewLike": looks_like_switcher(class_name, title, process_name),
    }
