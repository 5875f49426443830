"""Windows DPI awareness setup for the worker process.

The foreground probe compares GetWindowRect against GetMonitorInfo. Both
must be in physical pixels, otherwise a full-screen window on a scaled
monitor appears larger or smaller than its monitor. Call this once at
worker startup, before any user32 geometry query.
"""

import ctypes
from typing import Final

DPI_AWARENESS_CONTEXT_PER_MONITOR_AWARE_V2: Final[int] = -4
PROCESS_PER_MONITOR_DPI_AWARE: Final[int] = 2
ERROR_ACCESS_DENIED: Final[int] = 5


def setup_dpi_awareness() -> tuple[bool, str]:
    """Set per-monitor DPI awareness for the current process.

    Returns:
        Tuple of (success, warning_message). Awareness that was already
        set (ERROR_ACCESS_DENIED) counts as success.
    """
    try:
        user32 = ctypes.windll.user32
        user32.SetProcessDpiAwarenessContext.argtypes = [ctypes.c_void_p]
        user32.SetProcessDpiAwarenessContext.restype = ctypes.c_bool

        if user32.SetProcessDpiAwarenessContext(
            ctypes.c_void_p(DPI_AWARENESS_CONTEXT_PER_MONITOR_AWARE_V2)
        ):
            return True, ""

        if ctypes.windll.kernel32.GetLastError() == ERROR_ACCESS_DENIED:
            return True, ""
        return False, "DPI awareness could not be set; full-screen detection may be off on scaled displays"

    except AttributeError:
        # Windows 8.1 API
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(PROCESS_PER_MONITOR_DPI_AWARE)
            return True, ""
        except (AttributeError, OSError) as e:
            return False, f"DPI awareness unavailable: {e}"

    except OSError as e:
        return False, f"DPI setup failed: {e}"
