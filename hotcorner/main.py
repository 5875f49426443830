"""HotCorner application entry point.

Creates the Qt application, the engine with its worker backend and the
tray menu, then runs the event loop. The tray process itself never calls
native input or window APIs; those run in ``hotcorner.worker_host``.

Usage:
    hotcorner [--verbose]
"""

import sys
from typing import Optional, Sequence

from hotcorner.core.logging import LogEntry, get_logger


def _print_entry(entry: LogEntry) -> None:
    print(entry.format(), file=sys.stderr, flush=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = list(sys.argv if argv is None else argv)
    logger = get_logger()
    if "--verbose" in args:
        logger.buffer.add_listener(_print_entry)

    from PySide6.QtWidgets import QApplication, QSystemTrayIcon

    app = QApplication(args)
    app.setApplicationName("HotCorner")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("HotCorner")
    # Tray-only application: closing a dialog must not end the process
    app.setQuitOnLastWindowClosed(False)

    from hotcorner.single_instance import SingleInstanceManager

    instance = SingleInstanceManager(logger=logger)
    if not instance.acquire():
        return 0

    if not QSystemTrayIcon.isSystemTrayAvailable():
        logger.warning("No system tray available; running without a menu", source="main")

    from hotcorner.controller import ApplicationController
    from hotcorner.core.backend import WorkerBackend
    from hotcorner.core.config import QSettingsStore
    from hotcorner.core.engine import HotCornerEngine
    from hotcorner.core.os_adapter import QtDesktop
    from hotcorner.ui.tray import TrayMenu

    backend = WorkerBackend(logger=logger)
    engine = HotCornerEngine(QSettingsStore(), backend, QtDesktop(), logger=logger)
    tray = TrayMenu()
    controller = ApplicationController(engine, tray)
    instance.activated.connect(controller.notify_already_running)
    app.aboutToQuit.connect(instance.release)
    controller.start()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
