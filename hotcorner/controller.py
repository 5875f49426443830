"""Application controller that wires the tray menu to the engine.

Handles the signal connections between TrayMenu and HotCornerEngine,
display-change notifications and shutdown.
"""

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Slot
from PySide6.QtGui import QGuiApplication, QScreen

from hotcorner.core.engine import HotCornerEngine
from hotcorner.core.logging import get_logger
from hotcorner.core.model import HotCornerConfig
from hotcorner.ui.tray import TrayMenu


class ApplicationController(QObject):
    """Controller that connects the tray menu to the engine.

    Responsibilities:
    - Forward menu commands to ``HotCornerEngine.dispatch``
    - Rebuild the menu when the configuration or the display set changes
    - Shut the engine down on quit
    """

    def __init__(
        self,
        engine: HotCornerEngine,
        tray: TrayMenu,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            engine: The hot corner engine
            tray: Tray menu
            parent: Parent QObject
        """
        super().__init__(parent)

        self._engine = engine
        self._tray = tray
        self._logger = get_logger()

        # Rebuilding from inside a menu action would delete the sender
        self._rebuild_timer = QTimer(self)
        self._rebuild_timer.setSingleShot(True)
        self._rebuild_timer.setInterval(0)
        self._rebuild_timer.timeout.connect(self.rebuild_menu)

        self._connect_signals()

    def _connect_signals(self) -> None:
        # Tray -> Controller -> Engine
        self._tray.command_requested.connect(self._on_command)
        self._tray.quit_requested.connect(self._on_quit_requested)

        # Engine -> Controller -> Tray
        self._engine.config_changed.connect(self._on_config_changed)

        app = QGuiApplication.instance()
        if app is not None:
            app.screenAdded.connect(self._on_screens_changed)
            app.screenRemoved.connect(self._on_screens_changed)
            app.aboutToQuit.connect(self._engine.shutdown)

    def start(self) -> None:
        """Show the tray and start the engine."""
        self.rebuild_menu()
        self._tray.show()
        self._engine.start()

    @Slot()
    def rebuild_menu(self) -> None:
        self._tray.rebuild(self._engine.config, self._engine.displays())

    @Slot()
    def notify_already_running(self) -> None:
        self._tray.show_message("Already running", "HotCorner is already running in the background.")

    @Slot(object)
    def _on_command(self, command: object) -> None:
        self._engine.dispatch(command)

    @Slot(object)
    def _on_config_changed(self, config: HotCornerConfig) -> None:
        self._rebuild_timer.start()

    @Slot(QScreen)
    def _on_screens_changed(self, screen: QScreen) -> None:
        self._logger.info(f"Display set changed ({screen.name()})", source="controller")
        self._rebuild_timer.start()

    @Slot()
    def _on_quit_requested(self) -> None:
        self._engine.shutdown()
        self._tray.hide()
        app = QGuiApplication.instance()
        if app is not None:
            app.quit()
