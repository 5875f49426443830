"""System tray menu for HotCorner.

The menu never touches engine state: every action emits a command object
through ``command_requested`` and the menu is rebuilt from the
configuration the engine announces.
"""

from functools import partial
from typing import Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from hotcorner.core.commands import (
    ClearExclusions,
    ExcludeFocusedApp,
    RemoveExclusion,
    SetCorner,
    SetDisplay,
    SetSpeed,
    ToggleFullscreenSuppression,
)
from hotcorner.core.constants import DEFAULT_DISPLAY_ID
from hotcorner.core.model import SPEED_PRESETS, Corner, DisplayInfo, HotCornerConfig


class TrayMenu(QObject):
    """Tray icon plus its context menu.

    Signals:
        command_requested: A menu entry produced an engine command
        quit_requested: The user picked Quit
    """

    command_requested = Signal(object)
    quit_requested = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)

        self._menu = QMenu()
        self._submenus: dict[str, QMenu] = {}
        self._tray = QSystemTrayIcon(self)
        app = QApplication.instance()
        if app is not None:
            self._tray.setIcon(app.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon))
        self._tray.setToolTip("HotCorner")
        self._tray.setContextMenu(self._menu)

    @property
    def menu(self) -> QMenu:
        return self._menu

    def submenu(self, title: str) -> Optional[QMenu]:
        return self._submenus.get(title)

    def show(self) -> None:
        self._tray.show()

    def hide(self) -> None:
        self._tray.hide()

    def show_message(self, title: str, text: str) -> None:
        """Show a balloon next to the tray icon."""
        if self._tray.isVisible() and QSystemTrayIcon.supportsMessages():
            self._tray.showMessage(title, text, QSystemTrayIcon.MessageIcon.Information)

    def rebuild(self, config: HotCornerConfig, displays: list[DisplayInfo]) -> None:
        """Re-render every entry from the current configuration."""
        # Submenus own their menu actions, so clear() alone would leak them
        for submenu in self._submenus.values():
            submenu.deleteLater()
        self._submenus = {}
        self._menu.clear()
        self._tray.setToolTip(f"HotCorner: {config.corner.label}")

        title = self._menu.addAction("HotCorner")
        title.setEnabled(False)
        self._menu.addSeparator()

        self._add_corner_menu(config)
        self._add_display_menu(config, displays)
        self._add_speed_menu(config)

        fullscreen = self._menu.addAction("Disable in full-screen apps")
        fullscreen.setCheckable(True)
        fullscreen.setChecked(config.disable_on_fullscreen)
        fullscreen.toggled.connect(
            lambda checked: self._emit(ToggleFullscreenSuppression(bool(checked)))
        )

        self._add_exclusion_menu(config)

        self._menu.addSeparator()
        quit_action = self._menu.addAction("Quit")
        quit_action.triggered.connect(lambda *_: self.quit_requested.emit())

    def _emit(self, command: object, *_args: object) -> None:
        # triggered/toggled pass the checked state, which is ignored
        self.command_requested.emit(command)

    def _add_choice(
        self,
        menu: QMenu,
        group: QActionGroup,
        label: str,
        checked: bool,
        command: object,
    ) -> QAction:
        action = menu.addAction(label)
        action.setCheckable(True)
        action.setChecked(checked)
        group.addAction(action)
        action.triggered.connect(partial(self._emit, command))
        return action

    def _add_submenu(self, title: str) -> QMenu:
        menu = self._menu.addMenu(title)
        self._submenus[title] = menu
        return menu

    def _add_corner_menu(self, config: HotCornerConfig) -> None:
        menu = self._add_submenu("Corner")
        group = QActionGroup(menu)
        for corner in Corner:
            self._add_choice(
                menu, group, corner.label, corner is config.corner, SetCorner(corner.value)
            )

    def _add_display_menu(self, config: HotCornerConfig, displays: list[DisplayInfo]) -> None:
        menu = self._add_submenu("Display")
        group = QActionGroup(menu)
        ids = {display.id for display in displays}
        # A stored id that is gone falls back to the primary display
        on_primary = config.display_id == DEFAULT_DISPLAY_ID or config.display_id not in ids
        self._add_choice(
            menu, group, "Primary display", on_primary, SetDisplay(DEFAULT_DISPLAY_ID)
        )
        if displays:
            menu.addSeparator()
        for display in displays:
            label = display.label + (" [primary]" if display.is_primary else "")
            self._add_choice(
                menu,
                group,
                label,
                not on_primary and display.id == config.display_id,
                SetDisplay(display.id),
            )

    def _add_speed_menu(self, config: HotCornerConfig) -> None:
        menu = self._add_submenu("Detection speed")
        group = QActionGroup(menu)
        for preset in SPEED_PRESETS.values():
            self._add_choice(
                menu, group, preset.label, preset.key == config.speed.key, SetSpeed(preset.key)
            )

    def _add_exclusion_menu(self, config: HotCornerConfig) -> None:
        menu = self._add_submenu("Excluded programs")
        menu.addAction("Exclude focused app").triggered.connect(
            partial(self._emit, ExcludeFocusedApp())
        )
        menu.addSeparator()

        if not config.excluded_programs:
            empty = menu.addAction("(none)")
            empty.setEnabled(False)
            return

        for program in config.excluded_programs:
            menu.addAction(f"Remove {program}").triggered.connect(
                partial(self._emit, RemoveExclusion(program))
            )
        menu.addSeparator()
        menu.addAction("Clear all").triggered.connect(partial(self._emit, ClearExclusions()))

