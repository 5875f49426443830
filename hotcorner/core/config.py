"""User preference access.

The preference store itself is an external key-value collaborator; this
module only defines the contract, two small adapters, and the validation
that maps whatever is stored onto the closed corner/speed enumerations.
"""

from typing import Any, Iterable, Optional, Protocol

from .constants import (
    DEFAULT_CORNER,
    DEFAULT_DISABLE_ON_FULLSCREEN,
    DEFAULT_DISPLAY_ID,
    DEFAULT_SPEED,
)
from .model import SPEED_PRESETS, Corner, HotCornerConfig, SpeedPreset

# Stored keys
KEY_DISPLAY_ID = "displayId"
KEY_CORNER = "corner"
KEY_SPEED = "detectionSpeed"
KEY_DISABLE_ON_FULLSCREEN = "disableOnFullscreen"
KEY_EXCLUDED_PROGRAMS = "excludedPrograms"


class CornerConfigError(ValueError):
    """Raised when a command names a corner or speed outside the known set."""


class SettingsStore(Protocol):
    """Flat key-value preference store."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Dict-backed store, used in tests and as a fallback."""

    def __init__(self, values: Optional[dict[str, Any]] = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class QSettingsStore:
    """Store backed by Qt's native settings (registry / plist / ini)."""

    def __init__(
        self,
        organization: str = "HotCorner",
        application: str = "preferences",
    ) -> None:
        from PySide6.QtCore import QSettings

        self._settings = QSettings(organization, application)

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        # QSettings stores an empty list as an invalid variant
        if isinstance(value, (list, tuple)) and not value:
            self._settings.remove(key)
        else:
            self._settings.setValue(key, list(value) if isinstance(value, tuple) else value)
        self._settings.sync()


def resolve_corner(value: Any) -> Corner:
    """Map a stored corner key to a Corner, defaulting to top-left."""
    return Corner.parse(value) or Corner(DEFAULT_CORNER)


def resolve_speed(value: Any) -> SpeedPreset:
    """Map a stored speed key to a preset, defaulting to fast."""
    return SPEED_PRESETS.get(str(value), SPEED_PRESETS[DEFAULT_SPEED])


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return default


def _coerce_programs(value: Any) -> tuple[str, ...]:
    # QSettings hands back a bare string for one-element lists
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        return ()
    programs: list[str] = []
    for entry in value:
        text = str(entry or "").strip()
        if text and text not in programs:
            programs.append(text)
    return tuple(programs)


def load_config(store: SettingsStore) -> HotCornerConfig:
    """Read and validate all preferences, applying defaults to bad values."""
    raw_display = store.get(KEY_DISPLAY_ID, DEFAULT_DISPLAY_ID)
    display_id = str(raw_display).strip() if raw_display is not None else ""

    return HotCornerConfig(
        display_id=display_id or DEFAULT_DISPLAY_ID,
        corner=resolve_corner(store.get(KEY_CORNER, DEFAULT_CORNER)),
        speed=resolve_speed(store.get(KEY_SPEED, DEFAULT_SPEED)),
        disable_on_fullscreen=_coerce_bool(
            store.get(KEY_DISABLE_ON_FULLSCREEN, DEFAULT_DISABLE_ON_FULLSCREEN),
            DEFAULT_DISABLE_ON_FULLSCREEN,
        ),
        excluded_programs=_coerce_programs(store.get(KEY_EXCLUDED_PROGRAMS, [])),
    )


def save_config(store: SettingsStore, config: HotCornerConfig) -> None:
    """Write every preference back to the store."""
    store.set(KEY_DISPLAY_ID, config.display_id)
    store.set(KEY_CORNER, config.corner.value)
    store.set(KEY_SPEED, config.speed.key)
    store.set(KEY_DISABLE_ON_FULLSCREEN, config.disable_on_fullscreen)
    store.set(KEY_EXCLUDED_PROGRAMS, list(config.excluded_programs))
