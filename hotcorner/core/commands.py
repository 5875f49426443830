"""UI commands consumed by the engine.

Menu actions are turned into these messages instead of mutating engine
state directly; the engine applies them and announces the new
configuration.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class SetCorner:
    corner: str


@dataclass(frozen=True)
class SetDisplay:
    display_id: str


@dataclass(frozen=True)
class SetSpeed:
    speed: str


@dataclass(frozen=True)
class ToggleFullscreenSuppression:
    """Flip the flag, or force it when ``enabled`` is given."""

    enabled: Optional[bool] = None


@dataclass(frozen=True)
class AddExclusion:
    program: str


@dataclass(frozen=True)
class RemoveExclusion:
    program: str


@dataclass(frozen=True)
class ClearExclusions:
    pass


@dataclass(frozen=True)
class ExcludeFocusedApp:
    """Probe the foreground window and exclude its executable."""


Command = Union[
    SetCorner,
    SetDisplay,
    SetSpeed,
    ToggleFullscreenSuppression,
    AddExclusion,
    RemoveExclusion,
    ClearExclusions,
    ExcludeFocusedApp,
]
