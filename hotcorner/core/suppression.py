"""Suppression policy and task-view classification.

Decides whether a corner trigger should be suppressed for the current
foreground window. All functions here are pure: they take a snapshot and
the configuration and do no I/O.

The trigger action opens a full-screen switching surface (Task View on
Windows) that looks like a real full-screen app. Snapshots classified as
task-view-like bypass suppression so revisiting the corner dismisses it.
"""

import ntpath
from typing import Iterable

from .constants import (
    SHELL_PROCESS_NAMES,
    SHELL_SURFACE_CLASS_MARKERS,
    SWITCHER_CLASS_MARKERS,
    TASK_VIEW_RECENCY_MS,
    TASK_VIEW_TITLE_MARKERS,
)
from .model import Classification, ForegroundInfo, HotCornerConfig, SuppressionDecision


def _basename(path: str) -> str:
    # ntpath splits on both "\\" and "/"
    return ntpath.basename(path)


def process_basename(info: ForegroundInfo) -> str:
    """Lower-cased executable name of the foreground process."""
    name = info.process_name or _basename(info.exe)
    name = name.strip().lower()
    if name and "." not in name:
        name += ".exe"
    return name


def is_shell_process(info: ForegroundInfo) -> bool:
    """Check if the foreground window belongs to the desktop shell."""
    return process_basename(info) in SHELL_PROCESS_NAMES


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    lowered = text.lower()
    return bool(lowered) and any(marker in lowered for marker in markers)


def looks_like_switcher(class_name: str, title: str, process_name: str) -> bool:
    """Marker-only check used by the probe to set ``isTaskViewLike``.

    Args:
        class_name: Window class of the foreground window
        title: Window title
        process_name: Owning process executable name or path

    Returns:
        True for known window switching surfaces
    """
    if _contains_any(class_name, SWITCHER_CLASS_MARKERS):
        return True
    shell = _basename(process_name).lower() in SHELL_PROCESS_NAMES
    return shell and (
        _contains_any(class_name, SHELL_SURFACE_CLASS_MARKERS)
        or _contains_any(title, TASK_VIEW_TITLE_MARKERS)
    )


def classify(
    info: ForegroundInfo,
    now_ms: float,
    last_trigger_ms: float,
) -> Classification:
    """Classify a foreground snapshot as normal or task-view-like.

    The predicate is the union of every heuristic known to identify the
    switching surface; none of them is authoritative on its own.

    Args:
        info: Latest foreground snapshot
        now_ms: Current monotonic time in milliseconds
        last_trigger_ms: Monotonic time of the last fired trigger (0 if never)

    Returns:
        Classification.TASK_VIEW_LIKE or Classification.NORMAL
    """
    if info.is_task_view_like:
        return Classification.TASK_VIEW_LIKE

    shell = is_shell_process(info)
    if shell and (
        _contains_any(info.class_name, SHELL_SURFACE_CLASS_MARKERS)
        or _contains_any(info.title, TASK_VIEW_TITLE_MARKERS)
    ):
        return Classification.TASK_VIEW_LIKE

    if _contains_any(info.class_name, SWITCHER_CLASS_MARKERS):
        return Classification.TASK_VIEW_LIKE

    recently_triggered = (
        last_trigger_ms > 0 and 0 <= now_ms - last_trigger_ms <= TASK_VIEW_RECENCY_MS
    )
    if recently_triggered and shell and info.is_real_fullscreen:
        return Classification.TASK_VIEW_LIKE

    return Classification.NORMAL


def is_excluded(info: ForegroundInfo, excluded_programs: Iterable[str]) -> bool:
    """Case-insensitive match of the foreground exe against the exclusion list.

    Each entry may be a full path or a bare executable name; it matches
    either the full path or the basename of the foreground executable.
    """
    exe = info.exe.strip().lower()
    if not exe:
        return False
    basename = _basename(exe)
    for entry in excluded_programs:
        normalized = str(entry or "").strip().lower()
        if normalized and normalized in (exe, basename):
            return True
    return False


def decide(
    info: ForegroundInfo,
    config: HotCornerConfig,
    now_ms: float,
    last_trigger_ms: float,
) -> SuppressionDecision:
    """Derive the suppression decision for one snapshot.

    ``suppressed = (disable_on_fullscreen and real full-screen) or excluded``,
    bypassed entirely while the foreground is task-view-like.
    """
    if not config.monitors_foreground:
        return SuppressionDecision(info_captured_at=info.captured_at)

    classification = classify(info, now_ms, last_trigger_ms)
    excluded = is_excluded(info, config.excluded_programs)
    real_fullscreen = config.disable_on_fullscreen and info.is_real_fullscreen
    suppressed = (real_fullscreen or excluded) and classification is Classification.NORMAL

    return SuppressionDecision(
        suppressed=suppressed,
        classification=classification,
        excluded=excluded,
        real_fullscreen=real_fullscreen,
        info_captured_at=info.captured_at,
    )


def describe(decision: SuppressionDecision) -> str:
    """Short reason string for log messages."""
    if decision.task_view_like:
        return "task view in foreground"
    if decision.excluded:
        return "excluded program"
    if decision.real_fullscreen:
        return "full-screen application"
    return "no blocking window"
