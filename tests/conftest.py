"""Shared fixtures: fake clock, timer, backend and desktop, plus a Qt app.

The fakes implement the same interfaces as the real Qt-backed pieces so
engine behavior can be driven tick by tick without spawning processes.
"""

import os
import sys
import textwrap
import time
from pathlib import Path
from typing import Callable, Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication, QElapsedTimer, QEventLoop  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from hotcorner.core.logging import LogBuffer, Logger  # noqa: E402
from hotcorner.core.model import DisplayBounds, DisplayInfo, ForegroundInfo, Point  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock in milliseconds."""

    def __init__(self, start: float = 10_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


class FakeTimer:
    """SingleShotTimer that only fires when the test says so."""

    def __init__(self) -> None:
        self.delay: Optional[int] = None
        self.callback: Optional[Callable[[], None]] = None
        self.history: list[int] = []

    @property
    def armed(self) -> bool:
        return self.callback is not None

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.delay = delay_ms
        self.callback = callback
        self.history.append(delay_ms)

    def cancel(self) -> None:
        self.delay = None
        self.callback = None

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        assert callback is not None, "timer not armed"
        callback()


class FakeBackend:
    """In-memory DesktopBackend.

    Probe callbacks are parked until ``answer()`` unless ``auto_info`` is
    set, in which case they are answered immediately.
    """

    def __init__(self) -> None:
        self.running = False
        self.probe_enabled = False
        self.probe_toggles: list[bool] = []
        self.actions = 0
        self.probes = 0
        self.pending: list[Callable[[ForegroundInfo], None]] = []
        self.auto_info: Optional[ForegroundInfo] = None

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False
        self.answer(ForegroundInfo())

    def set_probe_enabled(self, enabled: bool) -> None:
        self.probe_enabled = enabled
        self.probe_toggles.append(enabled)

    def perform_action(self) -> None:
        self.actions += 1

    def probe_foreground(self, callback: Callable[[ForegroundInfo], None]) -> None:
        self.probes += 1
        if self.auto_info is not None:
            callback(self.auto_info)
        else:
            self.pending.append(callback)

    def answer(self, info: ForegroundInfo) -> None:
        callbacks, self.pending = self.pending, []
        for callback in callbacks:
            callback(info)


PRIMARY = DisplayInfo(
    id="primary-screen",
    label="Primary (1920x1080)",
    bounds=DisplayBounds(0, 0, 1920, 1080),
    is_primary=True,
)
SECONDARY = DisplayInfo(
    id="side-screen",
    label="Side (1280x1024)",
    bounds=DisplayBounds(1920, 0, 1280, 1024),
)


class FakeDesktop:
    """Display and pointer source with a settable pointer."""

    def __init__(self, displays: Optional[list[DisplayInfo]] = None) -> None:
        self.display_list = list(displays if displays is not None else [PRIMARY, SECONDARY])
        self.point = Point(900, 500)

    def displays(self) -> list[DisplayInfo]:
        return list(self.display_list)

    def cursor(self) -> Point:
        return self.point

    def move(self, x: int, y: int) -> None:
        self.point = Point(x, y)


# Scripted worker speaking the line protocol. argv[1] is a delay in seconds
# applied to the first STATUS only; CRASH exits with code 3. A one-shot
# trigger appends to once-trigger.log next to the script.
FAKE_WORKER_SOURCE = textwrap.dedent(
    '''
    import json
    import os
    import sys
    import time

    args = sys.argv[1:]
    if "--once" in args:
        mode = args[args.index("--once") + 1]
        if mode == "status":
            print(json.dumps({"exe": "C:\\\\Tools\\\\once.exe", "title": "once"}), flush=True)
        elif mode == "trigger":
            marker = os.path.join(os.path.dirname(os.path.abspath(__file__)), "once-trigger.log")
            with open(marker, "a") as handle:
                handle.write("trigger\\n")
        sys.exit(0)

    delay = float(args[0]) if args else 0.0
    count = 0
    for line in iter(sys.stdin.readline, ""):
        command = line.strip()
        if command == "STATUS":
            count += 1
            if count == 1 and delay:
                time.sleep(delay)
            print(json.dumps({"title": "reply-%d" % count, "isRealFullscreen": True}), flush=True)
        elif command == "TRIGGER":
            print("triggered", file=sys.stderr, flush=True)
        elif command == "CRASH":
            sys.exit(3)
        elif command == "EXIT":
            break
    '''
)


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    app = QApplication.instance() or QApplication([])
    return app


@pytest.fixture
def fake_worker(tmp_path: Path) -> Path:
    script = tmp_path / "fake_worker.py"
    script.write_text(FAKE_WORKER_SOURCE, encoding="utf-8")
    return script


@pytest.fixture
def python_exe() -> str:
    return sys.executable


@pytest.fixture
def logger() -> Logger:
    return Logger(LogBuffer())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def desktop() -> FakeDesktop:
    return FakeDesktop()


def wait_until(predicate: Callable[[], bool], timeout_ms: int = 5000) -> bool:
    """Pump the Qt event loop until the predicate holds or time runs out."""
    elapsed = QElapsedTimer()
    elapsed.start()
    while not predicate():
        if elapsed.hasExpired(timeout_ms):
            return False
        QCoreApplication.processEvents(QEventLoop.ProcessEventsFlag.AllEvents, 20)
        time.sleep(0.005)
    return True
