"""Tests for the worker host command loop.

A fake NativeDesktop replaces pynput and user32 so the protocol can be
driven through in-memory streams.
"""

import io
import json
from typing import Any

from hotcorner import worker_host


class FakeNative:
    def __init__(self, info: Any = None, fail_action: bool = False) -> None:
        self.info = info if info is not None else {}
        self.fail_action = fail_action
        self.actions = 0

    def perform_action(self) -> None:
        if self.fail_action:
            raise OSError("input blocked")
        self.actions += 1

    def foreground(self) -> dict[str, Any]:
        if isinstance(self.info, Exception):
            raise self.info
        return self.info


GAME = {
    "exe": "C:\\Games\\doom.exe",
    "title": "DOOM",
    "className": "SDL_app",
    "processName": "doom.exe",
    "isFullscreen": True,
    "isRealFullscreen": True,
    "isMaximized": False,
    "isBorderless": True,
    "isTaskViewLike": False,
}


def run(commands: str, desktop: FakeNative) -> tuple[int, list[str]]:
    stdout = io.StringIO()
    code = worker_host.serve(io.StringIO(commands), stdout, desktop)
    return code, stdout.getvalue().splitlines()


class TestServe:
    """Test the long-lived command loop."""

    def test_status_writes_one_compact_line(self) -> None:
        code, lines = run("STATUS\nEXIT\n", FakeNative(GAME))
        assert code == 0
        assert len(lines) == 1
        assert json.loads(lines[0]) == GAME
        assert ": " not in lines[0]

    def test_trigger_is_silent(self) -> None:
        desktop = FakeNative()
        code, lines = run("TRIGGER\nTRIGGER\nEXIT\n", desktop)
        assert desktop.actions == 2
        assert lines == []

    def test_unknown_lines_ignored(self) -> None:
        code, lines = run("hello\n\n  STATUS  \nEXIT\n", FakeNative({"title": "x"}))
        assert lines == ['{"title":"x"}']

    def test_eof_exits_cleanly(self) -> None:
        code, lines = run("STATUS\n", FakeNative())
        assert code == 0
        assert lines == ["{}"]

    def test_commands_after_exit_ignored(self) -> None:
        desktop = FakeNative()
        run("EXIT\nTRIGGER\n", desktop)
        assert desktop.actions == 0

    def test_probe_failure_yields_empty_object(self) -> None:
        code, lines = run("STATUS\nSTATUS\n", FakeNative(RuntimeError("no window")))
        assert lines == ["{}", "{}"]

    def test_non_ascii_title_stays_on_one_line(self) -> None:
        code, lines = run("STATUS\n", FakeNative({"title": "Vue des tâches"}))
        assert len(lines) == 1
        assert json.loads(lines[0])["title"] == "Vue des tâches"

    def test_action_failure_keeps_serving(self) -> None:
        code, lines = run("TRIGGER\nSTATUS\n", FakeNative({"title": "ok"}, fail_action=True))
        assert code == 0
        assert lines == ['{"title":"ok"}']


class TestOneShot:
    """Test the --once fallback modes."""

    def test_once_status(self, capsys) -> None:
        code = worker_host.main(["--once", "status"], desktop=FakeNative(GAME))
        out = capsys.readouterr().out.splitlines()
        assert code == 0
        assert json.loads(out[0]) == GAME

    def test_once_trigger(self) -> None:
        desktop = FakeNative()
        assert worker_host.main(["--once", "trigger"], desktop=desktop) == 0
        assert desktop.actions == 1

    def test_once_trigger_failure(self) -> None:
        assert worker_host.main(["--once", "trigger"], desktop=FakeNative(fail_action=True)) == 1
