"""Desktop capability backend.

The engine only needs two native capabilities: perform the corner action
and inspect the foreground window. ``DesktopBackend`` is that interface;
``WorkerBackend`` implements it with two worker processes (one for the
action, one for status queries) and one-shot subprocess fallbacks for the
moments when a worker is restarting.
"""

import sys
from functools import partial
from typing import Callable, Optional, Protocol, Sequence

from PySide6.QtCore import QObject, QProcess, QTimer

from .constants import (
    ACTION_WORKER_RESTART_MS,
    STATUS_WORKER_RESTART_MS,
    WORKER_EXIT_GRACE_MS,
    WORKER_REQUEST_TIMEOUT_MS,
)
from .logging import Logger, get_logger
from .model import ForegroundInfo
from .worker import CMD_STATUS, CMD_TRIGGER, WorkerChannel, WorkerRequest

ForegroundCallback = Callable[[ForegroundInfo], None]


class DesktopBackend(Protocol):
    """Native capabilities the engine depends on."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def set_probe_enabled(self, enabled: bool) -> None: ...

    def perform_action(self) -> None: ...

    def probe_foreground(self, callback: ForegroundCallback) -> None: ...


def worker_command() -> tuple[str, list[str]]:
    """Program and arguments that launch the worker host."""
    return sys.executable, ["-m", "hotcorner.worker_host"]


class WorkerBackend(QObject):
    """Backend that talks to ``hotcorner.worker_host`` subprocesses.

    Args:
        program: Worker executable (defaults to this interpreter)
        arguments: Worker arguments (defaults to ``-m hotcorner.worker_host``)
        request_timeout_ms: Timeout for STATUS queries
        logger: Logger instance (uses global if None)
        parent: Parent QObject
    """

    def __init__(
        self,
        program: Optional[str] = None,
        arguments: Optional[Sequence[str]] = None,
        request_timeout_ms: int = WORKER_REQUEST_TIMEOUT_MS,
        logger: Optional[Logger] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        default_program, default_args = worker_command()
        self._program = program or default_program
        self._arguments = list(default_args if arguments is None else arguments)
        self._timeout_ms = request_timeout_ms
        self._logger = logger or get_logger()
        self._probe_enabled = False
        self._running = False
        self._one_shots: dict[QProcess, Optional[WorkerRequest]] = {}

        self._action = WorkerChannel(
            "action",
            self._program,
            self._arguments,
            restart_delay_ms=ACTION_WORKER_RESTART_MS,
            request_timeout_ms=request_timeout_ms,
            logger=self._logger,
            parent=self,
        )
        self._status = WorkerChannel(
            "status",
            self._program,
            self._arguments,
            restart_delay_ms=STATUS_WORKER_RESTART_MS,
            request_timeout_ms=request_timeout_ms,
            logger=self._logger,
            parent=self,
        )

    @property
    def action_channel(self) -> WorkerChannel:
        return self._action

    @property
    def status_channel(self) -> WorkerChannel:
        return self._status

    def start(self) -> None:
        """Start the action worker, and the status worker if probing is on."""
        self._running = True
        self._action.start()
        if self._probe_enabled:
            self._status.start()

    def stop(self) -> None:
        """Shut down both workers and abandon pending one-shot probes."""
        self._running = False
        self._action.stop()
        self._status.stop()
        for process, request in list(self._one_shots.items()):
            if request is None:
                continue  # let one-shot triggers finish their keypress
            request.resolve("")
            process.kill()
            process.waitForFinished(WORKER_EXIT_GRACE_MS)

    def set_probe_enabled(self, enabled: bool) -> None:
        """Run the status worker only while foreground monitoring is needed."""
        if enabled == self._probe_enabled:
            return
        self._probe_enabled = enabled
        if enabled and self._running:
            self._status.start()
        elif not enabled:
            self._status.stop()

    def perform_action(self) -> None:
        """Fire the corner action, spawning a one-shot worker if needed."""
        if self._action.send(CMD_TRIGGER):
            return
        self._logger.warning("Action worker unavailable, using one-shot process", source="backend")
        self._spawn_once("trigger", None)

    def probe_foreground(self, callback: ForegroundCallback) -> None:
        """Query the foreground window; the callback always runs exactly once."""
        def on_line(line: str) -> None:
            callback(ForegroundInfo.from_json(line))

        if self._status.is_running:
            self._status.request(CMD_STATUS, on_line, self._timeout_ms)
            return

        if not self._running:
            on_line("")
            return
        self._spawn_once("status", WorkerRequest(command=CMD_STATUS, handler=on_line))

    # One-shot fallback processes

    def _spawn_once(self, mode: str, request: Optional[WorkerRequest]) -> None:
        process = QProcess(self)
        process.setProgram(self._program)
        process.setArguments(self._arguments + ["--once", mode])
        process.finished.connect(partial(self._on_once_finished, process, mode))
        process.errorOccurred.connect(partial(self._on_once_error, process, mode))
        self._one_shots[process] = request

        if request is not None:
            timer = QTimer(self)
            timer.setSingleShot(True)
            timer.timeout.connect(partial(self._on_once_timeout, process))
            request.timer = timer
            timer.start(self._timeout_ms)

        process.start()

    def _finish_once(self, process: QProcess, line: str) -> None:
        request = self._one_shots.pop(process, None)
        if request is not None:
            request.resolve(line)
        process.deleteLater()

    def _on_once_finished(
        self,
        process: QProcess,
        mode: str,
        exit_code: int,
        exit_status: QProcess.ExitStatus,
    ) -> None:
        if process not in self._one_shots:
            return
        if exit_status == QProcess.ExitStatus.CrashExit or exit_code != 0:
            self._logger.warning(
                f"One-shot {mode} exited with code {exit_code}", source="backend"
            )
        output = process.readAllStandardOutput().data().decode("utf-8", errors="replace")
        lines = output.strip().splitlines()
        self._finish_once(process, lines[0].strip() if lines else "")

    def _on_once_error(
        self,
        process: QProcess,
        mode: str,
        error: QProcess.ProcessError,
    ) -> None:
        if error != QProcess.ProcessError.FailedToStart or process not in self._one_shots:
            return
        self._logger.error(
            f"Failed to start one-shot {mode}: {process.errorString()}", source="backend"
        )
        self._finish_once(process, "")

    def _on_once_timeout(self, process: QProcess) -> None:
        if process not in self._one_shots:
            return
        self._logger.debug("One-shot status timed out", source="backend")
        self._finish_once(process, "")
        process.kill()
