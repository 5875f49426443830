"""Worker process channel.

Owns one long-lived helper subprocess that reads newline-terminated
commands on stdin and writes newline-terminated responses on stdout.

- Fire-and-forget commands (``TRIGGER``, ``EXIT``) produce no output.
- ``STATUS`` produces exactly one line; requests are answered strictly in
  submission order, so every output line is paired with the oldest
  outstanding request.
- Every request has a timeout. A timed-out request resolves with an empty
  line and stays queued as a placeholder, so its late answer is consumed
  and dropped instead of being handed to a newer request.
- On spawn failure, crash or closed stream all pending requests resolve
  empty and a restart is scheduled after a fixed backoff.
"""

from collections import deque
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Optional, Sequence

from PySide6.QtCore import QObject, QProcess, Qt, QTimer, Signal

from .constants import MAX_STALE_RESPONSES, WORKER_EXIT_GRACE_MS, WORKER_REQUEST_TIMEOUT_MS
from .logging import Logger, get_logger

ResponseHandler = Callable[[str], None]

CMD_TRIGGER = "TRIGGER"
CMD_STATUS = "STATUS"
CMD_EXIT = "EXIT"


@dataclass(eq=False)
class WorkerRequest:
    """One outstanding request.

    Attributes:
        command: Command line sent to the worker (without newline)
        handler: Called exactly once with the response line ("" on failure)
        resolved: Set once the handler has run
    """

    command: str
    handler: ResponseHandler
    resolved: bool = False
    timer: Optional[QTimer] = field(default=None, repr=False)

    def resolve(self, line: str) -> bool:
        """Run the handler unless already resolved.

        Returns:
            True if this call resolved the request
        """
        if self.resolved:
            return False
        self.resolved = True
        if self.timer is not None:
            self.timer.stop()
            self.timer.deleteLater()
            self.timer = None
        self.handler(line)
        return True


class RequestQueue:
    """FIFO of requests awaiting a response line."""

    def __init__(self) -> None:
        self._entries: deque[WorkerRequest] = deque()

    def submit(self, request: WorkerRequest) -> None:
        self._entries.append(request)

    def deliver(self, line: str) -> Optional[WorkerRequest]:
        """Pair a response line with the oldest outstanding entry.

        Returns:
            The request that received the line, or None if the line was
            unsolicited or belonged to a request that already timed out
        """
        if not self._entries:
            return None
        head = self._entries.popleft()
        if head.resolve(line):
            return head
        return None

    def expire(self, request: WorkerRequest) -> bool:
        """Resolve a request empty and leave it queued as a placeholder."""
        return request.resolve("")

    def discard(self, request: WorkerRequest) -> None:
        """Remove a request that was never sent and resolve it empty."""
        try:
            self._entries.remove(request)
        except ValueError:
            pass
        request.resolve("")

    def drain(self) -> int:
        """Resolve everything with the empty result and clear the queue.

        Returns:
            Number of requests that were still unresolved
        """
        pending = list(self._entries)
        self._entries.clear()
        return sum(1 for entry in pending if entry.resolve(""))

    @property
    def stale_count(self) -> int:
        """Timed-out placeholders still waiting for their line."""
        return sum(1 for entry in self._entries if entry.resolved)

    @property
    def outstanding(self) -> int:
        """Requests still waiting for a real answer."""
        return sum(1 for entry in self._entries if not entry.resolved)

    def __len__(self) -> int:
        return len(self._entries)


class WorkerChannel(QObject):
    """Long-lived worker subprocess with queued request/response handling.

    Args:
        name: Short name used in log messages
        program: Executable to launch
        arguments: Command line arguments
        restart_delay_ms: Backoff before restarting after an unexpected exit
        request_timeout_ms: Default timeout for ``request()``
        logger: Logger instance (uses global if None)
        parent: Parent QObject
    """

    started = Signal()
    lost = Signal(str)  # reason

    def __init__(
        self,
        name: str,
        program: str,
        arguments: Sequence[str],
        restart_delay_ms: int,
        request_timeout_ms: int = WORKER_REQUEST_TIMEOUT_MS,
        logger: Optional[Logger] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._name = name
        self._program = program
        self._arguments = list(arguments)
        self._restart_delay_ms = restart_delay_ms
        self._request_timeout_ms = request_timeout_ms
        self._logger = logger or get_logger()

        self._process: Optional[QProcess] = None
        self._queue = RequestQueue()
        self._stopping = False

        self._restart_timer = QTimer(self)
        self._restart_timer.setSingleShot(True)
        self._restart_timer.timeout.connect(self._restart)

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        """True while a worker process exists (starting or running)."""
        return (
            self._process is not None
            and self._process.state() != QProcess.ProcessState.NotRunning
        )

    @property
    def restart_pending(self) -> bool:
        return self._restart_timer.isActive()

    @property
    def pending_requests(self) -> int:
        return self._queue.outstanding

    def start(self) -> None:
        """Spawn the worker if it is not already running."""
        self._stopping = False
        if self._process is not None:
            return
        self._restart_timer.stop()

        process = QProcess(self)
        process.setProgram(self._program)
        process.setArguments(self._arguments)
        process.setProcessChannelMode(QProcess.ProcessChannelMode.SeparateChannels)
        process.readyReadStandardOutput.connect(partial(self._on_ready_read, process))
        process.readyReadStandardError.connect(partial(self._on_stderr, process))
        process.errorOccurred.connect(partial(self._on_error, process))
        process.finished.connect(partial(self._on_finished, process))
        process.started.connect(self.started.emit)

        self._process = process
        self._logger.debug(
            f"Starting worker: {self._program} {' '.join(self._arguments)}",
            source=f"worker:{self._name}",
        )
        process.start()

    def stop(self) -> None:
        """Ask the worker to exit, killing it if it does not comply.

        Safe to call when no worker is running.
        """
        self._stopping = True
        self._restart_timer.stop()

        process = self._process
        self._process = None
        drained = self._queue.drain()
        if drained:
            self._logger.debug(
                f"Resolved {drained} pending request(s) on stop",
                source=f"worker:{self._name}",
            )
        if process is None:
            return

        if process.state() == QProcess.ProcessState.Running:
            process.write(f"{CMD_EXIT}\n".encode("ascii"))
            process.closeWriteChannel()
            if not process.waitForFinished(WORKER_EXIT_GRACE_MS):
                self._logger.warning("Worker ignored EXIT, killing", source=f"worker:{self._name}")
                process.kill()
                process.waitForFinished(WORKER_EXIT_GRACE_MS)
        elif process.state() == QProcess.ProcessState.Starting:
            process.kill()
            process.waitForFinished(WORKER_EXIT_GRACE_MS)
        process.deleteLater()

    def send(self, command: str) -> bool:
        """Write a fire-and-forget command.

        Returns:
            True if the command was handed to a live worker
        """
        process = self._process
        if process is None or process.state() == QProcess.ProcessState.NotRunning:
            return False
        written = process.write(f"{command}\n".encode("ascii"))
        if written < 0:
            self._logger.warning(
                f"Failed to write {command} to worker", source=f"worker:{self._name}"
            )
            return False
        return True

    def request(
        self,
        command: str,
        handler: ResponseHandler,
        timeout_ms: Optional[int] = None,
    ) -> WorkerRequest:
        """Queue a request whose answer is one output line.

        The handler is always called exactly once: with the response line,
        or with "" on timeout, write failure or worker loss.
        """
        request = WorkerRequest(command=command, handler=handler)

        if not self.is_running:
            request.resolve("")
            return request

        self._queue.submit(request)

        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.timeout.connect(partial(self._on_request_timeout, request))
        request.timer = timer
        timer.start(self._request_timeout_ms if timeout_ms is None else timeout_ms)

        if not self.send(command):
            self._queue.discard(request)
        return request

    # Process event handlers

    def _on_ready_read(self, process: QProcess) -> None:
        if process is not self._process:
            return
        while process.canReadLine():
            raw = process.readLine().data()
            line = raw.decode("utf-8", errors="replace").strip()
            if self._queue.deliver(line) is None and line:
                self._logger.debug("Dropped late or unsolicited line", source=f"worker:{self._name}")

    def _on_stderr(self, process: QProcess) -> None:
        text = process.readAllStandardError().data().decode("utf-8", errors="replace").strip()
        if text:
            self._logger.warning(text.splitlines()[-1], source=f"worker:{self._name}")

    def _on_request_timeout(self, request: WorkerRequest) -> None:
        if not self._queue.expire(request):
            return
        self._logger.debug(f"{request.command} timed out", source=f"worker:{self._name}")
        if self._queue.stale_count >= MAX_STALE_RESPONSES and self._process is not None:
            self._logger.warning("Worker stopped answering, restarting", source=f"worker:{self._name}")
            self._handle_lost(self._process, "unresponsive")

    def _on_error(self, process: QProcess, error: QProcess.ProcessError) -> None:
        if error == QProcess.ProcessError.FailedToStart:
            self._logger.error(
                f"Failed to start worker: {process.errorString()}",
                source=f"worker:{self._name}",
            )
            self._handle_lost(process, "failed to start")
        elif error == QProcess.ProcessError.WriteError:
            self._logger.warning("Worker stdin closed", source=f"worker:{self._name}")
            self._handle_lost(process, "stream closed")
        # Crashes also emit finished(), which does the cleanup

    def _on_finished(
        self,
        process: QProcess,
        exit_code: int,
        exit_status: QProcess.ExitStatus,
    ) -> None:
        crashed = exit_status == QProcess.ExitStatus.CrashExit
        if process is self._process:
            self._logger.worker_exit(self._name, exit_code, crashed)
        self._handle_lost(process, "exited")
        process.deleteLater()

    def _handle_lost(self, process: QProcess, reason: str) -> None:
        if process is not self._process:
            return
        self._process = None
        if process.state() == QProcess.ProcessState.NotRunning:
            process.deleteLater()
        else:
            # finished() deletes it once the kill lands
            process.kill()
        self._queue.drain()
        self.lost.emit(reason)

        if not self._stopping:
            self._restart_timer.start(self._restart_delay_ms)

    def _restart(self) -> None:
        if self._stopping or self._process is not None:
            return
        self._logger.info("Restarting worker", source=f"worker:{self._name}")
        self.start()
