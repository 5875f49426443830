"""Single running instance per user session.

The first instance holds a lock file and listens on a local socket. A
later launch fails to take the lock, pokes the socket so the running
instance can tell the user it is already there, and exits.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QDir, QLockFile, QObject, Signal, Slot
from PySide6.QtNetwork import QLocalServer, QLocalSocket

from hotcorner.core.logging import Logger, get_logger

DEFAULT_KEY = "hotcorner-single-instance"
CONNECT_TIMEOUT_MS = 500


class SingleInstanceManager(QObject):
    """Lock file plus local socket guarding a single instance.

    Args:
        key: Name shared by every instance (lock file and socket name)
        lock_dir: Directory for the lock file (system temp dir if None)
        logger: Logger instance (uses global if None)
        parent: Parent QObject
    """

    activated = Signal()  # another launch was attempted

    def __init__(
        self,
        key: str = DEFAULT_KEY,
        lock_dir: Optional[Path] = None,
        logger: Optional[Logger] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._key = key
        directory = Path(lock_dir) if lock_dir is not None else Path(QDir.tempPath())
        self._lock = QLockFile(str(directory / f"{key}.lock"))
        self._lock.setStaleLockTime(0)
        self._server: Optional[QLocalServer] = None
        self._logger = logger or get_logger()

    @property
    def is_primary(self) -> bool:
        return self._lock.isLocked()

    def acquire(self) -> bool:
        """Take the instance lock.

        Returns:
            True if this process is the only instance; False if another
            one holds the lock (it has been notified)
        """
        if not self._lock.tryLock(0):
            self._logger.info("Another instance is running", source="instance")
            self._notify_running()
            return False

        # A crashed instance can leave its socket behind
        QLocalServer.removeServer(self._key)
        server = QLocalServer(self)
        server.newConnection.connect(self._on_new_connection)
        if not server.listen(self._key):
            self._logger.warning(
                f"Instance socket unavailable: {server.errorString()}", source="instance"
            )
        self._server = server
        return True

    def release(self) -> None:
        if self._server is not None:
            self._server.close()
            self._server.deleteLater()
            self._server = None
        if self._lock.isLocked():
            self._lock.unlock()

    def _notify_running(self) -> None:
        socket = QLocalSocket(self)
        socket.connectToServer(self._key)
        if socket.waitForConnected(CONNECT_TIMEOUT_MS):
            socket.write(b"activate\n")
            socket.waitForBytesWritten(CONNECT_TIMEOUT_MS)
            socket.disconnectFromServer()
        socket.deleteLater()

    @Slot()
    def _on_new_connection(self) -> None:
        server = self._server
        if server is None:
            return
        while server.hasPendingConnections():
            connection = server.nextPendingConnection()
            connection.disconnected.connect(connection.deleteLater)
            connection.disconnectFromServer()
        self._logger.info("Second launch detected", source="instance")
        self.activated.emit()
