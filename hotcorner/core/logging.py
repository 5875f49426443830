"""Thread-safe logging system with circular buffer.

Provides the logging interface for the hot corner engine that:
- Uses a circular buffer (max 200 entries) so a long-running tray process
  never grows its log
- Notifies listeners (stderr mirror, UI) of every new entry
- Formats log entries with timestamps and engine context
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from threading import Lock
from typing import Any, Callable, Optional

from .constants import LOG_BUFFER_SIZE


class LogLevel(Enum):
    """Log entry severity levels."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class LogEntry:
    """A single log entry.

    Attributes:
        timestamp: When the entry was created
        level: Severity level
        message: Log message content
        source: Component that produced the entry (e.g. "worker:status")
        engagement: Engagement state at the time (if applicable)
        suppressed: Suppression flag at the time (if applicable)
    """

    timestamp: datetime
    level: LogLevel
    message: str
    source: Optional[str] = None
    engagement: Optional[str] = None
    suppressed: Optional[bool] = None

    def format(self) -> str:
        """Format the log entry as a string."""
        time_str = self.timestamp.strftime("%H:%M:%S.%f")[:-3]
        parts = [f"[{time_str}]", f"[{self.level.name}]"]

        if self.source:
            parts.append(f"[{self.source}]")

        if self.engagement:
            parts.append(f"[{self.engagement}]")

        parts.append(self.message)

        if self.suppressed is not None:
            parts.append(f"suppressed={self.suppressed}")

        return " ".join(parts)


@dataclass
class LogBuffer:
    """Thread-safe circular buffer for log entries.

    Uses a deque with maxlen to automatically discard old entries.
    """

    max_size: int = LOG_BUFFER_SIZE
    _buffer: deque[LogEntry] = field(default_factory=lambda: deque(maxlen=LOG_BUFFER_SIZE))
    _lock: Lock = field(default_factory=Lock)
    _listeners: list[Callable[[LogEntry], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Reinitialize buffer with correct maxlen if max_size differs."""
        if self._buffer.maxlen != self.max_size:
            self._buffer = deque(maxlen=self.max_size)

    def add(self, entry: LogEntry) -> None:
        """Add a log entry to the buffer (thread-safe)."""
        with self._lock:
            self._buffer.append(entry)

        # Notify outside the lock so a listener may read the buffer
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                pass  # A broken listener must not break logging

    def get_all(self) -> list[LogEntry]:
        """Get all entries in the buffer (thread-safe)."""
        with self._lock:
            return list(self._buffer)

    def get_recent(self, count: int) -> list[LogEntry]:
        """Get the most recent N entries (thread-safe)."""
        with self._lock:
            if count >= len(self._buffer):
                return list(self._buffer)
            return list(self._buffer)[-count:]

    def clear(self) -> None:
        """Clear all entries (thread-safe)."""
        with self._lock:
            self._buffer.clear()

    def add_listener(self, callback: Callable[[LogEntry], None]) -> None:
        """Add a listener to be notified of new entries."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[LogEntry], None]) -> None:
        """Remove a listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


class Logger:
    """Main logging interface for the engine.

    Carries the current engagement/suppression context so every entry
    records what the state machine looked like when it was written.
    """

    def __init__(self, buffer: Optional[LogBuffer] = None) -> None:
        self._buffer = buffer or LogBuffer()
        self._engagement: Optional[str] = None
        self._suppressed: Optional[bool] = None

    @property
    def buffer(self) -> LogBuffer:
        """Access the underlying log buffer."""
        return self._buffer

    def set_engagement(self, state: str) -> None:
        """Set the engagement state for subsequent log entries."""
        self._engagement = state

    def set_suppressed(self, suppressed: bool) -> None:
        """Set the suppression flag for subsequent log entries."""
        self._suppressed = suppressed

    def clear_context(self) -> None:
        self._engagement = None
        self._suppressed = None

    def _log(
        self,
        level: LogLevel,
        message: str,
        source: Optional[str] = None,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            message=message,
            source=source,
            engagement=self._engagement,
            suppressed=self._suppressed,
        )
        self._buffer.add(entry)
        return entry

    def debug(self, message: str, **kwargs: Any) -> LogEntry:
        """Log a debug message."""
        return self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> LogEntry:
        """Log an info message."""
        return self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> LogEntry:
        """Log a warning message."""
        return self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> LogEntry:
        """Log an error message."""
        return self._log(LogLevel.ERROR, message, **kwargs)

    def state_change(self, old_state: str, new_state: str) -> LogEntry:
        """Log an engagement transition."""
        self.set_engagement(new_state)
        return self.debug(f"Engagement: {old_state} -> {new_state}", source="engine")

    def suppression_change(self, suppressed: bool, reason: str) -> LogEntry:
        """Log a change of the derived suppression state."""
        self.set_suppressed(suppressed)
        verb = "Suppressing" if suppressed else "Resuming"
        return self.info(f"{verb} corner triggers ({reason})", source="policy")

    def trigger(self, corner: str, bypass: bool) -> LogEntry:
        """Log a fired corner action."""
        msg = f"Trigger fired at {corner}"
        if bypass:
            msg += " (task view bypass)"
        return self.info(msg, source="engine")

    def worker_exit(self, name: str, exit_code: int, crashed: bool) -> LogEntry:
        """Log a worker process exit."""
        if crashed:
            return self.warning(f"Worker crashed (code {exit_code})", source=f"worker:{name}")
        if exit_code != 0:
            return self.warning(f"Worker exited with code {exit_code}", source=f"worker:{name}")
        return self.debug("Worker exited cleanly", source=f"worker:{name}")


# Global logger instance for convenience
_global_logger: Optional[Logger] = None


def get_logger() -> Logger:
    """Get the global logger instance, creating one if needed."""
    global _global_logger
    if _global_logger is None:
        _global_logger = Logger()
    return _global_logger
