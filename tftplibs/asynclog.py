"""Thread-safe logging to the console queue and to a log file."""

from __future__ import annotations

import enum
import logging
import os
import threading
import time
from datetime import datetime
from typing import Optional, Union

from .msgqueue import MessageQueue, QueueFull

LOGSIZE = 512
MAX_MSG_IN_QUEUE = 300
PER_SECOND_MAX_MSG = 100

_APPEND_TRIES = 3
_APPEND_RETRY_DELAY = 0.05
_ENCODING = "utf-8"

_monitor = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class MessageType(enum.IntEnum):
    """Kinds of messages sent to the console."""

    LOG = 1
    ERROR = 2
    WARNING = 3


def _format(fmt: str, args: tuple) -> str:
    return fmt % args if args else fmt


def _timestamp(now: datetime) -> str:
    return (
        f" [{now.day:02d}/{now.month:02d} {now.hour:02d}:{now.minute:02d}"
        f":{now.second:02d}.{now.microsecond // 1000:03d}]"
    )


def append_to_file(filename: PathLike, text: str) -> int:
    """Append ``text`` and CRLF to ``filename``; return the bytes written, 0 on failure.

    Opening is tried three times, since another thread may hold the file.
    """
    payload = text.encode(_ENCODING, "replace") + b"\r\n"
    for attempt in range(_APPEND_TRIES):
        try:
            with open(filename, "ab") as handle:
                written = handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            return written
        except OSError:
            if attempt < _APPEND_TRIES - 1:
                time.sleep(_APPEND_RETRY_DELAY)
    return 0


def log_to_monitor(fmt: str, *args) -> str:
    """Send a debug trace tagged with the current thread id; return the trace."""
    text = f"Th{threading.get_native_id():5d} :" + _format(fmt, args)
    text = text[: LOGSIZE - 1]
    _monitor.debug("%s", text.rstrip("\n"))
    return text


class AsyncLogger:
    """Formats log lines and pushes them to the console queue from any thread."""

    def __init__(self, queue: MessageQueue, level: int = 0, log_file: Optional[PathLike] = None):
        self.queue = queue
        self.level = level
        self.log_file = log_file
        self._lock = threading.Lock()
        self._pace_second: Optional[int] = None
        self._pace_count = 0

    def _paced(self) -> bool:
        now = int(time.time())
        with self._lock:
            if now == self._pace_second:
                self._pace_count += 1
            else:
                self._pace_second = now
                self._pace_count = 0
            count = self._pace_count
        if count > PER_SECOND_MAX_MSG // 2:
            # let the consumer of the queue run
            time.sleep(0.001)
        return count <= PER_SECOND_MAX_MSG

    def _send(self, msg_type: MessageType, text: str) -> bool:
        try:
            self.queue.push(text.encode(_ENCODING, "replace"), int(msg_type))
        except QueueFull:
            log_to_monitor("message queue full, message dropped\n")
            return False
        return True

    def log(self, level: int, fmt: str, *args) -> Optional[str]:
        """Log a timestamped line if ``level`` is enabled; return it, or None if dropped.

        At most 101 lines are accepted per second.
        """
        if level > self.level:
            return None
        if not self._paced():
            return None
        stamp = _timestamp(datetime.now())
        body = _format(fmt, args)[: LOGSIZE - 1 - len(stamp)]
        text = body + stamp
        self._send(MessageType.LOG, text)
        if self.log_file:
            append_to_file(self.log_file, text)
        return text

    def error(self, fmt: str, *args) -> str:
        """Report an error to the console; return the message."""
        text = _format(fmt, args)[: LOGSIZE - 1]
        self._send(MessageType.ERROR, text)
        return text

    def warning(self, fmt: str, *args) -> str:
        """Report a warning to the console; return the message."""
        text = _format(fmt, args)[: LOGSIZE - 1]
        self._send(MessageType.WARNING, text)
        return text