"""A bounded, thread-safe FIFO of typed messages with unique identifiers."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass


class QueueFull(Exception):
    """Raised when a message cannot be queued because the queue stays full."""


@dataclass(frozen=True)
class Message:
    """A queued message: its identifier, its payload and a type tag."""

    msg_id: int
    data: bytes
    msg_type: int = 0


class MessageQueue:
    """A FIFO shared between threads.

    The queue holds at most ``max_items - 1`` messages. Each pushed message
    receives an identifier, starting from 1 and increasing by one.
    """

    max_tries = 4
    retry_delay = 0.05

    def __init__(self, max_items: int):
        self.max_items = max_items
        self._items: deque[Message] = deque()
        self._next_id = 1
        self._cond = threading.Condition()

    def push(self, data: bytes, msg_type: int = 0) -> int:
        """Queue a copy of ``data`` and return its identifier.

        When the queue is full the push is retried a few times after a short
        pause; :class:`QueueFull` is raised if it never frees up.
        """
        payload = bytes(data)
        for attempt in range(self.max_tries):
            with self._cond:
                if len(self._items) < self.max_items - 1:
                    message = Message(self._next_id, payload, msg_type)
                    self._next_id += 1
                    self._items.append(message)
                    self._cond.notify_all()
                    return message.msg_id
            if attempt < self.max_tries - 1:
                time.sleep(self.retry_delay)
        raise QueueFull(f"message queue full ({len(self)} items)")

    def pop(self) -> Message | None:
        """Remove and return the oldest message, or None if the queue is empty."""
        with self._cond:
            if not self._items:
                return None
            message = self._items.popleft()
            self._cond.notify_all()
            return message

    def wait_until_empty(self, poll_interval: float = 0.01) -> None:
        """Block until other threads have emptied the queue."""
        with self._cond:
            while self._items:
                self._cond.wait(poll_interval if poll_interval > 0 else None)

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)