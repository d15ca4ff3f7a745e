"""Bounded, thread-safe FIFO of pending requests."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any

from .entities import ITEMS_BUFFER


class BufferClosed(Exception):
    """Raised when a closed buffer can give or take no more items."""


class RequestBuffer:
    """A bounded producer/consumer queue.

    ``put`` blocks while the buffer is full and ``get`` blocks while it is
    empty. After ``close`` both stop waiting: ``put`` raises
    ``BufferClosed`` and ``get`` drains what is left before raising it.
    """

    def __init__(self, capacity: int = ITEMS_BUFFER) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[Any] = deque()
        self._closed = False
        lock = threading.Lock()
        self._not_empty = threading.Condition(lock)
        self._not_full = threading.Condition(lock)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._not_empty:
            return len(self._items)

    def put(self, item: Any) -> None:
        """Add an item, waiting for room if the buffer is full."""
        with self._not_full:
            while len(self._items) >= self._capacity and not self._closed:
                self._not_full.wait()
            if self._closed:
                raise BufferClosed("buffer is closed")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> Any:
        """Remove and return the oldest item, waiting if the buffer is empty."""
        with self._not_empty:
            while not self._items and not self._closed:
                self._not_empty.wait()
            if not self._items:
                raise BufferClosed("buffer is closed")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Close the buffer and wake every waiting thread."""
        with self._not_empty:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()