"""A FIFO queue with indexed access and optional internal locking."""

from __future__ import annotations

import contextlib
import threading
from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

V = TypeVar("V")


class Queue(Generic[V]):
    """First-in first-out queue.

    With ``thread_safe`` set, every operation holds an internal lock so the
    queue can be shared between threads.
    """

    def __init__(self, thread_safe: bool = False) -> None:
        self._items: deque[V] = deque()
        self._lock: threading.RLock | None = threading.RLock() if thread_safe else None

    def _guard(self) -> contextlib.AbstractContextManager[object]:
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def __len__(self) -> int:
        with self._guard():
            return len(self._items)

    def __iter__(self) -> Iterator[V]:
        with self._guard():
            snapshot = list(self._items)
        return iter(snapshot)

    def put(self, elem: V) -> None:
        """Append ``elem`` to the back of the queue."""
        with self._guard():
            self._items.append(elem)

    def top(self) -> V:
        """Return the element at the front without removing it."""
        with self._guard():
            if not self._items:
                raise IndexError("queue: top() called on empty queue")
            return self._items[0]

    def get(self, index: int) -> V:
        """Return the element at ``index``; negative values count from the back."""
        with self._guard():
            count = len(self._items)
            position = index + count if index < 0 else index
            if not 0 <= position < count:
                raise IndexError("queue: get() called with index out of range")
            return self._items[position]

    def pop(self) -> V:
        """Remove and return the element at the front."""
        with self._guard():
            if not self._items:
                raise IndexError("queue: pop() called on empty queue")
            return self._items.popleft()

    def try_pop(self, default: V | None = None) -> V | None:
        """Remove and return the front element, or ``default`` if the queue is empty."""
        with self._guard():
            if not self._items:
                return default
            return self._items.popleft()