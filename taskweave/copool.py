"""A bounded pool of worker threads that run submitted callables."""

from __future__ import annotations

import os
import sys
import threading
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .queue import Queue

T = TypeVar("T")

PanicHandler = Callable[[Any, Exception], None]

_PANIC_EXIT_CODE = 255


class ObjectPool(Generic[T]):
    """A free list of reusable objects built on demand by ``factory``."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._items: list[T] = []
        self._lock = threading.Lock()

    def get(self) -> T:
        """Return a pooled object, creating one if none is free."""
        with self._lock:
            if self._items:
                return self._items.pop()
        return self._factory()

    def put(self, item: T) -> None:
        """Return ``item`` to the pool for later reuse."""
        with self._lock:
            self._items.append(item)


@dataclass
class _CoTask:
    ctx: Any = None
    func: Callable[[], None] | None = None

    def clear(self) -> None:
        self.ctx = None
        self.func = None


class Copool:
    """Runs callables on at most ``cap`` worker threads.

    Workers are started lazily and exit once the task queue drains. An
    exception raised by a task goes to the panic handler if one is set;
    otherwise it is reported on stderr and the process is terminated.
    """

    def __init__(self, cap: int) -> None:
        self._cap = cap
        self._tasks: Queue[_CoTask] = Queue(False)
        self._lock = threading.Lock()
        self._workers = 0
        self._running = 0
        self._panic_handler: PanicHandler | None = None
        self._task_pool: ObjectPool[_CoTask] = ObjectPool(_CoTask)

    def go(self, func: Callable[[], None]) -> None:
        """Schedule ``func`` for execution."""
        self.ctx_go(None, func)

    def ctx_go(self, ctx: Any, func: Callable[[], None]) -> None:
        """Schedule ``func``; ``ctx`` is handed to the panic handler if it raises."""
        with self._lock:
            self._running += 1
            task = self._task_pool.get()
            task.ctx = ctx
            task.func = func
            self._tasks.put(task)
            spawn = self._workers == 0 or (len(self._tasks) > 0 and self._workers < self._cap)
            if spawn:
                self._workers += 1
        if spawn:
            threading.Thread(target=self._work, name="copool-worker", daemon=True).start()

    def set_panic_handler(self, handler: PanicHandler) -> Copool:
        """Install ``handler(ctx, exc)`` for exceptions raised by tasks."""
        self._panic_handler = handler
        return self

    def _work(self) -> None:
        while True:
            with self._lock:
                task = self._tasks.try_pop()
                if task is None:
                    self._workers -= 1
                    return
            self._execute(task)
            task.clear()
            self._task_pool.put(task)

    def _execute(self, task: _CoTask) -> None:
        try:
            if task.func is not None:
                task.func()
        except Exception as exc:
            handler = self._panic_handler
            if handler is not None:
                handler(task.ctx, exc)
            else:
                stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
                print(f"[panic] copool: {exc!r}: {stack}", file=sys.stderr, flush=True)
                os._exit(_PANIC_EXIT_CODE)
        finally:
            with self._lock:
                self._running -= 1