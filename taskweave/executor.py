"""Scheduling and execution of task flows on a bounded thread pool."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import TextIO

from .copool import Copool
from .flow import Condition, Static, Subflow, TaskFlow
from .graph import Graph, Node, NodeState, NodeType
from .profiler import Attr, Profiler, Span

_log = logging.getLogger(__name__)


def _by_priority(node: Node) -> int:
    return int(node.priority)


class Executor:
    """Runs task flows with at most ``concurrency`` worker threads.

    The concurrency must exceed the number of subflows that may run at
    once, since a running subflow occupies a worker while its graph runs.
    """

    def __init__(self, concurrency: int) -> None:
        if concurrency <= 0:
            raise ValueError("executor concurrency cannot be zero")
        self.concurrency = concurrency
        self._pool = Copool(concurrency).set_panic_handler(self._on_pool_error)
        self._profiler = Profiler()
        self._pending = 0
        self._pending_cond = threading.Condition()
        self._queues: dict[Graph, deque[Node]] = {}
        self._queues_lock = threading.Lock()

    def run(self, taskflow: TaskFlow) -> Executor:
        """Schedule and execute ``taskflow``; the flow is frozen afterwards."""
        taskflow.frozen = True
        self._schedule_graph(None, taskflow.graph, None)
        return self

    def wait(self) -> None:
        """Block until every scheduled task has finished."""
        with self._pending_cond:
            self._pending_cond.wait_for(lambda: self._pending == 0)

    def profile(self, writer: TextIO) -> None:
        """Write flame-graph text of the recorded spans to ``writer``."""
        self._profiler.draw(writer)

    @staticmethod
    def _on_pool_error(ctx: object, exc: Exception) -> None:
        _log.error("[recovered] executor worker error: %r", exc)

    def _queue_for(self, graph: Graph) -> deque[Node]:
        with self._queues_lock:
            return self._queues.setdefault(graph, deque())

    def _add_pending(self) -> None:
        with self._pending_cond:
            self._pending += 1

    def _done(self) -> None:
        with self._pending_cond:
            self._pending -= 1
            if self._pending == 0:
                self._pending_cond.notify_all()

    def _invoke_graph(self, graph: Graph, parent_span: Span | None) -> bool:
        queue = self._queue_for(graph)
        while True:
            with graph.cond:
                graph.cond.wait_for(
                    lambda: graph.recyclable() or bool(queue) or graph.canceled
                )
                if graph.canceled:
                    while queue:
                        queue.popleft()
                        graph.deref()
                        self._done()
                    break
                if graph.recyclable():
                    break
                node = queue.popleft()
            self._invoke_node(node, parent_span)
        return not graph.canceled

    def _schedule_successors(self, node: Node) -> None:
        candidates = []
        for successor in node.successors:
            with successor.lock:
                ready = successor.recyclable() and successor.state is NodeState.IDLE
                if ready or successor.kind is NodeType.CONDITION:
                    successor.state = NodeState.WAITING
                    candidates.append(successor)
        candidates.sort(key=_by_priority)
        node.setup()
        self._schedule(*candidates)

    def _finish(self, node: Node) -> None:
        graph = node.graph
        with graph.cond:
            graph.deref()
            graph.cond.notify_all()

    def _span(self, node: Node, parent_span: Span | None) -> Span:
        return Span(Attr(node.kind, node.name), time.perf_counter_ns(), 0, parent_span)

    def _invoke_static(self, node: Node, parent_span: Span | None, payload: Static) -> Callable[[], None]:
        def run() -> None:
            span = self._span(node, parent_span)
            try:
                failed = False
                try:
                    node.state = NodeState.RUNNING
                    payload.handle()
                    node.state = NodeState.FINISHED
                except Exception as exc:
                    failed = True
                    node.graph.canceled = True
                    _log.warning("graph %s is canceled, since static node %s raised: %r",
                                 node.graph.name, node.name, exc)
                span.cost = time.perf_counter_ns() - span.begin
                if not failed:
                    self._profiler.add_span(span)
                node.drop()
                self._schedule_successors(node)
                self._finish(node)
            finally:
                self._done()

        return run

    def _invoke_subflow(self, node: Node, parent_span: Span | None, payload: Subflow) -> Callable[[], None]:
        def run() -> None:
            span = self._span(node, parent_span)
            try:
                failed = False
                try:
                    node.state = NodeState.RUNNING
                    if not payload.graph.instantiated:
                        payload.handle(payload)
                    payload.graph.instantiated = True
                    node.state = NodeState.FINISHED
                except Exception as exc:
                    failed = True
                    payload.graph.instantiated = True
                    _log.warning("graph %s is canceled, since subflow %s raised: %r",
                                 node.graph.name, node.name, exc)
                    node.graph.canceled = True
                    payload.graph.canceled = True
                span.cost = time.perf_counter_ns() - span.begin
                if not failed:
                    self._profiler.add_span(span)
                self._schedule_graph(node.graph, payload.graph, span)
                node.drop()
                self._schedule_successors(node)
                self._finish(node)
            finally:
                self._done()

        return run

    def _invoke_condition(self, node: Node, parent_span: Span | None, payload: Condition) -> Callable[[], None]:
        def run() -> None:
            span = self._span(node, parent_span)
            try:
                failed = False
                try:
                    node.state = NodeState.RUNNING
                    choice = payload.handle()
                    if choice not in payload.mapper:
                        raise IndexError(
                            f"condition task failed, no successor for choice {choice}"
                        )
                    node.state = NodeState.FINISHED
                    self._schedule(payload.mapper[choice])
                except Exception as exc:
                    failed = True
                    node.graph.canceled = True
                    _log.warning("graph %s is canceled, since condition node %s raised: %r",
                                 node.graph.name, node.name, exc)
                span.cost = time.perf_counter_ns() - span.begin
                if not failed:
                    self._profiler.add_span(span)
                node.drop()
                self._finish(node)
                node.setup()
            finally:
                self._done()

        return run

    def _invoke_node(self, node: Node, parent_span: Span | None) -> None:
        payload = node.payload
        if isinstance(payload, Static):
            job = self._invoke_static(node, parent_span, payload)
        elif isinstance(payload, Subflow):
            job = self._invoke_subflow(node, parent_span, payload)
        elif isinstance(payload, Condition):
            job = self._invoke_condition(node, parent_span, payload)
        else:
            raise TypeError(f"unsupported node {node.name}")
        self._pool.go(job)

    def _schedule(self, *nodes: Node) -> None:
        for node in nodes:
            graph = node.graph
            if graph.canceled:
                with graph.cond:
                    graph.cond.notify_all()
                _log.info("node %s is not scheduled, since graph %s is canceled",
                          node.name, graph.name)
                return
            self._add_pending()
            queue = self._queue_for(graph)
            with graph.cond:
                graph.ref()
                queue.append(node)
                graph.cond.notify_all()

    def _schedule_graph(self, parent: Graph | None, graph: Graph, parent_span: Span | None) -> None:
        graph.setup()
        graph.entries.sort(key=_by_priority)
        self._schedule(*graph.entries)
        if not self._invoke_graph(graph, parent_span) and parent is not None:
            parent.canceled = True
            _log.info("graph %s canceled, since subgraph %s is canceled", parent.name, graph.name)
        with graph.cond:
            graph.cond.notify_all()