"""Execution graph primitives: nodes, their dependencies and graphs of nodes."""

from __future__ import annotations

import enum
import threading
import time
from typing import Any


class NodeType(str, enum.Enum):
    """Kind of work a node carries."""

    SUBFLOW = "subflow"
    STATIC = "static"
    CONDITION = "condition"


class NodeState(enum.IntEnum):
    """Scheduling state of a node."""

    IDLE = 1
    WAITING = 2
    RUNNING = 3
    FINISHED = 4


class TaskPriority(enum.IntEnum):
    """Scheduling priority; lower values are scheduled first."""

    HIGH = 1
    NORMAL = 2
    LOW = 3


def _generated_name() -> str:
    return f"N_{time.time_ns() % 1_000_000_000}"


class Node:
    """A vertex of an execution graph.

    ``join_counter`` holds the number of unfinished non-condition
    dependents; a node may run once it drops to zero.
    """

    def __init__(self, name: str, kind: NodeType = NodeType.STATIC, payload: Any = None) -> None:
        self.name = name or _generated_name()
        self.kind = kind
        self.payload = payload
        self.successors: list[Node] = []
        self.dependents: list[Node] = []
        self.state = NodeState.IDLE
        self.join_counter = 0
        self.graph: Graph | None = None
        self.priority = TaskPriority.NORMAL
        self.lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Node(name={self.name!r}, kind={self.kind.value})"

    def recyclable(self) -> bool:
        """Return True when no dependency is still pending."""
        with self.lock:
            return self.join_counter == 0

    def ref(self) -> None:
        """Count one more pending dependency."""
        with self.lock:
            self.join_counter += 1

    def deref(self) -> None:
        """Release one pending dependency."""
        with self.lock:
            if self.join_counter == 0:
                raise RuntimeError(f"node {self.name} ref counter is zero, cannot deref")
            self.join_counter -= 1

    def setup(self) -> None:
        """Mark the node idle and count its non-condition dependents."""
        with self.lock:
            self.state = NodeState.IDLE
            for dep in self.dependents:
                if dep.kind is not NodeType.CONDITION:
                    self.ref()

    def drop(self) -> None:
        """Release this node's hold on each of its successors."""
        if self.kind is NodeType.CONDITION:
            return
        for successor in self.successors:
            successor.deref()

    def precede(self, other: Node) -> None:
        """Make ``other`` depend on this node."""
        self.successors.append(other)
        other.dependents.append(self)


class Graph:
    """A named collection of nodes scheduled together."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.nodes: list[Node] = []
        self.join_counter = 0
        self.entries: list[Node] = []
        self.cond = threading.Condition()
        self.instantiated = False
        self.lock = threading.RLock()
        self.canceled = False

    def __repr__(self) -> str:
        return f"Graph(name={self.name!r}, nodes={len(self.nodes)})"

    def ref(self) -> None:
        """Count one more node in flight."""
        with self.lock:
            self.join_counter += 1

    def deref(self) -> None:
        """Count one node in flight as finished."""
        with self.lock:
            if self.join_counter == 0:
                raise RuntimeError(f"graph {self.name} ref counter is zero, cannot deref")
            self.join_counter -= 1

    def reset(self) -> None:
        """Clear the in-flight counter, the entries and every node's counter."""
        self.join_counter = 0
        self.entries.clear()
        for node in self.nodes:
            node.join_counter = 0

    def push(self, *nodes: Node) -> None:
        """Add ``nodes`` to the graph and attach them to it."""
        self.nodes.extend(nodes)
        for node in nodes:
            node.graph = self

    def setup(self) -> None:
        """Prepare every node for a run and collect the entry nodes."""
        self.reset()
        for node in self.nodes:
            node.setup()
            if not node.dependents:
                self.entries.append(node)

    def recyclable(self) -> bool:
        """Return True when no node of the graph is in flight."""
        with self.lock:
            return self.join_counter == 0