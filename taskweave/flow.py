"""Task flows: building graphs of static, condition and subflow tasks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TextIO

from .graph import Graph, Node, NodeType, TaskPriority
from .visualizer import visualize


class FrozenFlowError(RuntimeError):
    """Raised when tasks are added to a flow that has been run."""


@dataclass(eq=False)
class Static:
    """Payload of a task that runs a plain callable."""

    handle: Callable[[], None]


@dataclass(eq=False)
class Condition:
    """Payload of a task whose return value picks the successor to run."""

    handle: Callable[[], int]
    mapper: dict[int, Node] = field(default_factory=dict)


@dataclass(eq=False)
class Subflow:
    """Payload of a task that builds and runs a nested graph."""

    handle: Callable[[Subflow], None]
    graph: Graph

    def instantiate(self) -> None:
        """Build the nested graph once.

        Raises RuntimeError if the builder raised; the subflow is then not
        built again.
        """
        if self.graph.instantiated:
            return
        self.graph.instantiated = True
        try:
            self.handle(self)
        except Exception as exc:
            raise RuntimeError("instantiate may have failed or panicked") from exc

    def new_task(self, name: str, func: Callable[[], None]) -> Task:
        """Add a static task to the subflow."""
        return self._push(_new_static(name, func))

    def new_subflow(self, name: str, func: Callable[[Subflow], None]) -> Task:
        """Add a nested subflow task to the subflow."""
        return self._push(_new_subflow(name, func))

    def new_condition(self, name: str, predict: Callable[[], int]) -> Task:
        """Add a condition task to the subflow."""
        return self._push(_new_condition(name, predict))

    def _push(self, node: Node) -> Task:
        self.graph.push(node)
        return Task(node)


def _new_static(name: str, func: Callable[[], None]) -> Node:
    return Node(name, NodeType.STATIC, Static(func))


def _new_subflow(name: str, func: Callable[[Subflow], None]) -> Node:
    return Node(name, NodeType.SUBFLOW, Subflow(func, Graph(name)))


def _new_condition(name: str, predict: Callable[[], int]) -> Node:
    return Node(name, NodeType.CONDITION, Condition(predict))


@dataclass(eq=False)
class Task:
    """Handle to a node of a flow, used to wire dependencies."""

    node: Node

    @property
    def name(self) -> str:
        return self.node.name

    def precede(self, *tasks: Task) -> None:
        """Make every task in ``tasks`` depend on this one.

        For a condition task the position in ``tasks`` is the value the
        predicate returns to choose that task.
        """
        payload = self.node.payload
        if isinstance(payload, Condition):
            for index, task in enumerate(tasks):
                payload.mapper[index] = task.node
        for task in tasks:
            self.node.precede(task.node)

    def succeed(self, *tasks: Task) -> None:
        """Make this task depend on every task in ``tasks``."""
        for task in tasks:
            task.node.precede(self.node)

    def with_priority(self, priority: TaskPriority) -> Task:
        """Set the scheduling priority and return the task."""
        self.node.priority = priority
        return self


class TaskFlow:
    """A named graph of tasks that an executor runs."""

    def __init__(self, name: str) -> None:
        self.graph = Graph(name)
        self.frozen = False

    @property
    def name(self) -> str:
        return self.graph.name

    def reset(self) -> None:
        """Unfreeze the flow so more tasks can be added."""
        self.frozen = False

    def new_task(self, name: str, func: Callable[[], None]) -> Task:
        """Add a static task."""
        return self._push(_new_static(name, func))

    def new_subflow(self, name: str, instantiate: Callable[[Subflow], None]) -> Task:
        """Add a subflow task; ``instantiate`` is called once to build it."""
        return self._push(_new_subflow(name, instantiate))

    def new_condition(self, name: str, predict: Callable[[], int]) -> Task:
        """Add a condition task; ``predict`` chooses the successor to run."""
        return self._push(_new_condition(name, predict))

    def dump(self, writer: TextIO) -> None:
        """Write the flow's graph to ``writer`` in DOT format."""
        visualize(self.graph, writer)

    def _push(self, node: Node) -> Task:
        if self.frozen:
            raise FrozenFlowError("taskflow is frozen, cannot add new tasks")
        self.graph.push(node)
        return Task(node)