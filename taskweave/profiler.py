"""Collection of task timing spans and their output as flame-graph text."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TextIO

from .durations import normalize_duration
from .graph import NodeType


@dataclass(frozen=True)
class Attr:
    """Identity of a span: the kind and name of the node it timed."""

    kind: NodeType
    name: str


@dataclass(eq=False)
class Span:
    """One timed run of a node; times are in nanoseconds."""

    extra: Attr
    begin: int = 0
    cost: int = 0
    parent: Span | None = None

    def __str__(self) -> str:
        return f"{self.extra.kind.value},{self.extra.name},cost {normalize_duration(self.cost)}"


class Profiler:
    """Accumulates spans per node identity."""

    def __init__(self) -> None:
        self.spans: dict[Attr, Span] = {}
        self._lock = threading.Lock()

    def add_span(self, span: Span) -> None:
        """Record ``span``, adding the cost of an earlier span of the same node."""
        with self._lock:
            previous = self.spans.get(span.extra)
            if previous is not None:
                span.cost += previous.cost
            self.spans[span.extra] = span

    def draw(self, writer: TextIO) -> None:
        """Write one folded-stack line per non-subflow span, cost in microseconds."""
        with self._lock:
            for span in self.spans.values():
                if span.extra.kind is NodeType.SUBFLOW:
                    continue
                path = str(span)
                current = span
                while current.parent is not None:
                    path = f"{current.parent};{path}"
                    current = current.parent
                try:
                    writer.write(f"{path} {span.cost // 1000}\n")
                except OSError as exc:
                    raise OSError(f"write profile -> {exc}") from exc