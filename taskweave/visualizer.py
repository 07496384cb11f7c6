"""Rendering of execution graphs as Graphviz DOT text."""

from __future__ import annotations

from typing import TextIO

from .graph import Graph, NodeType, TaskPriority

_PRIORITY_COLORS = {
    TaskPriority.HIGH: "#f5427b",
    TaskPriority.LOW: "purple",
}


class VisualizerError(Exception):
    """Raised when a graph cannot be rendered or written."""


def _quote(text: str) -> str:
    return '"' + text.replace('"', '\\"') + '"'


class DotVisualizer:
    """Writes a graph, with its subflows as clusters, in DOT format."""

    def visualize(self, graph: Graph, writer: TextIO) -> None:
        """Render ``graph`` and write the DOT text to ``writer``."""
        try:
            body = self._render(graph, 1)
        except VisualizerError as exc:
            raise VisualizerError(f"visualize {graph.name} -> {exc}") from exc
        lines = [f"digraph {_quote(graph.name)} {{", "\trankdir=LR;", *body, "}"]
        try:
            writer.write("\n".join(lines) + "\n")
        except OSError as exc:
            raise VisualizerError(f"render -> {exc}") from exc

    def _render(self, graph: Graph, depth: int) -> list[str]:
        pad = "\t" * depth
        lines: list[str] = []
        ids: dict[str, str] = {}

        for node in graph.nodes:
            color = _PRIORITY_COLORS.get(node.priority, "black")
            if node.kind is NodeType.STATIC:
                lines.append(f"{pad}{_quote(node.name)} [color={_quote(color)}];")
                ids[node.name] = node.name
            elif node.kind is NodeType.CONDITION:
                lines.append(f'{pad}{_quote(node.name)} [shape=diamond, color="green"];')
                ids[node.name] = node.name
            elif node.kind is NodeType.SUBFLOW:
                ids[node.name] = self._render_subflow(node, color, depth, lines)
        for node in graph.nodes:
            conditional = node.kind is NodeType.CONDITION
            style = "dashed" if conditional else "solid"
            for index, successor in enumerate(node.successors):
                target = ids.get(successor.name)
                if target is None:
                    raise VisualizerError(
                        f"add edge {successor.name} - {node.name} -> unknown node"
                    )
                label = str(index) if conditional else ""
                lines.append(
                    f"{pad}{_quote(ids[node.name])} -> {_quote(target)} "
                    f"[label={_quote(label)}, style={style}];"
                )
        return lines

    def _render_subflow(self, node, color: str, depth: int, lines: list[str]) -> str:
        pad = "\t" * depth
        inner = pad + "\t"
        subflow = node.payload
        cluster = [
            f"{pad}subgraph {_quote('cluster_' + node.name)} {{",
            f"{inner}label={_quote(node.name)};",
            f"{inner}style=dashed;",
            f"{inner}rankdir=LR;",
            f'{inner}bgcolor="#F5F5F5";',
            f"{inner}fontcolor={_quote(color)};",
        ]
        try:
            subflow.instantiate()
            content = self._render(subflow.graph, depth + 1)
        except (RuntimeError, VisualizerError):
            lines.extend(cluster)
            lines.append(f"{pad}}}")
            fallback = "unvisualized_subflow_" + subflow.graph.name
            lines.append(
                f'{pad}{_quote(fallback)} [color="#a10212", '
                f'comment="cannot visualize due to instantiate panic or failed"];'
            )
            return fallback
        lines.extend(cluster)
        lines.extend(content)
        lines.append(f"{inner}{_quote(subflow.graph.name)} [shape=point];")
        lines.append(f"{pad}}}")
        return subflow.graph.name


_default_visualizer = DotVisualizer()


def visualize(graph: Graph, writer: TextIO) -> None:
    """Write ``graph`` to ``writer`` in DOT format."""
    _default_visualizer.visualize(graph, writer)