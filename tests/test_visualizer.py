import io

import pytest

from taskweave.flow import TaskFlow
from taskweave.graph import Graph, Node, TaskPriority
from taskweave.visualizer import DotVisualizer, VisualizerError, visualize


def _noop():
    pass


def _render(tf):
    out = io.StringIO()
    visualize(tf.graph, out)
    return out.getvalue()


def test_header_and_footer():
    tf = TaskFlow("G")
    tf.new_task("A", _noop)
    text = _render(tf)
    assert text.startswith('digraph "G" {\n')
    assert text.endswith("}\n")
    assert "rankdir=LR;" in text


def test_static_nodes_and_edges():
    tf = TaskFlow("G")
    a = tf.new_task("A", _noop)
    b = tf.new_task("B", _noop)
    a.precede(b)
    text = _render(tf)
    assert '"A" [color="black"];' in text
    assert '"A" -> "B" [label="", style=solid];' in text


def test_priority_colors():
    tf = TaskFlow("G")
    tf.new_task("hi", _noop).with_priority(TaskPriority.HIGH)
    tf.new_task("lo", _noop).with_priority(TaskPriority.LOW)
    text = _render(tf)
    assert '"hi" [color="#f5427b"];' in text
    assert '"lo" [color="purple"];' in text


def test_condition_edges_are_labelled():
    tf = TaskFlow("G")
    cond = tf.new_condition("cond", lambda: 0)
    yes = tf.new_task("yes", _noop)
    no = tf.new_task("no", _noop)
    cond.precede(yes, no)
    text = _render(tf)
    assert '"cond" [shape=diamond, color="green"];' in text
    assert '"cond" -> "yes" [label="0", style=dashed];' in text
    assert '"cond" -> "no" [label="1", style=dashed];' in text


def test_subflow_rendered_as_cluster():
    tf = TaskFlow("G")

    def build(sf):
        a2 = sf.new_task("A2", _noop)
        b2 = sf.new_task("B2", _noop)
        a2.precede(b2)

    sub = tf.new_subflow("sub1", build)
    b = tf.new_task("B", _noop)
    sub.precede(b)
    text = _render(tf)
    assert 'subgraph "cluster_sub1" {' in text
    assert '"A2" -> "B2" [label="", style=solid];' in text
    assert '"sub1" [shape=point];' in text
    assert '"sub1" -> "B" [label="", style=solid];' in text
    cluster_start = text.index('subgraph "cluster_sub1"')
    assert cluster_start < text.index('"A2" [color="black"];')


def test_failing_subflow_is_marked():
    tf = TaskFlow("G")

    def build(sf):
        raise ValueError("boom")

    tf.new_subflow("sub", build)
    text = _render(tf)
    assert '"unvisualized_subflow_sub" [color="#a10212"' in text


def test_edge_to_foreign_node_fails():
    graph = Graph("G")
    a = Node("A")
    a.precede(Node("elsewhere"))
    graph.push(a)
    with pytest.raises(VisualizerError, match="visualize G"):
        DotVisualizer().visualize(graph, io.StringIO())


def test_writer_error_is_wrapped():
    class BrokenWriter:
        def write(self, text):
            raise OSError("disk full")

    tf = TaskFlow("G")
    tf.new_task("A", _noop)
    with pytest.raises(VisualizerError, match="render"):
        visualize(tf.graph, BrokenWriter())


def test_quotes_are_escaped():
    tf = TaskFlow("G")
    tf.new_task('say "hi"', _noop)
    text = _render(tf)
    assert '"say \\"hi\\"" [color="black"];' in text