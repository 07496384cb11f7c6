# taskweave

taskweave lets you describe work as a directed graph of tasks. It runs the
graph concurrently on a pool of worker threads, and the pool never grows past
a fixed number of workers.

It supports:

- **static tasks**: plain callables;
- **subflows**: tasks that build a nested graph the first time they run;
- **conditions**: tasks whose return value picks which successor runs next,
  so a graph can branch or loop;
- **priorities**: `HIGH`, `NORMAL` and `LOW` set the order in which ready
  tasks are scheduled;
- **DOT output** of a flow, as text for Graphviz;
- **a profiler** that writes folded-stack lines for flame-graph tools.

## Installation

```
pip install .
```

The package uses only the Python standard library. To run the tests, install
the `test` extra (`pip install .[test]`) and run `pytest`.

## Building and running a flow

```python
import sys

from taskweave.executor import Executor
from taskweave.flow import TaskFlow

flow = TaskFlow("G")
a = flow.new_task("A", lambda: print("A"))
b = flow.new_task("B", lambda: print("B"))
c = flow.new_task("C", lambda: print("C"))

a.precede(b)   # B runs after A
c.precede(b)   # ... and after C
# equivalently: b.succeed(a, c)

executor = Executor(4)
executor.run(flow).wait()
executor.profile(sys.stdout)
```

`Executor(concurrency)` takes the largest number of worker threads that may
run at the same time. A value of zero or less raises `ValueError`. The value
should also be larger than the number of subflows that can be active at once,
because a running subflow keeps its worker busy while its inner graph runs.

`run()` returns the executor, so calls can be chained. `wait()` blocks until
every scheduled task has finished.

Running a flow freezes it. Adding a task to a frozen flow raises
`FrozenFlowError` until you call `flow.reset()`. A flow can be run again.

A task created with an empty name gets a generated name of the form `N_<digits>`.

## Subflows

```python
def build(sf):
    x = sf.new_task("X", lambda: print("X"))
    y = sf.new_task("Y", lambda: print("Y"))
    x.precede(y)

sub = flow.new_subflow("sub", build)
a.precede(sub)
```

A `Subflow` offers `new_task`, `new_subflow` and `new_condition`, so subflows
can be nested. The builder function runs only once, the first time the
subflow runs or is drawn. Later runs reuse the graph it built.

## Conditions and loops

A condition returns an integer. That integer is the index of the successor
that runs next, counted among the tasks passed to `precede`:

```python
state = {"i": 0}

init = flow.new_task("init", lambda: state.update(i=0))
cond = flow.new_condition("i < 5", lambda: 0 if state["i"] < 5 else 1)
body = flow.new_task("body", lambda: state.update(i=state["i"] + 1))
back = flow.new_condition("back", lambda: 0)
done = flow.new_task("done", lambda: print("done"))

init.precede(cond)
cond.precede(body, done)   # 0 -> body, 1 -> done
body.precede(back)
back.precede(cond)         # loop back
```

If a condition returns an index that has no successor, its graph is canceled.

## Priorities

```python
from taskweave.graph import TaskPriority

flow.new_task("urgent", work).with_priority(TaskPriority.HIGH)
```

Priority sets the order in which ready tasks are scheduled. It does not fix
the order in which they run, because tasks run concurrently.

## Failures

An exception raised inside a task cancels the graph that task belongs to, and
tasks of that graph that are still waiting are not run. When a subflow's graph
is canceled, the graph that contains the subflow is canceled too. The executor
reports failures through the `logging` module (logger `taskweave.executor`),
and `wait()` still returns.

## Profiling

`executor.profile(writer)` writes one line for each static and condition task
that has run without raising:

```
static,sub,cost 1ms;static,X,cost 120µs 120
```

The path is made of the task's span and the spans of the subflows that
enclose it, joined by `;`. The number after it is the task's cost in
microseconds. Each task's costs are added up over every run the executor has
made.

## Visualizing

`flow.dump(writer)` writes the graph as DOT text:

- static tasks are coloured by priority: black for `NORMAL`, pink for `HIGH`
  and purple for `LOW`;
- condition tasks are green diamonds, and their outgoing edges are dashed and
  labelled with the branch index;
- subflows are drawn as dashed clusters. Drawing a subflow runs its builder if
  it has not run yet. If the builder raises, the subflow is drawn as a single
  red node named `unvisualized_subflow_<name>`.

Errors while drawing raise `taskweave.visualizer.VisualizerError`. The same
output is available for any graph through
`taskweave.visualizer.visualize(graph, writer)`.

## Other helpers

- `taskweave.queue.Queue`: a FIFO queue with `put`, `pop`, `try_pop`, `top`
  and indexed `get` (negative indices count from the back). It can hold an
  internal lock so that threads can share it. `top`, `pop` and `get` raise
  `IndexError` on an empty queue or a bad index.
- `taskweave.copool.Copool`: the bounded worker pool that the executor uses.
  `go(func)` schedules a callable, and `set_panic_handler(handler)` installs a
  handler for exceptions raised by tasks. Without a handler, an exception in a
  task is printed to stderr and the process exits.
- `taskweave.copool.ObjectPool`: a small free list of reusable objects.
- `taskweave.durations.normalize_duration(nanoseconds)`: formats a duration
  as a compact string such as `"1h30m15s"` or `"500µs"`.

## What it does not do

taskweave is a library only: it has no command-line tool. Flow dumps are DOT
text. To turn them into images, use Graphviz or another DOT renderer.