"""Task dependency graphs with subflows, conditions and priorities, run on a bounded worker pool."""

__version__ = "0.1.0"

__all__ = ["copool", "durations", "executor", "flow", "graph", "profiler", "queue", "visualizer"]