"""Pure queries over a populated Graph: ordering, batching, critical path.

Every edge counts for ordering and cycle detection, whether it came from a
hard or a soft dependency. Ties between simultaneously eligible tasks are
broken by ascending task number, then id.
"""

from __future__ import annotations

import heapq
from typing import NamedTuple

from festgraph import log
from festgraph.errors import CycleError
from festgraph.graph import Graph
from festgraph.tasks.model import Task, TaskStatus


class SortResult(NamedTuple):
    """Outcome of :func:`topological_sort`.

    On a cycle ``error`` is set and ``order`` holds only the tasks emitted
    before the sort stalled. Unpacks as ``order, error``.
    """

    order: list[Task]
    error: CycleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _sorted(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.sort_key)


# ── cycles ───────────────────────────────────────────────────────


def find_cycle(graph: Graph, within: set[str] | None = None) -> list[str]:
    """Return the ids of one cycle (first id repeated at the end), or ``[]``.

    Iterative three-color DFS. When *within* is given, only those nodes and
    the edges among them are explored.
    """
    WHITE, GRAY, BLACK = 0, 1, 2
    nodes = [
        t.id for t in _sorted(list(graph.tasks.values()))
        if within is None or t.id in within
    ]
    color: dict[str, int] = {tid: WHITE for tid in nodes}

    for start in nodes:
        if color[start] != WHITE:
            continue
        color[start] = GRAY
        stack = [(start, iter(graph.outgoing[start]))]
        while stack:
            node, successors = stack[-1]
            descended = False
            for nxt in successors:
                state = color.get(nxt)
                if state is None or state == BLACK:
                    continue
                if state == GRAY:
                    path = [n for n, _ in stack]
                    return path[path.index(nxt):] + [nxt]
                color[nxt] = GRAY
                stack.append((nxt, iter(graph.outgoing[nxt])))
                descended = True
                break
            if not descended:
                color[node] = BLACK
                stack.pop()
    return []


def has_cycle(graph: Graph) -> bool:
    """Return ``True`` if any back edge exists."""
    return bool(find_cycle(graph))


# ── ordering ─────────────────────────────────────────────────────


def topological_sort(graph: Graph) -> SortResult:
    """Kahn's algorithm with a ``(number, id)`` ordered ready heap."""
    in_degree = dict(graph.in_degree)
    heap = [(t.number, t.id) for t in graph.tasks.values() if in_degree[t.id] == 0]
    heapq.heapify(heap)

    order: list[Task] = []
    while heap:
        _, tid = heapq.heappop(heap)
        order.append(graph.tasks[tid])
        for succ in graph.outgoing[tid]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                heapq.heappush(heap, (graph.tasks[succ].number, succ))

    if len(order) == len(graph.tasks):
        return SortResult(order)

    emitted = {t.id for t in order}
    remaining = {tid for tid in graph.tasks if tid not in emitted}
    cycle = find_cycle(graph, within=remaining)
    if not cycle:
        cycle = [t.id for t in _sorted([graph.tasks[tid] for tid in remaining])]
    err = CycleError(cycle)
    log.debug(f"Topological sort stalled with {len(remaining)} task(s) left: {err}")
    return SortResult(order, err)


def parallel_groups(graph: Graph) -> list[list[Task]]:
    """Peel in-degree-0 wavefronts off the graph, one level per wave.

    Returns ``[]`` when a cycle keeps some tasks from ever becoming eligible.
    """
    in_degree = dict(graph.in_degree)
    current = _sorted([t for t in graph.tasks.values() if in_degree[t.id] == 0])

    groups: list[list[Task]] = []
    placed = 0
    while current:
        groups.append(current)
        placed += len(current)
        wave: list[Task] = []
        for task in current:
            for succ in graph.outgoing[task.id]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0:
                    wave.append(graph.tasks[succ])
        current = _sorted(wave)

    if placed != len(graph.tasks):
        log.debug("Parallel groups undefined: graph contains a cycle")
        return []
    return groups


def critical_path(graph: Graph) -> list[Task]:
    """Longest chain of dependent tasks, counted in tasks.

    Empty when the graph has no edges or contains a cycle. Ties go to the
    task that comes first in topological order.
    """
    if not graph.edges:
        return []
    order, err = topological_sort(graph)
    if err is not None:
        return []

    position = {t.id: i for i, t in enumerate(order)}
    longest: dict[str, int] = {}
    previous: dict[str, str | None] = {}

    for task in order:
        best, best_pred = 0, None
        for pred in sorted(set(graph.incoming[task.id]), key=position.__getitem__):
            if longest[pred] > best:
                best, best_pred = longest[pred], pred
        longest[task.id] = best + 1
        previous[task.id] = best_pred

    end = order[0].id
    for task in order:
        if longest[task.id] > longest[end]:
            end = task.id

    path: list[Task] = []
    cursor: str | None = end
    while cursor is not None:
        path.append(graph.tasks[cursor])
        cursor = previous[cursor]
    path.reverse()
    return path


# ── status-driven queries ────────────────────────────────────────


def ready_tasks(graph: Graph) -> list[Task]:
    """Pending tasks whose predecessors are all complete, at call time."""
    ready = [
        task for task in graph.tasks.values()
        if task.status == TaskStatus.PENDING
        and all(
            graph.tasks[pred].status == TaskStatus.COMPLETE
            for pred in graph.incoming[task.id]
        )
    ]
    return _sorted(ready)
