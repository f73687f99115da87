"""In-memory dependency graph of festival tasks."""

from __future__ import annotations

from typing import Any

from festgraph.tasks.model import Dependency, DependencyType, Task


class Graph:
    """Tasks keyed by id plus typed edges.

    Indexes are maintained as edges are added:

    - ``in_degree[id]``: number of incoming edges (parallel edges counted)
    - ``outgoing[id]``: successor ids, one entry per edge
    - ``incoming[id]``: predecessor ids, one entry per edge

    The graph does not enforce acyclicity. There is no removal API.
    """

    def __init__(self) -> None:
        self.tasks: dict[str, Task] = {}
        self.edges: list[Dependency] = []
        self.in_degree: dict[str, int] = {}
        self.outgoing: dict[str, list[str]] = {}
        self.incoming: dict[str, list[str]] = {}
        self._by_path: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.tasks

    # ── construction ─────────────────────────────────────────────

    def add_task(self, task: Task) -> None:
        """Add *task* as a node. Re-adding an existing id is a no-op."""
        if task.id in self.tasks:
            return
        self.tasks[task.id] = task
        self.in_degree[task.id] = 0
        self.outgoing[task.id] = []
        self.incoming[task.id] = []
        if task.path:
            self._by_path.setdefault(task.path, task.id)

    def add_dependency(
        self,
        source: Task,
        target: Task,
        dep_type: DependencyType = DependencyType.IMPLICIT,
        required: bool = True,
    ) -> Dependency:
        """Record that *target* requires *source*. Both must already be nodes."""
        for task in (source, target):
            if task.id not in self.tasks:
                raise KeyError(f"Task {task.id!r} is not in the graph")
        dep = Dependency(source=source, target=target, type=dep_type, required=required)
        self.edges.append(dep)
        self.in_degree[target.id] += 1
        self.outgoing[source.id].append(target.id)
        self.incoming[target.id].append(source.id)
        return dep

    # ── lookups ──────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def find_by_path(self, path: str) -> Task | None:
        task_id = self._by_path.get(path)
        return self.tasks.get(task_id) if task_id is not None else None

    def get_dependencies(self, task_id: str) -> list[Task]:
        """Direct predecessors of *task_id*, distinct, in discovery order."""
        return self._distinct(self.incoming.get(task_id, []))

    def get_dependents(self, task_id: str) -> list[Task]:
        """Direct successors of *task_id*, distinct, in discovery order."""
        return self._distinct(self.outgoing.get(task_id, []))

    def edges_between(self, source_id: str, target_id: str) -> list[Dependency]:
        return [
            e for e in self.edges
            if e.source.id == source_id and e.target.id == target_id
        ]

    def sequences(self) -> dict[str, list[Task]]:
        """Tasks grouped by sequence path, in node insertion order."""
        grouped: dict[str, list[Task]] = {}
        for task in self.tasks.values():
            grouped.setdefault(task.sequence_path, []).append(task)
        return grouped

    def _distinct(self, ids: list[str]) -> list[Task]:
        seen: set[str] = set()
        result: list[Task] = []
        for tid in ids:
            if tid in seen:
                continue
            seen.add(tid)
            result.append(self.tasks[tid])
        return result

    # ── serialization ────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": {tid: t.to_dict() for tid, t in self.tasks.items()},
            "edges": [e.to_dict() for e in self.edges],
        }
