"""Status tracking over a resolved dependency graph."""

from __future__ import annotations

from festgraph import log
from festgraph.algorithms import ready_tasks
from festgraph.graph import Graph
from festgraph.tasks.model import Task, TaskStatus


class Scheduler:
    """Drives task status transitions on a Graph's tasks.

    Usage::

        sched = Scheduler(graph)
        ready = sched.get_ready()      # pending tasks whose deps are complete
        sched.start_task(tid)          # pending -> in_progress
        sched.complete_task(tid)       # -> complete
        sched.reset_task(tid)          # -> pending

    Status lives on the tasks themselves, so ``ready_tasks(graph)`` sees
    every transition made here.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph

    def _task(self, task_id: str) -> Task:
        task = self._graph.get_task(task_id)
        if task is None:
            raise KeyError(f"Unknown task: {task_id}")
        return task

    # ── state queries ────────────────────────────────────────────

    def state(self, task_id: str) -> TaskStatus:
        return self._task(task_id).status

    def _count(self, status: TaskStatus) -> int:
        return sum(1 for t in self._graph.tasks.values() if t.status == status)

    def count_pending(self) -> int:
        return self._count(TaskStatus.PENDING)

    def count_in_progress(self) -> int:
        return self._count(TaskStatus.IN_PROGRESS)

    def count_complete(self) -> int:
        return self._count(TaskStatus.COMPLETE)

    def deps_satisfied(self, task_id: str) -> bool:
        return all(
            dep.status == TaskStatus.COMPLETE
            for dep in self._graph.get_dependencies(task_id)
        )

    def get_ready(self) -> list[Task]:
        return ready_tasks(self._graph)

    # ── transitions ──────────────────────────────────────────────

    def start_task(self, task_id: str) -> None:
        task = self._task(task_id)
        if task.status != TaskStatus.PENDING:
            raise ValueError(f"Task {task_id} is {task.status.value}, not pending")
        task.status = TaskStatus.IN_PROGRESS
        log.debug(f"Task {task.name}: pending -> in_progress")

    def complete_task(self, task_id: str) -> None:
        task = self._task(task_id)
        previous = task.status
        task.status = TaskStatus.COMPLETE
        log.debug(f"Task {task.name}: {previous.value} -> complete")

    def reset_task(self, task_id: str) -> None:
        task = self._task(task_id)
        previous = task.status
        task.status = TaskStatus.PENDING
        log.debug(f"Task {task.name}: {previous.value} -> pending")

    # ── diagnostics ──────────────────────────────────────────────

    def check_deadlock(self) -> bool:
        """Return ``True`` if no progress is possible (deadlock)."""
        return (
            self.count_pending() > 0
            and self.count_in_progress() == 0
            and len(self.get_ready()) == 0
        )

    def explain_block(self, task_id: str) -> str:
        """Human-readable explanation of why *task_id* is blocked."""
        self._task(task_id)
        blocked = [
            f"{dep.name} ({dep.status.value})"
            for dep in self._graph.get_dependencies(task_id)
            if dep.status != TaskStatus.COMPLETE
        ]
        if not blocked:
            return ""
        return f"waiting on: {' '.join(blocked)}"
