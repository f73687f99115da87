"""Task and Dependency data models used across resolution and graph queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class DependencyType(str, Enum):
    IMPLICIT = "implicit"  # from task numbering
    EXPLICIT = "explicit"  # declared, same sequence
    CROSS_SEQUENCE = "cross_sequence"
    CROSS_PHASE = "cross_phase"


@dataclass(eq=False)
class Task:
    id: str
    name: str = ""
    number: int = 0
    path: str = ""
    sequence_path: str = ""
    phase_path: str = ""
    parallel_group: int | None = None
    status: TaskStatus = TaskStatus.PENDING
    dependencies: list[str] = field(default_factory=list)
    soft_deps: list[str] = field(default_factory=list)
    autonomy_level: str = ""

    def __post_init__(self) -> None:
        if self.parallel_group is None:
            self.parallel_group = self.number
        self.status = TaskStatus(self.status)

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.number, self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "path": self.path,
            "sequence_path": self.sequence_path,
            "phase_path": self.phase_path,
            "parallel_group": self.parallel_group,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
            "soft_deps": list(self.soft_deps),
            "autonomy_level": self.autonomy_level,
        }


def classify_dependency(source: Task, target: Task) -> DependencyType:
    """Type of a declared edge, from where its endpoints live."""
    if source.sequence_path == target.sequence_path:
        return DependencyType.EXPLICIT
    if source.phase_path == target.phase_path:
        return DependencyType.CROSS_SEQUENCE
    return DependencyType.CROSS_PHASE


@dataclass
class Dependency:
    """Directed edge: ``target`` requires ``source``."""

    source: Task
    target: Task
    type: DependencyType = DependencyType.IMPLICIT
    required: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.source.id,
            "to": self.target.id,
            "type": self.type.value,
            "required": self.required,
        }
