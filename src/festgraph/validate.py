"""Dependency validation: cycles, dangling references, numbering gaps.

Problems are collected into a :class:`ValidationResult`; nothing here raises
for an invalid graph. ``valid`` is false only when hard errors exist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from festgraph import log
from festgraph.algorithms import topological_sort
from festgraph.config import Config
from festgraph.errors import (
    CYCLE_DETECTED,
    MISSING_DEPENDENCY,
    MISSING_SOFT_DEPENDENCY,
    NUMBERING_GAP,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    UNREADABLE_ROOT,
)
from festgraph.graph import Graph
from festgraph.io_utils import PathLike
from festgraph.resolver import Resolver, UnresolvedReference


@dataclass
class ValidationIssue:
    code: str
    message: str
    severity: str = SEVERITY_ERROR
    task_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
        }


@dataclass
class ValidationResult:
    graph: Graph
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def codes(self) -> list[str]:
        return [i.code for i in self.errors + self.warnings]

    def to_dict(self, include_graph: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if include_graph:
            data["graph"] = self.graph.to_dict()
        return data


# ── individual checks ────────────────────────────────────────────


def check_root(resolver: Resolver, where: PathLike) -> list[ValidationIssue]:
    """An error when the festival or sequence directory could not be listed."""
    if resolver.root_readable:
        return []
    return [
        ValidationIssue(
            code=UNREADABLE_ROOT,
            message=f"Failed to resolve dependencies: cannot list {where}",
        )
    ]


def check_cycles(graph: Graph) -> list[ValidationIssue]:
    _, err = topological_sort(graph)
    if err is None:
        return []
    return [
        ValidationIssue(
            code=CYCLE_DETECTED,
            message=f"Circular dependency detected: {' -> '.join(err.cycle)}",
        )
    ]


def check_references(
    graph: Graph,
    unresolved: list[UnresolvedReference],
) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    """Hard misses become errors, soft misses become warnings."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    for miss in unresolved:
        task = graph.get_task(miss.task_id)
        name = task.name if task else miss.task_id
        if miss.required:
            errors.append(ValidationIssue(
                code=MISSING_DEPENDENCY,
                message=f"Task {name} declares dependency on {miss.reference!r} which does not exist",
                task_id=miss.task_id,
            ))
        else:
            warnings.append(ValidationIssue(
                code=MISSING_SOFT_DEPENDENCY,
                message=f"Task {name} declares soft dependency on {miss.reference!r} which does not exist",
                severity=SEVERITY_WARNING,
                task_id=miss.task_id,
            ))
    return errors, warnings


def check_numbering_gaps(graph: Graph) -> list[ValidationIssue]:
    """One warning per number missing between 1 and a sequence's highest."""
    warnings: list[ValidationIssue] = []
    for seq_path, tasks in graph.sequences().items():
        present = {t.number for t in tasks}
        for missing in range(1, max(present)):
            if missing in present:
                continue
            warnings.append(ValidationIssue(
                code=NUMBERING_GAP,
                message=f"Sequence {seq_path} has a gap in task numbering at position {missing:02d}",
                severity=SEVERITY_WARNING,
            ))
    return warnings


# ── entry points ─────────────────────────────────────────────────


def validate(root: PathLike, config: Config | None = None) -> ValidationResult:
    """Resolve the festival at *root* and check it."""
    resolver = Resolver(root, config)
    graph = resolver.resolve_festival()
    result = ValidationResult(graph=graph)

    result.errors.extend(check_root(resolver, root))
    result.errors.extend(check_cycles(graph))
    ref_errors, ref_warnings = check_references(graph, resolver.unresolved)
    result.errors.extend(ref_errors)
    result.warnings.extend(ref_warnings)
    result.warnings.extend(check_numbering_gaps(graph))

    _log_summary(root, result)
    return result


def validate_sequence(seq_path: PathLike, config: Config | None = None) -> ValidationResult:
    """Resolve one sequence; only listing failures and cycles are checked."""
    resolver = Resolver(Path(seq_path).parent.parent, config)
    graph = resolver.resolve_sequence(seq_path)
    result = ValidationResult(graph=graph)
    result.errors.extend(check_root(resolver, seq_path))
    result.errors.extend(check_cycles(graph))

    _log_summary(seq_path, result)
    return result


def _log_summary(where: PathLike, result: ValidationResult) -> None:
    if result.valid:
        log.debug(
            f"{where}: {len(result.graph)} task(s) valid, {len(result.warnings)} warning(s)"
        )
    else:
        log.debug(
            f"{where}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
