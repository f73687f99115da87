"""Shared fixtures for festgraph tests.

File handling in tests:
- Use tmp_path for any directory or file creation so tests are isolated and cleaned up.
- Use write_text below for consistent UTF-8 I/O.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from festgraph import log
from festgraph.graph import Graph
from festgraph.tasks.model import DependencyType, Task, TaskStatus


@pytest.fixture(autouse=True)
def _quiet_logs():
    """Keep debug logging off between tests."""
    log.set_verbose(False)
    yield
    log.set_verbose(False)


def write_text(path: Path, text: str) -> None:
    """Write text to path with UTF-8 encoding, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _make_task(
    id: str,
    number: int = 1,
    name: str = "",
    sequence_path: str = "seq",
    phase_path: str = "phase",
    status: TaskStatus = TaskStatus.PENDING,
    dependencies: list[str] | None = None,
    soft_deps: list[str] | None = None,
) -> Task:
    return Task(
        id=id,
        name=name or id,
        number=number,
        sequence_path=sequence_path,
        phase_path=phase_path,
        status=status,
        dependencies=dependencies or [],
        soft_deps=soft_deps or [],
    )


def _make_graph(tasks: list[Task], edges: list[tuple[str, str]] | None = None) -> Graph:
    """Build a graph; each edge ``(a, b)`` means b requires a."""
    graph = Graph()
    for task in tasks:
        graph.add_task(task)
    for source, target in edges or []:
        graph.add_dependency(graph.tasks[source], graph.tasks[target], DependencyType.EXPLICIT)
    return graph


@pytest.fixture
def make_task():
    """Factory fixture that creates Task instances."""
    return _make_task


@pytest.fixture
def make_graph():
    """Factory fixture that creates populated Graph instances."""
    return _make_graph


@pytest.fixture
def diamond(make_task, make_graph) -> Graph:
    """1 -> {2a, 2b} -> 3."""
    return make_graph(
        [
            make_task("1", 1),
            make_task("2a", 2),
            make_task("2b", 2),
            make_task("3", 3),
        ],
        [("1", "2a"), ("1", "2b"), ("2a", "3"), ("2b", "3")],
    )


@pytest.fixture
def write_festival(tmp_path: Path):
    """Write ``{relative_path: content}`` under a festival root and return the root."""

    def _write(files: dict[str, str], root_name: str = "fest") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            write_text(root / rel, content)
        return root

    return _write


def frontmatter(**fields: object) -> str:
    """Render a YAML frontmatter block followed by a short body."""
    lines = ["---"]
    for key, value in fields.items():
        if isinstance(value, list):
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in value)
        else:
            lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append("")
    lines.append("# Task")
    return "\n".join(lines) + "\n"


@pytest.fixture
def render_frontmatter():
    """Factory fixture for task file content with frontmatter."""
    return frontmatter
