"""Resolver: builds a dependency Graph from a festival directory tree.

Layout walked::

    <festival>/<NNN_phase>/<NN_sequence>/<NN_task>.md

Implicit edges come from task numbering within a sequence; explicit edges
come from references declared in task metadata. Unreadable directories and
files are skipped, never fatal.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path

from festgraph import log
from festgraph.config import Config
from festgraph.errors import ResolveCancelled
from festgraph.graph import Graph
from festgraph.io_utils import PathLike, read_text
from festgraph.tasks.extract import TaskMetadata, extract_metadata, leading_number
from festgraph.tasks.model import DependencyType, Task, classify_dependency


@dataclass(frozen=True)
class UnresolvedReference:
    task_id: str
    reference: str
    required: bool


def task_id_for(path: PathLike) -> str:
    """Stable id for a task file: its normalized path."""
    return os.path.normpath(str(path))


def is_numbered_dir(name: str) -> bool:
    if len(name) < 2 or name[0] in "._":
        return False
    return name[0].isdigit()


def resolve_reference(
    graph: Graph,
    task: Task,
    ref: str,
    config: Config | None = None,
) -> Task | None:
    """Resolve a declared reference from *task* to a task in *graph*.

    Accepted forms, tried in order:

    - ``../other_sequence/01_task`` or ``../../phase/seq/01_task``: relative
      to the task's sequence directory
    - ``01_task`` or ``01_task.md``: a task name in the same sequence
    - ``sub/path``: joined onto the sequence directory
    """
    cfg = config or Config()
    ref = ref.strip()
    if not ref:
        return None

    if ref.startswith(cfg.relative_prefix):
        target = os.path.normpath(os.path.join(task.sequence_path, ref))
        return graph.find_by_path(cfg.with_extension(target))

    bare = cfg.strip_extension(ref)
    for candidate in graph.tasks.values():
        if candidate.sequence_path != task.sequence_path:
            continue
        if candidate.name == ref or candidate.name == bare:
            return candidate

    target = os.path.normpath(os.path.join(task.sequence_path, ref))
    return graph.find_by_path(cfg.with_extension(target))


class Resolver:
    """Walks a festival and produces a fresh Graph per call.

    Usage::

        resolver = Resolver(festival_root)
        graph = resolver.resolve_festival()
        resolver.unresolved  # references that matched no task
        resolver.root_readable  # False when the root could not be listed
    """

    def __init__(self, root: PathLike, config: Config | None = None) -> None:
        self.root = Path(root)
        self.config = config or Config()
        self.unresolved: list[UnresolvedReference] = []
        self.root_readable = True
        self._graph = Graph()

    # ── entry points ─────────────────────────────────────────────

    def resolve_festival(self, cancel: threading.Event | None = None) -> Graph:
        """Resolve every phase and sequence under the festival root."""
        self._reset()
        phases = self._list_numbered_dirs(self.root, root=True)
        log.debug(f"Resolving festival {self.root} ({len(phases)} phase(s))")

        for phase in phases:
            self._check_cancel(cancel, phase)
            for sequence in self._list_numbered_dirs(phase):
                self._check_cancel(cancel, sequence)
                self._load_sequence(sequence, phase)

        self._add_explicit_dependencies()
        return self._graph

    def resolve_sequence(
        self,
        seq_path: PathLike,
        cancel: threading.Event | None = None,
    ) -> Graph:
        """Resolve a single sequence; its parent directory is the phase."""
        self._reset()
        seq = Path(seq_path)
        self._check_cancel(cancel, seq)
        self._load_sequence(seq, seq.parent, root=True)
        self._add_explicit_dependencies()
        return self._graph

    # ── walking ──────────────────────────────────────────────────

    def _reset(self) -> None:
        self._graph = Graph()
        self.unresolved = []
        self.root_readable = True

    @staticmethod
    def _check_cancel(cancel: threading.Event | None, where: Path) -> None:
        if cancel is not None and cancel.is_set():
            raise ResolveCancelled(f"Resolution cancelled before {where}")

    def _list_entries(self, directory: Path, root: bool = False) -> list[Path]:
        """Sorted entries of *directory*; ``[]`` when it cannot be listed.

        A failure on the directory a resolution started from clears
        ``root_readable`` so callers can tell it apart from an empty tree.
        """
        try:
            return sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            if root:
                self.root_readable = False
            log.warn(f"Skipping unreadable directory {directory}: {exc}")
            return []

    def _list_numbered_dirs(self, directory: Path, root: bool = False) -> list[Path]:
        return [
            p for p in self._list_entries(directory, root)
            if p.is_dir() and is_numbered_dir(p.name)
        ]

    def _load_sequence(self, seq: Path, phase: Path, root: bool = False) -> None:
        tasks: list[Task] = []
        for entry in self._list_entries(seq, root):
            task = self._load_task(entry, seq, phase)
            if task is not None:
                tasks.append(task)

        tasks.sort(key=lambda t: t.number)
        for task in tasks:
            self._graph.add_task(task)
        self._add_implicit_dependencies(tasks)
        log.debug(f"Sequence {seq}: {len(tasks)} task(s)")

    def _load_task(self, entry: Path, seq: Path, phase: Path) -> Task | None:
        name = entry.name
        if not self.config.is_task_filename(name) or not entry.is_file():
            return None
        number = leading_number(name)
        if number is None:
            return None

        try:
            content = read_text(entry, errors="replace")
        except OSError as exc:
            log.warn(f"Could not read {entry}: {exc}; using default metadata")
            meta = TaskMetadata()
        else:
            meta = extract_metadata(str(entry), content, self.config)
            if not meta.tracked:
                log.debug(f"Skipping untracked task file {entry}")
                return None

        path = task_id_for(entry)
        return Task(
            id=path,
            name=self.config.strip_extension(name),
            number=number,
            path=path,
            sequence_path=task_id_for(seq),
            phase_path=task_id_for(phase),
            parallel_group=meta.parallel_group if meta.parallel_group is not None else number,
            status=meta.status,
            dependencies=meta.dependencies,
            soft_deps=meta.soft_deps,
            autonomy_level=meta.autonomy_level,
        )

    # ── edges ────────────────────────────────────────────────────

    def _add_implicit_dependencies(self, tasks: list[Task]) -> None:
        """Every task at one present number precedes every task at the next."""
        by_number: dict[int, list[Task]] = {}
        for task in tasks:
            by_number.setdefault(task.number, []).append(task)

        numbers = sorted(by_number)
        for prev_num, next_num in zip(numbers, numbers[1:]):
            for target in by_number[next_num]:
                for source in by_number[prev_num]:
                    self._graph.add_dependency(source, target, DependencyType.IMPLICIT, True)

    def _add_explicit_dependencies(self) -> None:
        for task in list(self._graph.tasks.values()):
            for refs, required in ((task.dependencies, True), (task.soft_deps, False)):
                for ref in refs:
                    self._link(task, ref, required)

    def _link(self, task: Task, ref: str, required: bool) -> None:
        source = resolve_reference(self._graph, task, ref, self.config)
        if source is None:
            self.unresolved.append(UnresolvedReference(task.id, ref, required))
            kind = "dependency" if required else "soft dependency"
            log.debug(f"{task.name}: unresolved {kind} {ref!r}")
            return
        self._graph.add_dependency(source, task, classify_dependency(source, task), required)


def resolve_festival(
    root: PathLike,
    config: Config | None = None,
    cancel: threading.Event | None = None,
) -> Graph:
    return Resolver(root, config).resolve_festival(cancel)


def resolve_sequence(
    seq_path: PathLike,
    config: Config | None = None,
    cancel: threading.Event | None = None,
) -> Graph:
    return Resolver(Path(seq_path).parent.parent, config).resolve_sequence(seq_path, cancel)
