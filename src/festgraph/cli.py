"""festgraph CLI: dependency queries over a festival, as JSON.

Installed as the ``festgraph`` console_script.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from festgraph import __version__
from festgraph import log as glog
from festgraph.algorithms import critical_path, parallel_groups, ready_tasks, topological_sort
from festgraph.config import Config
from festgraph.graph import Graph
from festgraph.resolver import Resolver
from festgraph.tasks.model import Task
from festgraph.validate import validate, validate_sequence


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

_path_argument = click.argument(
    "path",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
_sequence_option = click.option(
    "--sequence",
    "as_sequence",
    is_flag=True,
    help="Treat PATH as a single sequence directory",
)


def _emit(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def _tasks(tasks: list[Task]) -> list[dict[str, Any]]:
    return [t.to_dict() for t in tasks]


def _resolve(ctx: click.Context, path: Path, as_sequence: bool) -> Graph:
    cfg: Config = ctx.obj
    if as_sequence:
        graph = Resolver(path.parent.parent, cfg).resolve_sequence(path)
    else:
        graph = Resolver(path, cfg).resolve_festival()
    if cfg.verbose:
        glog.info(f"Resolved {len(graph)} task(s), {len(graph.edges)} edge(s) from {path}")
    return graph


def _find_task(graph: Graph, name: str, cfg: Config) -> Task | None:
    for task in graph.tasks.values():
        if task.name == name or task.name == cfg.strip_extension(name):
            return task
        if task.path and Path(task.path).name in (name, cfg.with_extension(name)):
            return task
    return None


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="festgraph")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """festgraph: task dependency graphs for festival directories.

    \b
    EXAMPLES:
      festgraph order                       # Execution order of the festival in cwd
      festgraph groups path/to/festival     # Parallel batches
      festgraph critical-path .             # Longest dependency chain
      festgraph ready .                     # Tasks that can start now
      festgraph deps . 02_implement         # Direct deps of one task
      festgraph validate --sequence 001_PLAN/01_design
    """
    glog.set_verbose(verbose)
    ctx.obj = Config(verbose=verbose)


@main.command()
@_path_argument
@_sequence_option
@click.pass_context
def order(ctx: click.Context, path: Path, as_sequence: bool) -> None:
    """Print tasks in dependency order."""
    graph = _resolve(ctx, path, as_sequence)
    sorted_tasks, err = topological_sort(graph)
    if err is not None:
        glog.error(str(err))
        _emit({"order": _tasks(sorted_tasks), "error": err.to_dict()})
        sys.exit(1)
    _emit({"order": _tasks(sorted_tasks)})


@main.command()
@_path_argument
@_sequence_option
@click.pass_context
def groups(ctx: click.Context, path: Path, as_sequence: bool) -> None:
    """Print batches of tasks that can run in parallel."""
    graph = _resolve(ctx, path, as_sequence)
    levels = parallel_groups(graph)
    if not levels and len(graph):
        glog.warn("Parallel groups are undefined: the graph contains a cycle")
    _emit({"groups": [_tasks(level) for level in levels]})


@main.command("critical-path")
@_path_argument
@_sequence_option
@click.pass_context
def critical_path_cmd(ctx: click.Context, path: Path, as_sequence: bool) -> None:
    """Print the longest chain of dependent tasks."""
    graph = _resolve(ctx, path, as_sequence)
    chain = critical_path(graph)
    _emit({"critical_path": _tasks(chain), "length": len(chain)})


@main.command()
@_path_argument
@_sequence_option
@click.pass_context
def ready(ctx: click.Context, path: Path, as_sequence: bool) -> None:
    """Print pending tasks whose dependencies are complete."""
    graph = _resolve(ctx, path, as_sequence)
    _emit({"ready": _tasks(ready_tasks(graph))})


@main.command()
@_path_argument
@click.argument("task_name")
@_sequence_option
@click.pass_context
def deps(ctx: click.Context, path: Path, task_name: str, as_sequence: bool) -> None:
    """Print direct dependencies and dependents of TASK_NAME."""
    graph = _resolve(ctx, path, as_sequence)
    task = _find_task(graph, task_name, ctx.obj)
    if task is None:
        glog.error(f"Task not found: {task_name}")
        sys.exit(1)
    _emit({
        "task": task.to_dict(),
        "depends_on": _tasks(graph.get_dependencies(task.id)),
        "depended_by": _tasks(graph.get_dependents(task.id)),
    })


@main.command("validate")
@_path_argument
@_sequence_option
@click.option("--no-graph", is_flag=True, help="Omit the resolved graph from the output")
@click.pass_context
def validate_cmd(ctx: click.Context, path: Path, as_sequence: bool, no_graph: bool) -> None:
    """Check for cycles, missing dependencies and numbering gaps."""
    cfg: Config = ctx.obj
    result = validate_sequence(path, cfg) if as_sequence else validate(path, cfg)

    for issue in result.errors:
        glog.error(issue.message)
    for issue in result.warnings:
        glog.warn(issue.message)

    _emit(result.to_dict(include_graph=not no_graph))
    if not result.valid:
        sys.exit(1)
    glog.success(f"{len(result.graph)} task(s) validated")
