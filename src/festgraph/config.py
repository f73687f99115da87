"""Configuration defaults and env overrides for festgraph."""

from __future__ import annotations

import os
from dataclasses import dataclass


VERSION = "0.3.0"

DEFAULT_TASK_EXTENSION = ".md"


@dataclass
class Config:
    """Naming conventions and frontmatter keys the resolver relies on."""

    # Filesystem layout
    task_extension: str = ""
    goal_marker: str = "GOAL"
    relative_prefix: str = ".."

    # Frontmatter keys
    hard_deps_key: str = "fest_dependencies"
    soft_deps_key: str = "fest_soft_dependencies"
    parallel_group_key: str = "fest_parallel_group"
    autonomy_key: str = "fest_autonomy"
    status_key: str = "fest_status"
    tracking_key: str = "tracking"

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.task_extension:
            self.task_extension = (
                os.environ.get("FESTGRAPH_TASK_EXTENSION")
                or DEFAULT_TASK_EXTENSION
            )
        if not self.task_extension.startswith("."):
            self.task_extension = "." + self.task_extension
        self.goal_marker = self.goal_marker.upper()

    def is_task_filename(self, name: str) -> bool:
        """Extension and goal-marker checks; numbering is checked separately."""
        if not name.endswith(self.task_extension):
            return False
        return self.goal_marker not in name.upper()

    def strip_extension(self, name: str) -> str:
        if name.endswith(self.task_extension):
            return name[: -len(self.task_extension)]
        return name

    def with_extension(self, name: str) -> str:
        if name.endswith(self.task_extension):
            return name
        return name + self.task_extension
