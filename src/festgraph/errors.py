"""Error types and validation issue codes shared across festgraph."""

from __future__ import annotations

from typing import Any

CYCLE_DETECTED = "CYCLE_DETECTED"
MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
MISSING_SOFT_DEPENDENCY = "MISSING_SOFT_DEPENDENCY"
NUMBERING_GAP = "NUMBERING_GAP"
UNREADABLE_ROOT = "UNREADABLE_ROOT"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


class FestgraphError(Exception):
    """Base class for festgraph errors."""


class CycleError(FestgraphError):
    """Circular dependency among tasks.

    ``cycle`` holds task ids along the cycle; it may be empty when only the
    existence of a cycle is known.
    """

    def __init__(self, cycle: list[str] | None = None) -> None:
        self.cycle: list[str] = list(cycle or [])
        super().__init__(self._message())

    def _message(self) -> str:
        if not self.cycle:
            return "circular dependency detected"
        return f"circular dependency: {self.cycle[0]} -> ... -> {self.cycle[-1]}"

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "cycle": list(self.cycle)}


class ResolveCancelled(FestgraphError):
    """Resolution stopped because the caller's cancel event was set."""
