"""Best-effort extraction of task metadata from a task file.

Two sources are read independently:

- YAML frontmatter (``---`` delimited) for the structured fields
- the markdown body for the legacy ``Dependencies:`` and ``Autonomy Level:``
  lines

A missing or malformed field yields its default. Nothing here raises for
bad content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from festgraph import log
from festgraph.config import Config
from festgraph.tasks.model import TaskStatus

# Value runs to end of line or to the next "|" column of a blockquote header.
LEGACY_DEPS_RE = re.compile(
    r"(?<![\w-])dependencies\**[ \t]*:\**[ \t]*([^|\n]*)",
    re.IGNORECASE,
)
AUTONOMY_RE = re.compile(r"Autonomy\s+Level\*{0,2}[:\s*]+(\w+)", re.IGNORECASE)
LEADING_DIGITS_RE = re.compile(r"^(\d+)")
# "Soft Dependencies", "**Soft** Dependencies" and similar labels.
SOFT_LABEL_RE = re.compile(r"\bsoft[ \t*_]*\Z", re.IGNORECASE)

_COMPLETE_STATUSES = {"complete", "completed", "done"}
_IN_PROGRESS_STATUSES = {"in_progress", "in-progress", "active"}


@dataclass
class TaskMetadata:
    dependencies: list[str] = field(default_factory=list)
    soft_deps: list[str] = field(default_factory=list)
    parallel_group: int | None = None
    autonomy_level: str = ""
    status: TaskStatus = TaskStatus.PENDING
    tracked: bool = True


def leading_number(filename: str) -> int | None:
    """Integer value of the leading digit run, or ``None`` without one."""
    m = LEADING_DIGITS_RE.match(filename)
    return int(m.group(1)) if m else None


def parse_frontmatter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Split *content* into ``(frontmatter, body)``.

    Frontmatter is ``None`` when absent, unclosed, malformed, or not a
    mapping. The body excludes the frontmatter block whenever it is closed.
    """
    lines = content.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return None, content

    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            break
    else:
        return None, content

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        log.debug(f"Ignoring malformed frontmatter: {exc}")
        return None, body
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        return None, body
    return data, body


def is_tracked(content: str, config: Config | None = None) -> bool:
    """``False`` only when frontmatter explicitly sets tracking to false."""
    cfg = config or Config()
    meta, _ = parse_frontmatter(content)
    if not meta:
        return True
    return meta.get(cfg.tracking_key) is not False


def _clean_reference(raw: str) -> str:
    return raw.strip().strip("*`").strip()


def _as_references(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = [value]

    refs: list[str] = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        ref = _clean_reference(str(item))
        if ref and ref.lower() != "none":
            refs.append(ref)
    return refs


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_status(value: Any) -> TaskStatus:
    if not isinstance(value, str):
        return TaskStatus.PENDING
    norm = value.strip().lower()
    if norm in _COMPLETE_STATUSES:
        return TaskStatus.COMPLETE
    if norm in _IN_PROGRESS_STATUSES:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def _dedupe(refs: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for ref in refs:
        if ref not in seen:
            seen.add(ref)
            out.append(ref)
    return out


def legacy_dependencies(body: str) -> list[str]:
    """References from the first ``Dependencies: a, b`` line of *body*.

    Lines labelled as soft dependencies are passed over.
    """
    for m in LEGACY_DEPS_RE.finditer(body):
        if not SOFT_LABEL_RE.search(body, 0, m.start()):
            break
    else:
        return []
    value = _clean_reference(m.group(1))
    if not value or value.lower() == "none":
        return []
    return _as_references(value)


def extract_metadata(path: str, content: str, config: Config | None = None) -> TaskMetadata:
    """Collect every recognizable metadata field from one task file."""
    cfg = config or Config()
    meta = TaskMetadata()
    front, body = parse_frontmatter(content)

    hard = legacy_dependencies(body)
    soft: list[str] = []

    m = AUTONOMY_RE.search(body)
    if m:
        meta.autonomy_level = m.group(1).lower()

    if front:
        hard.extend(_as_references(front.get(cfg.hard_deps_key)))
        soft.extend(_as_references(front.get(cfg.soft_deps_key)))
        meta.parallel_group = _as_int(front.get(cfg.parallel_group_key))
        autonomy = front.get(cfg.autonomy_key)
        if isinstance(autonomy, str) and autonomy.strip():
            meta.autonomy_level = autonomy.strip().lower()
        meta.status = _as_status(front.get(cfg.status_key))
        meta.tracked = front.get(cfg.tracking_key) is not False

    meta.dependencies = _dedupe(hard)
    meta.soft_deps = _dedupe(soft)
    log.debug(
        f"{path}: {len(meta.dependencies)} hard, {len(meta.soft_deps)} soft reference(s)"
    )
    return meta
