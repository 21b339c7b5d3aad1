"""
Date resolution for Gantt tasks.

Turns parsed tasks into :class:`ScheduledTask` objects with concrete start
and end dates. End dates are exclusive: a two-day task starting on the 1st
ends on the 3rd, which is also when ``after`` dependents start.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from .errors import UnanchoredTaskError
from .graph import TaskIndex, build_dependency_graph

if TYPE_CHECKING:
    from .gantt import GanttTask

logger = logging.getLogger(__name__)

# Issue kinds that leave a task without dates.
BLOCKING_ISSUES = ("unscheduled", "unknown-reference", "unanchored", "cycle")


@dataclass
class ScheduledTask:
    """A Gantt task with resolved ``start`` and exclusive ``end`` dates."""

    task: "GanttTask"
    start: date
    end: date

    @property
    def key(self) -> str:
        return self.task.key

    @property
    def label(self) -> str:
        return self.task.label

    @property
    def id_token(self) -> str:
        return self.task.id_token

    @property
    def after_deps(self) -> List[str]:
        return self.task.after_deps

    @property
    def until_dep(self) -> str:
        return self.task.until_dep

    @property
    def is_vert(self) -> bool:
        return self.task.is_vert

    @property
    def is_milestone(self) -> bool:
        return self.task.is_milestone

    @property
    def assignee(self) -> str:
        return self.task.assignee

    @property
    def section(self) -> str:
        return self.task.section

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days


@dataclass
class ScheduleIssue:
    """
    A problem found while resolving dates.

    Attributes:
        kind: "unscheduled" (no date and no dependency), "unknown-reference",
            "unanchored" (the dependency chain never reaches a date),
            "cycle", or the non-blocking "ignored-reference" for a dated
            task that also names an unknown task.
        line: Line index of the task in the source text.
    """

    label: str
    kind: str
    message: str
    line: int = 0


@dataclass
class ScheduleResolution:
    tasks: List[ScheduledTask] = field(default_factory=list)
    issues: List[ScheduleIssue] = field(default_factory=list)

    def for_task(self, task: "GanttTask") -> Optional[ScheduledTask]:
        """The scheduled counterpart of a parsed task, matched by line."""
        for scheduled in self.tasks:
            if scheduled.task.line == task.line:
                return scheduled
        return None

    def get(self, ref: str) -> Optional[ScheduledTask]:
        """Look a scheduled task up by id token or label."""
        return TaskIndex(self.tasks).resolve(ref)

    @property
    def unresolved(self) -> List[str]:
        return [issue.label for issue in self.issues if issue.kind in BLOCKING_ISSUES]


def _end_for(task, start: date, index: TaskIndex, resolved: Dict[int, ScheduledTask]):
    """Exclusive end for a task starting at start, or None while pending."""
    if task.end_date is not None:
        return max(task.end_date, start)
    if task.until_dep:
        bound = index.resolve(task.until_dep)
        if bound is not None and bound.line != task.line:
            if bound.line not in resolved:
                return None
            return max(resolved[bound.line].start, start)
    return start + timedelta(days=task.duration_days or 0)


def _start_for(task, index: TaskIndex, resolved: Dict[int, ScheduledTask]):
    """Start date for a task, or None while dependencies are pending."""
    if task.start_date is not None:
        return task.start_date
    deps = [index.resolve(ref) for ref in task.after_deps]
    deps = [dep for dep in deps if dep is not None]
    if not deps or any(dep.line not in resolved for dep in deps):
        return None
    return max(resolved[dep.line].end for dep in deps)


def _classify(task, index: TaskIndex, cycle_keys) -> ScheduleIssue:
    if task.key in cycle_keys:
        return ScheduleIssue(
            task.label,
            "cycle",
            f"'{task.label}' is part of a dependency cycle",
            task.line,
        )
    if not task.after_deps:
        return ScheduleIssue(
            task.label,
            "unscheduled",
            f"'{task.label}' has neither a start date nor a dependency",
            task.line,
        )
    if all(index.resolve(ref) is None for ref in task.after_deps):
        refs = ", ".join(task.after_deps)
        return ScheduleIssue(
            task.label,
            "unknown-reference",
            f"'{task.label}' depends on unknown task(s): {refs}",
            task.line,
        )
    return ScheduleIssue(
        task.label,
        "unanchored",
        f"'{task.label}' depends on tasks that never reach a start date",
        task.line,
    )


def resolve_schedule(
    tasks: Sequence["GanttTask"], strict: bool = False
) -> ScheduleResolution:
    """
    Resolve every task to concrete dates.

    Explicit start dates anchor a task. An ``after`` task starts at the
    latest end among its known dependencies, once all of them are resolved.
    The end is the explicit end date, else the start of the ``until`` task,
    else start plus duration. Resolution repeats until nothing changes, so
    tasks may reference ones declared later.

    Args:
        tasks: Parsed Gantt tasks.
        strict: Raise instead of reporting tasks that cannot be dated.

    Returns:
        ScheduleResolution with the dated tasks in document order and any
        issues found.

    Raises:
        UnanchoredTaskError: In strict mode, when any task stays undated.
    """
    index = TaskIndex(tasks)
    resolved: Dict[int, ScheduledTask] = {}

    progress = True
    while progress:
        progress = False
        for task in tasks:
            if task.line in resolved:
                continue
            start = _start_for(task, index, resolved)
            if start is None:
                continue
            end = _end_for(task, start, index, resolved)
            if end is None:
                continue
            resolved[task.line] = ScheduledTask(task=task, start=start, end=end)
            progress = True

    resolution = ScheduleResolution(
        tasks=[resolved[task.line] for task in tasks if task.line in resolved]
    )

    for task in tasks:
        unknown = [ref for ref in task.after_deps if index.resolve(ref) is None]
        if task.until_dep and index.resolve(task.until_dep) is None:
            unknown.append(task.until_dep)
        if unknown and task.line in resolved:
            resolution.issues.append(
                ScheduleIssue(
                    task.label,
                    "ignored-reference",
                    f"'{task.label}' ignores unknown task(s): {', '.join(unknown)}",
                    task.line,
                )
            )

    pending = [task for task in tasks if task.line not in resolved]
    if pending:
        graph = build_dependency_graph(tasks)
        cycle_keys = {key for cycle in graph.cycles() for key in cycle}
        for task in pending:
            resolution.issues.append(_classify(task, index, cycle_keys))
        resolution.issues.sort(key=lambda issue: issue.line)
        logger.debug("%d task(s) could not be scheduled", len(pending))
        if strict:
            raise UnanchoredTaskError([task.label for task in pending])
    return resolution
