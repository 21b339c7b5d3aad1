"""
Workload analysis over scheduled Gantt tasks: per-task risk flags and
per-assignee weekly load.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from .graph import TaskIndex

logger = logging.getLogger(__name__)

MANY_DEPS_THRESHOLD = 3
CONCURRENCY_THRESHOLD = 4
# Tasks longer than this are background work and do not count towards
# concurrency.
LONG_TASK_DAYS = 14
WEEKLY_OVERLOAD_THRESHOLD = 2


@dataclass
class RiskEntry:
    flags: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)

    def add(self, flag: str, reason: str):
        if flag not in self.flags:
            self.flags.append(flag)
        self.reasons.append(reason)


def split_assignees(raw: str) -> List[str]:
    """Lower-cased names from a comma-separated assignee field."""
    return [name.strip().lower() for name in (raw or "").split(",") if name.strip()]


def _overloaded_tasks(tasks) -> Tuple[list, int]:
    """
    Sweep start/end events and collect every task active while the count is
    at or above the threshold. An end on a day frees its slot before a start
    that day.
    """
    events = []
    for order, task in enumerate(tasks):
        if task.end <= task.start:
            continue
        events.append((task.start, 1, order, task))
        events.append((task.end, -1, order, task))
    events.sort(key=lambda event: (event[0], event[1], event[2]))

    active: Dict[int, object] = {}
    overloaded: Dict[int, object] = {}
    peak = 0
    for _, delta, order, task in events:
        if delta > 0:
            active[order] = task
        else:
            active.pop(order, None)
        if len(active) >= CONCURRENCY_THRESHOLD:
            overloaded.update(active)
            peak = max(peak, len(active))
    return [overloaded[order] for order in sorted(overloaded)], peak


def compute_risk_flags(scheduled: Iterable) -> Dict[str, RiskEntry]:
    """
    Flag risky tasks.

    Flags:
        many-deps: the task waits on three or more tasks.
        broken-dep: the task starts before one of its dependencies ends.
        overloaded-assignee: the task runs while one of its assignees has
            four or more tasks running at once. A comma-separated assignee
            field counts for every named person. Milestones, vertical markers
            and tasks longer than two weeks are left out of the count.

    Returns:
        RiskEntry per task label, only for tasks with at least one flag.
    """
    scheduled = list(scheduled)
    index = TaskIndex(scheduled)
    risks: Dict[str, RiskEntry] = {}

    def entry(label: str) -> RiskEntry:
        return risks.setdefault(label, RiskEntry())

    for task in scheduled:
        if len(task.after_deps) >= MANY_DEPS_THRESHOLD:
            entry(task.label).add(
                "many-deps", f"Depends on {len(task.after_deps)} tasks"
            )
        for ref in task.after_deps:
            dep = index.resolve(ref)
            if dep is not None and task.start < dep.end:
                entry(task.label).add(
                    "broken-dep", f"Starts before '{dep.label}' finishes"
                )

    by_person: Dict[str, list] = {}
    for task in scheduled:
        if not task.assignee or task.is_milestone or task.is_vert:
            continue
        if task.duration_days > LONG_TASK_DAYS:
            continue
        for person in split_assignees(task.assignee):
            by_person.setdefault(person, []).append(task)

    for person, tasks in by_person.items():
        overloaded, peak = _overloaded_tasks(tasks)
        if not overloaded:
            continue
        logger.debug("%s peaks at %d concurrent tasks", person, peak)
        reason = f"{person.capitalize()} has {peak} tasks running at once"
        for task in overloaded:
            entry(task.label).add("overloaded-assignee", reason)
    return risks


@dataclass
class WeekLoad:
    week_key: str
    week_start: date
    tasks: List[str] = field(default_factory=list)


@dataclass
class ResourceLoad:
    """Load for one assignee; ``overloaded_weeks`` hold two or more tasks."""

    name: str
    total_tasks: int = 0
    overloaded_weeks: List[WeekLoad] = field(default_factory=list)


def _week_key(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def compute_resource_load(scheduled: Iterable) -> List[ResourceLoad]:
    """
    Count each assignee's tasks per ISO week. A task with several
    comma-separated assignees counts once for each of them.

    A task belongs to every week containing one of its days (start inclusive,
    end exclusive; a zero-length task counts on its start day).

    Returns:
        One ResourceLoad per assignee, most overloaded weeks first, then by
        name.
    """
    weeks_by_person: Dict[str, Dict[str, WeekLoad]] = {}
    totals: Dict[str, int] = {}
    # Assignees match case-insensitively; the first spelling seen is shown.
    names: Dict[str, str] = {}

    for task in scheduled:
        if task.is_vert:
            continue
        for name in task.assignee.split(","):
            name = name.strip()
            if not name:
                continue
            person = name.lower()
            names.setdefault(person, name)
            totals[person] = totals.get(person, 0) + 1
            weeks = weeks_by_person.setdefault(person, {})

            day, last = task.start, max(task.end, task.start + timedelta(days=1))
            while day < last:
                key = _week_key(day)
                if key not in weeks:
                    weeks[key] = WeekLoad(
                        week_key=key,
                        week_start=day - timedelta(days=day.weekday()),
                    )
                if task.label not in weeks[key].tasks:
                    weeks[key].tasks.append(task.label)
                day += timedelta(days=1)

    loads = []
    for person, weeks in weeks_by_person.items():
        overloaded = [
            week
            for week in sorted(weeks.values(), key=lambda week: week.week_start)
            if len(week.tasks) >= WEEKLY_OVERLOAD_THRESHOLD
        ]
        loads.append(
            ResourceLoad(
                name=names[person],
                total_tasks=totals[person],
                overloaded_weeks=overloaded,
            )
        )
    loads.sort(key=lambda load: (-len(load.overloaded_weeks), load.name))
    return loads
