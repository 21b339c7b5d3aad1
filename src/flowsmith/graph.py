"""
Graph module for Gantt task dependencies.

Provides the dependency graph (a networkx DiGraph keyed by task key), cycle
detection and the critical-path method over tasks whose dates are already
resolved.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set

import networkx as nx

logger = logging.getLogger(__name__)


class TaskIndex:
    """Resolves ``after``/``until`` references by id token, then by label."""

    def __init__(self, tasks: Iterable[Any]):
        self.by_id: Dict[str, Any] = {}
        self.by_label: Dict[str, Any] = {}
        for task in tasks:
            if task.id_token:
                self.by_id.setdefault(task.id_token.lower(), task)
            if task.label:
                self.by_label.setdefault(task.label.lower(), task)

    def resolve(self, ref: str) -> Optional[Any]:
        lower = (ref or "").strip().lower()
        return self.by_id.get(lower) or self.by_label.get(lower)


class DependencyGraph:
    """
    Directed graph over task keys.

    An edge ``a -> b`` means a must be placed before b: ``b after a`` adds
    ``a -> b`` and ``a until b`` adds ``a -> b`` as well. Each node carries
    its task under the ``task`` attribute; each edge carries ``kind``
    ("after" or "until").
    """

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_task(self, key: str, task: Any):
        if key not in self.graph:
            self.graph.add_node(key, task=task)

    def add_dependency(self, source: str, target: str, kind: str = "after"):
        self.graph.add_edge(source, target, kind=kind)

    def __contains__(self, key: str) -> bool:
        return key in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def nodes(self) -> List[str]:
        return list(self.graph.nodes)

    @property
    def edges(self) -> List[tuple]:
        return list(self.graph.edges)

    def task(self, key: str) -> Any:
        return self.graph.nodes[key]["task"]

    def successors(self, key: str) -> List[str]:
        """Tasks that wait on key."""
        if key not in self.graph:
            return []
        return list(self.graph.successors(key))

    def predecessors(self, key: str) -> List[str]:
        """Tasks key waits on."""
        if key not in self.graph:
            return []
        return list(self.graph.predecessors(key))

    def upstream(self, key: str) -> Set[str]:
        """Every task key depends on, directly or transitively."""
        if key not in self.graph:
            return set()
        return nx.ancestors(self.graph, key)

    def downstream(self, key: str) -> Set[str]:
        """Every task that depends on key, directly or transitively."""
        if key not in self.graph:
            return set()
        return nx.descendants(self.graph, key)

    def is_connected(self, key: str) -> bool:
        return self.graph.degree(key) > 0

    def topological_order(self) -> List[str]:
        """
        Return keys in dependency order using Kahn's algorithm.

        Nodes on a cycle, and nodes downstream of one, never reach in-degree
        zero and are left out.
        """
        in_degree = {key: self.graph.in_degree(key) for key in self.graph.nodes}
        queue = deque([key for key in self.graph.nodes if in_degree[key] == 0])
        result = []

        while queue:
            key = queue.popleft()
            result.append(key)

            for successor in self.graph.successors(key):
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    queue.append(successor)

        if len(result) != len(in_degree):
            logger.debug(
                "Topological order skips %d task(s) on or behind a cycle",
                len(in_degree) - len(result),
            )
        return result

    def cycles(self) -> List[List[str]]:
        """
        Find cycles with a three-color depth-first search.

        Each back edge to a node still on the stack yields the stack slice
        from that node to the current one.
        """
        white, gray, black = 0, 1, 2
        color = {key: white for key in self.graph.nodes}
        found: List[List[str]] = []

        def dfs(key, stack):
            color[key] = gray
            stack.append(key)
            for neighbor in self.graph.successors(key):
                if color[neighbor] == gray:
                    found.append(stack[stack.index(neighbor) :])
                elif color[neighbor] == white:
                    dfs(neighbor, stack)
            stack.pop()
            color[key] = black

        for key in self.graph.nodes:
            if color[key] == white:
                dfs(key, [])
        return found

    def to_dict(self) -> Dict[str, List[str]]:
        """Adjacency as ``{key: [successor keys]}``."""
        return {key: self.successors(key) for key in self.graph.nodes}


def build_dependency_graph(tasks: Iterable[Any]) -> DependencyGraph:
    """
    Build the dependency graph for Gantt tasks (or scheduled tasks).

    Vertical markers are left out. References that name no task are skipped.
    """
    tasks = [task for task in tasks if not task.is_vert]
    index = TaskIndex(tasks)
    graph = DependencyGraph()
    for task in tasks:
        if task.key:
            graph.add_task(task.key, task)

    for task in tasks:
        if not task.key:
            continue
        for ref in task.after_deps:
            dep = index.resolve(ref)
            if dep is None or dep.key not in graph:
                logger.debug("'%s' is after unknown task %r", task.label, ref)
                continue
            graph.add_dependency(dep.key, task.key, kind="after")
        if task.until_dep:
            bound = index.resolve(task.until_dep)
            if bound is None or bound.key not in graph:
                logger.debug(
                    "'%s' is until unknown task %r", task.label, task.until_dep
                )
                continue
            graph.add_dependency(task.key, bound.key, kind="until")
    return graph


def detect_cycles(tasks: Iterable[Any]) -> List[List[str]]:
    """
    Report dependency cycles as lists of task labels.

    Args:
        tasks: Gantt tasks (resolved or not).

    Returns:
        One label list per back edge found; empty when the graph is acyclic.
    """
    graph = build_dependency_graph(tasks)
    return [[graph.task(key).label for key in cycle] for cycle in graph.cycles()]


@dataclass
class SlackInfo:
    """CPM figures for one task. Dates are calendar days."""

    key: str
    label: str
    earliest_start: date
    earliest_finish: date
    latest_start: date
    latest_finish: date
    slack_days: int
    critical: bool
    connected: bool


def calculate_slack(scheduled: Iterable[Any]) -> Dict[str, SlackInfo]:
    """
    Run the critical-path method over scheduled tasks.

    Earliest start and finish come straight from the resolved dates. The
    backward pass walks the topological order in reverse: latest finish is
    the smallest latest start among successors, or the project end for tasks
    without successors. Slack is floored at zero and a task is critical when
    its slack is zero.

    Args:
        scheduled: Tasks with ``start`` and ``end`` dates.

    Returns:
        SlackInfo per task key, for tasks outside dependency cycles.
    """
    graph = build_dependency_graph(scheduled)
    order = graph.topological_order()
    if not order:
        return {}

    project_end = max(graph.task(key).end for key in order)
    latest_start: Dict[str, date] = {}
    latest_finish: Dict[str, date] = {}

    for key in reversed(order):
        task = graph.task(key)
        successor_starts = [
            latest_start[succ] for succ in graph.successors(key) if succ in latest_start
        ]
        latest_finish[key] = min(successor_starts) if successor_starts else project_end
        latest_start[key] = latest_finish[key] - (task.end - task.start)

    result: Dict[str, SlackInfo] = {}
    for key in order:
        task = graph.task(key)
        slack = max(0, (latest_start[key] - task.start).days)
        result[key] = SlackInfo(
            key=key,
            label=task.label,
            earliest_start=task.start,
            earliest_finish=task.end,
            latest_start=latest_start[key],
            latest_finish=latest_finish[key],
            slack_days=slack,
            critical=slack <= 0,
            connected=graph.is_connected(key),
        )
    return result


def get_critical_path(scheduled: Iterable[Any]) -> List[Any]:
    """Critical tasks in dependency order."""
    scheduled = list(scheduled)
    slack = calculate_slack(scheduled)
    by_key = {task.key: task for task in reversed(scheduled)}
    return [by_key[key] for key, info in slack.items() if info.critical]


@dataclass
class Conflict:
    """A dependent that starts before its dependency finishes."""

    task_label: str
    dependency_label: str
    overlap_days: int


def detect_conflicts(scheduled: Iterable[Any]) -> List[Conflict]:
    """Check every ``after`` edge; diagnostic only, nothing is moved."""
    graph = build_dependency_graph(scheduled)
    conflicts = []
    for source, target, kind in graph.graph.edges(data="kind"):
        if kind != "after":
            continue
        dependency, dependent = graph.task(source), graph.task(target)
        if dependent.start < dependency.end:
            conflicts.append(
                Conflict(
                    task_label=dependent.label,
                    dependency_label=dependency.label,
                    overlap_days=(dependency.end - dependent.start).days,
                )
            )
    return conflicts
