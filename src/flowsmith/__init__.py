"""
Flowsmith - Text-preserving editing for diagram markup

A Python library for parsing Mermaid-style diagram text and applying
structural edits that touch only the lines they must.

Example:
    >>> from flowsmith import DiagramEditor
    >>> editor = DiagramEditor()
    >>> text = editor.add_node("flowchart TD\\n    A --> B", "C", "Check")
    >>> print(text)
    flowchart TD
        A --> B
        C["Check"]

Schedule Example:
    >>> from flowsmith import parse_gantt, resolve_schedule, get_critical_path
    >>> chart = parse_gantt(gantt_text)
    >>> scheduled = resolve_schedule(chart.tasks).tasks
    >>> [task.label for task in get_critical_path(scheduled)]
"""

from .editor import DiagramEditor
from .errors import FlowsmithError, ScheduleError, UnanchoredTaskError
from .gantt import GanttChart, GanttTask, find_task, parse_gantt
from .graph import (
    Conflict,
    DependencyGraph,
    SlackInfo,
    build_dependency_graph,
    calculate_slack,
    detect_conflicts,
    detect_cycles,
    get_critical_path,
)
from .models import ClassDef, Edge, FlowchartModel, Node, Subgraph
from .mutator import (
    add_edge,
    add_node,
    create_subgraph,
    find_node_subgraph,
    move_node_out_of_subgraph,
    move_node_to_subgraph,
    remove_edge,
    remove_node,
    remove_subgraph,
    rename_node,
    rename_subgraph,
    update_edge,
    update_node,
)
from .parser import FlowchartParser, parse_flowchart
from .registry import (
    DiagramKind,
    DialectAdapter,
    classify_diagram_type,
    detect_diagram_kind,
    get_adapter,
    get_parser,
)
from .schedule import ScheduledTask, ScheduleIssue, ScheduleResolution, resolve_schedule
from .shapes import ArrowKind
from .styles import (
    parse_class_assignments,
    parse_class_defs,
    parse_style_directives,
    set_node_style,
)
from .tracer import EditTrace, LineEdit, TraceStage, text_diff
from .workload import compute_resource_load, compute_risk_flags

__version__ = "0.1.0"

__all__ = [
    # Main API
    "DiagramEditor",
    # Registry
    "DiagramKind",
    "DialectAdapter",
    "classify_diagram_type",
    "detect_diagram_kind",
    "get_adapter",
    "get_parser",
    # Flowchart
    "FlowchartParser",
    "parse_flowchart",
    "FlowchartModel",
    "Node",
    "Edge",
    "Subgraph",
    "ClassDef",
    "ArrowKind",
    "add_node",
    "update_node",
    "remove_node",
    "rename_node",
    "add_edge",
    "update_edge",
    "remove_edge",
    "find_node_subgraph",
    "move_node_to_subgraph",
    "move_node_out_of_subgraph",
    "create_subgraph",
    "remove_subgraph",
    "rename_subgraph",
    "parse_class_defs",
    "parse_style_directives",
    "parse_class_assignments",
    "set_node_style",
    # Gantt and scheduling
    "GanttChart",
    "GanttTask",
    "parse_gantt",
    "find_task",
    "ScheduledTask",
    "ScheduleIssue",
    "ScheduleResolution",
    "resolve_schedule",
    "DependencyGraph",
    "build_dependency_graph",
    "detect_cycles",
    "SlackInfo",
    "calculate_slack",
    "get_critical_path",
    "Conflict",
    "detect_conflicts",
    "compute_risk_flags",
    "compute_resource_load",
    # Errors
    "FlowsmithError",
    "ScheduleError",
    "UnanchoredTaskError",
    # Debug/Tracing
    "EditTrace",
    "LineEdit",
    "TraceStage",
    "text_diff",
]
