"""
Parse-only dialects with append-style editing: pie, mindmap, timeline, C4,
gitGraph and quadrant charts.

These parsers are read models for listing and inspection. Their add functions
only append lines; none of them rewrite existing content.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .textops import DEFAULT_INDENT, append_lines, line_indent, split_lines

logger = logging.getLogger(__name__)


def _content(lines: List[str], header: str):
    """Yield (index, raw, stripped) for lines that are not blank, comments or
    the dialect header."""
    for i, raw in enumerate(lines):
        stripped = raw.strip()
        if not stripped or stripped.startswith("%%") or stripped == header:
            continue
        yield i, raw, stripped


def _quote(value: str) -> str:
    return str(value).replace('"', "#quot;")


# Pie


PIE_TITLE_PATTERN = re.compile(r"^pie(?:\s+(showData))?(?:\s+title\s+(.+))?$")
TITLE_PATTERN = re.compile(r"^title\s+(.+)$")
SLICE_PATTERN = re.compile(r'^"([^"]+)"\s*:\s*(-?\d+(?:\.\d+)?)\s*$')


@dataclass
class PieSlice:
    label: str
    value: float
    line: int = 0


@dataclass
class PieChart:
    title: str = ""
    show_data: bool = False
    slices: List[PieSlice] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(s.value for s in self.slices)


def parse_pie(text: str) -> PieChart:
    chart = PieChart()
    for i, _, stripped in _content(split_lines(text), "pie"):
        match = PIE_TITLE_PATTERN.match(stripped)
        if match:
            chart.show_data = chart.show_data or bool(match.group(1))
            if match.group(2):
                chart.title = match.group(2).strip()
            continue
        if stripped == "showData":
            chart.show_data = True
            continue
        match = TITLE_PATTERN.match(stripped)
        if match:
            chart.title = match.group(1).strip()
            continue
        match = SLICE_PATTERN.match(stripped)
        if match:
            chart.slices.append(
                PieSlice(label=match.group(1), value=float(match.group(2)), line=i)
            )
    return chart


def add_pie_slice(text: str, label: str, value: float) -> str:
    return append_lines(text, [f'{DEFAULT_INDENT}"{_quote(label)}" : {value}'])


# Mindmap


MINDMAP_SHAPES = (
    ("((", "))", "circle"),
    ("))", "((", "bang"),
    (")", "(", "cloud"),
    ("{{", "}}", "hexagon"),
    ("[", "]", "square"),
    ("(", ")", "rounded"),
)
MINDMAP_NODE_PATTERN = re.compile(r"^([^\s(\[{)]*)(.*)$")
ICON_PATTERN = re.compile(r"^::icon\((.+)\)\s*$")
MINDMAP_CLASS_PATTERN = re.compile(r"^:::\s*(.+)$")


@dataclass
class MindmapNode:
    """
    A mindmap node.

    Attributes:
        id: Text before the shape delimiters; empty for plain-text nodes.
        label: Display text.
        shape: circle, bang, cloud, hexagon, square, rounded or default.
        level: Depth in the tree (root is 0).
        parent: Index of the parent node in ``Mindmap.nodes``.
    """

    id: str
    label: str
    shape: str = "default"
    level: int = 0
    parent: Optional[int] = None
    icon: str = ""
    classes: List[str] = field(default_factory=list)
    line: int = 0


@dataclass
class Mindmap:
    nodes: List[MindmapNode] = field(default_factory=list)

    def children(self, index: int) -> List[MindmapNode]:
        return [node for node in self.nodes if node.parent == index]


def _mindmap_shape(body: str) -> Tuple[str, str, str]:
    match = MINDMAP_NODE_PATTERN.match(body)
    node_id, rest = match.group(1), match.group(2)
    for open_, close, shape in MINDMAP_SHAPES:
        if len(rest) <= len(open_) + len(close):
            continue
        if rest.startswith(open_) and rest.endswith(close):
            label = rest[len(open_) : -len(close)].strip().strip('"')
            return node_id, label, shape
    return "", body, "default"


def parse_mindmap(text: str) -> Mindmap:
    """
    Parse a mindmap into a flat list with parent links.

    Depth follows indentation: a line indented deeper than the previous node
    is its child; otherwise it closes nodes until a shallower one is found.
    """
    mindmap = Mindmap()
    # (indent width, node index)
    stack: List[Tuple[int, int]] = []
    for i, raw, stripped in _content(split_lines(text), "mindmap"):
        width = len(line_indent(raw).expandtabs(4))

        match = ICON_PATTERN.match(stripped)
        if match and mindmap.nodes:
            mindmap.nodes[-1].icon = match.group(1).strip()
            continue
        match = MINDMAP_CLASS_PATTERN.match(stripped)
        if match and mindmap.nodes:
            mindmap.nodes[-1].classes.extend(match.group(1).split())
            continue

        while stack and stack[-1][0] >= width:
            stack.pop()
        parent = stack[-1][1] if stack else None
        node_id, label, shape = _mindmap_shape(stripped)
        mindmap.nodes.append(
            MindmapNode(
                id=node_id,
                label=label,
                shape=shape,
                level=len(stack),
                parent=parent,
                line=i,
            )
        )
        stack.append((width, len(mindmap.nodes) - 1))
    return mindmap


def add_mindmap_node(text: str, label: str, level: int = 1) -> str:
    """Append a plain node at the given depth (two spaces per level)."""
    return append_lines(text, ["  " * max(level, 0) + label])


# Timeline


@dataclass
class TimelineEvent:
    period: str
    text: str
    section: Optional[str] = None
    line: int = 0


@dataclass
class Timeline:
    title: str = ""
    sections: List[str] = field(default_factory=list)
    events: List[TimelineEvent] = field(default_factory=list)

    def periods(self) -> List[str]:
        seen: List[str] = []
        for event in self.events:
            if event.period not in seen:
                seen.append(event.period)
        return seen


SECTION_PATTERN = re.compile(r"^section\s+(.+)$")


def parse_timeline(text: str) -> Timeline:
    """
    Parse a timeline.

    ``period : a : b`` yields two events for the period. A line starting with
    ``:`` continues the previous period.
    """
    timeline = Timeline()
    section: Optional[str] = None
    period = ""
    for i, _, stripped in _content(split_lines(text), "timeline"):
        match = TITLE_PATTERN.match(stripped)
        if match:
            timeline.title = match.group(1).strip()
            continue
        match = SECTION_PATTERN.match(stripped)
        if match:
            section = match.group(1).strip()
            timeline.sections.append(section)
            continue

        parts = [part.strip() for part in stripped.split(":")]
        if stripped.startswith(":"):
            texts = parts[1:]
        else:
            period = parts[0]
            texts = parts[1:]
            if not texts:
                continue
        for event_text in texts:
            if event_text:
                timeline.events.append(
                    TimelineEvent(
                        period=period, text=event_text, section=section, line=i
                    )
                )
    return timeline


def add_timeline_event(text: str, period: str, event: str) -> str:
    return append_lines(text, [f"{DEFAULT_INDENT}{period} : {event}"])


# C4


C4_HEADER_PATTERN = re.compile(r"^C4(Context|Container|Component|Dynamic|Deployment)$")
C4_CALL_PATTERN = re.compile(r"^(\w+)\((.*)\)\s*(\{)?\s*$")
C4_ELEMENT_TYPES = {
    "Person",
    "Person_Ext",
    "System",
    "System_Ext",
    "SystemDb",
    "SystemDb_Ext",
    "SystemQueue",
    "SystemQueue_Ext",
    "Container",
    "Container_Ext",
    "ContainerDb",
    "ContainerDb_Ext",
    "ContainerQueue",
    "ContainerQueue_Ext",
    "Component",
    "Component_Ext",
    "ComponentDb",
    "ComponentDb_Ext",
    "ComponentQueue",
    "ComponentQueue_Ext",
}
C4_BOUNDARY_TYPES = {
    "Boundary",
    "Enterprise_Boundary",
    "System_Boundary",
    "Container_Boundary",
    "Deployment_Node",
    "Node",
    "Node_L",
    "Node_R",
}
C4_REL_TYPES = {
    "Rel",
    "BiRel",
    "Rel_U",
    "Rel_Up",
    "Rel_D",
    "Rel_Down",
    "Rel_L",
    "Rel_Left",
    "Rel_R",
    "Rel_Right",
    "Rel_Back",
}


def split_c4_arguments(raw: str) -> List[str]:
    """Split a C4 argument list on commas outside double quotes."""
    args: List[str] = []
    current: List[str] = []
    quoted = False
    for char in raw:
        if char == '"':
            quoted = not quoted
        elif char == "," and not quoted:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or args:
        args.append(tail)
    return [arg.strip('"') for arg in args]


@dataclass
class C4Element:
    type: str
    id: str
    label: str
    description: str = ""
    boundary: Optional[str] = None
    line: int = 0


@dataclass
class C4Relationship:
    source: str
    target: str
    label: str = ""
    technology: str = ""
    type: str = "Rel"
    line: int = 0


@dataclass
class C4Boundary:
    type: str
    id: str
    label: str
    parent: Optional[str] = None
    line: int = 0
    end_line: Optional[int] = None


@dataclass
class C4Diagram:
    level: str = ""
    title: str = ""
    elements: List[C4Element] = field(default_factory=list)
    relationships: List[C4Relationship] = field(default_factory=list)
    boundaries: List[C4Boundary] = field(default_factory=list)


def parse_c4(text: str) -> C4Diagram:
    diagram = C4Diagram()
    stack: List[C4Boundary] = []
    for i, _, stripped in _content(split_lines(text), ""):
        match = C4_HEADER_PATTERN.match(stripped)
        if match:
            diagram.level = match.group(1)
            continue
        match = TITLE_PATTERN.match(stripped)
        if match:
            diagram.title = match.group(1).strip()
            continue
        if stripped == "}":
            if stack:
                stack.pop().end_line = i
            continue

        match = C4_CALL_PATTERN.match(stripped)
        if not match:
            continue
        kind = match.group(1)
        args = split_c4_arguments(match.group(2))
        enclosing = stack[-1].id if stack else None

        if kind in C4_BOUNDARY_TYPES and args:
            boundary = C4Boundary(
                type=kind,
                id=args[0],
                label=args[1] if len(args) > 1 else args[0],
                parent=enclosing,
                line=i,
            )
            diagram.boundaries.append(boundary)
            if match.group(3):
                stack.append(boundary)
        elif kind in C4_ELEMENT_TYPES and args:
            diagram.elements.append(
                C4Element(
                    type=kind,
                    id=args[0],
                    label=args[1] if len(args) > 1 else args[0],
                    description=args[-1] if len(args) > 2 else "",
                    boundary=enclosing,
                    line=i,
                )
            )
        elif kind in C4_REL_TYPES and len(args) >= 2:
            diagram.relationships.append(
                C4Relationship(
                    source=args[0],
                    target=args[1],
                    label=args[2] if len(args) > 2 else "",
                    technology=args[3] if len(args) > 3 else "",
                    type=kind,
                    line=i,
                )
            )
        else:
            logger.debug("Skipping C4 call %s on line %d", kind, i)
    return diagram


def add_c4_element(
    text: str, element_id: str, label: str, type: str = "System", description: str = ""
) -> str:
    description_part = f', "{_quote(description)}"' if description else ""
    return append_lines(
        text,
        [f'{DEFAULT_INDENT}{type}({element_id}, "{_quote(label)}"{description_part})'],
    )


def add_c4_relationship(text: str, source: str, target: str, label: str) -> str:
    return append_lines(
        text, [f'{DEFAULT_INDENT}Rel({source}, {target}, "{_quote(label)}")']
    )


# gitGraph


GIT_HEADER_PATTERN = re.compile(r"^gitGraph(?:\s+(LR|TB|BT))?\s*:?$")
COMMIT_PATTERN = re.compile(r"^commit\b(.*)$")
BRANCH_PATTERN = re.compile(r'^branch\s+("[^"]+"|\S+)(?:\s+order:\s*(\d+))?\s*$')
CHECKOUT_PATTERN = re.compile(r'^(?:checkout|switch)\s+("[^"]+"|\S+)\s*$')
MERGE_PATTERN = re.compile(r'^merge\s+("[^"]+"|\S+)(.*)$')
CHERRY_PICK_PATTERN = re.compile(r'^cherry-pick\s+id:\s*"([^"]+)"(.*)$')
ATTRIBUTE_PATTERN = re.compile(r'(id|tag|type):\s*("[^"]*"|\S+)')

MAIN_BRANCH = "main"


def _git_attributes(raw: str) -> Dict[str, str]:
    return {key: value.strip('"') for key, value in ATTRIBUTE_PATTERN.findall(raw)}


@dataclass
class GitCommit:
    """A commit, merge or cherry-pick on a branch."""

    id: str
    branch: str
    type: str = "NORMAL"
    tag: str = ""
    kind: str = "commit"
    merged_branch: Optional[str] = None
    line: int = 0


@dataclass
class GitBranch:
    name: str
    parent: Optional[str] = None
    order: Optional[int] = None
    line: Optional[int] = None


@dataclass
class GitGraph:
    direction: str = "LR"
    commits: List[GitCommit] = field(default_factory=list)
    branches: Dict[str, GitBranch] = field(default_factory=dict)
    current_branch: str = MAIN_BRANCH


def parse_git_graph(text: str) -> GitGraph:
    """
    Parse a gitGraph, tracking the checked-out branch.

    Commits without an id get a positional ``<branch>-<n>`` id.
    """
    graph = GitGraph(branches={MAIN_BRANCH: GitBranch(name=MAIN_BRANCH)})
    for i, _, stripped in _content(split_lines(text), ""):
        match = GIT_HEADER_PATTERN.match(stripped)
        if match:
            graph.direction = match.group(1) or graph.direction
            continue

        branch = graph.current_branch
        match = COMMIT_PATTERN.match(stripped)
        if match:
            attrs = _git_attributes(match.group(1))
            graph.commits.append(
                GitCommit(
                    id=attrs.get("id") or f"{branch}-{len(graph.commits)}",
                    branch=branch,
                    type=attrs.get("type", "NORMAL"),
                    tag=attrs.get("tag", ""),
                    line=i,
                )
            )
            continue

        match = BRANCH_PATTERN.match(stripped)
        if match:
            name = match.group(1).strip('"')
            graph.branches[name] = GitBranch(
                name=name,
                parent=branch,
                order=int(match.group(2)) if match.group(2) else None,
                line=i,
            )
            graph.current_branch = name
            continue

        match = CHECKOUT_PATTERN.match(stripped)
        if match:
            name = match.group(1).strip('"')
            if name not in graph.branches:
                logger.debug("Checkout of unknown branch '%s' on line %d", name, i)
            graph.current_branch = name
            continue

        match = MERGE_PATTERN.match(stripped)
        if match:
            source = match.group(1).strip('"')
            attrs = _git_attributes(match.group(2))
            graph.commits.append(
                GitCommit(
                    id=attrs.get("id") or f"{branch}-{len(graph.commits)}",
                    branch=branch,
                    type=attrs.get("type", "NORMAL"),
                    tag=attrs.get("tag", ""),
                    kind="merge",
                    merged_branch=source,
                    line=i,
                )
            )
            continue

        match = CHERRY_PICK_PATTERN.match(stripped)
        if match:
            attrs = _git_attributes(match.group(2))
            graph.commits.append(
                GitCommit(
                    id=match.group(1),
                    branch=branch,
                    tag=attrs.get("tag", ""),
                    kind="cherry-pick",
                    line=i,
                )
            )
    return graph


def add_git_commit(text: str, commit_id: Optional[str] = None, tag: str = "") -> str:
    parts = ["commit"]
    if commit_id:
        parts.append(f'id: "{_quote(commit_id)}"')
    if tag:
        parts.append(f'tag: "{_quote(tag)}"')
    return append_lines(text, [DEFAULT_INDENT + " ".join(parts)])


# Quadrant chart


QUADRANT_POINT_PATTERN = re.compile(
    r"^(.+?)\s*:\s*\[\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*\](.*)$"
)
AXIS_PATTERN = re.compile(r"^([xy])-axis\s+(.+?)(?:\s+-->\s+(.+))?$")
QUADRANT_LABEL_PATTERN = re.compile(r"^quadrant-([1-4])\s+(.+)$")


@dataclass
class QuadrantPoint:
    label: str
    x: float
    y: float
    line: int = 0


@dataclass
class QuadrantChart:
    title: str = ""
    x_axis: Tuple[str, str] = ("", "")
    y_axis: Tuple[str, str] = ("", "")
    quadrants: Dict[int, str] = field(default_factory=dict)
    points: List[QuadrantPoint] = field(default_factory=list)


def parse_quadrant_chart(text: str) -> QuadrantChart:
    chart = QuadrantChart()
    for i, _, stripped in _content(split_lines(text), "quadrantChart"):
        match = TITLE_PATTERN.match(stripped)
        if match:
            chart.title = match.group(1).strip()
            continue
        match = AXIS_PATTERN.match(stripped)
        if match:
            axis = (match.group(2).strip(), (match.group(3) or "").strip())
            if match.group(1) == "x":
                chart.x_axis = axis
            else:
                chart.y_axis = axis
            continue
        match = QUADRANT_LABEL_PATTERN.match(stripped)
        if match:
            chart.quadrants[int(match.group(1))] = match.group(2).strip()
            continue
        match = QUADRANT_POINT_PATTERN.match(stripped)
        if match:
            try:
                x, y = float(match.group(2)), float(match.group(3))
            except ValueError:
                logger.debug("Bad quadrant point on line %d", i)
                continue
            chart.points.append(
                QuadrantPoint(label=match.group(1).strip().strip('"'), x=x, y=y, line=i)
            )
    return chart


def add_quadrant_point(text: str, label: str, x: float, y: float) -> str:
    return append_lines(text, [f"{DEFAULT_INDENT}{label}: [{x}, {y}]"])
