"""
Data models for parsed flowcharts.

This module contains the dataclasses the flowchart parser produces. They are a
read-only view of the source text: the text stays the only ground truth and
every mutation re-parses it.

Classes:
    Node: A flowchart node, declared or only referenced.
    Edge: A directed connection between two nodes.
    Subgraph: A group block delimited by ``subgraph`` and ``end``.
    ClassDef: A ``classDef`` style directive.
    FlowchartModel: The full parse result.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .shapes import ArrowKind


@dataclass
class Node:
    """
    A flowchart node.

    Attributes:
        id: Identifier, unique within a document.
        label: Display label (the id itself when never declared).
        shape: Internal shape name.
        shape_open: Literal opening delimiter, None when not written in brackets.
        shape_close: Literal closing delimiter.
        source_line: Line of first appearance; decides group membership.
        declared_line: Line of the explicit declaration, None if only referenced.
        class_name: Class attached with an inline ``:::name`` tag.
    """

    id: str
    label: str
    shape: str = "rect"
    shape_open: Optional[str] = None
    shape_close: Optional[str] = None
    source_line: int = 0
    declared_line: Optional[int] = None
    class_name: Optional[str] = None

    @property
    def is_virtual(self) -> bool:
        """True when the node was only ever referenced as an edge endpoint."""
        return self.declared_line is None


@dataclass
class Edge:
    """
    A directed edge.

    Attributes:
        source: Source node id.
        target: Target node id.
        label: Edge label, empty when absent.
        arrow: Arrow kind.
        minlen: Stretch of the arrow body, at least 1.
        source_line: Line the edge was written on.
    """

    source: str
    target: str
    label: str = ""
    arrow: ArrowKind = ArrowKind.ARROW
    minlen: int = 1
    source_line: int = 0


@dataclass
class Subgraph:
    """
    A group block.

    Attributes:
        id: Group identifier.
        label: Display label (the id when no label is given).
        start_line: Line of the ``subgraph`` header.
        end_line: Line of the matching ``end``; None when never closed.
        parent: Id of the enclosing group, if nested.
    """

    id: str
    label: str
    start_line: int
    end_line: Optional[int] = None
    parent: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.end_line is not None

    def contains_line(self, line: int) -> bool:
        """Strict containment; unclosed groups contain nothing."""
        if self.end_line is None:
            return False
        return self.start_line < line < self.end_line


@dataclass
class ClassDef:
    """A ``classDef name props`` directive."""

    name: str
    properties: Dict[str, str] = field(default_factory=dict)
    raw: str = ""
    line: int = 0


@dataclass
class FlowchartModel:
    """
    Result of parsing a flowchart.

    Attributes:
        direction: Flow direction (TD, TB, LR, RL, BT).
        nodes: Nodes keyed by id, in order of first appearance.
        edges: Edges in source order.
        subgraphs: Groups in header order.
        passthrough_lines: Indices of directive lines kept verbatim.
    """

    direction: str = "TD"
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)
    subgraphs: List[Subgraph] = field(default_factory=list)
    passthrough_lines: List[int] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def edge(self, source: str, target: str) -> Optional[Edge]:
        """Return the first edge from source to target."""
        for edge in self.edges:
            if edge.source == source and edge.target == target:
                return edge
        return None

    def subgraph(self, subgraph_id: str) -> Optional[Subgraph]:
        for group in self.subgraphs:
            if group.id == subgraph_id:
                return group
        return None

    def subgraph_of_line(self, line: int) -> Optional[Subgraph]:
        """Return the innermost closed group strictly containing line."""
        best = None
        for group in self.subgraphs:
            if group.contains_line(line):
                if best is None or group.start_line > best.start_line:
                    best = group
        return best
