"""
Dialect detection and the adapter table.

Every dialect with structural editing exposes the same node/edge contract
through a :class:`DialectAdapter`. Parse-only dialects are reachable through
:func:`get_parser`.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from . import class_diagram, er_diagram, mutator, sequence_diagram, state_diagram
from .gantt import parse_gantt
from .parser import parse_flowchart
from .simple_diagrams import (
    parse_c4,
    parse_git_graph,
    parse_mindmap,
    parse_pie,
    parse_quadrant_chart,
    parse_timeline,
)
from .textops import front_matter_end

logger = logging.getLogger(__name__)


class DiagramKind(Enum):
    FLOWCHART = "flowchart"
    SEQUENCE = "sequenceDiagram"
    GANTT = "gantt"
    REQUIREMENT = "requirementDiagram"
    ER = "erDiagram"
    CLASS = "classDiagram"
    STATE = "stateDiagram"
    MINDMAP = "mindmap"
    PIE = "pie"
    TIMELINE = "timeline"
    JOURNEY = "journey"
    GIT_GRAPH = "gitGraph"
    C4 = "C4"
    SANKEY = "sankey"
    QUADRANT = "quadrantChart"
    XY_CHART = "xychart"
    BLOCK = "block"
    ARCHITECTURE = "architecture"
    TREEMAP = "treemap"
    PACKET = "packet"
    RADAR = "radar"
    UNSUPPORTED = "unsupported"


# Checked in order; the first substring hit wins.
_CLASSIFY_RULES = (
    (("sequence", "zenuml"), DiagramKind.SEQUENCE),
    (("gantt",), DiagramKind.GANTT),
    (("requirement",), DiagramKind.REQUIREMENT),
    (("erdiagram",), DiagramKind.ER),
    (("class",), DiagramKind.CLASS),
    (("state",), DiagramKind.STATE),
    (("mindmap",), DiagramKind.MINDMAP),
    (("pie",), DiagramKind.PIE),
    (("timeline",), DiagramKind.TIMELINE),
    (("journey",), DiagramKind.JOURNEY),
    (("git",), DiagramKind.GIT_GRAPH),
    (("c4",), DiagramKind.C4),
    (("sankey",), DiagramKind.SANKEY),
    (("quadrant",), DiagramKind.QUADRANT),
    (("xy",), DiagramKind.XY_CHART),
    (("block",), DiagramKind.BLOCK),
    (("architecture",), DiagramKind.ARCHITECTURE),
    (("treemap",), DiagramKind.TREEMAP),
    (("packet",), DiagramKind.PACKET),
    (("radar",), DiagramKind.RADAR),
)

FIRST_WORD_PATTERN = re.compile(r"^([\w-]+)")


def classify_diagram_type(raw: Optional[str]) -> DiagramKind:
    """
    Map a diagram type string (a header keyword or a renderer's type name)
    to a :class:`DiagramKind`.

    Examples:
        >>> classify_diagram_type("graph")
        <DiagramKind.FLOWCHART: 'flowchart'>
        >>> classify_diagram_type("stateDiagram-v2")
        <DiagramKind.STATE: 'stateDiagram'>
    """
    normalized = (raw or "").strip().lower()
    if not normalized:
        return DiagramKind.UNSUPPORTED
    if "flow" in normalized or normalized == "graph":
        return DiagramKind.FLOWCHART
    if normalized == "er":
        return DiagramKind.ER
    for needles, kind in _CLASSIFY_RULES:
        if any(needle in normalized for needle in needles):
            return kind
    return DiagramKind.UNSUPPORTED


def detect_diagram_kind(text: str) -> DiagramKind:
    """Classify a document by the first word of its first meaningful line."""
    lines = (text or "").split("\n")
    for line in lines[front_matter_end(lines) :]:
        stripped = line.strip()
        if not stripped or stripped.startswith("%%"):
            continue
        match = FIRST_WORD_PATTERN.match(stripped)
        return classify_diagram_type(match.group(1) if match else "")
    return DiagramKind.UNSUPPORTED


@dataclass(frozen=True)
class DialectAdapter:
    """
    Uniform editing contract for one dialect.

    All callables take the document text first and return the new text,
    except ``parse`` which returns the dialect's model. ``node_noun`` and
    ``edge_noun`` name the dialect's entities for display ("class",
    "relationship", ...).
    """

    kind: DiagramKind
    parse: Callable[[str], Any]
    add_node: Callable[..., str]
    update_node: Callable[..., str]
    remove_node: Callable[[str, str], str]
    add_edge: Callable[..., str]
    update_edge: Callable[..., str]
    remove_edge: Callable[[str, str, str], str]
    node_noun: str = "node"
    edge_noun: str = "edge"


def _flowchart_update_node(text, node_id, label, **opts):
    return mutator.update_node(text, node_id, label=label, **opts)


def _flowchart_update_edge(text, source, target, label, **opts):
    return mutator.update_edge(text, source, target, label=label, **opts)


def _class_add_node(text, node_id, label=None, **opts):
    return class_diagram.add_class(text, node_id, label=label, **opts)


def _class_update_edge(text, source, target, label, **opts):
    return class_diagram.update_relationship(text, source, target, label=label, **opts)


def _er_add_node(text, node_id, label=None, **opts):
    # Entities have no display alias; the label is ignored.
    return er_diagram.add_entity(text, node_id, **opts)


def _er_update_node(text, node_id, label, **opts):
    return er_diagram.update_entity(text, node_id, new_name=label, **opts)


def _er_add_edge(text, source, target, label="", **opts):
    return er_diagram.add_relationship(
        text, source, target, label=label or "relates", **opts
    )


def _er_update_edge(text, source, target, label, **opts):
    return er_diagram.update_relationship(text, source, target, label=label, **opts)


def _state_add_node(text, node_id, label=None, **opts):
    return state_diagram.add_state(text, node_id, label=label)


def _state_add_edge(text, source, target, label="", **opts):
    return state_diagram.add_transition(text, source, target, label=label)


def _state_update_edge(text, source, target, label, **opts):
    return state_diagram.update_transition(text, source, target, label=label)


def _sequence_update_edge(text, source, target, label, **opts):
    return sequence_diagram.update_message(text, source, target, label=label, **opts)


ADAPTERS: Dict[DiagramKind, DialectAdapter] = {
    DiagramKind.FLOWCHART: DialectAdapter(
        kind=DiagramKind.FLOWCHART,
        parse=parse_flowchart,
        add_node=mutator.add_node,
        update_node=_flowchart_update_node,
        remove_node=mutator.remove_node,
        add_edge=mutator.add_edge,
        update_edge=_flowchart_update_edge,
        remove_edge=mutator.remove_edge,
    ),
    DiagramKind.CLASS: DialectAdapter(
        kind=DiagramKind.CLASS,
        parse=class_diagram.parse_class_diagram,
        add_node=_class_add_node,
        update_node=class_diagram.update_class,
        remove_node=class_diagram.remove_class,
        add_edge=class_diagram.add_relationship,
        update_edge=_class_update_edge,
        remove_edge=class_diagram.remove_relationship,
        node_noun="class",
        edge_noun="relationship",
    ),
    DiagramKind.ER: DialectAdapter(
        kind=DiagramKind.ER,
        parse=er_diagram.parse_er_diagram,
        add_node=_er_add_node,
        update_node=_er_update_node,
        remove_node=er_diagram.remove_entity,
        add_edge=_er_add_edge,
        update_edge=_er_update_edge,
        remove_edge=er_diagram.remove_relationship,
        node_noun="entity",
        edge_noun="relationship",
    ),
    DiagramKind.STATE: DialectAdapter(
        kind=DiagramKind.STATE,
        parse=state_diagram.parse_state_diagram,
        add_node=_state_add_node,
        update_node=state_diagram.update_state,
        remove_node=state_diagram.remove_state,
        add_edge=_state_add_edge,
        update_edge=_state_update_edge,
        remove_edge=state_diagram.remove_transition,
        node_noun="state",
        edge_noun="transition",
    ),
    DiagramKind.SEQUENCE: DialectAdapter(
        kind=DiagramKind.SEQUENCE,
        parse=sequence_diagram.parse_sequence_diagram,
        add_node=sequence_diagram.add_participant,
        update_node=sequence_diagram.update_participant,
        remove_node=sequence_diagram.remove_participant,
        add_edge=sequence_diagram.add_message,
        update_edge=_sequence_update_edge,
        remove_edge=sequence_diagram.remove_message,
        node_noun="participant",
        edge_noun="message",
    ),
}

PARSERS: Dict[DiagramKind, Callable[[str], Any]] = {
    **{kind: adapter.parse for kind, adapter in ADAPTERS.items()},
    DiagramKind.GANTT: parse_gantt,
    DiagramKind.PIE: parse_pie,
    DiagramKind.MINDMAP: parse_mindmap,
    DiagramKind.TIMELINE: parse_timeline,
    DiagramKind.C4: parse_c4,
    DiagramKind.GIT_GRAPH: parse_git_graph,
    DiagramKind.QUADRANT: parse_quadrant_chart,
}


def get_adapter(kind: DiagramKind) -> Optional[DialectAdapter]:
    """Adapter for kind, or None for dialects without structural editing."""
    adapter = ADAPTERS.get(kind)
    if adapter is None:
        logger.debug("No editing adapter for %s", kind.value)
    return adapter


def get_parser(kind: DiagramKind) -> Optional[Callable[[str], Any]]:
    return PARSERS.get(kind)
