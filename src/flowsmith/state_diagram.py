"""
State diagram dialect.

Parses transitions (with ``[*]`` start/end pseudo-states), aliased and
described states, composite ``state X { ... }`` blocks and choice, fork and
join stereotypes. Notes are skipped.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .textops import (
    DEFAULT_INDENT,
    append_lines,
    join_lines,
    line_indent,
    remove_lines,
    split_lines,
)

logger = logging.getLogger(__name__)

PSEUDO_STATE = "[*]"

HEADER_PATTERN = re.compile(r"^stateDiagram(?:-v2)?\s*$")
TRANSITION_PATTERN = re.compile(
    r"^(\[\*\]|[\w.]+)\s*-->\s*(\[\*\]|[\w.]+)(?:\s*:\s*(.*?))?\s*$"
)
ALIAS_PATTERN = re.compile(r'^state\s+"([^"]*)"\s+as\s+(\w+)\s*(\{)?\s*$')
COMPOSITE_PATTERN = re.compile(r"^state\s+(\w+)\s*\{\s*$")
STEREOTYPE_PATTERN = re.compile(r"^state\s+(\w+)\s*<<\s*(choice|fork|join)\s*>>\s*$")
PLAIN_STATE_PATTERN = re.compile(r"^state\s+(\w+)\s*$")
DESCRIPTION_PATTERN = re.compile(r"^(\w+)\s*:\s*(.+)$")
BARE_STATE_PATTERN = re.compile(r"^(\w+)\s*$")
NOTE_BLOCK_PATTERN = re.compile(r"^note\s+(?:left|right)\s+of\s+\S+\s*$")
SKIPPED_PREFIXES = ("direction ", "classDef ", "class ", "style ", "note ")


@dataclass
class State:
    """
    A state.

    Attributes:
        id: State identifier.
        label: Display label (``state "Label" as id``), the id otherwise.
        descriptions: Text from ``id : description`` lines.
        stereotype: choice, fork or join, if declared.
        line: Declaration line, None when only used in transitions.
        parent: Enclosing composite state.
        is_composite: True for ``state X { ... }`` blocks.
        end_line: Closing brace line of a composite.
    """

    id: str
    label: str
    descriptions: List[str] = field(default_factory=list)
    stereotype: Optional[str] = None
    line: Optional[int] = None
    parent: Optional[str] = None
    is_composite: bool = False
    end_line: Optional[int] = None

    @property
    def is_implicit(self) -> bool:
        return self.line is None


@dataclass
class Transition:
    source: str
    target: str
    label: str = ""
    line: int = 0
    parent: Optional[str] = None


@dataclass
class StateDiagram:
    states: Dict[str, State] = field(default_factory=dict)
    transitions: List[Transition] = field(default_factory=list)


def parse_state_diagram(text: str) -> StateDiagram:
    """Parse state diagram text. Unrecognised lines are skipped."""
    diagram = StateDiagram()
    stack: List[State] = []
    in_note = False

    def ensure(state_id: str, line: Optional[int] = None) -> State:
        state = diagram.states.get(state_id)
        if state is None:
            state = State(
                id=state_id, label=state_id, parent=stack[-1].id if stack else None
            )
            diagram.states[state_id] = state
        if line is not None and state.line is None:
            state.line = line
        return state

    for i, raw in enumerate(split_lines(text)):
        stripped = raw.strip()
        if in_note:
            in_note = stripped != "end note"
            continue
        if not stripped or stripped.startswith("%%") or HEADER_PATTERN.match(stripped):
            continue

        if NOTE_BLOCK_PATTERN.match(stripped):
            in_note = True
            continue

        if stripped == "}":
            if stack:
                stack.pop().end_line = i
            continue

        if stripped == "--":
            continue

        match = TRANSITION_PATTERN.match(stripped)
        if match:
            source, target = match.group(1), match.group(2)
            for state_id in (source, target):
                if state_id != PSEUDO_STATE:
                    ensure(state_id)
            diagram.transitions.append(
                Transition(
                    source=source,
                    target=target,
                    label=match.group(3) or "",
                    line=i,
                    parent=stack[-1].id if stack else None,
                )
            )
            continue

        match = ALIAS_PATTERN.match(stripped)
        if match:
            state = ensure(match.group(2), i)
            state.label = match.group(1)
            if match.group(3):
                state.is_composite = True
                stack.append(state)
            continue

        match = COMPOSITE_PATTERN.match(stripped)
        if match:
            state = ensure(match.group(1), i)
            state.is_composite = True
            stack.append(state)
            continue

        match = STEREOTYPE_PATTERN.match(stripped)
        if match:
            ensure(match.group(1), i).stereotype = match.group(2)
            continue

        match = PLAIN_STATE_PATTERN.match(stripped)
        if match:
            ensure(match.group(1), i)
            continue

        if stripped.startswith(SKIPPED_PREFIXES):
            continue

        match = DESCRIPTION_PATTERN.match(stripped)
        if match:
            ensure(match.group(1), i).descriptions.append(match.group(2).strip())
            continue

        match = BARE_STATE_PATTERN.match(stripped)
        if match:
            ensure(match.group(1), i)

    return diagram


def _declaration(state_id: str, label: Optional[str]) -> str:
    if label and label != state_id:
        escaped = label.replace('"', "#quot;")
        return f'state "{escaped}" as {state_id}'
    return state_id


def add_state(text: str, state_id: str, label: Optional[str] = None) -> str:
    """Declare a new state; no-op when the id is already used."""
    if state_id in parse_state_diagram(text).states:
        logger.debug("State '%s' already exists", state_id)
        return text
    return append_lines(text, [DEFAULT_INDENT + _declaration(state_id, label)])


def update_state(text: str, state_id: str, label: Optional[str] = None) -> str:
    """
    Set a state's display label.

    An existing ``state "..." as id`` line is rewritten in place. Otherwise a
    new alias line goes right after the diagram header.
    """
    next_label = (label or "").strip()
    state = parse_state_diagram(text).states.get(state_id)
    if state is None or not next_label:
        logger.debug("State '%s' not updated", state_id)
        return text

    lines = split_lines(text)
    for i, line in enumerate(lines):
        match = ALIAS_PATTERN.match(line.strip())
        if match and match.group(2) == state_id:
            brace = " {" if match.group(3) else ""
            escaped = next_label.replace('"', "#quot;")
            lines[i] = f'{line_indent(line)}state "{escaped}" as {state_id}{brace}'
            return join_lines(lines)

    insert_at = 0
    for i, line in enumerate(lines):
        if HEADER_PATTERN.match(line.strip()):
            insert_at = i + 1
            break
    escaped = next_label.replace('"', "#quot;")
    lines.insert(insert_at, f'{DEFAULT_INDENT}state "{escaped}" as {state_id}')
    return join_lines(lines)


def remove_state(text: str, state_id: str) -> str:
    """
    Remove a state, its declarations and descriptions, every transition
    touching it, and the body of a composite state.
    """
    diagram = parse_state_diagram(text)
    state = diagram.states.get(state_id)
    if state is None:
        logger.debug("State '%s' not found", state_id)
        return text

    drop = set()
    if state.is_composite and state.line is not None and state.end_line is not None:
        drop.update(range(state.line, state.end_line + 1))
    drop.update(
        t.line for t in diagram.transitions if state_id in (t.source, t.target)
    )

    for i, line in enumerate(split_lines(text)):
        stripped = line.strip()
        for pattern, group in (
            (ALIAS_PATTERN, 2),
            (STEREOTYPE_PATTERN, 1),
            (PLAIN_STATE_PATTERN, 1),
            (DESCRIPTION_PATTERN, 1),
            (BARE_STATE_PATTERN, 1),
        ):
            match = pattern.match(stripped)
            if match and match.group(group) == state_id:
                drop.add(i)
                break
    return remove_lines(text, drop)


def add_transition(text: str, source: str, target: str, label: str = "") -> str:
    label_part = f" : {label}" if label else ""
    return append_lines(text, [f"{DEFAULT_INDENT}{source} --> {target}{label_part}"])


def update_transition(
    text: str, source: str, target: str, label: Optional[str] = None
) -> str:
    """Rewrite the label of the first source->target transition."""
    for transition in parse_state_diagram(text).transitions:
        if transition.source != source or transition.target != target:
            continue
        next_label = label if label is not None else transition.label
        if next_label == transition.label:
            return text
        lines = split_lines(text)
        label_part = f" : {next_label}" if next_label else ""
        lines[transition.line] = (
            f"{line_indent(lines[transition.line])}{source} --> {target}{label_part}"
        )
        return join_lines(lines)
    logger.debug("No transition %s -> %s", source, target)
    return text


def remove_transition(text: str, source: str, target: str) -> str:
    drop = [
        t.line
        for t in parse_state_diagram(text).transitions
        if t.source == source and t.target == target
    ]
    return remove_lines(text, drop)
