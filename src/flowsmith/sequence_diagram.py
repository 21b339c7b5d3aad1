"""
Sequence diagram dialect: participants, actors and messages.
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

HEADER_PATTERN = re.compile(r"^sequenceDiagram\s*$")
PARTICIPANT_PATTERN = re.compile(r"^(participant|actor)\s+(\w+)(?:\s+as\s+(.+?))?\s*$")

# Longest arrows first.
MESSAGE_ARROWS = (
    "<<-->>",
    "<<->>",
    "-->>",
    "->>",
    "--x",
    "-x",
    "--)",
    "-)",
    "-->",
    "->",
)
MESSAGE_PATTERN = re.compile(
    r"^(\w+)\s*("
    + "|".join(re.escape(arrow) for arrow in MESSAGE_ARROWS)
    + r")\s*([+-]?)\s*(\w+)\s*(?::\s*(.*?))?\s*$"
)
DEFAULT_ARROW = "->>"


@dataclass
class Participant:
    id: str
    label: str
    type: str = "participant"
    line: Optional[int] = None

    @property
    def is_implicit(self) -> bool:
        return self.line is None


@dataclass
class Message:
    """
    A message line such as ``Alice->>+Bob: Hello``.

    Attributes:
        activation: "+" activates the target, "-" deactivates the source.
    """

    source: str
    target: str
    arrow: str = DEFAULT_ARROW
    text: str = ""
    activation: str = ""
    line: int = 0


@dataclass
class SequenceDiagram:
    participants: Dict[str, Participant] = field(default_factory=dict)
    messages: List[Message] = field(default_factory=list)


def parse_sequence_diagram(text: str) -> SequenceDiagram:
    """Parse sequence diagram text. Unrecognised lines are skipped."""
    diagram = SequenceDiagram()
    implicit: List[str] = []

    for i, raw in enumerate(split_lines(text)):
        stripped = raw.strip()
        if not stripped or stripped.startswith("%%") or HEADER_PATTERN.match(stripped):
            continue

        match = PARTICIPANT_PATTERN.match(stripped)
        if match:
            participant_id = match.group(2)
            if participant_id not in diagram.participants:
                diagram.participants[participant_id] = Participant(
                    id=participant_id,
                    label=match.group(3) or participant_id,
                    type=match.group(1),
                    line=i,
                )
            continue

        match = MESSAGE_PATTERN.match(stripped)
        if match:
            source, target = match.group(1), match.group(4)
            diagram.messages.append(
                Message(
                    source=source,
                    target=target,
                    arrow=match.group(2),
                    text=match.group(5) or "",
                    activation=match.group(3),
                    line=i,
                )
            )
            implicit.extend((source, target))

    for participant_id in implicit:
        if participant_id not in diagram.participants:
            diagram.participants[participant_id] = Participant(
                id=participant_id, label=participant_id
            )
    return diagram


def _participant_insert_index(lines: List[str]) -> int:
    insert_at = 0
    for i, line in enumerate(lines):
        stripped = line.strip()
        if PARTICIPANT_PATTERN.match(stripped):
            insert_at = i + 1
        elif HEADER_PATTERN.match(stripped) and insert_at == 0:
            insert_at = i + 1
    return insert_at


def _participant_line(indent: str, role: str, participant_id: str, label) -> str:
    alias = f" as {label}" if label and label != participant_id else ""
    return f"{indent}{role} {participant_id}{alias}"


def add_participant(
    text: str,
    participant_id: str,
    label: Optional[str] = None,
    type: str = "participant",
) -> str:
    """Insert a participant after the last participant line (or the header)."""
    existing = parse_sequence_diagram(text).participants.get(participant_id)
    if existing is not None and not existing.is_implicit:
        logger.debug("Participant '%s' already declared", participant_id)
        return text
    role = type if type in ("participant", "actor") else "participant"
    lines = split_lines(text) if text else []
    lines.insert(
        _participant_insert_index(lines),
        _participant_line(DEFAULT_INDENT, role, participant_id, label),
    )
    return join_lines(lines)


def update_participant(
    text: str, participant_id: str, label: Optional[str] = None
) -> str:
    """Set a participant's alias, declaring an implicit participant if needed."""
    next_label = (label or "").strip()
    participant = parse_sequence_diagram(text).participants.get(participant_id)
    if participant is None or not next_label:
        logger.debug("Participant '%s' not updated", participant_id)
        return text

    lines = split_lines(text)
    if participant.is_implicit:
        lines.insert(
            _participant_insert_index(lines),
            _participant_line(
                DEFAULT_INDENT, "participant", participant_id, next_label
            ),
        )
    else:
        existing = lines[participant.line]
        lines[participant.line] = _participant_line(
            line_indent(existing), participant.type, participant_id, next_label
        )
    return join_lines(lines)


def remove_participant(text: str, participant_id: str) -> str:
    """Remove a participant's declaration and every message it sends or receives."""
    diagram = parse_sequence_diagram(text)
    drop = set()
    participant = diagram.participants.get(participant_id)
    if participant is not None and participant.line is not None:
        drop.add(participant.line)
    drop.update(
        message.line
        for message in diagram.messages
        if participant_id in (message.source, message.target)
    )
    return remove_lines(text, drop)


def _message_line(
    indent: str, source: str, arrow: str, activation: str, target: str, text: str
) -> str:
    text_part = f": {text}" if text else ""
    return f"{indent}{source}{arrow}{activation}{target}{text_part}"


def add_message(
    text: str, source: str, target: str, label: str = "", arrow: str = DEFAULT_ARROW
) -> str:
    if arrow not in MESSAGE_ARROWS:
        logger.debug("Unknown message arrow %r", arrow)
        return text
    line = _message_line(DEFAULT_INDENT, source, arrow, "", target, label)
    return append_lines(text, [line])


def update_message(
    text: str,
    source: str,
    target: str,
    label: Optional[str] = None,
    arrow: Optional[str] = None,
) -> str:
    """Rewrite the first source->target message, keeping its activation marker."""
    for message in parse_sequence_diagram(text).messages:
        if message.source != source or message.target != target:
            continue
        next_arrow = arrow if arrow in MESSAGE_ARROWS else message.arrow
        next_text = label if label is not None else message.text
        lines = split_lines(text)
        lines[message.line] = _message_line(
            line_indent(lines[message.line]),
            source,
            next_arrow,
            message.activation,
            target,
            next_text,
        )
        return join_lines(lines)
    logger.debug("No message %s -> %s", source, target)
    return text


def remove_message(text: str, source: str, target: str) -> str:
    drop = [
        message.line
        for message in parse_sequence_diagram(text).messages
        if message.source == source and message.target == target
    ]
    return remove_lines(text, drop)
