"""
Entity-relationship diagram dialect.

Entities come from attribute blocks and from relationship endpoints.
Relationships carry a cardinality glyph such as ``||--o{`` (identifying,
solid) or ``||..o{`` (non-identifying, dotted).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .textops import (
    DEFAULT_INDENT,
    append_lines,
    join_lines,
    line_indent,
    remove_lines,
    split_lines,
)

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"^erDiagram\s*$")
ENTITY_PATTERN = re.compile(r'^([\w-]+)\s*(?:\[\s*"?([^"\]]*)"?\s*\])?\s*\{\s*$')
RELATIONSHIP_PATTERN = re.compile(
    r"^([\w-]+)\s+([|o}{]{1,2}(?:--|\.\.)[|o}{]{1,2})\s+([\w-]+)"
    r"(?:\s*:\s*(.*?))?\s*$"
)

KEY_CONSTRAINTS = ("PK", "FK", "UK")

MARKER_NAMES = {
    "||": "exactly one",
    "|o": "zero or one",
    "o|": "zero or one",
    "}|": "one or more",
    "|{": "one or more",
    "}o": "zero or more",
    "o{": "zero or more",
}


@dataclass
class ErAttribute:
    """A parsed attribute line such as ``int id PK "primary key"``."""

    type: str
    name: str
    constraint: str = ""
    keys: List[str] = field(default_factory=list)
    comment: str = ""
    raw: str = ""


@dataclass
class ErEntity:
    """
    An entity.

    Attributes:
        id: Entity name.
        label: Alias from ``NAME["Alias"]``, the id otherwise.
        attributes: Raw attribute lines.
        line: Block header line, None for entities only seen in relationships.
        end_line: Line of the closing brace.
    """

    id: str
    label: str
    attributes: List[str] = field(default_factory=list)
    line: Optional[int] = None
    end_line: Optional[int] = None

    @property
    def is_implicit(self) -> bool:
        return self.line is None


@dataclass
class ErRelationship:
    source: str
    target: str
    cardinality: str
    label: str = ""
    line: int = 0

    @property
    def identifying(self) -> bool:
        return "--" in self.cardinality

    @property
    def markers(self) -> Tuple[str, str]:
        return parse_cardinality(self.cardinality)


@dataclass
class ErDiagram:
    entities: Dict[str, ErEntity] = field(default_factory=dict)
    relationships: List[ErRelationship] = field(default_factory=list)


def parse_er_attribute(raw: str) -> ErAttribute:
    """
    Split an attribute line into type, name, key constraints and comment.

    ``constraint`` holds the first recognised key (PK, FK or UK), or "".
    """
    text = (raw or "").strip()
    comment = ""
    quote = text.find('"')
    if quote >= 0:
        comment = text[quote:].strip().strip('"')
        text = text[:quote].strip()
    parts = text.split()
    attr_type = parts[0] if parts else ""
    name = parts[1] if len(parts) > 1 else ""
    keys = [
        key.strip().upper()
        for key in " ".join(parts[2:]).split(",")
        if key.strip().upper() in KEY_CONSTRAINTS
    ]
    return ErAttribute(
        type=attr_type,
        name=name,
        constraint=keys[0] if keys else "",
        keys=keys,
        comment=comment,
        raw=(raw or "").strip(),
    )


def parse_cardinality(cardinality: str) -> Tuple[str, str]:
    """Split ``||--o{`` into its (source, target) markers."""
    value = (cardinality or "").strip()
    for connector in ("--", ".."):
        idx = value.find(connector)
        if idx >= 0:
            return value[:idx], value[idx + 2 :]
    return "||", "o{"


def describe_cardinality(marker: str) -> str:
    """Human name for a cardinality marker ('' if unknown)."""
    return MARKER_NAMES.get(marker, "")


def _ensure(diagram: ErDiagram, entity_id: str) -> ErEntity:
    entity = diagram.entities.get(entity_id)
    if entity is None:
        entity = ErEntity(id=entity_id, label=entity_id)
        diagram.entities[entity_id] = entity
    return entity


def parse_er_diagram(text: str) -> ErDiagram:
    """Parse ER diagram text. Unrecognised lines are skipped."""
    diagram = ErDiagram()
    current: Optional[ErEntity] = None

    for i, raw in enumerate(split_lines(text)):
        stripped = raw.strip()
        if not stripped or stripped.startswith("%%") or HEADER_PATTERN.match(stripped):
            continue

        if current is not None:
            if stripped == "}":
                current.end_line = i
                current = None
            else:
                current.attributes.append(stripped)
            continue

        match = RELATIONSHIP_PATTERN.match(stripped)
        if match:
            source, target = match.group(1), match.group(3)
            label = (match.group(4) or "").strip()
            if len(label) >= 2 and label[0] == label[-1] == '"':
                label = label[1:-1]
            diagram.relationships.append(
                ErRelationship(
                    source=source,
                    target=target,
                    cardinality=match.group(2),
                    label=label,
                    line=i,
                )
            )
            _ensure(diagram, source)
            _ensure(diagram, target)
            continue

        match = ENTITY_PATTERN.match(stripped)
        if match:
            entity = _ensure(diagram, match.group(1))
            entity.line = i
            if match.group(2):
                entity.label = match.group(2).strip()
            current = entity

    return diagram


def _format_label(label: str) -> str:
    if label and any(char.isspace() for char in label):
        return f'"{label}"'
    return label


def _format_relationship(
    indent: str, source: str, target: str, cardinality: str, label: str
) -> str:
    label_part = f" : {_format_label(label)}" if label else ""
    return f"{indent}{source} {cardinality} {target}{label_part}"


def add_entity(text: str, name: str, attributes: Iterable[str] = ()) -> str:
    """Append an entity block; no-op when a block for name already exists."""
    existing = parse_er_diagram(text).entities.get(name)
    if existing is not None and not existing.is_implicit:
        logger.debug("Entity '%s' already has a block", name)
        return text
    block = [f"{DEFAULT_INDENT}{name} {{"]
    block.extend(f"{DEFAULT_INDENT * 2}{attr}" for attr in attributes)
    block.append(f"{DEFAULT_INDENT}}}")
    return append_lines(text, block)


def _rename_in_relationship(line: str, old: str, new: str) -> str:
    match = RELATIONSHIP_PATTERN.match(line.strip())
    offset = len(line_indent(line))
    # Replace the target first so the source offsets stay valid.
    for group in (3, 1):
        if match.group(group) == old:
            start, end = match.span(group)
            line = line[: offset + start] + new + line[offset + end :]
    return line


def update_entity(
    text: str,
    name: str,
    new_name: Optional[str] = None,
    attributes: Optional[Iterable[str]] = None,
) -> str:
    """
    Rename an entity and/or replace its attributes.

    Relationship endpoints are renamed token-exactly. An entity that only
    appears in relationships gains a new block when attributes are given.
    """
    diagram = parse_er_diagram(text)
    entity = diagram.entities.get(name)
    if entity is None:
        logger.debug("Entity '%s' not found", name)
        return text

    next_name = (new_name or name).strip() or name
    if next_name != name and next_name in diagram.entities:
        logger.debug("Entity '%s' already exists", next_name)
        return text
    next_attributes = list(attributes) if attributes is not None else None

    lines = split_lines(text)
    if next_name != name:
        for rel in diagram.relationships:
            if name in (rel.source, rel.target):
                lines[rel.line] = _rename_in_relationship(
                    lines[rel.line], name, next_name
                )

    if entity.is_implicit:
        text = join_lines(lines)
        if next_attributes is None:
            return text
        return add_entity(text, next_name, next_attributes)

    header = lines[entity.line]
    base_indent = line_indent(header)
    match = ENTITY_PATTERN.match(header.strip())
    alias = f'["{match.group(2).strip()}"]' if match.group(2) else ""
    lines[entity.line] = f"{base_indent}{next_name}{alias} {{"

    if next_attributes is not None and entity.end_line is not None:
        attr_indent = base_indent + DEFAULT_INDENT
        if entity.end_line > entity.line + 1:
            attr_indent = line_indent(lines[entity.line + 1])
        lines[entity.line + 1 : entity.end_line] = [
            attr_indent + attr for attr in next_attributes
        ]
    return join_lines(lines)


def remove_entity(text: str, name: str) -> str:
    """Remove an entity block and every relationship touching it."""
    diagram = parse_er_diagram(text)
    entity = diagram.entities.get(name)
    if entity is None:
        logger.debug("Entity '%s' not found", name)
        return text
    drop = set()
    if entity.line is not None:
        end = entity.end_line if entity.end_line is not None else entity.line
        drop.update(range(entity.line, end + 1))
    drop.update(
        rel.line for rel in diagram.relationships if name in (rel.source, rel.target)
    )
    return remove_lines(text, drop)


def add_relationship(
    text: str,
    source: str,
    target: str,
    label: str = "relates",
    cardinality: str = "||--o{",
) -> str:
    if not RELATIONSHIP_PATTERN.match(f"{source} {cardinality} {target}"):
        logger.debug("Invalid relationship %s %s %s", source, cardinality, target)
        return text
    return append_lines(
        text, [_format_relationship(DEFAULT_INDENT, source, target, cardinality, label)]
    )


def update_relationship(
    text: str,
    source: str,
    target: str,
    label: Optional[str] = None,
    cardinality: Optional[str] = None,
) -> str:
    """Rewrite the first source->target relationship line."""
    for rel in parse_er_diagram(text).relationships:
        if rel.source != source or rel.target != target:
            continue
        next_cardinality = (cardinality or rel.cardinality).strip()
        if not RELATIONSHIP_PATTERN.match(f"{source} {next_cardinality} {target}"):
            next_cardinality = rel.cardinality
        next_label = (label if label is not None else rel.label).strip()
        lines = split_lines(text)
        lines[rel.line] = _format_relationship(
            line_indent(lines[rel.line]), source, target, next_cardinality, next_label
        )
        return join_lines(lines)
    logger.debug("No relationship %s -> %s", source, target)
    return text


def remove_relationship(text: str, source: str, target: str) -> str:
    drop = [
        rel.line
        for rel in parse_er_diagram(text).relationships
        if rel.source == source and rel.target == target
    ]
    return remove_lines(text, drop)
