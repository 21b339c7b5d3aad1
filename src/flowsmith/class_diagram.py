"""
Class diagram dialect.

Parses classes (block and single-line forms, ``["label"]`` aliases,
``<<annotation>>`` markers, ``Name : member`` lines) and relationships, and
applies line-level mutations.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .textops import (
    DEFAULT_INDENT,
    append_lines,
    join_lines,
    line_indent,
    remove_lines,
    split_lines,
)

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"^classDiagram(?:-v2)?\s*$")
CLASS_PATTERN = re.compile(
    r'^class\s+(\w+)\s*(~[^~]*~)?\s*(?:\["([^"]*)"\])?\s*(\{)?\s*(\})?\s*$'
)
ANNOTATION_PATTERN = re.compile(r"^<<\s*([^>]+?)\s*>>\s*(\w+)?\s*;?$")
MEMBER_PATTERN = re.compile(r"^(\w+)\s*:\s*(.+)$")

# Longest glyphs first so that "<|--" is never read as "<" + "|--".
RELATIONSHIP_KINDS = (
    "<|--",
    "<|..",
    "--|>",
    "..|>",
    "*--",
    "--*",
    "o--",
    "--o",
    "<--",
    "-->",
    "<..",
    "..>",
    "--",
    "..",
)
RELATIONSHIP_PATTERN = re.compile(
    r"^(\w+)\s*"
    r'(?:"([^"]*)"\s*)?'
    r"("
    + "|".join(
        re.escape(kind) + (r"(?!\w)" if kind[-1].isalpha() else "")
        for kind in RELATIONSHIP_KINDS
    )
    + r")\s*"
    r'(?:"([^"]*)"\s*)?'
    r"(\w+)"
    r"(?:\s*:\s*(.*?))?\s*$"
)
SKIPPED_PREFIXES = (
    "direction ",
    "note ",
    "note\t",
    "style ",
    "classDef ",
    "cssClass ",
    "click ",
    "link ",
    "callback ",
)


@dataclass
class DiagramClass:
    """
    A class node.

    Attributes:
        id: Class name.
        label: Display label (``["alias"]`` form), the id otherwise.
        members: Attribute and method lines, in source order.
        annotations: ``<<interface>>``-style markers.
        line: Header line, None when only referenced.
        end_line: Line of the closing brace for block classes.
    """

    id: str
    label: str
    members: List[str] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    line: Optional[int] = None
    end_line: Optional[int] = None

    @property
    def is_implicit(self) -> bool:
        return self.line is None


@dataclass
class ClassRelationship:
    source: str
    target: str
    kind: str = "-->"
    label: str = ""
    source_cardinality: Optional[str] = None
    target_cardinality: Optional[str] = None
    line: int = 0


@dataclass
class ClassDiagram:
    classes: Dict[str, DiagramClass] = field(default_factory=dict)
    relationships: List[ClassRelationship] = field(default_factory=list)


def _ensure(diagram: ClassDiagram, class_id: str) -> DiagramClass:
    entry = diagram.classes.get(class_id)
    if entry is None:
        entry = DiagramClass(id=class_id, label=class_id)
        diagram.classes[class_id] = entry
    return entry


def parse_class_diagram(text: str) -> ClassDiagram:
    """Parse class diagram text. Unrecognised lines are skipped."""
    diagram = ClassDiagram()
    current: Optional[DiagramClass] = None

    for i, raw in enumerate(split_lines(text)):
        stripped = raw.strip()
        if not stripped or stripped.startswith("%%"):
            continue
        if HEADER_PATTERN.match(stripped):
            continue

        if current is not None:
            if stripped == "}":
                current.end_line = i
                current = None
                continue
            annotation = ANNOTATION_PATTERN.match(stripped)
            if annotation and not annotation.group(2):
                current.annotations.append(annotation.group(1))
            else:
                current.members.append(stripped)
            continue

        match = CLASS_PATTERN.match(stripped)
        if match:
            entry = _ensure(diagram, match.group(1))
            entry.line = i
            if match.group(3):
                entry.label = match.group(3)
            if match.group(4) and not match.group(5):
                current = entry
            elif match.group(4):
                entry.end_line = i
            continue

        if stripped.startswith(SKIPPED_PREFIXES):
            continue

        match = RELATIONSHIP_PATTERN.match(stripped)
        if match:
            source, target = match.group(1), match.group(5)
            _ensure(diagram, source)
            _ensure(diagram, target)
            diagram.relationships.append(
                ClassRelationship(
                    source=source,
                    target=target,
                    kind=match.group(3),
                    label=match.group(6) or "",
                    source_cardinality=match.group(2),
                    target_cardinality=match.group(4),
                    line=i,
                )
            )
            continue

        match = ANNOTATION_PATTERN.match(stripped)
        if match and match.group(2):
            _ensure(diagram, match.group(2)).annotations.append(match.group(1))
            continue

        match = MEMBER_PATTERN.match(stripped)
        if match:
            _ensure(diagram, match.group(1)).members.append(match.group(2).strip())

    return diagram


def _format_relationship(
    indent: str,
    source: str,
    target: str,
    kind: str,
    label: str,
    source_cardinality: Optional[str] = None,
    target_cardinality: Optional[str] = None,
) -> str:
    left = f'{source} "{source_cardinality}"' if source_cardinality else source
    right = f'"{target_cardinality}" {target}' if target_cardinality else target
    label_part = f" : {label}" if label else ""
    return f"{indent}{left} {kind} {right}{label_part}"


def add_class(
    text: str,
    name: str,
    label: Optional[str] = None,
    members: Iterable[str] = (),
    annotation: Optional[str] = None,
) -> str:
    """Append a class declaration; no-op when the class is already declared."""
    existing = parse_class_diagram(text).classes.get(name)
    if existing is not None and not existing.is_implicit:
        logger.debug("Class '%s' already declared", name)
        return text

    alias = f'["{label}"]' if label and label != name else ""
    members = list(members)
    if not members and not annotation:
        return append_lines(text, [f"{DEFAULT_INDENT}class {name}{alias}"])

    block = [f"{DEFAULT_INDENT}class {name}{alias} {{"]
    if annotation:
        block.append(f"{DEFAULT_INDENT * 2}<<{annotation}>>")
    block.extend(f"{DEFAULT_INDENT * 2}{member}" for member in members)
    block.append(f"{DEFAULT_INDENT}}}")
    return append_lines(text, block)


def update_class(text: str, class_id: str, label: Optional[str] = None) -> str:
    """
    Set a class's display label.

    The header is rewritten in place, keeping generics and the block brace.
    A class that is only referenced gains a header line.
    """
    next_label = (label or "").strip()
    entry = parse_class_diagram(text).classes.get(class_id)
    if entry is None or not next_label:
        logger.debug("Class '%s' not updated", class_id)
        return text

    alias = f'["{next_label}"]' if next_label != class_id else ""
    if entry.is_implicit:
        return append_lines(text, [f"{DEFAULT_INDENT}class {class_id}{alias}"])

    lines = split_lines(text)
    header = lines[entry.line]
    match = CLASS_PATTERN.match(header.strip())
    generic = match.group(2) or ""
    brace = " {" if match.group(4) else ""
    closing = " }" if match.group(5) else ""
    lines[entry.line] = (
        f"{line_indent(header)}class {class_id}{generic}{alias}{brace}{closing}"
    )
    return join_lines(lines)


def remove_class(text: str, class_id: str) -> str:
    """Remove a class block, its relationships, annotations and member lines."""
    diagram = parse_class_diagram(text)
    entry = diagram.classes.get(class_id)
    if entry is None:
        logger.debug("Class '%s' not found", class_id)
        return text

    lines = split_lines(text)
    drop = set()
    if entry.line is not None:
        end = entry.end_line if entry.end_line is not None else entry.line
        drop.update(range(entry.line, end + 1))
    for rel in diagram.relationships:
        if class_id in (rel.source, rel.target):
            drop.add(rel.line)
    for i, line in enumerate(lines):
        stripped = line.strip()
        annotation = ANNOTATION_PATTERN.match(stripped)
        if annotation and annotation.group(2) == class_id:
            drop.add(i)
            continue
        member = MEMBER_PATTERN.match(stripped)
        if member and member.group(1) == class_id:
            drop.add(i)
    return remove_lines(text, drop)


def add_relationship(
    text: str,
    source: str,
    target: str,
    label: str = "",
    kind: str = "-->",
    source_cardinality: Optional[str] = None,
    target_cardinality: Optional[str] = None,
) -> str:
    if kind not in RELATIONSHIP_KINDS:
        logger.debug("Unknown relationship kind %r", kind)
        return text
    return append_lines(
        text,
        [
            _format_relationship(
                DEFAULT_INDENT,
                source,
                target,
                kind,
                label,
                source_cardinality,
                target_cardinality,
            )
        ],
    )


def update_relationship(
    text: str,
    source: str,
    target: str,
    label: Optional[str] = None,
    kind: Optional[str] = None,
) -> str:
    """Rewrite the first source->target relationship line."""
    for rel in parse_class_diagram(text).relationships:
        if rel.source != source or rel.target != target:
            continue
        next_kind = kind if kind in RELATIONSHIP_KINDS else rel.kind
        lines = split_lines(text)
        lines[rel.line] = _format_relationship(
            line_indent(lines[rel.line]),
            source,
            target,
            next_kind,
            label if label is not None else rel.label,
            rel.source_cardinality,
            rel.target_cardinality,
        )
        return join_lines(lines)
    logger.debug("No relationship %s -> %s", source, target)
    return text


def remove_relationship(text: str, source: str, target: str) -> str:
    """Remove relationships between two classes in either direction."""
    pair = {source, target}
    drop = [
        rel.line
        for rel in parse_class_diagram(text).relationships
        if {rel.source, rel.target} == pair
    ]
    return remove_lines(text, drop)
