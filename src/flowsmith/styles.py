"""
Style overlays for flowcharts: class definitions, per-node styles and class
assignments. None of these affect node or edge identity.
"""

import logging
import re
from typing import Dict, List

from .models import ClassDef
from .parser import LineKind, classify_line, parse_flowchart
from .textops import (
    DEFAULT_INDENT,
    append_lines,
    join_lines,
    line_indent,
    split_lines,
)
from .tokenizer import node_tokens, tokenize_line

logger = logging.getLogger(__name__)

CLASS_DEF_PATTERN = re.compile(r"^classDef\s+(\S+)\s+(.+)$")
STYLE_PATTERN = re.compile(r"^style\s+(\S+)\s+(.+)$")
CLASS_ASSIGN_PATTERN = re.compile(r"^class\s+(\S+)\s+(\S+)\s*;?$")


def split_properties(raw: str) -> Dict[str, str]:
    """
    Split ``fill:#f9f,stroke:#333`` into a dict.

    Commas inside parentheses (``rgb(1,2,3)``) do not split. A trailing
    semicolon is ignored.
    """
    parts: List[str] = []
    depth = 0
    current = []
    for char in raw.strip().rstrip(";"):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))

    properties: Dict[str, str] = {}
    for part in parts:
        if ":" not in part:
            continue
        key, value = part.split(":", 1)
        key = key.strip()
        if key:
            properties[key] = value.strip()
    return properties


def format_properties(properties: Dict[str, str]) -> str:
    return ",".join(f"{key}:{value}" for key, value in properties.items())


def parse_class_defs(text: str) -> List[ClassDef]:
    """Return every ``classDef`` directive in source order."""
    result = []
    for i, line in enumerate(split_lines(text)):
        match = CLASS_DEF_PATTERN.match(line.strip())
        if not match:
            continue
        raw = match.group(2)
        result.append(
            ClassDef(
                name=match.group(1),
                properties=split_properties(raw),
                raw=raw,
                line=i,
            )
        )
    return result


def parse_style_directives(text: str) -> Dict[str, Dict[str, str]]:
    """Map node id -> properties from ``style`` lines; later lines win."""
    result: Dict[str, Dict[str, str]] = {}
    for line in split_lines(text):
        match = STYLE_PATTERN.match(line.strip())
        if match:
            result[match.group(1)] = split_properties(match.group(2))
    return result


def parse_class_assignments(text: str) -> Dict[str, str]:
    """
    Map node id -> class name.

    Reads ``class a,b name`` directives and inline ``id:::name`` tags on
    content lines.
    """
    result: Dict[str, str] = {}
    for line in split_lines(text):
        stripped = line.strip()
        match = CLASS_ASSIGN_PATTERN.match(stripped)
        if match:
            for node_id in match.group(1).split(","):
                node_id = node_id.strip()
                if node_id:
                    result[node_id] = match.group(2)
            continue
        if classify_line(stripped) is not LineKind.CONTENT:
            continue
        for token in node_tokens(tokenize_line(line)):
            if token.class_name:
                result[token.id] = token.class_name
    return result


def set_node_style(text: str, node_id: str, properties: Dict[str, str]) -> str:
    """
    Write, replace or remove the ``style`` line for a node.

    The first existing style line for the node is rewritten in place and any
    further ones are dropped. Empty properties remove the node's style lines.
    A new line is appended after the last non-blank line.

    Args:
        text: Flowchart source.
        node_id: Node to style.
        properties: CSS-like properties, e.g. {"fill": "#f9f"}.

    Returns:
        Updated text.
    """
    lines = split_lines(text)
    result: List[str] = []
    replaced = False
    for line in lines:
        match = STYLE_PATTERN.match(line.strip())
        if not match or match.group(1) != node_id:
            result.append(line)
            continue
        if properties and not replaced:
            result.append(
                f"{line_indent(line)}style {node_id} {format_properties(properties)}"
            )
            replaced = True

    if replaced or not properties:
        if len(result) == len(lines) and not properties:
            logger.debug("No style line for '%s' to remove", node_id)
        return join_lines(result)

    if node_id not in parse_flowchart(text).nodes:
        logger.debug("Node '%s' not found; style not written", node_id)
        return text
    return append_lines(
        text, [f"{DEFAULT_INDENT}style {node_id} {format_properties(properties)}"]
    )
