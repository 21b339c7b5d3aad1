"""
Parser module for flowcharts.

Turns flowchart text into a FlowchartModel of nodes, edges and groups. The
parser is tolerant: anything it does not understand is skipped, never raised.
"""

import logging
import re
from enum import Enum
from typing import List, Optional, Tuple

from .models import Edge, FlowchartModel, Node, Subgraph
from .shapes import resolve_shape_alias
from .textops import front_matter_end, split_lines
from .tokenizer import NodeToken, find_edge_spans, node_tokens, tokenize_line

logger = logging.getLogger(__name__)


class LineKind(Enum):
    """Classification of a single stripped flowchart line."""

    BLANK = "blank"
    COMMENT = "comment"
    HEADER = "header"
    SUBGRAPH = "subgraph"
    END = "end"
    DIRECTIVE = "directive"
    ANNOTATION = "annotation"
    CONTENT = "content"


class FlowchartParser:
    """Parses flowchart text into a FlowchartModel."""

    # flowchart LR / graph TD, direction optional
    HEADER_PATTERN = re.compile(r"^(?:flowchart|graph)(?:\s+(LR|RL|TD|TB|BT))?\s*;?$")
    # subgraph id [label] / subgraph id ["label"] / subgraph Any Title
    SUBGRAPH_PATTERN = re.compile(r"^subgraph\s+(.+?)\s*$")
    SUBGRAPH_TITLE_PATTERN = re.compile(
        r'^([^\s\[]+)\s*(?:\[\s*"?([^\]"]*)"?\s*\])?$'
    )
    # id@{ shape: doc, label: "Text" }
    ANNOTATION_PATTERN = re.compile(r"^(\w+)@\{\s*(.*?)\s*\}$")
    ANNOTATION_SHAPE_PATTERN = re.compile(r"shape:\s*([\w-]+)")
    ANNOTATION_LABEL_PATTERN = re.compile(r'label:\s*"([^"]*)"')

    DIRECTIVE_PREFIXES = (
        "classDef ",
        "class ",
        "click ",
        "style ",
        "linkStyle ",
        "direction ",
    )

    def classify_line(self, stripped: str) -> LineKind:
        """Classify a stripped line (front matter is handled by parse())."""
        if not stripped:
            return LineKind.BLANK
        if stripped.startswith("%%"):
            return LineKind.COMMENT
        if self.HEADER_PATTERN.match(stripped):
            return LineKind.HEADER
        if self.SUBGRAPH_PATTERN.match(stripped):
            return LineKind.SUBGRAPH
        if stripped == "end":
            return LineKind.END
        if stripped.startswith(self.DIRECTIVE_PREFIXES):
            return LineKind.DIRECTIVE
        if self.ANNOTATION_PATTERN.match(stripped):
            return LineKind.ANNOTATION
        return LineKind.CONTENT

    def parse_subgraph_title(self, title: str) -> Tuple[str, str]:
        """Split a subgraph header title into (id, label)."""
        match = self.SUBGRAPH_TITLE_PATTERN.match(title)
        if not match:
            return title, title
        group_id = match.group(1)
        label = match.group(2)
        return group_id, label.strip() if label else group_id

    def parse_annotation(
        self, stripped: str
    ) -> Optional[Tuple[str, Optional[str], Optional[str]]]:
        """
        Parse an annotation line.

        Returns:
            (node_id, shape, label) where shape is the resolved internal name,
            or None if the line is not an annotation.
        """
        match = self.ANNOTATION_PATTERN.match(stripped)
        if not match:
            return None
        body = match.group(2)
        shape_match = self.ANNOTATION_SHAPE_PATTERN.search(body)
        label_match = self.ANNOTATION_LABEL_PATTERN.search(body)
        shape = resolve_shape_alias(shape_match.group(1)) if shape_match else None
        label = label_match.group(1) if label_match else None
        return match.group(1), shape, label

    def content_start(self, lines: List[str]) -> int:
        """Index of the first line after any leading front matter."""
        return front_matter_end(lines)

    def parse(self, input_text: str) -> FlowchartModel:
        """
        Parse flowchart text.

        Line indices in the result refer to the original text, including any
        front matter.

        Args:
            input_text: Flowchart source.

        Returns:
            FlowchartModel with nodes, edges, groups and pass-through lines.
        """
        model = FlowchartModel()
        lines = split_lines(input_text)
        stack: List[Subgraph] = []

        for line_idx in range(self.content_start(lines), len(lines)):
            raw = lines[line_idx]
            stripped = raw.strip()
            kind = self.classify_line(stripped)

            if kind in (LineKind.BLANK, LineKind.COMMENT):
                continue

            if kind is LineKind.HEADER:
                direction = self.HEADER_PATTERN.match(stripped).group(1)
                if direction:
                    model.direction = direction
                continue

            if kind is LineKind.SUBGRAPH:
                title = self.SUBGRAPH_PATTERN.match(stripped).group(1)
                group_id, label = self.parse_subgraph_title(title)
                group = Subgraph(
                    id=group_id,
                    label=label,
                    start_line=line_idx,
                    parent=stack[-1].id if stack else None,
                )
                model.subgraphs.append(group)
                stack.append(group)
                continue

            if kind is LineKind.END:
                if stack:
                    stack.pop().end_line = line_idx
                else:
                    logger.debug("Stray 'end' on line %d ignored", line_idx)
                continue

            if kind is LineKind.DIRECTIVE:
                model.passthrough_lines.append(line_idx)
                continue

            if kind is LineKind.ANNOTATION:
                self._apply_annotation(model, stripped, line_idx)
                continue

            self._parse_content(model, raw, line_idx)

        for group in stack:
            logger.debug(
                "Group '%s' opened on line %d is never closed",
                group.id,
                group.start_line,
            )

        return model

    def _apply_annotation(
        self, model: FlowchartModel, stripped: str, line_idx: int
    ) -> None:
        node_id, shape, label = self.parse_annotation(stripped)
        node = model.nodes.get(node_id)
        if node is None:
            model.nodes[node_id] = Node(
                id=node_id,
                label=label if label is not None else node_id,
                shape=shape or "rect",
                source_line=line_idx,
                declared_line=line_idx,
            )
            return
        if shape:
            node.shape = shape
        if label is not None:
            node.label = label
        if node.declared_line is None:
            node.declared_line = line_idx

    def _parse_content(self, model: FlowchartModel, raw: str, line_idx: int) -> None:
        tokens = tokenize_line(raw)
        for token in node_tokens(tokens):
            self._register_node(model, token, line_idx)
        for span in find_edge_spans(tokens):
            model.edges.append(
                Edge(
                    source=span.source.id,
                    target=span.target.id,
                    label=span.arrow.label,
                    arrow=span.arrow.kind,
                    minlen=span.arrow.minlen,
                    source_line=line_idx,
                )
            )

    def _register_node(
        self, model: FlowchartModel, token: NodeToken, line_idx: int
    ) -> None:
        node = model.nodes.get(token.id)
        if node is None:
            node = Node(id=token.id, label=token.id, source_line=line_idx)
            model.nodes[token.id] = node
        if token.has_shape and node.declared_line is None:
            node.label = token.label
            node.shape = token.shape
            node.shape_open = token.shape_open
            node.shape_close = token.shape_close
            node.declared_line = line_idx
        if token.class_name:
            node.class_name = token.class_name


_default_parser = FlowchartParser()


def classify_line(stripped: str) -> LineKind:
    """Classify a stripped flowchart line."""
    return _default_parser.classify_line(stripped)


def parse_flowchart(input_text: str) -> FlowchartModel:
    """
    Convenience function to parse flowchart text.

    Args:
        input_text: Flowchart source

    Returns:
        FlowchartModel
    """
    parser = FlowchartParser()
    return parser.parse(input_text)
