"""
Minimal-span mutations of flowchart text.

Every function takes the current text and returns new text. Each call
re-parses, locates the entity, and rewrites only the span it owns; all other
lines come back byte-for-byte. When the target cannot be found the input is
returned unchanged and a DEBUG record is logged.
"""

import itertools
import logging
import re
from typing import (
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    Union,
)

from .parser import FlowchartParser, LineKind
from .shapes import (
    ArrowKind,
    arrow_glyph,
    delimiters_for_shape,
    is_known_shape,
    resolve_shape_alias,
    shape_alias,
)
from .textops import (
    DEFAULT_INDENT,
    content_insert_index,
    dedent_once,
    escape_label,
    insert_content_lines,
    join_lines,
    line_indent,
    splice,
    split_lines,
)
from .tokenizer import (
    EdgeSpan,
    NodeToken,
    Token,
    find_edge_spans,
    node_tokens,
    tokenize_line,
)

logger = logging.getLogger(__name__)

_parser = FlowchartParser()

NODE_DIRECTIVE_PATTERN = re.compile(r"^(\s*(?:style|click)\s+)(\S+)(.*)$")
CLASS_DIRECTIVE_PATTERN = re.compile(r"^(\s*class\s+)(\S+)(\s+.*)$")
SUBGRAPH_HEADER_PATTERN = re.compile(r"^(\s*subgraph\s+[^\s\[]+)(?:\s*\[.*\])?\s*$")


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------


def _content_lines(lines: List[str]) -> Iterator[Tuple[int, List[Token]]]:
    """Yield (index, tokens) for every tokenizable content line."""
    for i in range(_parser.content_start(lines), len(lines)):
        if _parser.classify_line(lines[i].strip()) is LineKind.CONTENT:
            yield i, tokenize_line(lines[i])


def _annotation_id(stripped: str) -> Optional[str]:
    parsed = _parser.parse_annotation(stripped)
    return parsed[0] if parsed else None


def _normalize_shape(shape: str) -> str:
    return shape if is_known_shape(shape) else resolve_shape_alias(shape)


def _declaration(node_id: str, label: str, shape: str) -> Tuple[str, Optional[str]]:
    """
    Spell a node declaration.

    Returns:
        (declaration, annotation). Shapes without a bracket spelling get a
        rect fallback plus an annotation line; otherwise annotation is None.
    """
    escaped = escape_label(label)
    delimiters = delimiters_for_shape(shape)
    if delimiters:
        open_, close = delimiters
        return f'{node_id}{open_}"{escaped}"{close}', None
    annotation = f'{node_id}@{{ shape: {shape_alias(shape)}, label: "{escaped}" }}'
    return f'{node_id}["{escaped}"]', annotation


def _is_valid_id(node_id: str) -> bool:
    tokens = tokenize_line(node_id)
    return (
        len(tokens) == 1
        and isinstance(tokens[0], NodeToken)
        and tokens[0].id == node_id
        and not tokens[0].has_shape
    )


def _ids_by_line(lines: List[str]) -> Dict[int, Set[str]]:
    """Node ids referenced on each content or annotation line."""
    result: Dict[int, Set[str]] = {}
    for i in range(_parser.content_start(lines), len(lines)):
        stripped = lines[i].strip()
        kind = _parser.classify_line(stripped)
        if kind is LineKind.CONTENT:
            result[i] = {t.id for t in node_tokens(tokenize_line(lines[i]))}
        elif kind is LineKind.ANNOTATION:
            result[i] = {_annotation_id(stripped)}
    return result


def _rewrite_line(
    line: str,
    tokens: List[Token],
    drop_edge: Callable[[EdgeSpan], bool],
    drop_node: Callable[[NodeToken], bool],
    referenced_elsewhere: Callable[[str], bool],
) -> Optional[List[str]]:
    """
    Rebuild a content line without the dropped edges and nodes.

    Surviving edge runs are copied as contiguous slices of the original
    line. An endpoint left without any edge stays as a standalone
    declaration when it carries a shape or is referenced nowhere else.

    Returns:
        None when nothing on the line is dropped, otherwise the replacement
        lines (possibly empty, meaning the line goes away).
    """
    spans = find_edge_spans(tokens)
    nodes = node_tokens(tokens)
    dropped_spans = [s for s in spans if drop_edge(s)]
    dropped_nodes = [n for n in nodes if drop_node(n)]
    if not dropped_spans and not dropped_nodes:
        return None

    kept_spans = [
        s
        for s in spans
        if not drop_edge(s) and not drop_node(s.source) and not drop_node(s.target)
    ]

    pieces: List[Tuple[int, int]] = []
    covered: Set[int] = set()
    for span in kept_spans:
        if pieces and pieces[-1][1] == span.source.full_end:
            pieces[-1] = (pieces[-1][0], span.end)
        else:
            pieces.append((span.start, span.end))
        covered.add(span.source.start)
        covered.add(span.target.start)

    kept_ids = {n.id for n in nodes if n.start in covered}
    endpoint_starts = {s.source.start for s in spans}
    endpoint_starts.update(s.target.start for s in spans)
    for node in nodes:
        if node.start in covered or drop_node(node):
            continue
        if node.start in endpoint_starts:
            if not node.has_shape and (
                node.id in kept_ids or referenced_elsewhere(node.id)
            ):
                continue
        pieces.append((node.start, node.full_end))
        kept_ids.add(node.id)

    indent = line_indent(line)
    return [indent + line[start:end] for start, end in sorted(pieces)]


def _rewrite_lines(
    lines: List[str],
    drop_edge: Callable[[EdgeSpan], bool],
    drop_node: Callable[[NodeToken], bool],
    skip_line: Callable[[str], bool] = lambda stripped: False,
) -> Tuple[List[str], bool]:
    """Apply _rewrite_line to every content line; returns (lines, changed)."""
    ids_by_line = _ids_by_line(lines)
    rewritten: Dict[int, List[str]] = {}

    for i, tokens in _content_lines(lines):

        def referenced_elsewhere(node_id: str, current: int = i) -> bool:
            return any(
                node_id in ids and j != current and j not in rewritten
                for j, ids in ids_by_line.items()
            ) or any(
                node_id in {t.id for t in node_tokens(tokenize_line(piece))}
                for j, pieces in rewritten.items()
                for piece in pieces
            )

        replacement = _rewrite_line(
            lines[i], tokens, drop_edge, drop_node, referenced_elsewhere
        )
        if replacement is not None:
            rewritten[i] = replacement

    result: List[str] = []
    changed = bool(rewritten)
    for i, line in enumerate(lines):
        if i in rewritten:
            result.extend(rewritten[i])
        elif skip_line(line.strip()):
            changed = True
        else:
            result.append(line)
    return result, changed


def _first_token_span(
    lines: List[str], node_id: str
) -> Optional[Tuple[int, NodeToken]]:
    """Locate the explicit (shaped) declaration, else the first bare reference."""
    fallback = None
    for i, tokens in _content_lines(lines):
        for token in node_tokens(tokens):
            if token.id != node_id:
                continue
            if token.has_shape:
                return i, token
            if fallback is None:
                fallback = (i, token)
    return fallback


# ----------------------------------------------------------------------------
# Nodes
# ----------------------------------------------------------------------------


def generate_node_id(text: str, prefix: str = "N") -> str:
    """Return the first of N1, N2, ... not already used as a node id."""
    existing = set(_parser.parse(text).nodes)
    for i in itertools.count(1):
        candidate = f"{prefix}{i}"
        if candidate not in existing:
            return candidate


def add_node(
    text: str,
    node_id: Optional[str] = None,
    label: Optional[str] = None,
    shape: str = "rect",
    indent: str = DEFAULT_INDENT,
) -> str:
    """
    Declare a new node at the end of logical content.

    Args:
        text: Flowchart source.
        node_id: Identifier; generated when None.
        label: Display label; defaults to the id.
        shape: Internal shape name or annotation alias.
        indent: Indentation of the new line(s).

    Returns:
        Updated text, or the input when node_id is already taken or invalid.
    """
    if node_id is None:
        node_id = generate_node_id(text)
    if not _is_valid_id(node_id):
        logger.debug("Invalid node id %r; add_node is a no-op", node_id)
        return text
    if node_id in _parser.parse(text).nodes:
        logger.debug("Node '%s' already exists; add_node is a no-op", node_id)
        return text

    declaration, annotation = _declaration(
        node_id, label if label is not None else node_id, _normalize_shape(shape)
    )
    new_lines = [indent + declaration]
    if annotation:
        new_lines.append(indent + annotation)

    return insert_content_lines(text, new_lines)


def update_node(
    text: str,
    node_id: str,
    label: Optional[str] = None,
    shape: Optional[str] = None,
) -> str:
    """
    Change a node's label and/or shape.

    The explicit declaration is rewritten when there is one, otherwise the
    first bare reference is upgraded to a declaration. Stale annotation lines
    for the node are removed, and a fresh one is written for shapes without a
    bracket spelling.
    """
    node = _parser.parse(text).nodes.get(node_id)
    if node is None:
        logger.debug("Node '%s' not found; update_node is a no-op", node_id)
        return text

    new_label = label if label is not None else node.label
    new_shape = _normalize_shape(shape) if shape is not None else node.shape
    declaration, annotation = _declaration(node_id, new_label, new_shape)

    lines = split_lines(text)
    located = _first_token_span(lines, node_id)
    if located is not None:
        line_idx, token = located
        lines[line_idx] = splice(lines[line_idx], token.start, token.end, declaration)
    else:
        index = content_insert_index(lines)
        lines.insert(index, DEFAULT_INDENT + declaration)

    lines = [
        line
        for line in lines
        if not (
            _parser.classify_line(line.strip()) is LineKind.ANNOTATION
            and _annotation_id(line.strip()) == node_id
        )
    ]
    if annotation:
        index = content_insert_index(lines)
        lines.insert(index, DEFAULT_INDENT + annotation)
    return join_lines(lines)


def remove_node(text: str, node_id: str) -> str:
    """
    Remove a node, every edge touching it, and its annotation, ``style`` and
    ``click`` lines. Lines left empty are dropped.
    """
    if node_id not in _parser.parse(text).nodes:
        logger.debug("Node '%s' not found; remove_node is a no-op", node_id)
        return text

    def skip_line(stripped: str) -> bool:
        kind = _parser.classify_line(stripped)
        if kind is LineKind.ANNOTATION:
            return _annotation_id(stripped) == node_id
        if kind is LineKind.DIRECTIVE:
            match = NODE_DIRECTIVE_PATTERN.match(stripped)
            return bool(match) and match.group(2) == node_id
        return False

    lines, _ = _rewrite_lines(
        split_lines(text),
        drop_edge=lambda span: node_id in (span.source.id, span.target.id),
        drop_node=lambda token: token.id == node_id,
        skip_line=skip_line,
    )
    return join_lines(lines)


def rename_node(text: str, old_id: str, new_id: str) -> str:
    """
    Rename a node id everywhere it is written: content lines, annotation lines
    and ``style``/``click``/``class`` directives.

    No-op when old_id is unknown, new_id is already used, or new_id is not a
    valid identifier.
    """
    nodes = _parser.parse(text).nodes
    if old_id not in nodes or new_id in nodes or not _is_valid_id(new_id):
        logger.debug("Cannot rename '%s' to '%s'", old_id, new_id)
        return text

    lines = split_lines(text)
    for i, tokens in _content_lines(lines):
        for token in reversed(node_tokens(tokens)):
            if token.id == old_id:
                lines[i] = splice(
                    lines[i], token.start, token.start + len(old_id), new_id
                )

    for i in range(_parser.content_start(lines), len(lines)):
        line = lines[i]
        stripped = line.strip()
        kind = _parser.classify_line(stripped)
        if kind is LineKind.ANNOTATION and _annotation_id(stripped) == old_id:
            offset = len(line_indent(line))
            lines[i] = splice(line, offset, offset + len(old_id), new_id)
        elif kind is LineKind.DIRECTIVE:
            match = NODE_DIRECTIVE_PATTERN.match(line)
            if match and match.group(2) == old_id:
                lines[i] = match.group(1) + new_id + match.group(3)
                continue
            match = CLASS_DIRECTIVE_PATTERN.match(line)
            if match:
                ids = match.group(2).split(",")
                if old_id in ids:
                    ids = [new_id if part == old_id else part for part in ids]
                    lines[i] = match.group(1) + ",".join(ids) + match.group(3)
    return join_lines(lines)


# ----------------------------------------------------------------------------
# Edges
# ----------------------------------------------------------------------------


def _resolve_arrow(arrow: Union[ArrowKind, str, None]) -> Optional[ArrowKind]:
    if arrow is None or isinstance(arrow, ArrowKind):
        return arrow
    return ArrowKind.from_glyph(arrow)


def add_edge(
    text: str,
    source: str,
    target: str,
    label: str = "",
    arrow: Union[ArrowKind, str] = ArrowKind.ARROW,
    minlen: int = 1,
    indent: str = DEFAULT_INDENT,
) -> str:
    """
    Append ``source --> target`` at the end of logical content, ahead of
    style directives and annotation lines. Unknown endpoints become implicit
    nodes.
    """
    kind = _resolve_arrow(arrow)
    if kind is None or not _is_valid_id(source) or not _is_valid_id(target):
        logger.debug("Cannot add edge %r -> %r with arrow %r", source, target, arrow)
        return text
    label_part = f"|{label}|" if label else ""
    edge_line = f"{indent}{source} {arrow_glyph(kind, minlen)}{label_part} {target}"
    return insert_content_lines(text, [edge_line], skip_annotations=True)


def remove_edge(text: str, source: str, target: str) -> str:
    """Remove every edge from source to target."""
    lines, changed = _rewrite_lines(
        split_lines(text),
        drop_edge=lambda span: span.source.id == source and span.target.id == target,
        drop_node=lambda token: False,
    )
    if not changed:
        logger.debug("No edge %s -> %s; remove_edge is a no-op", source, target)
        return text
    return join_lines(lines)


def update_edge(
    text: str,
    source: str,
    target: str,
    label: Optional[str] = None,
    arrow: Union[ArrowKind, str, None] = None,
) -> str:
    """
    Change the label and/or arrow kind of the first edge from source to
    target. Only the arrow token is rewritten; the endpoints and the arrow's
    stretch are kept.
    """
    lines = split_lines(text)
    for i, tokens in _content_lines(lines):
        for span in find_edge_spans(tokens):
            if span.source.id != source or span.target.id != target:
                continue
            current = span.arrow
            kind = _resolve_arrow(arrow) or current.kind
            new_label = label if label is not None else current.label
            if kind is current.kind and new_label == current.label:
                return text
            label_part = f"|{new_label}|" if new_label else ""
            replacement = arrow_glyph(kind, current.minlen) + label_part
            lines[i] = splice(lines[i], current.start, current.end, replacement)
            return join_lines(lines)

    logger.debug("No edge %s -> %s; update_edge is a no-op", source, target)
    return text


# ----------------------------------------------------------------------------
# Groups
# ----------------------------------------------------------------------------


def find_node_subgraph(text: str, node_id: str) -> Optional[str]:
    """Id of the innermost closed group containing the node, or None."""
    model = _parser.parse(text)
    node = model.nodes.get(node_id)
    if node is None:
        return None
    group = model.subgraph_of_line(node.source_line)
    return group.id if group else None


def move_node_to_subgraph(text: str, node_id: str, subgraph_id: str) -> str:
    """
    Move the line where a node first appears to the end of a group.

    The whole line moves, so edges written on it move with it.
    """
    model = _parser.parse(text)
    node = model.nodes.get(node_id)
    group = model.subgraph(subgraph_id)
    if node is None or group is None or not group.is_closed:
        logger.debug("Cannot move '%s' into group '%s'", node_id, subgraph_id)
        return text
    current = model.subgraph_of_line(node.source_line)
    if current is not None and current.id == subgraph_id:
        return text

    lines = split_lines(text)
    indent = line_indent(lines[group.start_line]) + DEFAULT_INDENT
    moved = lines.pop(node.source_line)
    end_line = group.end_line
    if node.source_line < end_line:
        end_line -= 1
    lines.insert(end_line, indent + moved.strip())
    return join_lines(lines)


def move_node_out_of_subgraph(text: str, node_id: str) -> str:
    """Move the line where a node first appears to just after its group."""
    model = _parser.parse(text)
    node = model.nodes.get(node_id)
    if node is None:
        return text
    group = model.subgraph_of_line(node.source_line)
    if group is None:
        logger.debug("Node '%s' is not inside a group", node_id)
        return text

    lines = split_lines(text)
    indent = line_indent(lines[group.start_line])
    moved = lines.pop(node.source_line)
    # The popped line sat above the group's end, which shifted up by one.
    lines.insert(group.end_line, indent + moved.strip())
    return join_lines(lines)


def _slug(label: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", label).lower() or "group"


def create_subgraph(
    text: str, node_ids: Iterable[str], label: str, subgraph_id: Optional[str] = None
) -> str:
    """
    Wrap the first-appearance lines of the given nodes in a new group.

    The group id defaults to a slug of the label, suffixed with a counter
    when taken. The block goes where the earliest moved line was.
    """
    model = _parser.parse(text)
    wanted = set(node_ids)
    line_indices = sorted(
        {node.source_line for node in model.nodes.values() if node.id in wanted}
    )
    if not line_indices:
        logger.debug("No nodes found for new group %r", label)
        return text

    existing = {group.id for group in model.subgraphs}
    base = subgraph_id or _slug(label)
    group_id = base
    for counter in itertools.count(2):
        if group_id not in existing:
            break
        group_id = f"{base}{counter}"

    lines = split_lines(text)
    header_indent = line_indent(lines[line_indices[0]])
    extracted = [lines[i].strip() for i in line_indices]
    for i in reversed(line_indices):
        del lines[i]

    block = [f"{header_indent}subgraph {group_id} [{label}]"]
    block.extend(header_indent + DEFAULT_INDENT + line for line in extracted)
    block.append(f"{header_indent}end")
    lines[line_indices[0] : line_indices[0]] = block
    return join_lines(lines)


def remove_subgraph(text: str, subgraph_id: str) -> str:
    """Unwrap a closed group, dedenting its contents by one level."""
    group = _parser.parse(text).subgraph(subgraph_id)
    if group is None or not group.is_closed:
        logger.debug("No closed group '%s' to remove", subgraph_id)
        return text

    lines = split_lines(text)
    inner = [dedent_once(line) for line in lines[group.start_line + 1 : group.end_line]]
    lines[group.start_line : group.end_line + 1] = inner
    return join_lines(lines)


def rename_subgraph(text: str, subgraph_id: str, label: str) -> str:
    """Replace a group's display label, keeping its id."""
    group = _parser.parse(text).subgraph(subgraph_id)
    if group is None:
        logger.debug("No group '%s' to rename", subgraph_id)
        return text

    lines = split_lines(text)
    header = lines[group.start_line]
    match = SUBGRAPH_HEADER_PATTERN.match(header)
    if not match or match.group(1).split()[-1] != subgraph_id:
        logger.debug("Group '%s' has a free-form title; not renamed", subgraph_id)
        return text
    lines[group.start_line] = f"{match.group(1)} [{label}]"
    return join_lines(lines)
