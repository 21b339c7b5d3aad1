"""
Tokenizer for flowchart content lines.

Scans a single line left-to-right with a character cursor and produces node
and arrow tokens that carry their offsets into the raw line, so mutators can
splice exact spans without reconstructing anything around them.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .shapes import SHAPE_TABLE, ArrowKind, classify_arrow, match_arrow


@dataclass(frozen=True)
class NodeToken:
    """
    A node reference, optionally with shape delimiters and a class tag.

    Attributes:
        id: The node identifier.
        start: Offset of the first identifier character.
        end: Offset just past the closing shape delimiter (or the id).
        label: Inner label text, None for a bare reference.
        shape: Shape name, None for a bare reference.
        shape_open: Literal opening delimiter.
        shape_close: Literal closing delimiter.
        class_name: Inline ``:::name`` class tag, if any.
        class_end: Offset just past the class tag (equals end without one).
    """

    id: str
    start: int
    end: int
    label: Optional[str] = None
    shape: Optional[str] = None
    shape_open: Optional[str] = None
    shape_close: Optional[str] = None
    class_name: Optional[str] = None
    class_end: int = -1

    @property
    def has_shape(self) -> bool:
        return self.shape is not None

    @property
    def full_end(self) -> int:
        """End offset including any inline class tag."""
        return self.class_end if self.class_end >= 0 else self.end


@dataclass(frozen=True)
class ArrowToken:
    """
    An arrow with its optional label.

    start/end cover the whole token including any ``|label|`` suffix; raw is
    the glyph run (or the full ``-- text -->`` form for inline labels).
    """

    kind: ArrowKind
    minlen: int
    label: str
    start: int
    end: int
    raw: str


Token = Union[NodeToken, ArrowToken]


@dataclass(frozen=True)
class EdgeSpan:
    """A node-arrow-node triple found on one line."""

    source: NodeToken
    arrow: ArrowToken
    target: NodeToken

    @property
    def start(self) -> int:
        return self.source.start

    @property
    def end(self) -> int:
        return self.target.full_end


def _is_id_start(char: str) -> bool:
    return (
        ("a" <= char <= "z")
        or ("A" <= char <= "Z")
        or char == "_"
        or "\u00c0" <= char <= "\u024f"
    )


def _is_id_char(char: str) -> bool:
    return _is_id_start(char) or "0" <= char <= "9"


def _match_inline_label_arrow(line: str, pos: int) -> Optional[Tuple[str, str, int]]:
    """
    Match ``-- text -->`` or ``-- text ---`` at pos.

    Returns:
        (label, glyph, end) or None. The label is the shortest text that is
        followed by whitespace and a valid closing glyph run.
    """
    if not line.startswith("--", pos):
        return None
    cursor = pos + 2
    if cursor >= len(line) or not line[cursor].isspace():
        return None
    while cursor < len(line) and line[cursor].isspace():
        cursor += 1
    label_start = cursor
    if label_start >= len(line) or line[label_start] == "-":
        return None

    label_end = label_start + 1
    while label_end < len(line):
        if line[label_end].isspace():
            glyph_start = label_end
            while glyph_start < len(line) and line[glyph_start].isspace():
                glyph_start += 1
            dashes = 0
            while (
                glyph_start + dashes < len(line)
                and line[glyph_start + dashes] == "-"
            ):
                dashes += 1
            glyph_end = glyph_start + dashes
            if dashes >= 2 and glyph_end < len(line) and line[glyph_end] == ">":
                glyph_end += 1
                label = line[label_start:label_end].strip()
                return label, line[glyph_start:glyph_end], glyph_end
            if dashes >= 3:
                label = line[label_start:label_end].strip()
                return label, line[glyph_start:glyph_end], glyph_end
        elif line[label_end] == ">":
            return None
        label_end += 1
    return None


def _match_shape(
    line: str, pos: int
) -> Optional[Tuple[str, str, str, str, int]]:
    """
    Match shape delimiters starting at pos.

    Returns:
        (label, shape, open, close, end) or None.
    """
    for open_, close, shape in SHAPE_TABLE:
        if not line.startswith(open_, pos):
            continue
        inner_start = pos + len(open_)
        if inner_start < len(line) and line[inner_start] in "\"'":
            quote = line[inner_start]
            end_quote = line.find(quote, inner_start + 1)
            if end_quote < 0:
                continue
            if not line.startswith(close, end_quote + 1):
                continue
            label = line[inner_start + 1 : end_quote]
            end = end_quote + 1 + len(close)
        else:
            # Openers such as "[/" pair with more than one closer; the
            # nearest closer decides the shape.
            candidates = [
                (line.find(other_close, inner_start), other_close, other_shape)
                for other_open, other_close, other_shape in SHAPE_TABLE
                if other_open == open_
            ]
            candidates = [c for c in candidates if c[0] >= 0]
            if not candidates:
                continue
            close_idx, close, shape = min(candidates, key=lambda c: c[0])
            label = line[inner_start:close_idx]
            end = close_idx + len(close)
        return label.strip(), shape, open_, close, end
    return None


def _read_arrow_label(line: str, pos: int) -> Tuple[str, int]:
    """Consume an optional ``|label|`` right after an arrow glyph."""
    if pos < len(line) and line[pos] == "|":
        label_end = line.find("|", pos + 1)
        if label_end > pos:
            return line[pos + 1 : label_end].strip(), label_end + 1
    return "", pos


def tokenize_line(line: str) -> List[Token]:
    """
    Tokenize one flowchart content line.

    Never raises: characters that start no token are skipped one at a time.

    Args:
        line: The raw line, indentation included.

    Returns:
        Ordered list of NodeToken and ArrowToken with offsets into line.
    """
    tokens: List[Token] = []
    pos = 0
    length = len(line)

    while pos < length:
        while pos < length and line[pos].isspace():
            pos += 1
        if pos >= length:
            break

        inline = _match_inline_label_arrow(line, pos)
        if inline is not None:
            label, glyph, end = inline
            kind, minlen = classify_arrow(glyph)
            tokens.append(ArrowToken(kind, minlen, label, pos, end, line[pos:end]))
            pos = end
            continue

        glyph_end = match_arrow(line, pos)
        if glyph_end > pos:
            raw = line[pos:glyph_end]
            kind, minlen = classify_arrow(raw)
            label, end = _read_arrow_label(line, glyph_end)
            tokens.append(ArrowToken(kind, minlen, label, pos, end, raw))
            pos = end
            continue

        if line[pos] == "&":
            pos += 1
            continue

        if not _is_id_start(line[pos]):
            pos += 1
            continue

        start = pos
        while pos < length and _is_id_char(line[pos]):
            pos += 1
        node_id = line[start:pos]

        label = shape = shape_open = shape_close = None
        shape_match = _match_shape(line, pos)
        if shape_match is not None:
            label, shape, shape_open, shape_close, pos = shape_match
        end = pos

        class_name = None
        class_end = -1
        if line.startswith(":::", pos):
            cursor = pos + 3
            while cursor < length and (
                _is_id_char(line[cursor]) or line[cursor] == "-"
            ):
                cursor += 1
            if cursor > pos + 3:
                class_name = line[pos + 3 : cursor]
                class_end = cursor
                pos = cursor

        tokens.append(
            NodeToken(
                id=node_id,
                start=start,
                end=end,
                label=label,
                shape=shape,
                shape_open=shape_open,
                shape_close=shape_close,
                class_name=class_name,
                class_end=class_end,
            )
        )

    return tokens


def find_edge_spans(tokens: List[Token]) -> List[EdgeSpan]:
    """Return every node-arrow-node triple; a chain yields one per arrow."""
    spans: List[EdgeSpan] = []
    for i in range(1, len(tokens) - 1):
        arrow = tokens[i]
        if not isinstance(arrow, ArrowToken):
            continue
        prev, nxt = tokens[i - 1], tokens[i + 1]
        if isinstance(prev, NodeToken) and isinstance(nxt, NodeToken):
            spans.append(EdgeSpan(prev, arrow, nxt))
    return spans


def node_tokens(tokens: List[Token]) -> List[NodeToken]:
    return [t for t in tokens if isinstance(t, NodeToken)]
