"""
Lexical tables for flowchart shapes and arrows.

Maps surface syntax (bracket pairs, arrow glyph runs) to semantic shape and
arrow kinds, and back. All tables are module-level constants and are never
mutated after import.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

# Ordered (open, close, shape). Longer opening delimiters come first so that
# "((" is never read as "(" followed by a stray "(".
SHAPE_TABLE: List[Tuple[str, str, str]] = [
    ("(((", ")))", "double-circle"),
    ("([", "])", "stadium"),
    ("[[", "]]", "subroutine"),
    ("[(", ")]", "cylinder"),
    ("((", "))", "circle"),
    ("{{", "}}", "hexagon"),
    ("[/", "/]", "parallelogram"),
    ("[\\", "\\]", "parallelogram-alt"),
    ("[/", "\\]", "trapezoid"),
    ("[\\", "/]", "trapezoid-alt"),
    (">", "]", "asymmetric"),
    ("{", "}", "diamond"),
    ("(", ")", "rounded"),
    ("[", "]", "rect"),
]

SHAPE_DELIMITERS: Dict[str, Tuple[str, str]] = {
    shape: (open_, close) for open_, close, shape in SHAPE_TABLE
}

CLASSIC_SHAPES = frozenset(SHAPE_DELIMITERS)

# Annotation-form names (short alias and long name) -> internal shape name.
# Shapes missing from SHAPE_DELIMITERS have no bracket spelling.
EXTENDED_SHAPE_ALIASES: Dict[str, str] = {
    "rect": "rect", "proc": "rect", "process": "rect", "rectangle": "rect",
    "rounded": "rounded", "event": "rounded",
    "stadium": "stadium", "pill": "stadium", "terminal": "stadium",
    "diamond": "diamond", "diam": "diamond", "decision": "diamond",
    "question": "diamond",
    "circle": "circle", "circ": "circle",
    "dbl-circ": "double-circle", "double-circle": "double-circle",
    "hex": "hexagon", "hexagon": "hexagon", "prepare": "hexagon",
    "subproc": "subroutine", "subroutine": "subroutine",
    "subprocess": "subroutine", "fr-rect": "subroutine",
    "framed-rectangle": "subroutine",
    "cyl": "cylinder", "cylinder": "cylinder", "database": "cylinder",
    "db": "cylinder",
    "lean-r": "parallelogram", "lean-right": "parallelogram",
    "in-out": "parallelogram",
    "lean-l": "parallelogram-alt", "lean-left": "parallelogram-alt",
    "out-in": "parallelogram-alt",
    "trap-b": "trapezoid", "trapezoid": "trapezoid",
    "trapezoid-bottom": "trapezoid", "priority": "trapezoid",
    "trap-t": "trapezoid-alt", "trapezoid-top": "trapezoid-alt",
    "inv-trapezoid": "trapezoid-alt", "manual": "trapezoid-alt",
    "odd": "asymmetric",
    "doc": "document", "document": "document",
    "docs": "documents", "documents": "documents", "st-doc": "documents",
    "stacked-document": "documents",
    "notch-rect": "notched-rect", "card": "notched-rect",
    "notched-rectangle": "notched-rect",
    "cloud": "cloud",
    "bang": "bang",
    "bolt": "bolt", "com-link": "bolt", "lightning-bolt": "bolt",
    "brace-l": "brace-l", "comment": "brace-l", "brace": "brace-l",
    "brace-r": "brace-r",
    "braces": "braces",
    "tri": "triangle", "triangle": "triangle", "extract": "triangle",
    "flag": "flag", "paper-tape": "flag",
    "hourglass": "hourglass", "collate": "hourglass",
    "lin-rect": "lined-rect", "lin-proc": "lined-rect",
    "lined-rectangle": "lined-rect", "lined-process": "lined-rect",
    "shaded-process": "lined-rect",
    "sm-circ": "small-circle", "small-circle": "small-circle",
    "start": "small-circle",
    "fr-circ": "framed-circle", "framed-circle": "framed-circle",
    "stop": "framed-circle",
    "f-circ": "filled-circle", "filled-circle": "filled-circle",
    "junction": "filled-circle",
    "fork": "fork", "join": "fork",
    "text": "text-block",
    "delay": "delay", "half-rounded-rectangle": "delay",
    "h-cyl": "h-cylinder", "horizontal-cylinder": "h-cylinder",
    "das": "h-cylinder",
    "lin-cyl": "lined-cylinder", "lined-cylinder": "lined-cylinder",
    "disk": "lined-cylinder",
    "curv-trap": "curved-trapezoid", "curved-trapezoid": "curved-trapezoid",
    "display": "curved-trapezoid",
    "div-rect": "divided-rect", "divided-rectangle": "divided-rect",
    "div-proc": "divided-rect", "divided-process": "divided-rect",
    "flip-tri": "flipped-triangle", "flipped-triangle": "flipped-triangle",
    "manual-file": "flipped-triangle",
    "sl-rect": "sloped-rect", "sloped-rectangle": "sloped-rect",
    "manual-input": "sloped-rect",
    "win-pane": "window-pane", "window-pane": "window-pane",
    "internal-storage": "window-pane",
    "cross-circ": "crossed-circle", "crossed-circle": "crossed-circle",
    "summary": "crossed-circle",
    "lin-doc": "lined-document", "lined-document": "lined-document",
    "notch-pent": "notched-pentagon", "notched-pentagon": "notched-pentagon",
    "loop-limit": "notched-pentagon",
    "tag-doc": "tag-document", "tagged-document": "tag-document",
    "tag-rect": "tag-rect", "tag-proc": "tag-rect",
    "tagged-rectangle": "tag-rect", "tagged-process": "tag-rect",
    "bow-rect": "bow-rect", "bow-tie-rectangle": "bow-rect",
    "stored-data": "bow-rect",
    "st-rect": "stacked-rect", "stacked-rectangle": "stacked-rect",
    "processes": "stacked-rect", "procs": "stacked-rect",
}

# Internal shape -> first alias listed for it (used when writing annotations).
_SHAPE_TO_ALIAS: Dict[str, str] = {}
for _alias, _shape in EXTENDED_SHAPE_ALIASES.items():
    _SHAPE_TO_ALIAS.setdefault(_shape, _alias)


def shape_for_delimiters(open_: str, close: str) -> Optional[str]:
    """Return the shape spelled by a delimiter pair, or None if unknown."""
    for table_open, table_close, shape in SHAPE_TABLE:
        if table_open == open_ and table_close == close:
            return shape
    return None


def delimiters_for_shape(shape: str) -> Optional[Tuple[str, str]]:
    """Return the canonical (open, close) pair, or None for extended shapes."""
    return SHAPE_DELIMITERS.get(shape)


def resolve_shape_alias(name: str) -> str:
    """Map an annotation shape name to its internal shape (default: rect)."""
    return (
        EXTENDED_SHAPE_ALIASES.get(name)
        or EXTENDED_SHAPE_ALIASES.get(name.lower())
        or "rect"
    )


def shape_alias(shape: str) -> str:
    """Return the annotation name to write for an internal shape."""
    return _SHAPE_TO_ALIAS.get(shape, shape)


def is_known_shape(shape: str) -> bool:
    return shape in CLASSIC_SHAPES or shape in _SHAPE_TO_ALIAS


class ArrowKind(Enum):
    """Semantic arrow kinds. The value is the canonical (shortest) glyph."""

    ARROW = "-->"
    OPEN = "---"
    DOTTED_ARROW = "-.->"
    DOTTED = "-.-"
    THICK_ARROW = "==>"
    THICK = "==="
    CIRCLE = "--o"
    CROSS = "--x"
    BIDIRECTIONAL = "<-->"
    BIDIRECTIONAL_DOTTED = "<-.->"
    BIDIRECTIONAL_THICK = "<==>"
    CIRCLE_BOTH = "o--o"
    CROSS_BOTH = "x--x"
    INVISIBLE = "~~~"

    @property
    def stroke(self) -> str:
        """Line style: solid, dotted, thick or invisible."""
        if "." in self.value:
            return "dotted"
        if "=" in self.value:
            return "thick"
        if "~" in self.value:
            return "invisible"
        return "solid"

    @property
    def head_end(self) -> Optional[str]:
        """Marker at the target end: arrow, circle, cross or None."""
        return _HEAD_NAMES.get(self.value[-1])

    @property
    def head_start(self) -> Optional[str]:
        """Marker at the source end (bidirectional and double-ended kinds)."""
        if len(self.value) > 3 and self.value[0] in "<ox":
            return _HEAD_NAMES.get(">" if self.value[0] == "<" else self.value[0])
        return None

    @classmethod
    def from_glyph(cls, glyph: str) -> Optional["ArrowKind"]:
        """Classify any glyph run; returns None when it is not an arrow."""
        if match_arrow(glyph, 0) != len(glyph):
            return None
        return classify_arrow(glyph)[0]


_HEAD_NAMES = {">": "arrow", "o": "circle", "x": "cross"}

# Ordered alternatives; each is a list of (char, min_repeat, max_repeat) runs.
# First alternative that matches wins, each run is matched greedily. Adjacent
# runs always use different characters, so greedy runs never need to backtrack.
ARROW_PATTERNS: List[List[Tuple[str, int, Optional[int]]]] = [
    [("<", 1, 1), ("=", 2, None), (">", 1, 1)],
    [("<", 1, 1), ("-", 1, 1), (".", 1, None), ("-", 1, 1), (">", 1, 1)],
    [("<", 1, 1), ("-", 2, None), (">", 1, 1)],
    [("o", 1, 1), ("-", 2, None), ("o", 1, 1)],
    [("x", 1, 1), ("-", 2, None), ("x", 1, 1)],
    [("=", 2, None), (">", 1, 1)],
    [("-", 1, 1), (".", 1, None), ("-", 1, 1), (">", 1, 1)],
    [("-", 2, None), ("o", 1, 1)],
    [("-", 2, None), ("x", 1, 1)],
    [("-", 2, None), (">", 1, 1)],
    [("-", 3, None)],
    [("-", 1, 1), (".", 1, None), ("-", 1, 1)],
    [("=", 3, None)],
    [("~", 3, None)],
]


def _match_pattern(
    text: str, pos: int, pattern: List[Tuple[str, int, Optional[int]]]
) -> int:
    for char, min_count, max_count in pattern:
        count = 0
        while pos + count < len(text) and text[pos + count] == char:
            count += 1
            if max_count is not None and count == max_count:
                break
        if count < min_count:
            return -1
        pos += count
    return pos


def match_arrow(text: str, pos: int) -> int:
    """
    Match an arrow glyph run starting at pos.

    Returns:
        The end offset of the glyph run, or -1 if no arrow starts at pos.
    """
    for pattern in ARROW_PATTERNS:
        end = _match_pattern(text, pos, pattern)
        if end >= 0:
            return end
    return -1


def classify_arrow(raw: str) -> Tuple[ArrowKind, int]:
    """
    Classify a matched glyph run into (kind, minlen).

    minlen counts the body characters beyond the shortest spelling of the
    kind, so "-->" is 1 and "---->" is 3. It never drops below 1.
    """
    length = len(raw)
    if raw.startswith("<=") and raw.endswith(">"):
        return ArrowKind.BIDIRECTIONAL_THICK, max(1, length - 3)
    if raw.startswith("<-") and raw.endswith(">") and "." in raw:
        return ArrowKind.BIDIRECTIONAL_DOTTED, max(1, length - 4)
    if raw.startswith("<-") and raw.endswith(">"):
        return ArrowKind.BIDIRECTIONAL, max(1, length - 3)
    if raw.startswith("o") and raw.endswith("o"):
        return ArrowKind.CIRCLE_BOTH, max(1, length - 3)
    if raw.startswith("x") and raw.endswith("x"):
        return ArrowKind.CROSS_BOTH, max(1, length - 3)
    if raw.startswith("=") and raw.endswith(">"):
        return ArrowKind.THICK_ARROW, max(1, length - 2)
    if raw.startswith("-") and "." in raw and raw.endswith(">"):
        return ArrowKind.DOTTED_ARROW, max(1, length - 3)
    if raw.startswith("-") and raw.endswith("o"):
        return ArrowKind.CIRCLE, max(1, length - 2)
    if raw.startswith("-") and raw.endswith("x"):
        return ArrowKind.CROSS, max(1, length - 2)
    if raw.startswith("-") and raw.endswith(">"):
        return ArrowKind.ARROW, max(1, length - 2)
    if raw.startswith("-") and "." in raw:
        return ArrowKind.DOTTED, max(1, length - 2)
    if raw.startswith("-"):
        return ArrowKind.OPEN, max(1, length - 2)
    if raw.startswith("="):
        return ArrowKind.THICK, max(1, length - 2)
    return ArrowKind.INVISIBLE, 1


def arrow_glyph(kind: ArrowKind, minlen: int = 1) -> str:
    """Spell an arrow kind stretched to minlen (inverse of classify_arrow)."""
    n = max(1, minlen)
    if kind is ArrowKind.ARROW:
        return "-" * (n + 1) + ">"
    if kind is ArrowKind.OPEN:
        return "-" * (n + 2)
    if kind is ArrowKind.DOTTED_ARROW:
        return "-" + "." * n + "->"
    if kind is ArrowKind.DOTTED:
        return "-" + "." * n + "-"
    if kind is ArrowKind.THICK_ARROW:
        return "=" * (n + 1) + ">"
    if kind is ArrowKind.THICK:
        return "=" * (n + 2)
    if kind is ArrowKind.CIRCLE:
        return "-" * (n + 1) + "o"
    if kind is ArrowKind.CROSS:
        return "-" * (n + 1) + "x"
    if kind is ArrowKind.BIDIRECTIONAL:
        return "<" + "-" * (n + 1) + ">"
    if kind is ArrowKind.BIDIRECTIONAL_DOTTED:
        return "<-" + "." * n + "->"
    if kind is ArrowKind.BIDIRECTIONAL_THICK:
        return "<" + "=" * (n + 1) + ">"
    if kind is ArrowKind.CIRCLE_BOTH:
        return "o" + "-" * (n + 1) + "o"
    if kind is ArrowKind.CROSS_BOTH:
        return "x" + "-" * (n + 1) + "x"
    return kind.value
