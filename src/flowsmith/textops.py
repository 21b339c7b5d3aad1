"""
Line helpers shared by every mutator.

Text is split on ``\\n`` only and joined back the same way, so carriage
returns, trailing whitespace and a final newline survive untouched.
"""

import re
from typing import Callable, Iterable, List, Optional

DEFAULT_INDENT = "    "

STYLE_DIRECTIVE_PREFIXES = ("classDef ", "class ", "style ", "linkStyle ")

ANNOTATION_START = re.compile(r"^\w+@\{")


def split_lines(text: str) -> List[str]:
    return text.split("\n")


def join_lines(lines: List[str]) -> str:
    return "\n".join(lines)


def line_indent(line: str) -> str:
    """Return the leading whitespace of line."""
    return line[: len(line) - len(line.lstrip())]


def front_matter_end(lines: List[str]) -> int:
    """
    Index of the first line after a leading front-matter block.

    A front-matter block opens with a ``---`` first line and closes at the
    next ``---``. Without a closing fence only the opening line is skipped.
    """
    if not lines or lines[0].strip() != "---":
        return 0
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            return i + 1
    return 1


def is_style_directive(stripped: str) -> bool:
    return stripped.startswith(STYLE_DIRECTIVE_PREFIXES)


def is_annotation(stripped: str) -> bool:
    return ANNOTATION_START.match(stripped) is not None


def last_content_index(
    lines: List[str], skip: Optional[Callable[[str], bool]] = None
) -> int:
    """
    Index of the last non-blank line that skip() does not reject, or -1.

    Args:
        lines: Document lines.
        skip: Predicate over stripped lines; matching lines are passed over.
    """
    for i in range(len(lines) - 1, -1, -1):
        stripped = lines[i].strip()
        if not stripped:
            continue
        if skip is not None and skip(stripped):
            continue
        return i
    return -1


def content_insert_index(lines: List[str], skip_annotations: bool = False) -> int:
    """
    Where new content lines go: just after the last line of logical content.

    Style and class directives conventionally trail a document, so new
    nodes and edges are inserted ahead of them.
    """

    def skip(stripped: str) -> bool:
        if is_style_directive(stripped):
            return True
        return skip_annotations and is_annotation(stripped)

    index = last_content_index(lines, skip)
    return index + 1 if index >= 0 else 0


def insert_content_lines(
    text: str, new_lines: List[str], skip_annotations: bool = False
) -> str:
    """Insert new_lines at the end of logical content."""
    if not text:
        return join_lines(new_lines)
    lines = split_lines(text)
    index = content_insert_index(lines, skip_annotations)
    lines[index:index] = new_lines
    return join_lines(lines)


def append_lines(text: str, new_lines: List[str]) -> str:
    """Insert new_lines after the last non-blank line (keeps trailing blanks)."""
    if not text:
        return join_lines(new_lines)
    lines = split_lines(text)
    index = last_content_index(lines) + 1
    lines[index:index] = new_lines
    return join_lines(lines)


def splice(line: str, start: int, end: int, replacement: str) -> str:
    """Replace line[start:end] with replacement."""
    return line[:start] + replacement + line[end:]


def escape_label(label: str) -> str:
    """Escape a label for use inside double quotes."""
    return str(label).replace('"', "#quot;")


def dedent_once(line: str, indent: str = DEFAULT_INDENT) -> str:
    """Remove one indentation unit from line, if present."""
    if line.startswith(indent):
        return line[len(indent) :]
    if line.startswith("\t"):
        return line[1:]
    return line


def remove_lines(text: str, indices: Iterable[int]) -> str:
    """Drop the lines at the given indices."""
    drop = set(indices)
    if not drop:
        return text
    lines = split_lines(text)
    return join_lines([line for i, line in enumerate(lines) if i not in drop])
