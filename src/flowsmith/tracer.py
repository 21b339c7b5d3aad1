"""
Debug tracing for flowsmith edits.

When debug mode is enabled, :class:`~flowsmith.editor.DiagramEditor` records
every stage of an edit (parse, mutate, result) and every line the edit
touched. This is useful for:
1. Checking that a mutation only touched the lines it should have
2. Seeing which model the dialect parser produced before the edit
3. Writing targeted tests against specific line changes

Usage:
    >>> editor = DiagramEditor(debug=True)
    >>> text = editor.add_edge("flowchart TD\\n    A --> B", "B", "C")
    >>> trace = editor.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("edit_trace.txt")
"""

import difflib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .textops import split_lines


@dataclass
class LineEdit:
    """
    Record of a single line change made by a mutation.

    Attributes:
        line: Line index in the text before the edit (insertions use the
            index they were inserted at)
        before: Original line, or None for an inserted line
        after: New line, or None for a removed line
        reason: "insert", "remove" or "replace"
        source: The operation that made the change (e.g., "add_edge")
    """

    line: int
    before: Optional[str]
    after: Optional[str]
    reason: str
    source: str

    def __str__(self) -> str:
        if self.before is None:
            return f"{self.line}: + {self.after!r} [{self.reason}] from {self.source}"
        if self.after is None:
            return f"{self.line}: - {self.before!r} [{self.reason}] from {self.source}"
        return (
            f"{self.line}: {self.before!r} -> {self.after!r} "
            f"[{self.reason}] from {self.source}"
        )


@dataclass
class TraceStage:
    """
    Snapshot of state at one stage of an edit.

    Stages recorded by the editor:
    1. parse - Dialect detected and model counts before the edit
    2. mutate - Operation name and its arguments
    3. result - Whether the text changed

    Attributes:
        name: Name of this stage
        data: Dictionary of relevant data at this stage
        text_snapshot: Optional list of document lines at this point
    """

    name: str
    data: Dict[str, Any]
    text_snapshot: Optional[List[str]] = None

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ==="]
        for key, value in self.data.items():
            str_val = str(value)
            if len(str_val) > 100:
                str_val = str_val[:100] + "..."
            lines.append(f"  {key}: {str_val}")
        if self.text_snapshot:
            lines.append("  Text preview (first 15 lines):")
            for row in self.text_snapshot[:15]:
                lines.append(f"    |{row}|")
        return "\n".join(lines)


@dataclass
class EditTrace:
    """
    Complete trace of the edits made through one editor.

    Usage:
        >>> trace = editor.get_trace()
        >>> for edit in trace.get_changed_lines():
        ...     print(edit)
        >>> before = trace.get_text_at_stage("parse")

    Attributes:
        stages: List of stages with their data
        line_edits: List of all line changes
        input_text: The text of the first traced edit
        kind: The dialect of the traced document
    """

    stages: List[TraceStage] = field(default_factory=list)
    line_edits: List[LineEdit] = field(default_factory=list)
    input_text: str = ""
    kind: str = ""

    def add_stage(
        self, name: str, data: Dict[str, Any], text: Optional[str] = None
    ) -> None:
        """
        Add a stage snapshot.

        Args:
            name: Name of the stage (e.g., "parse")
            data: Dictionary of relevant data at this stage
            text: Optional document text to snapshot
        """
        snapshot = split_lines(text) if text is not None else None
        self.stages.append(TraceStage(name, dict(data), snapshot))

    def record_diff(self, before: str, after: str, source: str) -> List[LineEdit]:
        """Record the line changes between two versions of the text."""
        edits = diff_lines(before, after, source)
        self.line_edits.extend(edits)
        return edits

    def get_stage(self, name: str) -> Optional[TraceStage]:
        """Get the latest stage with this name."""
        for stage in reversed(self.stages):
            if stage.name == name:
                return stage
        return None

    def get_text_at_stage(self, name: str) -> Optional[List[str]]:
        stage = self.get_stage(name)
        if stage and stage.text_snapshot is not None:
            return stage.text_snapshot
        return None

    def get_changed_lines(self) -> List[LineEdit]:
        """All line edits, in the order they were made."""
        return list(self.line_edits)

    def get_edits_by_source(self, source_substring: str) -> List[LineEdit]:
        """Get all line edits from a specific operation (partial match)."""
        return [e for e in self.line_edits if source_substring in e.source]

    def summary(self) -> str:
        """
        Generate a human-readable summary of the trace.

        Returns a string with the input text, the stages overview and line
        edit counts by reason.
        """
        lines = [
            "=" * 60,
            "EDIT TRACE SUMMARY",
            "=" * 60,
            "",
            f"Dialect: {self.kind}",
            f"Input: {repr(self.input_text[:100])}"
            f"{'...' if len(self.input_text) > 100 else ''}",
            "",
            f"Stages: {len(self.stages)}",
        ]

        for stage in self.stages:
            has_text = "+" if stage.text_snapshot is not None else "-"
            lines.append(f"  [{has_text}] {stage.name}")

        lines.extend(["", f"Total line edits: {len(self.line_edits)}", ""])

        reason_counts: Dict[str, int] = {}
        for edit in self.line_edits:
            reason_counts[edit.reason] = reason_counts.get(edit.reason, 0) + 1

        lines.append("Edits by reason:")
        for reason, count in sorted(reason_counts.items(), key=lambda x: -x[1]):
            lines.append(f"  {reason}: {count}")

        return "\n".join(lines)

    def dump(self) -> str:
        """Summary followed by every stage and every line edit."""
        lines = [self.summary(), "", "=" * 60, "DETAILED TRACE", "=" * 60, ""]

        lines.append("STAGES:")
        lines.append("-" * 40)
        for stage in self.stages:
            lines.append(str(stage))
            lines.append("")

        lines.append("LINE EDITS:")
        lines.append("-" * 40)
        for edit in self.line_edits:
            lines.append(str(edit))

        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())


def diff_lines(before: str, after: str, source: str = "") -> List[LineEdit]:
    """
    Compute the line edits that turn before into after.

    Replaced blocks of unequal size are reported as paired replacements
    followed by the leftover removals or insertions.
    """
    old, new = split_lines(before), split_lines(after)
    edits: List[LineEdit] = []
    matcher = difflib.SequenceMatcher(a=old, b=new, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        paired = min(i2 - i1, j2 - j1) if tag == "replace" else 0
        for k in range(paired):
            edits.append(LineEdit(i1 + k, old[i1 + k], new[j1 + k], "replace", source))
        for i in range(i1 + paired, i2):
            edits.append(LineEdit(i, old[i], None, "remove", source))
        for j in range(j1 + paired, j2):
            edits.append(LineEdit(i1 + paired, None, new[j], "insert", source))
    return edits


def text_diff(expected: str, actual: str, context_lines: int = 2) -> str:
    """
    Generate a line-by-line diff between two versions of a diagram.

    Args:
        expected: The expected text
        actual: The actual text
        context_lines: Number of unchanged lines to show around changes

    Returns:
        A formatted string showing the differences
    """
    output: List[str] = ["=" * 60, "TEXT DIFF", "=" * 60]
    if expected == actual:
        output.append("No differences found.")
        return "\n".join(output)

    diff = list(
        difflib.unified_diff(
            split_lines(expected),
            split_lines(actual),
            fromfile="expected",
            tofile="actual",
            n=context_lines,
            lineterm="",
        )
    )
    changed = sum(
        1
        for row in diff
        if row[:1] in ("+", "-") and not row.startswith(("+++", "---"))
    )
    output.append(f"Found {changed} differing line(s)")
    output.append("")
    output.extend(diff)
    return "\n".join(output)
