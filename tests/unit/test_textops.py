"""Unit tests for the textops module."""

from flowsmith.errors import FlowsmithError, ScheduleError, UnanchoredTaskError
from flowsmith.textops import (
    append_lines,
    content_insert_index,
    dedent_once,
    front_matter_end,
    insert_content_lines,
    line_indent,
    remove_lines,
)


class TestLineHelpers:
    """Tests for the shared line helpers."""

    def test_front_matter_end(self):
        """Test closed, unclosed and missing front matter."""
        assert front_matter_end(["---", "title: x", "---", "graph TD"]) == 3
        assert front_matter_end(["---", "title: x"]) == 1
        assert front_matter_end(["graph TD"]) == 0
        assert front_matter_end([]) == 0

    def test_content_insert_index(self):
        """Test that style directives and annotations are passed over."""
        lines = ["graph TD", "    A", '    A@{ shape: doc }', "    style A x:y", ""]
        assert content_insert_index(lines) == 3
        assert content_insert_index(lines, skip_annotations=True) == 2
        assert content_insert_index([""]) == 0
        assert content_insert_index(["---", "title: x", "---"]) == 3

    def test_insert_content_lines(self):
        """Test inserting ahead of trailing style directives."""
        text = "graph TD\n    A\n    style A x:y\n"
        assert insert_content_lines(text, ["    B"]) == (
            "graph TD\n    A\n    B\n    style A x:y\n"
        )
        assert insert_content_lines("", ["    B"]) == "    B"
        assert insert_content_lines("\n", ["    B"]) == "    B\n\n"

    def test_append_keeps_trailing_blank(self):
        """Test appending before trailing blank lines."""
        assert append_lines("a\nb\n", ["c"]) == "a\nb\nc\n"
        assert append_lines("", ["c"]) == "c"

    def test_indent_helpers(self):
        """Test reading and removing indentation."""
        assert line_indent("  \tx") == "  \t"
        assert dedent_once("        x") == "    x"
        assert dedent_once("\tx") == "x"
        assert dedent_once("x") == "x"

    def test_remove_lines(self):
        """Test dropping lines by index."""
        assert remove_lines("a\nb\nc", [0, 2]) == "b"
        text = "a\nb"
        assert remove_lines(text, []) is text


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_unanchored_task_error(self):
        """Test the message and the hierarchy."""
        error = UnanchoredTaskError(["a", "b"])
        assert str(error) == "Cannot resolve start dates for: a, b"
        assert error.task_labels == ["a", "b"]
        assert isinstance(error, ScheduleError)
        assert isinstance(error, FlowsmithError)
