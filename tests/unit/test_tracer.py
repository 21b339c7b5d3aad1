"""Unit tests for the tracer module."""

from flowsmith.tracer import EditTrace, LineEdit, diff_lines, text_diff


class TestDiffLines:
    """Tests for diff_lines."""

    def test_replace(self):
        """Test a changed line."""
        assert diff_lines("a\nb\nc", "a\nB\nc", "update") == [
            LineEdit(1, "b", "B", "replace", "update")
        ]

    def test_insert(self):
        """Test an inserted line."""
        assert diff_lines("a\nc", "a\nb\nc") == [LineEdit(1, None, "b", "insert", "")]

    def test_remove(self):
        """Test a removed line."""
        assert diff_lines("a\nb\nc", "a\nc") == [LineEdit(1, "b", None, "remove", "")]

    def test_unequal_replace(self):
        """Test a two-line block replaced by one line."""
        edits = diff_lines("a\nb\nc\nd", "a\nX\nd")
        assert [(e.line, e.reason) for e in edits] == [(1, "replace"), (2, "remove")]

    def test_identical(self):
        """Test that equal texts produce no edits."""
        assert diff_lines("a\nb", "a\nb") == []


class TestLineEdit:
    """Tests for LineEdit formatting."""

    def test_str(self):
        """Test the three display forms."""
        assert str(LineEdit(2, None, "x", "insert", "add_node")) == (
            "2: + 'x' [insert] from add_node"
        )
        assert str(LineEdit(2, "x", None, "remove", "remove_node")) == (
            "2: - 'x' [remove] from remove_node"
        )
        assert "->" in str(LineEdit(2, "x", "y", "replace", "update_node"))


class TestEditTrace:
    """Tests for the EditTrace class."""

    def make_trace(self):
        trace = EditTrace(input_text="flowchart TD\n    A", kind="flowchart")
        trace.add_stage("parse", {"nodes": 1}, trace.input_text)
        trace.record_diff(trace.input_text, "flowchart TD\n    A\n    B", "add_node")
        trace.add_stage("result", {"changed": True})
        return trace

    def test_stages(self):
        """Test stage lookup and snapshots."""
        trace = self.make_trace()
        assert trace.get_stage("parse").data == {"nodes": 1}
        assert trace.get_text_at_stage("parse") == ["flowchart TD", "    A"]
        assert trace.get_text_at_stage("result") is None
        assert trace.get_stage("missing") is None

    def test_edits_by_source(self):
        """Test filtering line edits by operation."""
        trace = self.make_trace()
        assert len(trace.get_edits_by_source("add")) == 1
        assert trace.get_edits_by_source("remove") == []

    def test_summary(self):
        """Test the summary text."""
        summary = self.make_trace().summary()
        assert "EDIT TRACE SUMMARY" in summary
        assert "Dialect: flowchart" in summary
        assert "Total line edits: 1" in summary
        assert "insert: 1" in summary

    def test_dump_to_file(self, tmp_path):
        """Test writing the full dump."""
        path = tmp_path / "trace.txt"
        self.make_trace().dump_to_file(str(path))
        content = path.read_text(encoding="utf-8")
        assert "DETAILED TRACE" in content
        assert "=== Stage: parse ===" in content
        assert "|    A|" in content


class TestTextDiff:
    """Tests for text_diff."""

    def test_equal(self):
        """Test identical texts."""
        assert "No differences found." in text_diff("a\nb", "a\nb")

    def test_different(self):
        """Test a one-line change."""
        diff = text_diff("a\nb\nc", "a\nB\nc")
        assert "Found 2 differing line(s)" in diff
        assert "-b" in diff
        assert "+B" in diff
