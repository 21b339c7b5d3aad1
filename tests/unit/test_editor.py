"""Unit tests for the editor module."""

import pytest

from flowsmith import DiagramEditor, DiagramKind
from flowsmith.gantt import GanttChart
from flowsmith.tracer import LineEdit


class TestEditorOptions:
    """Tests for editor construction and defaults."""

    def test_default_shape(self, flowchart_text):
        """Test the shape used for new flowchart nodes."""
        editor = DiagramEditor(default_shape="circle")
        lines = editor.add_node(flowchart_text, "E", "Extra").split("\n")
        assert lines[4] == '    E(("Extra"))'

    def test_indent(self, flowchart_text):
        """Test the indentation of new lines."""
        editor = DiagramEditor(indent="  ")
        lines = editor.add_node(flowchart_text, "E", "Extra").split("\n")
        assert lines[4] == '  E["Extra"]'

    def test_default_arrow(self, flowchart_text):
        """Test the arrow used for new edges."""
        editor = DiagramEditor(default_arrow="==>")
        lines = editor.add_edge(flowchart_text, "C", "D").split("\n")
        assert lines[4] == "    C ==> D"

    def test_explicit_option_wins(self, flowchart_text):
        """Test that a per-call shape overrides the default."""
        editor = DiagramEditor(default_shape="circle")
        lines = editor.add_node(flowchart_text, "E", "Extra", shape="rect").split("\n")
        assert lines[4] == '    E["Extra"]'

    def test_invalid_defaults(self):
        """Test that unknown defaults are rejected."""
        with pytest.raises(ValueError):
            DiagramEditor(default_shape="blob")
        with pytest.raises(ValueError):
            DiagramEditor(default_arrow="~>")

    def test_forced_kind(self):
        """Test editing text without a header."""
        editor = DiagramEditor(kind=DiagramKind.FLOWCHART)
        assert editor.add_edge("A --> B", "B", "C") == "A --> B\n    B --> C"


class TestEditorRouting:
    """Tests for dialect routing."""

    def test_unsupported_dialect_is_noop(self, editor):
        """Test that parse-only dialects are returned unchanged."""
        text = 'pie\n    "Dogs" : 3'
        assert editor.add_node(text, "X", "Y") == text

    def test_class_edge(self, editor, class_text):
        """Test adding a class relationship."""
        result = editor.add_edge(class_text, "Duck", "Pond")
        assert result.split("\n")[-1] == "    Duck --> Pond"

    def test_state_update(self, editor, state_text):
        """Test relabelling a state."""
        result = editor.update_node(state_text, "Idle", "Ready")
        assert result.split("\n")[2] == '    state "Ready" as Idle'

    def test_er_rename(self, editor, er_text):
        """Test that an ER update renames the entity."""
        result = editor.update_node(er_text, "CUSTOMER", "CLIENT")
        assert result.split("\n")[3] == "    CLIENT {"

    def test_sequence_edge_removal(self, editor, sequence_text):
        """Test removing a message."""
        result = editor.remove_edge(sequence_text, "A", "C")
        assert "async" not in result

    def test_add_node_needs_id_outside_flowcharts(self, editor, sequence_text):
        """Test that only flowcharts generate ids."""
        assert editor.add_node(sequence_text) == sequence_text

    def test_generated_flowchart_id(self, editor, flowchart_text):
        """Test that flowcharts generate a fresh id."""
        lines = editor.add_node(flowchart_text, label="New").split("\n")
        assert lines[4] == '    N1["New"]'

    def test_parse(self, editor, project_gantt_text):
        """Test parsing through the editor."""
        assert isinstance(editor.parse(project_gantt_text), GanttChart)
        assert editor.parse("hello world") is None

    def test_unknown_operation(self, editor, flowchart_text):
        """Test that apply rejects unknown operations."""
        with pytest.raises(ValueError):
            editor.apply(flowchart_text, "explode")


class TestEditorTracing:
    """Tests for debug tracing."""

    def test_trace_stages(self, debug_editor, flowchart_text):
        """Test the recorded stages of one edit."""
        debug_editor.update_node(flowchart_text, "B", "Maybe")
        trace = debug_editor.get_trace()
        assert trace.kind == "flowchart"
        assert [stage.name for stage in trace.stages] == ["parse", "mutate", "result"]
        parse = trace.get_stage("parse")
        assert parse.data["nodes"] == 4
        assert parse.data["edges"] == 3
        assert trace.get_stage("result").data["changed"]

    def test_trace_line_edits(self, debug_editor, flowchart_text):
        """Test that only the touched line is recorded."""
        debug_editor.update_node(flowchart_text, "B", "Maybe")
        assert debug_editor.get_trace().get_changed_lines() == [
            LineEdit(
                1,
                '    A["Start"] --> B{Decide}',
                '    A["Start"] --> B{"Maybe"}',
                "replace",
                "update_node",
            )
        ]

    def test_no_trace_without_debug(self, editor, flowchart_text):
        """Test that plain editors record nothing."""
        editor.update_node(flowchart_text, "B", "Maybe")
        assert editor.get_trace() is None

    def test_debug_per_call(self, editor, flowchart_text):
        """Test enabling tracing for a single call."""
        editor.apply(flowchart_text, "remove_node", "D", debug=True)
        trace = editor.get_trace()
        assert trace is not None
        assert trace.get_stage("mutate").data["operation"] == "remove_node"

    def test_fresh_trace_per_call(self, debug_editor, flowchart_text):
        """Test that each edit replaces the previous trace."""
        debug_editor.update_node(flowchart_text, "B", "Maybe")
        first = debug_editor.get_trace()
        debug_editor.remove_node(flowchart_text, "Z")
        second = debug_editor.get_trace()
        assert second is not first
        assert second.line_edits == []
