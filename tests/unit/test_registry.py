"""Unit tests for the registry module."""

import pytest

from flowsmith.registry import (
    ADAPTERS,
    DiagramKind,
    classify_diagram_type,
    detect_diagram_kind,
    get_adapter,
    get_parser,
)
from flowsmith.simple_diagrams import parse_pie


class TestClassifyDiagramType:
    """Tests for classify_diagram_type."""

    @pytest.mark.parametrize(
        "raw, kind",
        [
            ("graph", DiagramKind.FLOWCHART),
            ("flowchart-v2", DiagramKind.FLOWCHART),
            ("er", DiagramKind.ER),
            ("erDiagram", DiagramKind.ER),
            ("classDiagram", DiagramKind.CLASS),
            ("stateDiagram-v2", DiagramKind.STATE),
            ("sequenceDiagram", DiagramKind.SEQUENCE),
            ("zenuml", DiagramKind.SEQUENCE),
            ("C4Context", DiagramKind.C4),
            ("gitGraph", DiagramKind.GIT_GRAPH),
            ("quadrantChart", DiagramKind.QUADRANT),
            ("xychart-beta", DiagramKind.XY_CHART),
            ("generic", DiagramKind.UNSUPPORTED),
        ],
    )
    def test_classify(self, raw, kind):
        """Test header keywords and type names."""
        assert classify_diagram_type(raw) is kind

    def test_empty(self):
        """Test that empty input is unsupported."""
        assert classify_diagram_type(None) is DiagramKind.UNSUPPORTED
        assert classify_diagram_type("   ") is DiagramKind.UNSUPPORTED


class TestDetectDiagramKind:
    """Tests for detect_diagram_kind."""

    def test_skips_front_matter_and_comments(self):
        """Test that the first meaningful line decides."""
        text = "---\ntitle: x\n---\n\n%% note\nsequenceDiagram\n    A->>B: hi"
        assert detect_diagram_kind(text) is DiagramKind.SEQUENCE

    def test_header_with_direction(self):
        """Test a flowchart header with a direction."""
        assert detect_diagram_kind("flowchart LR\n    A --> B") is DiagramKind.FLOWCHART

    def test_empty_document(self):
        """Test an empty document."""
        assert detect_diagram_kind("") is DiagramKind.UNSUPPORTED
        assert detect_diagram_kind("%% only a comment") is DiagramKind.UNSUPPORTED


class TestAdapters:
    """Tests for the adapter and parser tables."""

    def test_editable_dialects(self):
        """Test which dialects have structural editing."""
        assert set(ADAPTERS) == {
            DiagramKind.FLOWCHART,
            DiagramKind.CLASS,
            DiagramKind.ER,
            DiagramKind.STATE,
            DiagramKind.SEQUENCE,
        }
        assert get_adapter(DiagramKind.PIE) is None

    def test_nouns(self):
        """Test display nouns per dialect."""
        nouns = {
            kind: (adapter.node_noun, adapter.edge_noun)
            for kind, adapter in ADAPTERS.items()
        }
        assert nouns[DiagramKind.FLOWCHART] == ("node", "edge")
        assert nouns[DiagramKind.CLASS] == ("class", "relationship")
        assert nouns[DiagramKind.ER] == ("entity", "relationship")
        assert nouns[DiagramKind.STATE] == ("state", "transition")
        assert nouns[DiagramKind.SEQUENCE] == ("participant", "message")

    def test_parsers(self):
        """Test parse-only dialects are reachable."""
        assert get_parser(DiagramKind.PIE) is parse_pie
        for kind in (
            DiagramKind.GANTT,
            DiagramKind.MINDMAP,
            DiagramKind.TIMELINE,
            DiagramKind.C4,
            DiagramKind.GIT_GRAPH,
            DiagramKind.QUADRANT,
            DiagramKind.FLOWCHART,
        ):
            assert get_parser(kind) is not None
        assert get_parser(DiagramKind.SANKEY) is None

    def test_er_add_edge_default_label(self, er_text):
        """Test that ER edges need a label."""
        adapter = get_adapter(DiagramKind.ER)
        result = adapter.add_edge(er_text, "ORDER", "INVOICE", "")
        assert result.split("\n")[-1] == "    ORDER ||--o{ INVOICE : relates"

    def test_state_adapter_ignores_extra_options(self, state_text):
        """Test that shape options do not reach the state dialect."""
        adapter = get_adapter(DiagramKind.STATE)
        result = adapter.add_node(state_text, "Done", "Finished", shape="circle")
        assert result.split("\n")[-1] == '    state "Finished" as Done'
