"""Unit tests for the graph module."""

from datetime import date

from flowsmith.gantt import parse_gantt_tasks
from flowsmith.graph import (
    Conflict,
    TaskIndex,
    build_dependency_graph,
    calculate_slack,
    detect_conflicts,
    detect_cycles,
    get_critical_path,
)
from flowsmith.schedule import resolve_schedule


def scheduled_tasks(text):
    return resolve_schedule(parse_gantt_tasks(text)).tasks


class TestTaskIndex:
    """Tests for reference lookup."""

    def test_id_before_label(self, project_gantt_text):
        """Test that ids win over labels and lookups ignore case."""
        index = TaskIndex(parse_gantt_tasks(project_gantt_text))
        assert index.resolve("REV").label == "Review"
        assert index.resolve("code").label == "Code"
        assert index.resolve("missing") is None


class TestDependencyGraph:
    """Tests for the DependencyGraph class."""

    def test_neighbours(self, cpm_gantt_text):
        """Test direct successors and predecessors."""
        graph = build_dependency_graph(parse_gantt_tasks(cpm_gantt_text))
        assert graph.successors("a") == ["b", "c"]
        assert graph.predecessors("d") == ["b", "c"]
        assert graph.successors("missing") == []

    def test_transitive(self, cpm_gantt_text):
        """Test upstream and downstream sets."""
        graph = build_dependency_graph(parse_gantt_tasks(cpm_gantt_text))
        assert graph.upstream("d") == {"a", "b", "c"}
        assert graph.downstream("a") == {"b", "c", "d"}
        assert graph.upstream("missing") == set()

    def test_topological_order(self, cpm_gantt_text):
        """Test Kahn ordering."""
        graph = build_dependency_graph(parse_gantt_tasks(cpm_gantt_text))
        assert graph.topological_order() == ["a", "b", "c", "d"]

    def test_to_dict(self, cpm_gantt_text):
        """Test the adjacency export."""
        graph = build_dependency_graph(parse_gantt_tasks(cpm_gantt_text))
        assert graph.to_dict() == {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []}

    def test_vert_tasks_are_excluded(self):
        """Test that vertical markers are not graph nodes."""
        text = "gantt\n    A : a1, 2026-01-01, 1d\n    Freeze : vert, 2026-01-02"
        graph = build_dependency_graph(parse_gantt_tasks(text))
        assert graph.nodes == ["a1"]

    def test_until_edge(self):
        """Test that until adds an edge to the bounding task."""
        text = "\n".join(
            [
                "gantt",
                "    Build : b, 2026-01-01, until rel",
                "    Release : rel, 2026-01-10, 1d",
            ]
        )
        graph = build_dependency_graph(parse_gantt_tasks(text))
        assert graph.edges == [("b", "rel")]
        assert graph.graph.edges["b", "rel"]["kind"] == "until"

    def test_unknown_reference_is_skipped(self):
        """Test that a missing task adds no edge."""
        graph = build_dependency_graph(parse_gantt_tasks("gantt\n    T : after Z, 1d"))
        assert graph.edges == []
        assert "t" in graph


class TestCycles:
    """Tests for cycle detection."""

    def test_two_task_cycle(self, cyclic_gantt_text):
        """Test a cycle reported by labels."""
        assert detect_cycles(parse_gantt_tasks(cyclic_gantt_text)) == [["X", "Y"]]

    def test_self_dependency(self):
        """Test a task after itself."""
        assert detect_cycles(parse_gantt_tasks("gantt\n    S : after S, 1d")) == [["S"]]

    def test_acyclic(self, cpm_gantt_text):
        """Test a graph without cycles."""
        assert detect_cycles(parse_gantt_tasks(cpm_gantt_text)) == []

    def test_topological_order_skips_cycle(self, cyclic_gantt_text):
        """Test that cycle members never reach in-degree zero."""
        graph = build_dependency_graph(parse_gantt_tasks(cyclic_gantt_text))
        assert graph.topological_order() == []


class TestCriticalPath:
    """Tests for slack and the critical path."""

    def test_slack(self, cpm_gantt_text):
        """Test the backward pass on a diamond."""
        slack = calculate_slack(scheduled_tasks(cpm_gantt_text))
        assert slack["c"].slack_days == 2
        assert slack["c"].latest_start == date(2026, 1, 5)
        assert slack["c"].latest_finish == date(2026, 1, 6)
        assert not slack["c"].critical
        assert [key for key, info in slack.items() if info.critical] == ["a", "b", "d"]

    def test_critical_path(self, cpm_gantt_text):
        """Test the critical tasks in dependency order."""
        path = get_critical_path(scheduled_tasks(cpm_gantt_text))
        assert [task.label for task in path] == ["A", "B", "D"]

    def test_unconnected_task(self, cpm_gantt_text):
        """Test slack for a task outside every chain."""
        text = cpm_gantt_text + "\n    Solo : 2026-01-01, 1d"
        info = calculate_slack(scheduled_tasks(text))["solo"]
        assert not info.connected
        assert info.slack_days == 5
        assert calculate_slack(scheduled_tasks(text))["a"].connected

    def test_empty(self):
        """Test no tasks at all."""
        assert calculate_slack([]) == {}


class TestConflicts:
    """Tests for detect_conflicts."""

    def test_overlap(self):
        """Test a dependent with its own earlier start date."""
        text = "\n".join(
            [
                "gantt",
                "    A : 2026-01-01, 5d",
                "    B : after A, 2026-01-03, 2d",
            ]
        )
        assert detect_conflicts(scheduled_tasks(text)) == [Conflict("B", "A", 3)]

    def test_no_conflict(self, cpm_gantt_text):
        """Test a consistent schedule."""
        assert detect_conflicts(scheduled_tasks(cpm_gantt_text)) == []
