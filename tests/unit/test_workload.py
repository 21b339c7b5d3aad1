"""Unit tests for the workload module."""

from datetime import date

from flowsmith.gantt import parse_gantt_tasks
from flowsmith.schedule import resolve_schedule
from flowsmith.workload import compute_resource_load, compute_risk_flags


def scheduled_tasks(*task_lines):
    text = "\n".join(["gantt", "    dateFormat YYYY-MM-DD", *task_lines])
    return resolve_schedule(parse_gantt_tasks(text)).tasks


def assigned(label, start, duration, person="alice"):
    return [f"    {label} : {start}, {duration}", f"    %% assignee: {person}"]


OVERLAPPING = [
    *assigned("T1", "2026-01-05", "3d"),
    *assigned("T2", "2026-01-05", "3d", person="Alice"),
    *assigned("T3", "2026-01-06", "2d"),
    *assigned("T4", "2026-01-07", "1d"),
]


class TestRiskFlags:
    """Tests for compute_risk_flags."""

    def test_many_deps(self, cpm_gantt_text):
        """Test a task waiting on three tasks."""
        tasks = resolve_schedule(
            parse_gantt_tasks(cpm_gantt_text.replace("after B C", "after A B C"))
        ).tasks
        risks = compute_risk_flags(tasks)
        assert risks["D"].flags == ["many-deps"]
        assert risks["D"].reasons == ["Depends on 3 tasks"]

    def test_clean_schedule(self, cpm_gantt_text):
        """Test that a consistent chart has no flags."""
        tasks = resolve_schedule(parse_gantt_tasks(cpm_gantt_text)).tasks
        assert compute_risk_flags(tasks) == {}

    def test_broken_dep(self):
        """Test a dependent that starts early."""
        tasks = scheduled_tasks(
            "    A : 2026-01-01, 5d", "    B : after A, 2026-01-03, 2d"
        )
        risks = compute_risk_flags(tasks)
        assert risks["B"].flags == ["broken-dep"]
        assert risks["B"].reasons == ["Starts before 'A' finishes"]

    def test_overloaded_assignee(self):
        """Test four overlapping tasks for one person, any spelling."""
        risks = compute_risk_flags(scheduled_tasks(*OVERLAPPING))
        assert sorted(risks) == ["T1", "T2", "T3", "T4"]
        assert risks["T1"].flags == ["overloaded-assignee"]
        assert risks["T1"].reasons == ["Alice has 4 tasks running at once"]

    def test_back_to_back_is_not_concurrent(self):
        """Test that an end and a start on the same day do not overlap."""
        tasks = scheduled_tasks(
            *assigned("T1", "2026-01-05", "1d"),
            *assigned("T2", "2026-01-06", "1d"),
            *assigned("T3", "2026-01-07", "1d"),
            *assigned("T4", "2026-01-08", "1d"),
        )
        assert compute_risk_flags(tasks) == {}

    def test_long_tasks_are_ignored(self):
        """Test that background work does not count."""
        lines = list(OVERLAPPING)
        lines[0] = "    T1 : 2026-01-05, 20d"
        assert compute_risk_flags(scheduled_tasks(*lines)) == {}

    def test_distant_task_is_not_overloaded(self):
        """Test that only tasks inside the overload window are flagged."""
        tasks = scheduled_tasks(*OVERLAPPING, *assigned("Later", "2026-06-01", "2d"))
        risks = compute_risk_flags(tasks)
        assert sorted(risks) == ["T1", "T2", "T3", "T4"]
        assert "Later" not in risks

    def test_shared_task_counts_for_each_assignee(self):
        """Test that a comma-separated assignee counts for every person."""
        tasks = scheduled_tasks(
            *assigned("B1", "2026-01-05", "3d", person="bob"),
            *assigned("B2", "2026-01-05", "3d", person="bob"),
            *assigned("B3", "2026-01-06", "2d", person="bob"),
            *assigned("Pair", "2026-01-06", "1d", person="Alice, Bob"),
        )
        risks = compute_risk_flags(tasks)
        assert sorted(risks) == ["B1", "B2", "B3", "Pair"]
        assert risks["Pair"].reasons == ["Bob has 4 tasks running at once"]


class TestResourceLoad:
    """Tests for compute_resource_load."""

    def test_weekly_overload(self):
        """Test grouping by ISO week and case-insensitive names."""
        loads = compute_resource_load(scheduled_tasks(*OVERLAPPING))
        assert len(loads) == 1
        load = loads[0]
        assert load.name == "alice"
        assert load.total_tasks == 4
        assert [week.week_key for week in load.overloaded_weeks] == ["2026-W02"]
        week = load.overloaded_weeks[0]
        assert week.week_start == date(2026, 1, 5)
        assert week.tasks == ["T1", "T2", "T3", "T4"]

    def test_task_spanning_weeks(self):
        """Test that a task counts in every week it touches."""
        tasks = scheduled_tasks(
            *assigned("Long", "2026-01-02", "5d"),
            *assigned("Short", "2026-01-02", "1d"),
            *assigned("Late", "2026-01-06", "1d"),
        )
        weeks = compute_resource_load(tasks)[0].overloaded_weeks
        assert [(w.week_key, w.tasks) for w in weeks] == [
            ("2026-W01", ["Long", "Short"]),
            ("2026-W02", ["Long", "Late"]),
        ]

    def test_sorting_and_unassigned(self):
        """Test ordering by overload and skipping unassigned tasks."""
        tasks = scheduled_tasks(
            *assigned("A1", "2026-01-05", "1d", person="bob"),
            *assigned("C1", "2026-01-05", "1d", person="carol"),
            *assigned("C2", "2026-01-06", "1d", person="carol"),
            "    Free : 2026-01-05, 1d",
        )
        loads = compute_resource_load(tasks)
        assert [(load.name, load.total_tasks) for load in loads] == [
            ("carol", 2),
            ("bob", 1),
        ]
        assert loads[1].overloaded_weeks == []

    def test_comma_separated_assignees(self):
        """Test that a shared task counts once for each named person."""
        tasks = scheduled_tasks(
            *assigned("X", "2026-01-05", "1d", person="Alice, Bob"),
            *assigned("Y", "2026-01-12", "1d", person="bob"),
        )
        loads = compute_resource_load(tasks)
        assert [(load.name, load.total_tasks) for load in loads] == [
            ("Alice", 1),
            ("Bob", 2),
        ]
        assert all(load.overloaded_weeks == [] for load in loads)
