"""
Exception types for flowsmith.

The parsers and mutators never raise on user text: unrecognised syntax is
skipped and a missing target is a no-op. These exceptions exist for callers
that opt into strict validation.
"""

from typing import List


class FlowsmithError(Exception):
    """Base class for all flowsmith errors."""

    pass


class ScheduleError(FlowsmithError):
    """Raised when a schedule cannot be resolved in strict mode."""

    pass


class UnanchoredTaskError(ScheduleError):
    """
    Raised when tasks cannot be placed on the calendar.

    A task is unanchored when neither it nor any task upstream of it carries an
    explicit start date, or when its dependency chain references an unknown
    task or runs through a cycle.

    Attributes:
        task_labels: Labels of the tasks that could not be resolved.
    """

    def __init__(self, task_labels: List[str]):
        self.task_labels = list(task_labels)
        joined = ", ".join(self.task_labels)
        super().__init__(f"Cannot resolve start dates for: {joined}")
