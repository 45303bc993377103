"""Data models for taskintel."""

from taskintel.models.task import Task, TaskStatus, TaskPriority, Project, TaskScope
from taskintel.models.priority import (
    FactorType,
    PriorityFactor,
    DependencyState,
    HistoricalPattern,
    TaskContext,
    PrioritySuggestion,
    PrioritySummary,
    PriorityAnalysis,
    PriorityCorrection,
)
from taskintel.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday, WeekdaySpec

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Project",
    "TaskScope",
    "FactorType",
    "PriorityFactor",
    "DependencyState",
    "HistoricalPattern",
    "TaskContext",
    "PrioritySuggestion",
    "PrioritySummary",
    "PriorityAnalysis",
    "PriorityCorrection",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "Weekday",
    "WeekdaySpec",
]
