"""Priority suggestion models for taskintel."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from taskintel.models.constants import DEFAULT_CATEGORY_WEIGHT, DEFAULT_USER_PRIORITY_PREFERENCE
from taskintel.models.task import Task, TaskPriority


class FactorType(str, Enum):
    """Signal that contributed to a priority score."""
    DUE_DATE = "due_date"
    DEPENDENCY = "dependency"
    TIME_PRESSURE = "time_pressure"
    PROJECT = "project"
    CATEGORY = "category"
    HISTORICAL = "historical"


class PriorityFactor(BaseModel):
    """One weighted input to a priority score."""

    type: FactorType
    impact: float = Field(..., ge=-1.0, le=1.0, description="Negative lowers priority, positive raises it")
    description: str

    class Config:
        use_enum_values = True


class DependencyState(BaseModel):
    """Dependency facts about a task, supplied by the caller."""

    blocked: bool = Field(False, description="Depends on at least one task that is not done")
    blocking_count: int = Field(0, ge=0, description="Number of tasks that depend on this task")
    depends_on_count: int = Field(0, ge=0, description="Number of tasks this task depends on")


class HistoricalPattern(BaseModel):
    """Learned per-user priority tendencies."""

    user_priority_preference: float = Field(DEFAULT_USER_PRIORITY_PREFERENCE, ge=-1.0, le=1.0)
    category_weight: float = Field(DEFAULT_CATEGORY_WEIGHT, ge=0.0, le=1.0)


class TaskContext(BaseModel):
    """Per-task snapshot the scoring engine is a pure function of."""

    task: Task
    dependencies: DependencyState = Field(default_factory=DependencyState)
    historical_pattern: Optional[HistoricalPattern] = None


class PrioritySuggestion(BaseModel):
    """Suggested priority for a single task."""

    task_id: str
    task_title: str
    current_priority: TaskPriority
    suggested_priority: TaskPriority
    score: float = Field(..., ge=0.0, le=1.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    factors: List[PriorityFactor] = Field(default_factory=list)

    @property
    def changes_priority(self) -> bool:
        return self.suggested_priority != self.current_priority

    class Config:
        use_enum_values = True


class PrioritySummary(BaseModel):
    total_tasks: int = 0
    needs_prioritization: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0


class PriorityAnalysis(BaseModel):
    """Unfiltered suggestions for an explicit set of tasks plus a summary."""

    suggestions: List[PrioritySuggestion] = Field(default_factory=list)
    summary: PrioritySummary = Field(default_factory=PrioritySummary)


class PriorityCorrection(BaseModel):
    """User feedback on a previously shown suggestion."""

    suggestion_id: str
    task_id: str
    accepted: bool
    actual_priority: Optional[TaskPriority] = None
    category: Optional[str] = None

    class Config:
        use_enum_values = True
