"""Task data model for taskintel."""

from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"  # Terminal: excluded from priority suggestions


class TaskPriority(str, Enum):
    """Ordinal task priority (lowest to highest)."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Project(BaseModel):
    """Minimal project reference carried on a task snapshot."""

    id: str = Field(..., description="Project identifier")
    name: str = Field(..., description="Project display name")


class Task(BaseModel):
    """Canonical Task snapshot consumed by the engine."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    owner_id: str = Field(..., description="User ID who created this task")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Current priority")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    trashed_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    # Scope
    dashboard_id: Optional[str] = Field(None, description="Dashboard the task lives on")
    business_id: Optional[str] = Field(None, description="Business workspace (null for personal tasks)")
    assigned_to_id: Optional[str] = Field(None, description="Assignee user ID")

    # Scheduling fields
    due_date: Optional[datetime] = Field(None, description="Task due date")
    start_date: Optional[datetime] = Field(None, description="Planned start; due_date - start_date is the task span")
    time_estimate: Optional[int] = Field(None, ge=0, description="Estimated effort in minutes")
    actual_time_spent: Optional[int] = Field(None, ge=0, description="Logged effort in minutes")

    # Classification
    category: Optional[str] = Field(None, description="Free-form category label")
    tags: List[str] = Field(default_factory=list, description="Task tags")
    project_id: Optional[str] = Field(None, description="Owning project ID")
    project: Optional[Project] = Field(None, description="Owning project reference")

    # Dependency edges (read model; edges are persisted separately)
    depends_on: List[str] = Field(default_factory=list, description="IDs of tasks this task is blocked by")
    blocks: List[str] = Field(default_factory=list, description="IDs of tasks that depend on this task")

    # Recurrence
    recurrence_rule: Optional[str] = Field(None, description="RRULE string (templates only)")
    recurrence_end_at: Optional[datetime] = Field(None, description="Hard end for instance generation")
    parent_recurring_task_id: Optional[str] = Field(
        None, description="If generated from a recurring template, the template id"
    )

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def is_recurring_template(self) -> bool:
        """A template carries a rule and is not itself an instance."""
        return bool(self.recurrence_rule) and self.parent_recurring_task_id is None

    @property
    def is_recurrence_instance(self) -> bool:
        return self.parent_recurring_task_id is not None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskScope(BaseModel):
    """Filters narrowing a task query for an owner.

    `business_id=None` selects personal tasks (no business), not "any business".
    """

    dashboard_id: Optional[str] = None
    business_id: Optional[str] = None
    statuses: Optional[List[TaskStatus]] = None
    priorities: Optional[List[TaskPriority]] = None
    due_after: Optional[datetime] = None
    due_before: Optional[datetime] = None
    assigned_to_id: Optional[str] = None

    class Config:
        use_enum_values = True
