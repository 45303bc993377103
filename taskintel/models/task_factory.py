"""Task creation factory for taskintel.

This module centralizes task creation logic to eliminate duplication
and ensure consistent default values across the application.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List

from taskintel.models.task import Task, TaskStatus, TaskPriority


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary.

    Returns:
        Dictionary with default task field values
    """
    return {
        "status": TaskStatus.TODO,
        "priority": TaskPriority.MEDIUM,
        "due_date": None,
        "start_date": None,
        "time_estimate": None,
        "category": None,
        "tags": [],
    }


def create_task_base(
    owner_id: str,
    title: str,
    description: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    status: Optional[TaskStatus] = None,
    due_date: Optional[datetime] = None,
    start_date: Optional[datetime] = None,
    time_estimate: Optional[int] = None,
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
    dashboard_id: Optional[str] = None,
    business_id: Optional[str] = None,
    assigned_to_id: Optional[str] = None,
    project_id: Optional[str] = None,
    recurrence_rule: Optional[str] = None,
    recurrence_end_at: Optional[datetime] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    Args:
        owner_id: User ID who owns this task (required)
        title: Task title (required)
        description: Task description
        priority: Initial priority (defaults to MEDIUM)
        status: Initial status (defaults to TODO)
        due_date: Due date; required when recurrence_rule is set
        start_date: Planned start
        time_estimate: Estimated effort in minutes
        category: Free-form category label
        tags: Task tags
        dashboard_id: Dashboard scope
        business_id: Business scope (None for personal tasks)
        assigned_to_id: Assignee
        project_id: Owning project
        recurrence_rule: RRULE string for template tasks
        recurrence_end_at: Hard end for instance generation

    Returns:
        Task object with defaults applied
    """
    now = datetime.utcnow()
    defaults = create_task_defaults()

    return Task(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        title=title,
        description=description,
        status=status if status is not None else defaults["status"],
        priority=priority if priority is not None else defaults["priority"],
        created_at=now,
        updated_at=now,
        due_date=due_date if due_date is not None else defaults["due_date"],
        start_date=start_date if start_date is not None else defaults["start_date"],
        time_estimate=time_estimate if time_estimate is not None else defaults["time_estimate"],
        category=category if category is not None else defaults["category"],
        tags=tags if tags is not None else defaults["tags"],
        dashboard_id=dashboard_id,
        business_id=business_id,
        assigned_to_id=assigned_to_id,
        project_id=project_id,
        recurrence_rule=recurrence_rule,
        recurrence_end_at=recurrence_end_at,
    )


def clone_for_occurrence(template: Task, occurrence: datetime) -> Task:
    """Create a recurrence instance of `template` due at `occurrence`.

    Shared fields are copied; instances always start as TODO, carry no rule of
    their own, and keep the template's start-to-due span.
    """
    start_date = None
    if template.start_date and template.due_date:
        span = template.due_date - template.start_date
        if span.total_seconds() > 0:
            start_date = occurrence - span

    instance = create_task_base(
        owner_id=template.owner_id,
        title=template.title,
        description=template.description,
        priority=template.priority,
        status=TaskStatus.TODO,
        due_date=occurrence,
        start_date=start_date,
        time_estimate=template.time_estimate,
        category=template.category,
        tags=list(template.tags),
        dashboard_id=template.dashboard_id,
        business_id=template.business_id,
        assigned_to_id=template.assigned_to_id,
        project_id=template.project_id,
    )
    return instance.model_copy(
        update={
            "parent_recurring_task_id": template.id,
            "project": template.project,
        }
    )
