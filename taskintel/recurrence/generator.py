"""Generate recurring task instances from a template task."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from taskintel.database.repository import TaskRepository
from taskintel.models.task import Task
from taskintel.models.task_factory import clone_for_occurrence
from taskintel.recurrence.rules import (
    MissingAnchorDateError,
    InvalidRecurrenceRuleError,
    TemplateNotFoundError,
    iter_occurrences,
)

logger = logging.getLogger(__name__)


def _load_template(repo: TaskRepository, template_task_id: str, owner_id: Optional[str]) -> Task:
    template = repo.get(owner_id, template_task_id) if owner_id else repo.get_any(template_task_id)
    if template is None:
        raise TemplateNotFoundError(template_task_id)
    if not template.recurrence_rule:
        raise InvalidRecurrenceRuleError(f"Task {template_task_id} has no recurrence rule")
    if template.due_date is None:
        raise MissingAnchorDateError()
    return template


def _check_max_instances(max_instances: int) -> None:
    if isinstance(max_instances, bool) or not isinstance(max_instances, int) or max_instances < 1:
        raise ValueError("max_instances must be a positive integer")


def build_instances(template: Task, max_instances: int) -> List[Task]:
    """Clone `template` once per upcoming occurrence, in chronological order.

    Pure: nothing is persisted.
    """
    _check_max_instances(max_instances)
    occurrences = iter_occurrences(
        template.recurrence_rule,
        template.due_date,
        limit=max_instances,
        until=template.recurrence_end_at,
    )
    return [clone_for_occurrence(template, occurrence) for occurrence in occurrences]


def generate_instances(
    repo: TaskRepository,
    template_task_id: str,
    max_instances: int,
    *,
    owner_id: Optional[str] = None,
) -> int:
    """Create up to `max_instances` instances of a recurring template.

    Instances are written as one batch. Generation is append-only: calling this
    twice on the same template duplicates instances (use regenerate_instances
    after a rule change).

    Raises:
        TemplateNotFoundError: template missing (or not owned by owner_id)
        MissingAnchorDateError: template has no due date
        InvalidRecurrenceRuleError: template has no rule or an invalid one
        ValueError: max_instances is not a positive integer
    """
    template = _load_template(repo, template_task_id, owner_id)
    instances = build_instances(template, max_instances)
    created = repo.create_many(instances)
    logger.info(f"Recurring task instances created for template {template_task_id}: {created}")
    return created


def regenerate_instances(
    repo: TaskRepository,
    template_task_id: str,
    max_instances: int,
    *,
    owner_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[int, int]:
    """Replace a template's future, non-done instances with freshly generated ones.

    The delete and the new batch are committed together.

    Returns:
        Tuple of (deleted_count, created_count)
    """
    now = now or datetime.utcnow()
    template = _load_template(repo, template_task_id, owner_id)
    _check_max_instances(max_instances)

    # Nothing is committed until the new batch is written.
    deleted = repo.delete_future_instances(template_task_id, now, commit=False)
    kept_dates = {inst.due_date for inst in repo.list_instances(template_task_id)}

    candidates = build_instances(template, max_instances + len(kept_dates))
    instances = [inst for inst in candidates if inst.due_date not in kept_dates][:max_instances]
    if instances:
        created = repo.create_many(instances)
    else:
        repo.commit()
        created = 0
    logger.info(
        f"Regenerated instances for template {template_task_id}: deleted {deleted}, created {created}"
    )
    return deleted, created
