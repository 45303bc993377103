"""Repository layer for task database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from taskintel.models.task import Task, TaskStatus, TaskPriority, TaskScope
from taskintel.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def create_many(self, tasks: List[Task]) -> int:
        """Create a batch of tasks in a single transaction (all or nothing)."""
        if not tasks:
            return 0
        try:
            self.db.add_all([TaskDB.from_pydantic(task) for task in tasks])
            self.db.commit()
            logger.debug(f"Created {len(tasks)} tasks in batch")
            return len(tasks)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task batch of {len(tasks)}: {type(e).__name__}: {str(e)}")
            raise

    def commit(self) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to commit: {type(e).__name__}: {str(e)}")
            raise

    def get(self, owner_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific owner."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
            TaskDB.trashed_at.is_(None),
        ).first()
        return task_db.to_pydantic() if task_db else None

    def get_any(self, task_id: str) -> Optional[Task]:
        """Get an active task by ID regardless of owner (caller has checked access)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.trashed_at.is_(None),
        ).first()
        return task_db.to_pydantic() if task_db else None

    def get_many(self, task_ids: List[str]) -> List[Task]:
        """Get active tasks by ID (missing or trashed ids are skipped)."""
        if not task_ids:
            return []
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.id.in_(list(task_ids)),
            TaskDB.trashed_at.is_(None),
        ).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list_for_scope(
        self,
        owner_id: str,
        scope: Optional[TaskScope] = None,
        task_ids: Optional[List[str]] = None,
        include_done: bool = False,
    ) -> List[Task]:
        """List an owner's active tasks narrowed by scope filters.

        Done tasks are excluded unless `include_done` is set. A scope without a
        business_id selects personal tasks only.
        """
        scope = scope or TaskScope()
        query = self.db.query(TaskDB).filter(
            TaskDB.owner_id == owner_id,
            TaskDB.trashed_at.is_(None),
        )
        if not include_done:
            query = query.filter(TaskDB.status != TaskStatus.DONE.value)
        if scope.dashboard_id is not None:
            query = query.filter(TaskDB.dashboard_id == scope.dashboard_id)
        if scope.business_id is not None:
            query = query.filter(TaskDB.business_id == scope.business_id)
        else:
            query = query.filter(TaskDB.business_id.is_(None))
        if scope.statuses:
            query = query.filter(TaskDB.status.in_([enum_to_value(s) for s in scope.statuses]))
        if scope.priorities:
            query = query.filter(TaskDB.priority.in_([enum_to_value(p) for p in scope.priorities]))
        if scope.due_after is not None:
            query = query.filter(TaskDB.due_date >= scope.due_after)
        if scope.due_before is not None:
            query = query.filter(TaskDB.due_date <= scope.due_before)
        if scope.assigned_to_id is not None:
            query = query.filter(TaskDB.assigned_to_id == scope.assigned_to_id)
        if task_ids:
            query = query.filter(TaskDB.id.in_(list(task_ids)))

        tasks_db = query.order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update_priority(self, owner_id: str, task_id: str, priority: TaskPriority) -> Task:
        """Apply a priority (e.g. an accepted suggestion) to a task."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
            TaskDB.trashed_at.is_(None),
        ).first()
        if not task_db:
            raise ValueError(f"Task {task_id} not found")

        task_db.priority = enum_to_value(priority)
        task_db.updated_at = datetime.utcnow()
        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated priority of task {task_id} to {task_db.priority}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update priority of task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def list_instances(self, template_task_id: str) -> List[Task]:
        """Active instances generated from a recurring template, earliest first."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.parent_recurring_task_id == template_task_id,
            TaskDB.trashed_at.is_(None),
        ).order_by(TaskDB.due_date).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def delete_future_instances(self, template_task_id: str, now: datetime, commit: bool = True) -> int:
        """Permanently delete a template's non-done instances due at or after `now`."""
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(
                    TaskDB.parent_recurring_task_id == template_task_id,
                    TaskDB.status != TaskStatus.DONE.value,
                    TaskDB.due_date >= now,
                )
                .delete(synchronize_session=False)
            )
            if commit:
                self.db.commit()
            logger.debug(f"Deleted {affected} future instances of template {template_task_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Failed to delete future instances of template {template_task_id}: {type(e).__name__}: {str(e)}"
            )
            raise

    def soft_delete(self, owner_id: str, task_id: str) -> bool:
        """Soft-delete a task by ID for a specific owner."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
            TaskDB.trashed_at.is_(None),
        ).first()
        if not task_db:
            return False

        try:
            task_db.trashed_at = datetime.utcnow()
            self.db.commit()
            logger.debug(f"Soft-deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
