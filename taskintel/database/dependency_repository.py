"""Repository for task dependency edges.

Implements the DependencyStore used by DependencyGuard.
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskintel.database.models import TaskDB, TaskDependencyDB
from taskintel.dependencies.graph import DuplicateDependencyError, TaskNotFoundError

logger = logging.getLogger(__name__)


class TaskDependencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_dependency_ids(self, task_id: str) -> List[str]:
        """IDs of tasks `task_id` depends on (outgoing edges)."""
        rows = (
            self.db.query(TaskDependencyDB.depends_on_task_id)
            .filter(TaskDependencyDB.task_id == task_id)
            .order_by(TaskDependencyDB.created_at)
            .all()
        )
        return [row[0] for row in rows]

    def get_blocking_ids(self, task_id: str) -> List[str]:
        """IDs of tasks that depend on `task_id` (incoming edges)."""
        rows = (
            self.db.query(TaskDependencyDB.task_id)
            .filter(TaskDependencyDB.depends_on_task_id == task_id)
            .order_by(TaskDependencyDB.created_at)
            .all()
        )
        return [row[0] for row in rows]

    def task_exists(self, task_id: str) -> bool:
        """True for a task that is present and not in the trash."""
        return (
            self.db.query(TaskDB.id)
            .filter(TaskDB.id == task_id, TaskDB.trashed_at.is_(None))
            .first()
            is not None
        )

    def exists(self, task_id: str, depends_on_task_id: str) -> bool:
        return (
            self.db.query(TaskDependencyDB.id)
            .filter(
                TaskDependencyDB.task_id == task_id,
                TaskDependencyDB.depends_on_task_id == depends_on_task_id,
            )
            .first()
            is not None
        )

    def create(self, task_id: str, depends_on_task_id: str) -> None:
        row = TaskDependencyDB(task_id=task_id, depends_on_task_id=depends_on_task_id)
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to create dependency {task_id} -> {depends_on_task_id}: {type(e).__name__}: {str(e)}")
            # A concurrent insert won the race on the unique edge constraint.
            if self.exists(task_id, depends_on_task_id):
                raise DuplicateDependencyError(task_id, depends_on_task_id) from e
            for candidate in (task_id, depends_on_task_id):
                if not self.task_exists(candidate):
                    raise TaskNotFoundError(task_id, depends_on_task_id, missing_task_id=candidate) from e
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create dependency {task_id} -> {depends_on_task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, task_id: str, depends_on_task_id: str) -> bool:
        try:
            affected = (
                self.db.query(TaskDependencyDB)
                .filter(
                    TaskDependencyDB.task_id == task_id,
                    TaskDependencyDB.depends_on_task_id == depends_on_task_id,
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return affected > 0
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete dependency {task_id} -> {depends_on_task_id}: {type(e).__name__}: {str(e)}")
            raise
