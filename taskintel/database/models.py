"""SQLAlchemy database models for taskintel."""

from datetime import datetime
import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    JSON,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from typing import Union, TypeVar, Type
from taskintel.database.database import Base
from taskintel.models.task import TaskStatus, TaskPriority

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.upper())
    except (ValueError, AttributeError):
        return default


class ProjectDB(Base):
    """Database model for a task project."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    dashboard_id = Column(String, nullable=True, index=True)
    business_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        from taskintel.models.task import Project
        return Project(id=self.id, name=self.name)


class TaskDependencyDB(Base):
    """Directed edge: `task_id` depends on `depends_on_task_id`."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        # Backstop for concurrent check-then-insert races.
        UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependency_edge"),
        CheckConstraint("task_id <> depends_on_task_id", name="ck_task_dependency_not_self"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    depends_on_task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Ownership and scope
    owner_id = Column(String, nullable=False, index=True)
    dashboard_id = Column(String, nullable=True, index=True)
    business_id = Column(String, nullable=True, index=True)
    assigned_to_id = Column(String, nullable=True, index=True)

    # Basic fields
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    trashed_at = Column(DateTime, nullable=True, index=True)

    # Scheduling fields
    due_date = Column(DateTime, nullable=True, index=True)
    start_date = Column(DateTime, nullable=True)
    time_estimate = Column(Integer, nullable=True)
    actual_time_spent = Column(Integer, nullable=True)

    # Classification
    category = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    project_id = Column(String, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)

    # Recurrence
    recurrence_rule = Column(String, nullable=True)
    recurrence_end_at = Column(DateTime, nullable=True)
    parent_recurring_task_id = Column(
        String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True
    )

    project = relationship("ProjectDB", lazy="joined")
    dependency_edges = relationship(
        "TaskDependencyDB",
        foreign_keys=[TaskDependencyDB.task_id],
        lazy="selectin",
        viewonly=True,
    )
    blocking_edges = relationship(
        "TaskDependencyDB",
        foreign_keys=[TaskDependencyDB.depends_on_task_id],
        lazy="selectin",
        viewonly=True,
    )

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskintel.models.task import Task

        return Task(
            id=self.id,
            owner_id=self.owner_id,
            title=self.title,
            description=self.description,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.TODO),
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            created_at=self.created_at,
            updated_at=self.updated_at,
            trashed_at=self.trashed_at,
            dashboard_id=self.dashboard_id,
            business_id=self.business_id,
            assigned_to_id=self.assigned_to_id,
            due_date=self.due_date,
            start_date=self.start_date,
            time_estimate=self.time_estimate,
            actual_time_spent=self.actual_time_spent,
            category=self.category,
            tags=self.tags or [],
            project_id=self.project_id,
            project=self.project.to_pydantic() if self.project else None,
            depends_on=[edge.depends_on_task_id for edge in self.dependency_edges],
            blocks=[edge.task_id for edge in self.blocking_edges],
            recurrence_rule=self.recurrence_rule,
            recurrence_end_at=self.recurrence_end_at,
            parent_recurring_task_id=self.parent_recurring_task_id,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model.

        Dependency edges are not written here; they live in task_dependencies.
        """
        return cls(
            id=task.id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            status=enum_to_value(task.status),
            priority=enum_to_value(task.priority),
            created_at=task.created_at,
            updated_at=task.updated_at,
            trashed_at=task.trashed_at,
            dashboard_id=task.dashboard_id,
            business_id=task.business_id,
            assigned_to_id=task.assigned_to_id,
            due_date=task.due_date,
            start_date=task.start_date,
            time_estimate=task.time_estimate,
            actual_time_spent=task.actual_time_spent,
            category=task.category,
            tags=list(task.tags),
            project_id=task.project_id,
            recurrence_rule=task.recurrence_rule,
            recurrence_end_at=task.recurrence_end_at,
            parent_recurring_task_id=task.parent_recurring_task_id,
        )
