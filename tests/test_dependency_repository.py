"""Tests for TaskDependencyRepository with DependencyGuard on SQLite."""

import pytest

from taskintel.dependencies.graph import (
    DependencyGuard,
    CyclicDependencyError,
    DuplicateDependencyError,
    DependencyNotFoundError,
    TaskNotFoundError,
)


@pytest.fixture
def tasks(task_repository, make_task):
    """Persist three tasks and return their ids as A, B, C."""
    created = {}
    for name in ("A", "B", "C"):
        created[name] = task_repository.create(make_task(title=f"Task {name}")).id
    return created


@pytest.fixture
def guard(dependency_repository):
    return DependencyGuard(dependency_repository)


class TestTaskDependencyRepository:
    """Test edge persistence and guard behavior against the database."""

    def test_create_and_read_edges(self, dependency_repository, tasks):
        dependency_repository.create(tasks["A"], tasks["B"])

        assert dependency_repository.exists(tasks["A"], tasks["B"])
        assert not dependency_repository.exists(tasks["B"], tasks["A"])
        assert dependency_repository.get_dependency_ids(tasks["A"]) == [tasks["B"]]
        assert dependency_repository.get_blocking_ids(tasks["B"]) == [tasks["A"]]

    def test_unique_constraint_surfaces_as_duplicate(self, dependency_repository, tasks):
        """A racing duplicate insert is reported as DuplicateDependencyError."""
        dependency_repository.create(tasks["A"], tasks["B"])
        with pytest.raises(DuplicateDependencyError):
            dependency_repository.create(tasks["A"], tasks["B"])

    def test_delete_returns_whether_removed(self, dependency_repository, tasks):
        dependency_repository.create(tasks["A"], tasks["B"])
        assert dependency_repository.delete(tasks["A"], tasks["B"]) is True
        assert dependency_repository.delete(tasks["A"], tasks["B"]) is False

    def test_guard_rejects_transitive_cycle(self, guard, dependency_repository, tasks):
        guard.add_dependency(tasks["A"], tasks["B"])
        guard.add_dependency(tasks["B"], tasks["C"])

        with pytest.raises(CyclicDependencyError):
            guard.add_dependency(tasks["C"], tasks["A"])
        assert dependency_repository.get_dependency_ids(tasks["C"]) == []

    def test_guard_rejects_duplicate(self, guard, tasks):
        guard.add_dependency(tasks["A"], tasks["B"])
        with pytest.raises(DuplicateDependencyError):
            guard.add_dependency(tasks["A"], tasks["B"])

    def test_guard_removes_reverse_edge(self, guard, dependency_repository, tasks):
        guard.add_dependency(tasks["A"], tasks["B"])
        result = guard.remove_dependency(tasks["B"], tasks["A"])

        assert result.reversed is True
        assert not dependency_repository.exists(tasks["A"], tasks["B"])

    def test_guard_remove_missing(self, guard, tasks):
        with pytest.raises(DependencyNotFoundError):
            guard.remove_dependency(tasks["A"], tasks["B"])

    def test_edges_visible_on_task_snapshot(self, guard, task_repository, test_user_id, tasks):
        """Task.depends_on and Task.blocks reflect persisted edges."""
        guard.add_dependency(tasks["A"], tasks["B"])
        guard.add_dependency(tasks["C"], tasks["B"])

        a = task_repository.get(test_user_id, tasks["A"])
        b = task_repository.get(test_user_id, tasks["B"])
        assert a.depends_on == [tasks["B"]]
        assert sorted(b.blocks) == sorted([tasks["A"], tasks["C"]])

    def test_edges_cascade_with_task_delete(self, dependency_repository, db_session, tasks):
        """Hard-deleting a task removes its edges."""
        from taskintel.database.models import TaskDB

        dependency_repository.create(tasks["A"], tasks["B"])
        db_session.query(TaskDB).filter(TaskDB.id == tasks["B"]).delete(synchronize_session=False)
        db_session.commit()

        assert dependency_repository.get_dependency_ids(tasks["A"]) == []

    def test_guard_rejects_unknown_task(self, guard, dependency_repository, tasks):
        with pytest.raises(TaskNotFoundError) as exc:
            guard.add_dependency(tasks["A"], "no-such-task")
        assert str(exc.value) == "Dependency task not found"
        assert dependency_repository.get_dependency_ids(tasks["A"]) == []

    def test_guard_rejects_trashed_task(self, guard, task_repository, test_user_id, tasks):
        assert task_repository.soft_delete(test_user_id, tasks["A"])

        with pytest.raises(TaskNotFoundError) as exc:
            guard.add_dependency(tasks["A"], tasks["B"])
        assert str(exc.value) == "Task not found"
        assert exc.value.missing_task_id == tasks["A"]

    def test_foreign_key_failure_names_missing_task(self, dependency_repository, tasks):
        """A direct insert against an unknown task surfaces as TaskNotFoundError."""
        with pytest.raises(TaskNotFoundError) as exc:
            dependency_repository.create("no-such-task", tasks["B"])
        assert exc.value.missing_task_id == "no-such-task"
        assert dependency_repository.get_blocking_ids(tasks["B"]) == []
