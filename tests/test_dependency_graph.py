"""Tests for the dependency guard over an in-memory store."""

import pytest

from taskintel.dependencies.graph import (
    DependencyGuard,
    InMemoryDependencyStore,
    SelfDependencyError,
    DuplicateDependencyError,
    CyclicDependencyError,
    DependencyNotFoundError,
    DependencyError,
    TaskNotFoundError,
    would_create_cycle,
)


def _guard(edges=None):
    store = InMemoryDependencyStore(edges)
    return DependencyGuard(store), store


class TestWouldCreateCycle:
    """Test reachability-based cycle detection."""

    def test_direct_cycle(self):
        """A->B exists, so B->A closes a cycle."""
        store = InMemoryDependencyStore([("A", "B")])
        assert would_create_cycle("B", "A", store.get_dependency_ids) is True

    def test_transitive_cycle(self):
        """A->B->C exists, so C->A closes a cycle."""
        store = InMemoryDependencyStore([("A", "B"), ("B", "C")])
        assert would_create_cycle("C", "A", store.get_dependency_ids) is True

    def test_no_cycle_for_independent_edge(self):
        store = InMemoryDependencyStore([("A", "B")])
        assert would_create_cycle("C", "A", store.get_dependency_ids) is False

    def test_diamond_is_not_a_cycle(self):
        """A->B, A->C, B->D, C->D: adding A->D is redundant but acyclic."""
        store = InMemoryDependencyStore([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        assert would_create_cycle("A", "D", store.get_dependency_ids) is False

    def test_terminates_on_existing_cycle(self):
        """Visited set stops traversal of a graph that is already cyclic."""
        store = InMemoryDependencyStore([("X", "Y"), ("Y", "X")])
        assert would_create_cycle("A", "X", store.get_dependency_ids) is False

    def test_each_node_visited_once(self):
        """Diamond-heavy graphs do not re-expand shared nodes."""
        edges = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"), ("D", "E")]
        store = InMemoryDependencyStore(edges)
        calls = []

        def lookup(task_id):
            calls.append(task_id)
            return store.get_dependency_ids(task_id)

        assert would_create_cycle("Z", "A", lookup) is False
        assert sorted(calls) == ["A", "B", "C", "D", "E"]


class TestAddDependency:
    """Test DependencyGuard.add_dependency validation order and effects."""

    def test_add_edge(self):
        guard, store = _guard()
        result = guard.add_dependency("A", "B")

        assert result.action == "added"
        assert result.task_id == "A"
        assert result.depends_on_task_id == "B"
        assert store.exists("A", "B")

    def test_self_dependency_rejected(self):
        guard, store = _guard()
        with pytest.raises(SelfDependencyError) as exc:
            guard.add_dependency("A", "A")
        assert str(exc.value) == "Task cannot depend on itself"
        assert store.get_dependency_ids("A") == []

    def test_duplicate_rejected(self):
        guard, store = _guard([("A", "B")])
        with pytest.raises(DuplicateDependencyError) as exc:
            guard.add_dependency("A", "B")
        assert str(exc.value) == "Dependency already exists"
        assert store.get_dependency_ids("A") == ["B"]

    def test_direct_cycle_rejected(self):
        guard, store = _guard([("A", "B")])
        with pytest.raises(CyclicDependencyError) as exc:
            guard.add_dependency("B", "A")
        assert str(exc.value) == "This dependency would create a circular dependency"
        assert not store.exists("B", "A")

    def test_transitive_cycle_rejected(self):
        guard, store = _guard([("A", "B"), ("B", "C")])
        with pytest.raises(CyclicDependencyError):
            guard.add_dependency("C", "A")
        assert store.get_dependency_ids("C") == []

    def test_diamond_allowed(self):
        guard, store = _guard([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        guard.add_dependency("A", "D")
        assert store.exists("A", "D")

    def test_errors_share_base_class(self):
        """All rejections are DependencyError (a ValueError) with both ids attached."""
        guard, _ = _guard([("A", "B")])
        with pytest.raises(DependencyError) as exc:
            guard.add_dependency("B", "A")
        assert isinstance(exc.value, ValueError)
        assert exc.value.task_id == "B"
        assert exc.value.depends_on_task_id == "A"

    def test_self_check_precedes_duplicate_check(self):
        """Self edges report SelfDependencyError even if the store somehow holds one."""
        store = InMemoryDependencyStore()
        store._edges["A"] = ["A"]
        guard = DependencyGuard(store)
        with pytest.raises(SelfDependencyError):
            guard.add_dependency("A", "A")

    def test_missing_task_rejected_before_other_checks(self):
        store = InMemoryDependencyStore(task_ids=["B"])
        guard = DependencyGuard(store)

        with pytest.raises(TaskNotFoundError) as exc:
            guard.add_dependency("A", "B")
        assert str(exc.value) == "Task not found"
        assert exc.value.missing_task_id == "A"

        with pytest.raises(TaskNotFoundError):
            guard.add_dependency("A", "A")
        assert store.get_dependency_ids("A") == []

    def test_missing_dependency_target_rejected(self):
        guard = DependencyGuard(InMemoryDependencyStore(task_ids=["A"]))

        with pytest.raises(TaskNotFoundError) as exc:
            guard.add_dependency("A", "B")
        assert str(exc.value) == "Dependency task not found"
        assert exc.value.missing_task_id == "B"
        assert isinstance(exc.value, DependencyError)


class TestRemoveDependency:
    """Test bidirectional edge removal."""

    def test_remove_exact_direction(self):
        guard, store = _guard([("A", "B")])
        result = guard.remove_dependency("A", "B")

        assert result.action == "removed"
        assert result.reversed is False
        assert not store.exists("A", "B")

    def test_remove_reverse_direction(self):
        """Removing (B, A) deletes the stored A->B edge."""
        guard, store = _guard([("A", "B")])
        result = guard.remove_dependency("B", "A")

        assert result.reversed is True
        assert result.task_id == "A"
        assert result.depends_on_task_id == "B"
        assert not store.exists("A", "B")

    def test_remove_missing_edge(self):
        guard, _ = _guard([("A", "B")])
        with pytest.raises(DependencyNotFoundError) as exc:
            guard.remove_dependency("A", "C")
        assert str(exc.value) == "Dependency not found"

    def test_remove_then_re_add(self):
        guard, store = _guard([("A", "B")])
        guard.remove_dependency("A", "B")
        guard.add_dependency("B", "A")
        assert store.exists("B", "A")


class TestInMemoryDependencyStore:
    def test_blocking_ids(self):
        store = InMemoryDependencyStore([("A", "C"), ("B", "C")])
        assert sorted(store.get_blocking_ids("C")) == ["A", "B"]
        assert store.get_blocking_ids("A") == []
