"""Dependency graph guard for taskintel.

Maintains the "task depends on task" relation and rejects any edge that would
make it cyclic. Cycle safety is enforced before insertion, never repaired after.
Traversal goes through a caller-supplied lookup so the algorithm runs the same
over a database or an in-memory graph.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set

logger = logging.getLogger(__name__)

# Maps a task id to the ids it currently depends on.
DependencyLookup = Callable[[str], Iterable[str]]


class DependencyError(ValueError):
    """Base class for rejected dependency mutations (surfaced as a 400/404)."""

    def __init__(self, message: str, *, task_id: str, depends_on_task_id: str):
        super().__init__(message)
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id


class SelfDependencyError(DependencyError):
    def __init__(self, task_id: str):
        super().__init__("Task cannot depend on itself", task_id=task_id, depends_on_task_id=task_id)


class DuplicateDependencyError(DependencyError):
    def __init__(self, task_id: str, depends_on_task_id: str):
        super().__init__("Dependency already exists", task_id=task_id, depends_on_task_id=depends_on_task_id)


class CyclicDependencyError(DependencyError):
    def __init__(self, task_id: str, depends_on_task_id: str):
        super().__init__(
            "This dependency would create a circular dependency",
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
        )


class DependencyNotFoundError(DependencyError):
    def __init__(self, task_id: str, depends_on_task_id: str):
        super().__init__("Dependency not found", task_id=task_id, depends_on_task_id=depends_on_task_id)


class TaskNotFoundError(DependencyError):
    """One side of the edge is not an active task."""

    def __init__(self, task_id: str, depends_on_task_id: str, missing_task_id: str):
        message = "Task not found" if missing_task_id == task_id else "Dependency task not found"
        super().__init__(message, task_id=task_id, depends_on_task_id=depends_on_task_id)
        self.missing_task_id = missing_task_id


class DependencyStore(Protocol):
    """Edge storage the guard mutates (implemented by the repository layer)."""

    def task_exists(self, task_id: str) -> bool: ...

    def get_dependency_ids(self, task_id: str) -> List[str]: ...

    def exists(self, task_id: str, depends_on_task_id: str) -> bool: ...

    def create(self, task_id: str, depends_on_task_id: str) -> None: ...

    def delete(self, task_id: str, depends_on_task_id: str) -> bool: ...


@dataclass(frozen=True)
class DependencyMutationResult:
    task_id: str
    depends_on_task_id: str
    action: str  # "added" | "removed"
    reversed: bool = False  # True when removal matched the reverse edge


def would_create_cycle(task_id: str, depends_on_task_id: str, lookup: DependencyLookup) -> bool:
    """Check whether adding `task_id -> depends_on_task_id` would close a cycle.

    Breadth-first search from `depends_on_task_id` along its own dependency
    edges: if `task_id` is reachable, the new edge would make a cycle. The
    visited set guarantees termination on diamond-shaped or already-cyclic
    graphs. O(V+E) over the subgraph reachable from `depends_on_task_id`.

    Args:
        task_id: Task that would gain the dependency
        depends_on_task_id: Task it would depend on
        lookup: Returns the ids a given task depends on

    Returns:
        True if the edge would create a cycle
    """
    visited: Set[str] = set()
    queue = deque([depends_on_task_id])

    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)

        if current == task_id:
            return True

        for next_id in lookup(current):
            if next_id not in visited:
                queue.append(next_id)

    return False


class DependencyGuard:
    """Validates and applies dependency edge mutations."""

    def __init__(self, store: DependencyStore):
        self.store = store

    def would_create_cycle(self, task_id: str, depends_on_task_id: str) -> bool:
        return would_create_cycle(task_id, depends_on_task_id, self.store.get_dependency_ids)

    def add_dependency(self, task_id: str, depends_on_task_id: str) -> DependencyMutationResult:
        """Persist `task_id depends on depends_on_task_id`.

        Raises:
            TaskNotFoundError: either task is missing or trashed
            SelfDependencyError: task_id == depends_on_task_id
            DuplicateDependencyError: the edge already exists
            CyclicDependencyError: the edge would close a cycle
        """
        for candidate in (task_id, depends_on_task_id):
            if not self.store.task_exists(candidate):
                raise TaskNotFoundError(task_id, depends_on_task_id, missing_task_id=candidate)

        if task_id == depends_on_task_id:
            raise SelfDependencyError(task_id)

        if self.store.exists(task_id, depends_on_task_id):
            raise DuplicateDependencyError(task_id, depends_on_task_id)

        if self.would_create_cycle(task_id, depends_on_task_id):
            raise CyclicDependencyError(task_id, depends_on_task_id)

        self.store.create(task_id, depends_on_task_id)
        logger.info(f"Task dependency added: {task_id} -> {depends_on_task_id}")
        return DependencyMutationResult(task_id=task_id, depends_on_task_id=depends_on_task_id, action="added")

    def remove_dependency(self, task_id: str, depends_on_task_id: str) -> DependencyMutationResult:
        """Remove the edge between two tasks in whichever direction it exists.

        The exact direction is tried first, then the reverse (the caller may be
        removing a "blocked by" relation from the other task's side).

        Raises:
            DependencyNotFoundError: no edge in either direction
        """
        if self.store.delete(task_id, depends_on_task_id):
            logger.info(f"Task dependency removed: {task_id} -> {depends_on_task_id}")
            return DependencyMutationResult(task_id=task_id, depends_on_task_id=depends_on_task_id, action="removed")

        if self.store.delete(depends_on_task_id, task_id):
            logger.info(f"Task dependency removed (reverse): {depends_on_task_id} -> {task_id}")
            return DependencyMutationResult(
                task_id=depends_on_task_id,
                depends_on_task_id=task_id,
                action="removed",
                reversed=True,
            )

        raise DependencyNotFoundError(task_id, depends_on_task_id)


class InMemoryDependencyStore:
    """Dict-backed DependencyStore for callers without a database.

    Without `task_ids` every task id is treated as an existing task.
    """

    def __init__(self, edges: Optional[Iterable[tuple]] = None, task_ids: Optional[Iterable[str]] = None):
        self._edges: Dict[str, List[str]] = {}
        self._task_ids: Optional[Set[str]] = set(task_ids) if task_ids is not None else None
        for task_id, depends_on_task_id in edges or []:
            self.create(task_id, depends_on_task_id)

    def get_dependency_ids(self, task_id: str) -> List[str]:
        return list(self._edges.get(task_id, []))

    def get_blocking_ids(self, task_id: str) -> List[str]:
        return [src for src, targets in self._edges.items() if task_id in targets]

    def task_exists(self, task_id: str) -> bool:
        return self._task_ids is None or task_id in self._task_ids

    def exists(self, task_id: str, depends_on_task_id: str) -> bool:
        return depends_on_task_id in self._edges.get(task_id, [])

    def create(self, task_id: str, depends_on_task_id: str) -> None:
        targets = self._edges.setdefault(task_id, [])
        if depends_on_task_id not in targets:
            targets.append(depends_on_task_id)

    def delete(self, task_id: str, depends_on_task_id: str) -> bool:
        targets = self._edges.get(task_id, [])
        if depends_on_task_id not in targets:
            return False
        targets.remove(depends_on_task_id)
        return True
