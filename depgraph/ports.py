"""Collaborator contracts consumed by the dependency engine.

The engine depends on these Protocols rather than on concrete storage, so the
relational store used in production and the in-memory implementations used
in tests are interchangeable. Implementations raise
``StoreUnavailableError`` on connectivity or timeout failures.
"""

from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from depgraph.models import DependencyEdge, TaskInfo


class TaskDirectory(Protocol):
    """Read-only task lookups."""

    async def get_task(self, task_id: str) -> TaskInfo | None: ...

    async def list_user_tasks(self, user_id: str) -> list[TaskInfo]: ...


class DependencyStore(Protocol):
    """Durable storage of dependency edges.

    ``add`` must reject a second edge with the same
    ``(task_id, depends_on_task_id)`` pair with ``ConflictError``.

    ``user_lock`` returns the isolation unit for check-then-write: while it is
    held no other ``user_lock`` for the same user may be entered. A SQL backed
    store would implement it with a per-user advisory lock or a serializable
    transaction.
    """

    async def add(self, edge: DependencyEdge) -> DependencyEdge: ...

    async def remove(self, dependency_id: str) -> bool: ...

    async def get(self, dependency_id: str) -> DependencyEdge | None: ...

    async def find(self, task_id: str, depends_on_task_id: str) -> DependencyEdge | None: ...

    async def list_by_task(self, task_id: str) -> list[DependencyEdge]: ...

    async def list_by_dependency(self, depends_on_task_id: str) -> list[DependencyEdge]: ...

    async def list_for_tasks(self, task_ids: Iterable[str]) -> list[DependencyEdge]: ...

    def user_lock(self, user_id: str) -> AbstractAsyncContextManager[None]: ...


__all__ = ["DependencyStore", "TaskDirectory"]
