"""In-memory implementations of the task directory and dependency store.

These back the test suite and the command-line audit tool. They follow the
collaborator contracts in ``depgraph.ports``; a relational deployment supplies
its own implementations.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import structlog

from depgraph.errors import ConflictError
from depgraph.models import DependencyEdge, TaskInfo

logger = structlog.get_logger(__name__)


class InMemoryTaskDirectory:
    """Task lookups backed by a dictionary."""

    def __init__(self, tasks: Iterable[TaskInfo] = ()):
        self._tasks: dict[str, TaskInfo] = {task.id: task for task in tasks}

    def add_task(self, task: TaskInfo) -> None:
        """Insert or replace a task."""
        self._tasks[task.id] = task

    def remove_task(self, task_id: str) -> None:
        """Delete a task. Edges pointing at it are left in place."""
        self._tasks.pop(task_id, None)

    async def get_task(self, task_id: str) -> TaskInfo | None:
        return self._tasks.get(task_id)

    async def list_user_tasks(self, user_id: str) -> list[TaskInfo]:
        return [task for task in self._tasks.values() if task.user_id == user_id]


class InMemoryDependencyStore:
    """Dependency edges backed by dictionaries.

    Uniqueness of ``(task_id, depends_on_task_id)`` is enforced on ``add``.
    ``user_lock`` hands out one ``asyncio.Lock`` per user, which serializes
    check-then-write sequences within a single event loop.

    Example:
        >>> store = InMemoryDependencyStore()
        >>> async with store.user_lock("user-1"):
        ...     if await store.find("task-a", "task-b") is None:
        ...         await store.add(DependencyEdge("task-a", "task-b"))
    """

    def __init__(self):
        self._edges: dict[str, DependencyEdge] = {}
        self._pairs: dict[tuple[str, str], str] = {}
        self._user_locks: dict[str, asyncio.Lock] = {}

    async def add(self, edge: DependencyEdge) -> DependencyEdge:
        """Store a new edge.

        Raises:
            ConflictError: If an edge with the same pair or the same ID
                already exists
        """
        if edge.pair in self._pairs:
            msg = "Dependency already exists"
            raise ConflictError(msg, reason="duplicate")
        if edge.id in self._edges:
            msg = f"Dependency ID already in use: {edge.id}"
            raise ConflictError(msg, reason="duplicate_id")
        self._edges[edge.id] = edge
        self._pairs[edge.pair] = edge.id
        logger.debug("edge_stored", dependency_id=edge.id, edge_count=len(self._edges))
        return edge

    async def remove(self, dependency_id: str) -> bool:
        edge = self._edges.pop(dependency_id, None)
        if edge is None:
            return False
        del self._pairs[edge.pair]
        return True

    async def get(self, dependency_id: str) -> DependencyEdge | None:
        return self._edges.get(dependency_id)

    async def find(self, task_id: str, depends_on_task_id: str) -> DependencyEdge | None:
        dependency_id = self._pairs.get((task_id, depends_on_task_id))
        return self._edges.get(dependency_id) if dependency_id else None

    async def list_by_task(self, task_id: str) -> list[DependencyEdge]:
        return [edge for edge in self._edges.values() if edge.task_id == task_id]

    async def list_by_dependency(self, depends_on_task_id: str) -> list[DependencyEdge]:
        return [
            edge for edge in self._edges.values() if edge.depends_on_task_id == depends_on_task_id
        ]

    async def list_for_tasks(self, task_ids: Iterable[str]) -> list[DependencyEdge]:
        wanted = set(task_ids)
        return [
            edge
            for edge in self._edges.values()
            if edge.task_id in wanted or edge.depends_on_task_id in wanted
        ]

    @asynccontextmanager
    async def user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the per-user write lock for the duration of the block."""
        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._edges)
