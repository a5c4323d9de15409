"""Per-request adjacency view over one user's dependency edges.

This module provides the DependencyGraph class, which loads a user's tasks and
edges from the collaborators once and answers adjacency and reachability
queries from memory. Nothing is cached across requests: the dependency store
stays the source of truth.
"""

import asyncio
from collections.abc import Iterable

import structlog

from depgraph.models import DependencyEdge, TaskInfo
from depgraph.ports import DependencyStore, TaskDirectory

logger = structlog.get_logger(__name__)

DEFAULT_YIELD_INTERVAL = 256


class DependencyGraph:
    """Read-only adjacency view of a user's dependency graph.

    Edges point in the "depends on" direction: an edge ``A -> B`` means task
    A waits for task B. Edges whose endpoints are missing from the task
    directory, or owned by someone else, are dropped at load time and never
    show up in traversal.

    Traversals are iterative (explicit stack, visited set local to the call)
    and periodically yield to the event loop so a cancelled request stops
    promptly.

    Example:
        >>> graph = await DependencyGraph.load(store, directory, "user-1")
        >>> graph.direct_dependencies("task-a")
        {DependencyEdge(task_id='task-a', depends_on_task_id='task-b', ...)}
        >>> await graph.has_path("task-a", "task-c")
        True
    """

    def __init__(
        self,
        user_id: str,
        tasks: Iterable[TaskInfo],
        edges: Iterable[DependencyEdge],
        yield_interval: int = DEFAULT_YIELD_INTERVAL,
    ):
        """Build the adjacency maps.

        Args:
            user_id: Owner of the graph
            tasks: The owner's tasks
            edges: Candidate edges; edges touching unknown tasks are skipped
            yield_interval: Number of nodes visited between event loop yields
        """
        if yield_interval < 1:
            msg = "yield_interval must be at least 1"
            raise ValueError(msg)

        self.user_id = user_id
        self.yield_interval = yield_interval
        self._tasks: dict[str, TaskInfo] = {
            task.id: task for task in tasks if task.user_id == user_id
        }
        self._forward: dict[str, set[DependencyEdge]] = {}
        self._reverse: dict[str, set[DependencyEdge]] = {}
        self._edges: dict[str, DependencyEdge] = {}

        dangling = 0
        for edge in edges:
            if edge.task_id not in self._tasks or edge.depends_on_task_id not in self._tasks:
                dangling += 1
                continue
            self._edges[edge.id] = edge
            self._forward.setdefault(edge.task_id, set()).add(edge)
            self._reverse.setdefault(edge.depends_on_task_id, set()).add(edge)

        if dangling:
            logger.warning(
                "dangling_dependencies_skipped",
                user_id=user_id,
                count=dangling,
            )

        logger.debug(
            "dependency_graph_built",
            user_id=user_id,
            task_count=len(self._tasks),
            edge_count=len(self._edges),
        )

    @classmethod
    async def load(
        cls,
        store: DependencyStore,
        directory: TaskDirectory,
        user_id: str,
        yield_interval: int = DEFAULT_YIELD_INTERVAL,
    ) -> "DependencyGraph":
        """Load a user's graph from the collaborators.

        Issues one task listing and one edge listing. Collaborator failures
        propagate unchanged.

        Args:
            store: Dependency store
            directory: Task directory
            user_id: Owner whose graph to load
            yield_interval: Nodes visited between event loop yields

        Returns:
            A fresh DependencyGraph
        """
        tasks = await directory.list_user_tasks(user_id)
        edges = await store.list_for_tasks([task.id for task in tasks])
        return cls(user_id, tasks, edges, yield_interval=yield_interval)

    def direct_dependencies(self, task_id: str) -> set[DependencyEdge]:
        """Edges where ``task_id`` is the dependent task."""
        return set(self._forward.get(task_id, ()))

    def direct_dependents(self, task_id: str) -> set[DependencyEdge]:
        """Edges where ``task_id`` is the prerequisite."""
        return set(self._reverse.get(task_id, ()))

    def prerequisites_of(self, task_id: str) -> list[str]:
        """IDs of the direct prerequisites of ``task_id``, sorted for stable traversal."""
        return sorted(edge.depends_on_task_id for edge in self._forward.get(task_id, ()))

    async def has_path(self, from_id: str, to_id: str) -> bool:
        """Check whether ``from_id`` transitively depends on ``to_id``.

        Args:
            from_id: Start of the search
            to_id: Task to reach

        Returns:
            True if a chain of dependency edges leads from ``from_id`` to ``to_id``
        """
        return await self.find_path(from_id, to_id) is not None

    async def find_path(self, from_id: str, to_id: str) -> list[str] | None:
        """Find a dependency path from ``from_id`` to ``to_id``.

        Depth-first search with an explicit stack. Each task is expanded at
        most once, so the cost is O(V + E) even with diamonds or pre-existing
        cycles in the data.

        Args:
            from_id: Start of the search
            to_id: Task to reach

        Returns:
            Task IDs from ``from_id`` to ``to_id`` inclusive, or None if unreachable
        """
        if from_id not in self._tasks or to_id not in self._tasks:
            return None
        if from_id == to_id:
            return [from_id]

        parents: dict[str, str | None] = {from_id: None}
        stack = [from_id]
        expanded = 0

        while stack:
            current = stack.pop()
            expanded += 1
            if expanded % self.yield_interval == 0:
                await asyncio.sleep(0)

            for dep_id in self.prerequisites_of(current):
                if dep_id in parents:
                    continue
                parents[dep_id] = current
                if dep_id == to_id:
                    return self._unwind(parents, dep_id)
                stack.append(dep_id)

        logger.debug(
            "dependency_path_not_found",
            from_task=from_id,
            to_task=to_id,
            visited=len(parents),
        )
        return None

    @staticmethod
    def _unwind(parents: dict[str, str | None], node: str) -> list[str]:
        path = [node]
        parent = parents[node]
        while parent is not None:
            path.append(parent)
            parent = parents[parent]
        path.reverse()
        return path

    def task(self, task_id: str) -> TaskInfo | None:
        """Return the task if it belongs to this graph's owner."""
        return self._tasks.get(task_id)

    def title_of(self, task_id: str) -> str:
        """Display title of a task, with a placeholder for unknown IDs."""
        task = self._tasks.get(task_id)
        return task.title if task is not None else "Unknown task"

    @property
    def task_ids(self) -> list[str]:
        return list(self._tasks)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def get_stats(self) -> dict[str, int]:
        """Get statistics about the graph.

        Returns:
            Dictionary with ``total_tasks``, ``total_dependencies`` and
            ``tasks_with_dependencies``
        """
        stats = {
            "total_tasks": len(self._tasks),
            "total_dependencies": len(self._edges),
            "tasks_with_dependencies": sum(1 for edges in self._forward.values() if edges),
        }
        logger.debug("graph_stats_retrieved", user_id=self.user_id, **stats)
        return stats
