"""Cycle detection for proposed and existing dependency edges.

This module answers two questions over a DependencyGraph:

- would adding ``task -> prerequisite`` close a cycle? (checked before every write)
- is there already a cycle reachable from a task? (diagnostic for data that
  was edited outside the engine)
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum

import structlog

from depgraph.graph.dependency_graph import DependencyGraph

logger = structlog.get_logger(__name__)


class _Colour(Enum):
    GREY = 1
    BLACK = 2


@dataclass
class CycleCheckResult:
    """Outcome of checking a proposed edge.

    Attributes:
        would_create_cycle: Whether the edge would close a cycle
        path: Task IDs from the new edge's source back to itself when a
            cycle would form, empty otherwise
    """

    would_create_cycle: bool = False
    path: list[str] = field(default_factory=list)

    def describe(self, graph: DependencyGraph | None = None) -> str:
        """Render the cycle path as ``A -> B -> A``, using titles when a graph is given."""
        if not self.path:
            return ""
        names = [graph.title_of(task_id) for task_id in self.path] if graph else self.path
        return " -> ".join(names)


class CycleDetector:
    """Stateless cycle checks over a DependencyGraph.

    All traversal state lives in local variables of each call, so one
    detector can be shared by concurrent requests.
    """

    async def check_new_edge(
        self,
        graph: DependencyGraph,
        task_id: str,
        depends_on_task_id: str,
    ) -> CycleCheckResult:
        """Decide whether ``task_id -> depends_on_task_id`` would create a cycle.

        A cycle forms iff the prerequisite already depends, directly or
        transitively, on ``task_id``.

        Args:
            graph: Current graph of the owner
            task_id: Dependent task of the proposed edge
            depends_on_task_id: Prerequisite of the proposed edge

        Returns:
            CycleCheckResult with the offending path, if any
        """
        if task_id == depends_on_task_id:
            return CycleCheckResult(would_create_cycle=True, path=[task_id, task_id])

        if not graph.direct_dependencies(depends_on_task_id):
            return CycleCheckResult()

        back_path = await graph.find_path(depends_on_task_id, task_id)
        if back_path is None:
            return CycleCheckResult()

        result = CycleCheckResult(would_create_cycle=True, path=[task_id, *back_path])
        logger.info(
            "proposed_edge_would_create_cycle",
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
            cycle_length=len(result.path) - 1,
        )
        return result

    async def find_cycle_from(self, graph: DependencyGraph, start_id: str) -> list[str] | None:
        """Find a cycle reachable from ``start_id`` in existing data.

        Iterative three-colour DFS: a prerequisite that is still on the
        current path (grey) closes a cycle. Finished nodes (black) are never
        expanded again.

        Args:
            graph: Graph to inspect
            start_id: Task to start from

        Returns:
            The cycle as a closed path ``[a, b, ..., a]``, or None
        """
        if graph.task(start_id) is None:
            return None

        colour: dict[str, _Colour] = {start_id: _Colour.GREY}
        path = [start_id]
        # Each frame holds a node and an iterator over its prerequisites.
        stack = [(start_id, iter(graph.prerequisites_of(start_id)))]
        expanded = 1

        while stack:
            node, prerequisites = stack[-1]
            next_id = next(prerequisites, None)

            if next_id is None:
                colour[node] = _Colour.BLACK
                stack.pop()
                path.pop()
                continue

            state = colour.get(next_id)
            if state is _Colour.GREY:
                cycle = [*path[path.index(next_id):], next_id]
                logger.warning(
                    "existing_cycle_detected",
                    start_task=start_id,
                    cycle=cycle,
                )
                return cycle
            if state is _Colour.BLACK:
                continue

            colour[next_id] = _Colour.GREY
            path.append(next_id)
            stack.append((next_id, iter(graph.prerequisites_of(next_id))))
            expanded += 1
            if expanded % graph.yield_interval == 0:
                await asyncio.sleep(0)

        return None
