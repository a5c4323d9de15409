"""Dependency service: the entry point for every dependency operation.

The service enforces ownership, self-reference, duplicate and acyclicity rules
before any write reaches the dependency store, and composes the graph view
with the conflict analyzer for read-side reports.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from depgraph.config import EngineConfig
from depgraph.errors import (
    CircularDependencyError,
    ConflictError,
    InvalidOperationError,
    NotFoundError,
)
from depgraph.graph.conflict_analyzer import ConflictAnalyzer, ScheduleConflict
from depgraph.graph.cycle_detector import CycleCheckResult, CycleDetector
from depgraph.graph.dependency_graph import DependencyGraph
from depgraph.models import DependencyEdge, TaskInfo
from depgraph.ports import DependencyStore, TaskDirectory

logger = structlog.get_logger(__name__)

TASK_NOT_FOUND = "Task not found or not accessible"
DEPENDENCY_NOT_FOUND = "Dependency not found or not accessible"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class DependencyDetail:
    """A direct edge enriched with the titles of both endpoints."""

    edge: DependencyEdge
    task_title: str
    depends_on_title: str


@dataclass
class ConflictReport:
    """Result of a conflict check for one task.

    Attributes:
        task_id: The checked task
        conflicts: Schedule conflicts with its direct prerequisites
        cycle: A pre-existing cycle reachable from the task, if any
        cycle_description: The cycle rendered with task titles
        checked_at: When the check ran
    """

    task_id: str
    checked_at: datetime
    conflicts: list[ScheduleConflict] = field(default_factory=list)
    cycle: list[str] | None = None
    cycle_description: str = ""

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts) or self.cycle is not None

    @property
    def messages(self) -> list[str]:
        """Human-readable descriptions, cycle first."""
        messages = []
        if self.cycle is not None:
            messages.append(f"Circular dependency detected: {self.cycle_description}")
        messages.extend(conflict.message for conflict in self.conflicts)
        return messages


@dataclass(frozen=True)
class DependencySummary:
    """Dependency overview of one task."""

    task_id: str
    task_title: str
    dependencies_count: int
    dependents_count: int
    incomplete_prerequisites: int
    has_circular_dependency: bool
    has_time_conflict: bool


class DependencyService:
    """Validated operations over the per-user dependency graph.

    ``add_dependency`` runs its duplicate check, cycle check and insert while
    holding the store's per-user lock, so two concurrent requests cannot each
    pass validation and together close a cycle. Reads take no lock.

    Example:
        >>> service = DependencyService(store, directory)
        >>> edge = await service.add_dependency("user-1", "build", "design", lag_time=60)
        >>> report = await service.check_conflicts("user-1", "build")
        >>> report.has_conflicts
        False
    """

    def __init__(
        self,
        store: DependencyStore,
        directory: TaskDirectory,
        config: EngineConfig | None = None,
        detector: CycleDetector | None = None,
        analyzer: ConflictAnalyzer | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the service.

        Args:
            store: Dependency store collaborator
            directory: Task directory collaborator
            config: Engine settings; defaults apply when omitted
            detector: Cycle detector
            analyzer: Schedule conflict analyzer
            clock: Source of report timestamps
        """
        self.store = store
        self.directory = directory
        self.config = config or EngineConfig()
        self.detector = detector or CycleDetector()
        self.analyzer = analyzer or ConflictAnalyzer()
        self.clock = clock

    async def _require_task(self, user_id: str, task_id: str) -> TaskInfo:
        task = await self.directory.get_task(task_id)
        if task is None or task.user_id != user_id:
            logger.info("task_not_accessible", user_id=user_id, task_id=task_id)
            raise NotFoundError(TASK_NOT_FOUND)
        return task

    async def _load_graph(self, user_id: str) -> DependencyGraph:
        return await DependencyGraph.load(
            self.store,
            self.directory,
            user_id,
            yield_interval=self.config.traversal_yield_interval,
        )

    async def add_dependency(
        self,
        user_id: str,
        task_id: str,
        depends_on_task_id: str,
        lag_time: int | None = None,
    ) -> DependencyEdge:
        """Declare that ``task_id`` cannot start until ``depends_on_task_id`` finishes.

        Args:
            user_id: Requesting user
            task_id: Dependent task
            depends_on_task_id: Prerequisite task
            lag_time: Minutes to wait after the prerequisite ends; the
                configured default applies when None

        Returns:
            The stored edge

        Raises:
            NotFoundError: Either task is missing or not owned by the user
            InvalidOperationError: Self-dependency or negative lag
            ConflictError: The edge already exists
            CircularDependencyError: The edge would close a cycle
        """
        await self._require_task(user_id, task_id)
        await self._require_task(user_id, depends_on_task_id)

        if task_id == depends_on_task_id:
            msg = "A task cannot depend on itself"
            raise InvalidOperationError(msg, reason="self_dependency")

        lag = self.config.default_lag_minutes if lag_time is None else lag_time
        if lag < 0:
            msg = "Lag time cannot be negative"
            raise InvalidOperationError(msg, reason="negative_lag")

        async with self.store.user_lock(user_id):
            if await self.store.find(task_id, depends_on_task_id) is not None:
                msg = "Dependency already exists"
                raise ConflictError(msg, reason="duplicate")

            graph = await self._load_graph(user_id)
            check = await self.detector.check_new_edge(graph, task_id, depends_on_task_id)
            if check.would_create_cycle:
                logger.info(
                    "dependency_rejected_cycle",
                    user_id=user_id,
                    task_id=task_id,
                    depends_on_task_id=depends_on_task_id,
                    cycle=check.path,
                )
                raise CircularDependencyError(check.path)

            edge = await self.store.add(
                DependencyEdge(
                    task_id=task_id,
                    depends_on_task_id=depends_on_task_id,
                    lag_time=lag,
                    created_at=self.clock(),
                ),
            )

        logger.info(
            "dependency_added",
            user_id=user_id,
            dependency_id=edge.id,
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
            lag_time=lag,
        )
        return edge

    async def remove_dependency(self, user_id: str, dependency_id: str) -> None:
        """Delete an edge whose dependent task the user owns.

        Raises:
            NotFoundError: The edge does not exist or is not the user's
        """
        edge = await self.store.get(dependency_id)
        if edge is None:
            raise NotFoundError(DEPENDENCY_NOT_FOUND)

        task = await self.directory.get_task(edge.task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError(DEPENDENCY_NOT_FOUND)

        if not await self.store.remove(dependency_id):
            # Removed by a concurrent request in the meantime.
            raise NotFoundError(DEPENDENCY_NOT_FOUND)

        logger.info(
            "dependency_removed",
            user_id=user_id,
            dependency_id=dependency_id,
            task_id=edge.task_id,
            depends_on_task_id=edge.depends_on_task_id,
        )

    async def get_dependency(self, user_id: str, dependency_id: str) -> DependencyDetail:
        """A single edge with both titles.

        Raises:
            NotFoundError: The edge or either endpoint is missing or not the user's
        """
        edge = await self.store.get(dependency_id)
        if edge is None:
            raise NotFoundError(DEPENDENCY_NOT_FOUND)

        task, prerequisite = await asyncio.gather(
            self.directory.get_task(edge.task_id),
            self.directory.get_task(edge.depends_on_task_id),
        )
        for endpoint in (task, prerequisite):
            if endpoint is None or endpoint.user_id != user_id:
                raise NotFoundError(DEPENDENCY_NOT_FOUND)
        return DependencyDetail(edge, task.title, prerequisite.title)

    async def list_dependencies(self, user_id: str, task_id: str) -> list[DependencyDetail]:
        """Direct prerequisites of a task, oldest first."""
        task = await self._require_task(user_id, task_id)
        edges = await self.store.list_by_task(task_id)
        return await self._enrich(user_id, edges, task, neighbour_is_prerequisite=True)

    async def list_dependents(self, user_id: str, task_id: str) -> list[DependencyDetail]:
        """Tasks directly waiting on a task, oldest first."""
        task = await self._require_task(user_id, task_id)
        edges = await self.store.list_by_dependency(task_id)
        return await self._enrich(user_id, edges, task, neighbour_is_prerequisite=False)

    async def _enrich(
        self,
        user_id: str,
        edges: Sequence[DependencyEdge],
        task: TaskInfo,
        neighbour_is_prerequisite: bool,
    ) -> list[DependencyDetail]:
        ordered = sorted(edges, key=lambda edge: (edge.created_at, edge.id))
        neighbour_ids = [
            edge.depends_on_task_id if neighbour_is_prerequisite else edge.task_id
            for edge in ordered
        ]
        neighbours = await asyncio.gather(
            *(self.directory.get_task(neighbour_id) for neighbour_id in neighbour_ids),
        )

        details = []
        for edge, neighbour in zip(ordered, neighbours, strict=True):
            if neighbour is None or neighbour.user_id != user_id:
                continue
            if neighbour_is_prerequisite:
                details.append(DependencyDetail(edge, task.title, neighbour.title))
            else:
                details.append(DependencyDetail(edge, neighbour.title, task.title))
        return details

    async def check_conflicts(self, user_id: str, task_id: str) -> ConflictReport:
        """Report schedule conflicts and any reachable cycle for a task.

        Raises:
            NotFoundError: The task is missing or not the user's
        """
        await self._require_task(user_id, task_id)
        graph = await self._load_graph(user_id)
        return await self._build_report(graph, task_id)

    async def check_conflicts_batch(
        self,
        user_id: str,
        task_ids: Sequence[str],
    ) -> list[ConflictReport]:
        """Conflict reports for several tasks from a single graph load.

        Raises:
            NotFoundError: Any of the tasks is missing or not the user's
        """
        await asyncio.gather(*(self._require_task(user_id, task_id) for task_id in task_ids))
        graph = await self._load_graph(user_id)
        return [await self._build_report(graph, task_id) for task_id in task_ids]

    async def _build_report(self, graph: DependencyGraph, task_id: str) -> ConflictReport:
        task = graph.task(task_id)
        if task is None:
            # Deleted between the ownership check and the graph load.
            raise NotFoundError(TASK_NOT_FOUND)

        report = ConflictReport(
            task_id=task_id,
            checked_at=self.clock(),
            conflicts=self.analyzer.analyze(task, self._prerequisite_pairs(graph, task_id)),
        )
        cycle = await self.detector.find_cycle_from(graph, task_id)
        if cycle is not None:
            report.cycle = cycle
            report.cycle_description = CycleCheckResult(True, cycle).describe(graph)

        logger.debug(
            "conflict_check_completed",
            task_id=task_id,
            conflict_count=len(report.conflicts),
            has_cycle=cycle is not None,
        )
        return report

    @staticmethod
    def _prerequisite_pairs(
        graph: DependencyGraph,
        task_id: str,
    ) -> list[tuple[DependencyEdge, TaskInfo]]:
        pairs = []
        for edge in graph.direct_dependencies(task_id):
            prerequisite = graph.task(edge.depends_on_task_id)
            if prerequisite is not None:
                pairs.append((edge, prerequisite))
        return pairs

    async def summarize_task(self, user_id: str, task_id: str) -> DependencySummary:
        """Dependency overview of a single task."""
        await self._require_task(user_id, task_id)
        graph = await self._load_graph(user_id)
        task = graph.task(task_id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return await self._summarize(graph, task)

    async def summarize_user(self, user_id: str) -> list[DependencySummary]:
        """Dependency overview of every task the user owns, ordered by title."""
        graph = await self._load_graph(user_id)
        tasks = sorted(
            (graph.task(task_id) for task_id in graph.task_ids),
            key=lambda task: (task.title, task.id),
        )
        summaries = [await self._summarize(graph, task) for task in tasks]
        logger.info("user_dependency_summary_built", user_id=user_id, **graph.get_stats())
        return summaries

    async def _summarize(self, graph: DependencyGraph, task: TaskInfo) -> DependencySummary:
        pairs = self._prerequisite_pairs(graph, task.id)
        return DependencySummary(
            task_id=task.id,
            task_title=task.title,
            dependencies_count=len(pairs),
            dependents_count=len(graph.direct_dependents(task.id)),
            incomplete_prerequisites=sum(
                1 for _, prerequisite in pairs if not prerequisite.status.is_terminal
            ),
            has_circular_dependency=await self.detector.find_cycle_from(graph, task.id) is not None,
            has_time_conflict=bool(self.analyzer.analyze(task, pairs)),
        )
