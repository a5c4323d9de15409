"""Schedule conflict analysis for finish-to-start dependencies."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from depgraph.models import DependencyEdge, TaskInfo

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ScheduleConflict:
    """A direct dependency whose schedule violates finish-to-start plus lag.

    Attributes:
        dependency_id: The offending edge
        depends_on_task_id: The prerequisite task
        depends_on_title: Title of the prerequisite
        prerequisite_end: Scheduled end of the prerequisite
        lag_time: Lag of the edge in minutes
        earliest_start: ``prerequisite_end + lag_time``
        scheduled_start: Scheduled start of the dependent task
    """

    dependency_id: str
    depends_on_task_id: str
    depends_on_title: str
    prerequisite_end: datetime
    lag_time: int
    earliest_start: datetime
    scheduled_start: datetime

    @property
    def shortfall(self) -> timedelta:
        """How far the dependent starts before it is allowed to."""
        return self.earliest_start - self.scheduled_start

    @property
    def message(self) -> str:
        lag = f" plus {self.lag_time} min lag" if self.lag_time else ""
        return (
            f"Prerequisite '{self.depends_on_title}' ends at "
            f"{self.prerequisite_end.isoformat()}{lag}, after this task's start at "
            f"{self.scheduled_start.isoformat()}"
        )


class ConflictAnalyzer:
    """Evaluates each direct dependency of a task independently.

    A pair is only evaluated when the dependent has a start time and the
    prerequisite has an end time; an unscheduled pair is not a conflict.
    Conflicts do not propagate transitively.
    """

    def analyze(
        self,
        task: TaskInfo,
        dependencies: Iterable[tuple[DependencyEdge, TaskInfo]],
    ) -> list[ScheduleConflict]:
        """Report the direct dependencies of ``task`` that are out of order.

        Args:
            task: The dependent task
            dependencies: ``(edge, prerequisite)`` pairs for the task's direct
                dependencies

        Returns:
            Conflicts ordered by edge creation time; empty if none
        """
        ordered = sorted(dependencies, key=lambda pair: (pair[0].created_at, pair[0].id))
        if task.start_time is None:
            return []

        conflicts = []
        for edge, prerequisite in ordered:
            if prerequisite.end_time is None:
                continue
            earliest_start = prerequisite.end_time + timedelta(minutes=edge.lag_time)
            if earliest_start > task.start_time:
                conflicts.append(
                    ScheduleConflict(
                        dependency_id=edge.id,
                        depends_on_task_id=prerequisite.id,
                        depends_on_title=prerequisite.title,
                        prerequisite_end=prerequisite.end_time,
                        lag_time=edge.lag_time,
                        earliest_start=earliest_start,
                        scheduled_start=task.start_time,
                    ),
                )

        if conflicts:
            logger.debug(
                "schedule_conflicts_found",
                task_id=task.id,
                count=len(conflicts),
            )
        return conflicts
