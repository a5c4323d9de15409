"""Request and response schemas for the dependency API.

Field names are snake_case in Python and camelCase on the wire
(``dependsOnTaskId``, ``lagTime``, ``createdAt``).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from depgraph.graph.conflict_analyzer import ScheduleConflict
from depgraph.service.dependency_service import (
    ConflictReport,
    DependencyDetail,
    DependencySummary,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)


class CreateDependencyRequest(ApiModel):
    """Body of an add-dependency request."""

    depends_on_task_id: str = Field(min_length=1, description="Prerequisite task")
    lag_time: int | None = Field(
        default=None,
        ge=0,
        description="Minutes to wait after the prerequisite ends",
    )


class DependencyView(ApiModel):
    id: str
    task_id: str
    task_title: str | None = None
    depends_on_task_id: str
    depends_on_task_title: str | None = None
    dependency_type: str
    lag_time: int
    created_at: datetime

    @classmethod
    def from_detail(cls, detail: DependencyDetail) -> "DependencyView":
        edge = detail.edge
        return cls(
            id=edge.id,
            task_id=edge.task_id,
            task_title=detail.task_title,
            depends_on_task_id=edge.depends_on_task_id,
            depends_on_task_title=detail.depends_on_title,
            dependency_type=edge.dependency_type.value,
            lag_time=edge.lag_time,
            created_at=edge.created_at,
        )


class ScheduleConflictView(ApiModel):
    dependency_id: str
    depends_on_task_id: str
    depends_on_task_title: str
    prerequisite_end: datetime
    lag_time: int
    earliest_start: datetime
    scheduled_start: datetime
    message: str

    @classmethod
    def from_conflict(cls, conflict: ScheduleConflict) -> "ScheduleConflictView":
        return cls(
            dependency_id=conflict.dependency_id,
            depends_on_task_id=conflict.depends_on_task_id,
            depends_on_task_title=conflict.depends_on_title,
            prerequisite_end=conflict.prerequisite_end,
            lag_time=conflict.lag_time,
            earliest_start=conflict.earliest_start,
            scheduled_start=conflict.scheduled_start,
            message=conflict.message,
        )


class ConflictCheckView(ApiModel):
    """Conflict check result.

    ``conflicts`` holds display messages; ``schedule_conflicts`` and
    ``cycle`` carry the structured details.
    """

    task_id: str
    has_conflicts: bool
    conflicts: list[str] = Field(default_factory=list)
    schedule_conflicts: list[ScheduleConflictView] = Field(default_factory=list)
    cycle: list[str] | None = None
    checked_at: datetime

    @classmethod
    def from_report(cls, report: ConflictReport) -> "ConflictCheckView":
        return cls(
            task_id=report.task_id,
            has_conflicts=report.has_conflicts,
            conflicts=report.messages,
            schedule_conflicts=[ScheduleConflictView.from_conflict(c) for c in report.conflicts],
            cycle=report.cycle,
            checked_at=report.checked_at,
        )

    @classmethod
    def empty(cls, task_id: str, checked_at: datetime) -> "ConflictCheckView":
        return cls(task_id=task_id, has_conflicts=False, checked_at=checked_at)


class DependencySummaryView(ApiModel):
    task_id: str
    task_title: str
    dependencies_count: int
    dependents_count: int
    incomplete_prerequisites: int
    has_circular_dependency: bool
    has_time_conflict: bool

    @classmethod
    def from_summary(cls, summary: DependencySummary) -> "DependencySummaryView":
        return cls(
            task_id=summary.task_id,
            task_title=summary.task_title,
            dependencies_count=summary.dependencies_count,
            dependents_count=summary.dependents_count,
            incomplete_prerequisites=summary.incomplete_prerequisites,
            has_circular_dependency=summary.has_circular_dependency,
            has_time_conflict=summary.has_time_conflict,
        )


class FullDependencyInfoView(ApiModel):
    task_id: str
    dependencies: list[DependencyView]
    dependents: list[DependencyView]
    conflicts: ConflictCheckView
    dependencies_count: int
    dependents_count: int
    has_conflicts: bool


class ErrorBody(ApiModel):
    code: str
    message: str
    reason: str | None = None


class ApiResponse(ApiModel):
    """Envelope returned by every API call."""

    status_code: int
    data: Any = None
    error: ErrorBody | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
