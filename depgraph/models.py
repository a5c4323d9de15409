"""Value types shared by the dependency engine.

Tasks are owned by the task directory and only referenced here. Dependency
edges are immutable: changing a dependency means removing the old edge and
adding a new one.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class TaskStatus(Enum):
    """Lifecycle status of a task as reported by the task directory."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        """Whether the task has finished."""
        return self is TaskStatus.COMPLETED


class DependencyType(Enum):
    """Supported dependency types. Only finish-to-start exists."""

    FINISH_TO_START = "finish_to_start"


@dataclass(frozen=True)
class TaskInfo:
    """Read-only view of a task.

    Attributes:
        id: Task identifier
        user_id: Owning user identifier
        title: Display title, used in reports
        status: Current task status
        start_time: Scheduled start, if any; naive values are taken as UTC
        end_time: Scheduled end, if any; naive values are taken as UTC
    """

    id: str
    user_id: str
    title: str
    status: TaskStatus = TaskStatus.PENDING
    start_time: datetime | None = None
    end_time: datetime | None = None

    def __post_init__(self) -> None:
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                object.__setattr__(self, name, value.replace(tzinfo=UTC))


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class DependencyEdge:
    """A finish-to-start dependency: ``task_id`` waits for ``depends_on_task_id``.

    Attributes:
        task_id: The dependent task
        depends_on_task_id: The prerequisite task
        lag_time: Minutes to wait after the prerequisite ends
        dependency_type: Always finish-to-start
        id: Edge identifier
        created_at: Creation timestamp (UTC)
    """

    task_id: str
    depends_on_task_id: str
    lag_time: int = 0
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.lag_time < 0:
            msg = f"lag_time must be non-negative, got {self.lag_time}"
            raise ValueError(msg)

    @property
    def pair(self) -> tuple[str, str]:
        """The ``(task_id, depends_on_task_id)`` uniqueness key."""
        return (self.task_id, self.depends_on_task_id)


__all__ = ["DependencyEdge", "DependencyType", "TaskInfo", "TaskStatus"]
