"""Load a YAML snapshot of one user's tasks and dependencies.

Snapshot edges are written straight into the store without validation, so a
snapshot exported from a database that was edited by hand can be audited for
cycles rather than rejected on load.

Format::

    user_id: user-1
    tasks:
      - id: design
        title: Design the schema
        status: completed
        start_time: 2026-03-02T09:00:00Z
        end_time: 2026-03-04T17:00:00Z
    dependencies:
      - task_id: build
        depends_on_task_id: design
        lag_time: 60
"""

from datetime import UTC, datetime
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

from depgraph.models import DependencyEdge, TaskInfo, TaskStatus
from depgraph.storage.memory import InMemoryDependencyStore, InMemoryTaskDirectory

logger = structlog.get_logger(__name__)


class SnapshotTask(BaseModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    status: TaskStatus = TaskStatus.PENDING
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class SnapshotDependency(BaseModel):
    task_id: str = Field(min_length=1)
    depends_on_task_id: str = Field(min_length=1)
    lag_time: int = Field(default=0, ge=0)
    id: str | None = None


class Snapshot(BaseModel):
    """A user's tasks and dependency edges."""

    user_id: str = Field(min_length=1)
    tasks: list[SnapshotTask] = Field(default_factory=list)
    dependencies: list[SnapshotDependency] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Snapshot":
        """Parse a snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the YAML is malformed or fails validation
        """
        snapshot_path = Path(path)
        if not snapshot_path.exists():
            msg = f"Snapshot file not found: {snapshot_path}"
            raise FileNotFoundError(msg)

        try:
            with snapshot_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in snapshot file: {e}"
            raise ValueError(msg) from e

        if not isinstance(data, dict):
            msg = "Snapshot file must contain a mapping"
            raise ValueError(msg)

        return cls(**data)

    async def populate(
        self,
        directory: InMemoryTaskDirectory,
        store: InMemoryDependencyStore,
    ) -> None:
        """Write the snapshot's tasks and edges into in-memory collaborators."""
        for task in self.tasks:
            directory.add_task(
                TaskInfo(
                    id=task.id,
                    user_id=self.user_id,
                    title=task.title,
                    status=task.status,
                    start_time=task.start_time,
                    end_time=task.end_time,
                ),
            )
        for dep in self.dependencies:
            fields = dep.model_dump(exclude_none=True)
            await store.add(DependencyEdge(**fields))

        logger.info(
            "snapshot_loaded",
            user_id=self.user_id,
            task_count=len(self.tasks),
            dependency_count=len(self.dependencies),
        )
