"""Shared fixtures: in-memory collaborators seeded with two users' tasks."""

from collections.abc import Callable
from datetime import datetime

import pytest

from depgraph.models import TaskInfo, TaskStatus
from depgraph.service.dependency_service import DependencyService
from depgraph.storage.memory import InMemoryDependencyStore, InMemoryTaskDirectory

ALICE = "user-alice"
BOB = "user-bob"


@pytest.fixture
def make_task() -> Callable[..., TaskInfo]:
    """Factory for TaskInfo with Alice as the default owner."""

    def factory(
        task_id: str,
        user_id: str = ALICE,
        start: datetime | None = None,
        end: datetime | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        title: str | None = None,
    ) -> TaskInfo:
        return TaskInfo(
            id=task_id,
            user_id=user_id,
            title=title or f"Task {task_id.upper()}",
            status=status,
            start_time=start,
            end_time=end,
        )

    return factory


@pytest.fixture
def directory(make_task) -> InMemoryTaskDirectory:
    """Alice owns tasks a-e, Bob owns task x."""
    return InMemoryTaskDirectory(
        [
            make_task("a"),
            make_task("b"),
            make_task("c"),
            make_task("d"),
            make_task("e"),
            make_task("x", user_id=BOB),
        ],
    )


@pytest.fixture
def store() -> InMemoryDependencyStore:
    return InMemoryDependencyStore()


@pytest.fixture
def service(store, directory) -> DependencyService:
    return DependencyService(store, directory)
