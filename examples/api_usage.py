"""Demonstration of the dependency API over in-memory collaborators.

This example shows how to:
- Wire the service and API handlers
- Add dependencies and observe cycle rejection
- Race two mutually cycle-forming requests
- Read conflict reports and summaries as camelCase JSON
"""

import asyncio
import json
from datetime import UTC, datetime

from depgraph.api import DependencyAPI
from depgraph.config import load_config
from depgraph.log_config import configure_logging, get_logger
from depgraph.models import TaskInfo, TaskStatus
from depgraph.service import DependencyService
from depgraph.storage import InMemoryDependencyStore, InMemoryTaskDirectory

USER = "user-123"


def build_directory() -> InMemoryTaskDirectory:
    """A small release plan with one schedule problem."""
    return InMemoryTaskDirectory(
        [
            TaskInfo(
                "design",
                USER,
                "Design the schema",
                status=TaskStatus.COMPLETED,
                end_time=datetime(2026, 3, 4, 17, tzinfo=UTC),
            ),
            TaskInfo(
                "build",
                USER,
                "Build the service",
                start_time=datetime(2026, 3, 5, 9, tzinfo=UTC),
                end_time=datetime(2026, 3, 11, 17, tzinfo=UTC),
            ),
            TaskInfo(
                "deploy",
                USER,
                "Deploy to production",
                start_time=datetime(2026, 3, 10, 9, tzinfo=UTC),
            ),
            TaskInfo("docs", USER, "Write release notes"),
        ],
    )


def show(label: str, response) -> None:
    print(f"\n--- {label} ({response.status_code}) ---")
    print(json.dumps(response.to_json_dict(), indent=2))


async def demonstrate_validation(api: DependencyAPI) -> None:
    """Valid adds, then each kind of rejection."""
    show(
        "build waits for design",
        await api.create_dependency(USER, "build", {"dependsOnTaskId": "design"}),
    )
    show(
        "deploy waits for build (+60 min)",
        await api.create_dependency(USER, "deploy", {"dependsOnTaskId": "build", "lagTime": 60}),
    )
    show(
        "design waits for deploy",
        await api.create_dependency(USER, "design", {"dependsOnTaskId": "deploy"}),
    )
    show("self dependency", await api.create_dependency(USER, "docs", {"dependsOnTaskId": "docs"}))
    show("duplicate", await api.create_dependency(USER, "build", {"dependsOnTaskId": "design"}))
    show("other user's view", await api.list_dependencies("user-456", "build"))


async def demonstrate_race(api: DependencyAPI) -> None:
    """Submit docs -> deploy and deploy -> docs at the same time."""
    logger = get_logger(__name__)

    first, second = await asyncio.gather(
        api.create_dependency(USER, "docs", {"dependsOnTaskId": "deploy"}),
        api.create_dependency(USER, "deploy", {"dependsOnTaskId": "docs"}),
    )
    logger.info(
        "race_finished",
        statuses=[first.status_code, second.status_code],
    )


async def main() -> None:
    """Main demonstration function."""
    config = load_config()
    configure_logging(level=config.logging_level, json_logs=False)

    service = DependencyService(InMemoryDependencyStore(), build_directory(), config=config.engine)
    api = DependencyAPI.from_config(service, config)

    await demonstrate_validation(api)
    await demonstrate_race(api)

    show("deploy conflicts", await api.check_conflicts(USER, "deploy"))
    show("summary", await api.dependency_summary(USER))


if __name__ == "__main__":
    asyncio.run(main())
