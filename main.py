#!/usr/bin/env python3
"""Command-line audit of a task dependency snapshot.

Loads one user's tasks and dependency edges from a YAML snapshot into the
in-memory collaborators and runs the dependency service against them:

    python main.py --snapshot tasks.yaml audit
    python main.py --snapshot tasks.yaml conflicts build
    python main.py --snapshot tasks.yaml summary
    python main.py --snapshot tasks.yaml add deploy build --lag 30
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from depgraph.config import DepgraphConfig, load_config
from depgraph.errors import DependencyError
from depgraph.log_config import configure_logging
from depgraph.service.dependency_service import ConflictReport, DependencyService
from depgraph.storage import InMemoryDependencyStore, InMemoryTaskDirectory, Snapshot

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_PROBLEMS = 1
EXIT_ERROR = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse; defaults to ``sys.argv[1:]``

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Audit task dependencies for cycles and schedule conflicts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        required=True,
        help="YAML file with user_id, tasks and dependencies",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: depgraph.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("audit", help="Check every task for cycles and conflicts")
    conflicts = commands.add_parser("conflicts", help="Show the conflict report of one task")
    conflicts.add_argument("task_id")
    commands.add_parser("summary", help="Show per-task dependency counts")
    add = commands.add_parser("add", help="Validate a prospective dependency")
    add.add_argument("task_id", help="Dependent task")
    add.add_argument("depends_on_task_id", help="Prerequisite task")
    add.add_argument("--lag", type=int, default=None, help="Lag in minutes")

    return parser.parse_args(argv)


def format_report(report: ConflictReport, title: str) -> list[str]:
    if not report.has_conflicts:
        return [f"[ok]       {title}"]
    lines = [f"[conflict] {title}"]
    lines.extend(f"    - {message}" for message in report.messages)
    return lines


async def run(args: argparse.Namespace, config: DepgraphConfig) -> int:
    """Execute the selected command.

    Returns:
        Process exit code
    """
    snapshot = Snapshot.from_yaml(args.snapshot)
    directory = InMemoryTaskDirectory()
    store = InMemoryDependencyStore()
    try:
        await snapshot.populate(directory, store)
    except DependencyError as e:
        print(f"Snapshot error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    service = DependencyService(store, directory, config=config.engine)
    user_id = snapshot.user_id
    titles = {task.id: task.title for task in snapshot.tasks}

    if args.command == "audit":
        task_ids = [task.id for task in snapshot.tasks]
        reports = await service.check_conflicts_batch(user_id, task_ids)
        problems = 0
        for report in reports:
            problems += report.has_conflicts
            print("\n".join(format_report(report, titles[report.task_id])))
        print(f"\n{len(reports)} tasks checked, {problems} with conflicts")
        return EXIT_PROBLEMS if problems else EXIT_OK

    if args.command == "conflicts":
        report = await service.check_conflicts(user_id, args.task_id)
        print("\n".join(format_report(report, titles[report.task_id])))
        return EXIT_PROBLEMS if report.has_conflicts else EXIT_OK

    if args.command == "summary":
        for summary in await service.summarize_user(user_id):
            flags = []
            if summary.has_circular_dependency:
                flags.append("cycle")
            if summary.has_time_conflict:
                flags.append("schedule")
            print(
                f"{summary.task_title}: {summary.dependencies_count} prerequisites "
                f"({summary.incomplete_prerequisites} open), "
                f"{summary.dependents_count} dependents"
                + (f" [{', '.join(flags)}]" if flags else ""),
            )
        return EXIT_OK

    edge = await service.add_dependency(
        user_id,
        args.task_id,
        args.depends_on_task_id,
        lag_time=args.lag,
    )
    print(
        f"ok: '{titles[edge.task_id]}' can depend on '{titles[edge.depends_on_task_id]}' "
        f"(lag {edge.lag_time} min)",
    )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(
        level=args.log_level or config.logging_level,
        json_logs=config.json_logs,
    )
    for warning in config.validate_config():
        logger.warning("configuration_warning", message=warning)

    try:
        return asyncio.run(run(args, config))
    except DependencyError as e:
        print(f"rejected: {e.message}", file=sys.stderr)
        return EXIT_PROBLEMS
    except (FileNotFoundError, ValueError) as e:
        print(f"Snapshot error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
