"""Unit tests for ConflictAnalyzer."""

from datetime import UTC, datetime, timedelta

import pytest

from depgraph.graph.conflict_analyzer import ConflictAnalyzer, ScheduleConflict
from depgraph.models import DependencyEdge

TWO_DAYS = 2 * 24 * 60


def day(n: int) -> datetime:
    return datetime(2026, 3, n, 9, tzinfo=UTC)


def edge_for(task_id: str, depends_on: str, lag: int = 0, created: int = 0) -> DependencyEdge:
    return DependencyEdge(
        task_id=task_id,
        depends_on_task_id=depends_on,
        lag_time=lag,
        created_at=datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=created),
    )


@pytest.fixture
def analyzer() -> ConflictAnalyzer:
    return ConflictAnalyzer()


class TestFinishToStartRule:
    """Test the finish-to-start plus lag rule on single edges."""

    def test_prerequisite_ends_after_start(self, analyzer, make_task):
        """Test X starts day 5, Y ends day 6, lag 0: conflict."""
        x = make_task("x", start=day(5))
        y = make_task("y", end=day(6))

        conflicts = analyzer.analyze(x, [(edge_for("x", "y"), y)])

        assert len(conflicts) == 1
        assert conflicts[0].depends_on_task_id == "y"
        assert conflicts[0].prerequisite_end == day(6)
        assert conflicts[0].scheduled_start == day(5)
        assert conflicts[0].shortfall == timedelta(days=1)

    def test_prerequisite_ends_before_start(self, analyzer, make_task):
        """Test X starts day 5, Y ends day 4, lag 0: no conflict."""
        x = make_task("x", start=day(5))
        y = make_task("y", end=day(4))

        assert analyzer.analyze(x, [(edge_for("x", "y"), y)]) == []

    def test_lag_pushes_into_conflict(self, analyzer, make_task):
        """Test X starts day 5, Y ends day 4, lag 2 days: conflict."""
        x = make_task("x", start=day(5))
        y = make_task("y", end=day(4))

        conflicts = analyzer.analyze(x, [(edge_for("x", "y", lag=TWO_DAYS), y)])

        assert len(conflicts) == 1
        assert conflicts[0].earliest_start == day(6)
        assert conflicts[0].lag_time == TWO_DAYS

    def test_exact_boundary_is_not_a_conflict(self, analyzer, make_task):
        """Test that ending exactly at the start (plus lag) is allowed."""
        x = make_task("x", start=day(5))
        y = make_task("y", end=day(4))

        assert analyzer.analyze(x, [(edge_for("x", "y", lag=24 * 60), y)]) == []


class TestNaiveTimestamps:
    """Test tasks whose times carry no zone."""

    def test_naive_times_are_utc(self, make_task):
        """Test that naive task times are normalized to UTC."""
        task = make_task("x", start=datetime(2026, 3, 5, 9), end=datetime(2026, 3, 6, 9))

        assert task.start_time == day(5)
        assert task.end_time.tzinfo is UTC

    def test_mixed_naive_and_aware(self, analyzer, make_task):
        """Test comparing a naive prerequisite end with an aware start."""
        x = make_task("x", start=day(5))
        y = make_task("y", end=datetime(2026, 3, 6, 9))

        conflicts = analyzer.analyze(x, [(edge_for("x", "y"), y)])

        assert [c.depends_on_task_id for c in conflicts] == ["y"]
        assert conflicts[0].shortfall == timedelta(days=1)


class TestUnscheduledTolerance:
    """Test that missing schedule data never produces a conflict."""

    def test_dependent_without_start(self, analyzer, make_task):
        """Test a dependent task with no start time."""
        x = make_task("x", end=day(9))
        y = make_task("y", end=day(20))

        assert analyzer.analyze(x, [(edge_for("x", "y"), y)]) == []

    def test_prerequisite_without_end(self, analyzer, make_task):
        """Test a prerequisite with no end time."""
        x = make_task("x", start=day(5))
        y = make_task("y", start=day(1))

        assert analyzer.analyze(x, [(edge_for("x", "y"), y)]) == []

    def test_no_dependencies(self, analyzer, make_task):
        """Test a task with no dependencies."""
        assert analyzer.analyze(make_task("x", start=day(5)), []) == []


class TestMultipleDependencies:
    """Test reports over several direct dependencies."""

    def test_only_offending_edges_reported(self, analyzer, make_task):
        """Test that each edge is evaluated independently."""
        x = make_task("x", start=day(10))
        early = make_task("early", end=day(3))
        late = make_task("late", end=day(12))
        unscheduled = make_task("open")

        conflicts = analyzer.analyze(
            x,
            [
                (edge_for("x", "early"), early),
                (edge_for("x", "late"), late),
                (edge_for("x", "open"), unscheduled),
            ],
        )

        assert [c.depends_on_task_id for c in conflicts] == ["late"]

    def test_ordered_by_edge_creation(self, analyzer, make_task):
        """Test that conflicts follow edge creation order, not input order."""
        x = make_task("x", start=day(5))
        first = make_task("first", end=day(7))
        second = make_task("second", end=day(8))

        conflicts = analyzer.analyze(
            x,
            [
                (edge_for("x", "second", created=10), second),
                (edge_for("x", "first", created=1), first),
            ],
        )

        assert [c.depends_on_task_id for c in conflicts] == ["first", "second"]


class TestScheduleConflictMessage:
    """Test the human-readable explanation."""

    def test_message_names_prerequisite_and_times(self):
        """Test the message content without lag."""
        conflict = ScheduleConflict(
            dependency_id="dep-1",
            depends_on_task_id="y",
            depends_on_title="Write report",
            prerequisite_end=day(6),
            lag_time=0,
            earliest_start=day(6),
            scheduled_start=day(5),
        )

        assert "'Write report'" in conflict.message
        assert day(6).isoformat() in conflict.message
        assert day(5).isoformat() in conflict.message
        assert "lag" not in conflict.message

    def test_message_mentions_lag(self):
        """Test the message content with lag."""
        conflict = ScheduleConflict(
            dependency_id="dep-1",
            depends_on_task_id="y",
            depends_on_title="Review",
            prerequisite_end=day(4),
            lag_time=30,
            earliest_start=day(4) + timedelta(minutes=30),
            scheduled_start=day(4),
        )

        assert "plus 30 min lag" in conflict.message
