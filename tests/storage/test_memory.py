"""Tests for the in-memory collaborators."""

import asyncio

import pytest

from depgraph.errors import ConflictError
from depgraph.models import DependencyEdge
from depgraph.storage.memory import InMemoryDependencyStore, InMemoryTaskDirectory


class TestInMemoryTaskDirectory:
    """Test task lookups."""

    @pytest.mark.asyncio
    async def test_get_task(self, directory):
        """Test lookup by ID."""
        task = await directory.get_task("a")

        assert task is not None
        assert task.title == "Task A"
        assert await directory.get_task("missing") is None

    @pytest.mark.asyncio
    async def test_list_user_tasks(self, directory):
        """Test that listing is scoped to the owner."""
        alice = await directory.list_user_tasks("user-alice")
        bob = await directory.list_user_tasks("user-bob")

        assert sorted(t.id for t in alice) == ["a", "b", "c", "d", "e"]
        assert [t.id for t in bob] == ["x"]
        assert await directory.list_user_tasks("nobody") == []

    @pytest.mark.asyncio
    async def test_add_replaces_and_remove_deletes(self, make_task):
        """Test mutation helpers."""
        directory = InMemoryTaskDirectory([make_task("a")])

        directory.add_task(make_task("a", title="Renamed"))
        assert (await directory.get_task("a")).title == "Renamed"

        directory.remove_task("a")
        directory.remove_task("a")
        assert await directory.get_task("a") is None


class TestInMemoryDependencyStore:
    """Test edge storage."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, store):
        """Test that an added edge can be read back by ID and pair."""
        edge = await store.add(DependencyEdge("a", "b", lag_time=10))

        assert await store.get(edge.id) == edge
        assert await store.find("a", "b") == edge
        assert await store.find("b", "a") is None
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_duplicate_pair_rejected(self, store):
        """Test pair uniqueness independent of edge ID."""
        await store.add(DependencyEdge("a", "b"))

        with pytest.raises(ConflictError):
            await store.add(DependencyEdge("a", "b", lag_time=5))
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_reused_id_rejected(self, store, service):
        """Test that an ID already in use cannot be given to another pair."""
        first = await store.add(DependencyEdge("a", "b", id="e1"))

        with pytest.raises(ConflictError) as exc_info:
            await store.add(DependencyEdge("c", "d", id="e1"))

        assert exc_info.value.reason == "duplicate_id"
        assert await store.find("a", "b") == first
        assert await store.find("c", "d") is None

        assert await store.remove("e1")
        assert len(store) == 0
        edge = await service.add_dependency("user-alice", "a", "b")
        assert await store.find("a", "b") == edge

    @pytest.mark.asyncio
    async def test_remove(self, store):
        """Test removal frees the pair for reuse."""
        edge = await store.add(DependencyEdge("a", "b"))

        assert await store.remove(edge.id)
        assert not await store.remove(edge.id)
        assert await store.find("a", "b") is None

        await store.add(DependencyEdge("a", "b"))
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_listings(self, store):
        """Test lookups by either endpoint."""
        ab = await store.add(DependencyEdge("a", "b"))
        ac = await store.add(DependencyEdge("a", "c"))
        cd = await store.add(DependencyEdge("c", "d"))

        assert set(await store.list_by_task("a")) == {ab, ac}
        assert await store.list_by_dependency("c") == [ac]
        assert set(await store.list_for_tasks(["c"])) == {ac, cd}
        assert await store.list_for_tasks([]) == []

    @pytest.mark.asyncio
    async def test_user_lock_serializes_same_user(self):
        """Test that the second holder waits for the first."""
        store = InMemoryDependencyStore()
        order = []

        async def hold(label: str) -> None:
            async with store.user_lock("user-1"):
                order.append(f"{label}-in")
                await asyncio.sleep(0.01)
                order.append(f"{label}-out")

        await asyncio.gather(hold("first"), hold("second"))

        assert order == ["first-in", "first-out", "second-in", "second-out"]

    @pytest.mark.asyncio
    async def test_user_locks_are_independent(self):
        """Test that different users do not share a lock."""
        store = InMemoryDependencyStore()

        async with store.user_lock("user-1"):
            async with asyncio.timeout(1):
                async with store.user_lock("user-2"):
                    pass
