"""In-memory collaborators and snapshot loading."""

from depgraph.storage.memory import InMemoryDependencyStore, InMemoryTaskDirectory
from depgraph.storage.snapshot import Snapshot

__all__ = ["InMemoryDependencyStore", "InMemoryTaskDirectory", "Snapshot"]
