"""Task dependency graph engine.

Finish-to-start dependencies between a user's tasks, kept acyclic under
concurrent mutation, with schedule conflict reporting.
"""

from depgraph.errors import (
    CircularDependencyError,
    ConflictError,
    DependencyError,
    InvalidOperationError,
    NotFoundError,
    StoreUnavailableError,
)
from depgraph.models import DependencyEdge, DependencyType, TaskInfo, TaskStatus
from depgraph.service.dependency_service import DependencyService

__version__ = "0.1.0"

__all__ = [
    "CircularDependencyError",
    "ConflictError",
    "DependencyEdge",
    "DependencyError",
    "DependencyService",
    "DependencyType",
    "InvalidOperationError",
    "NotFoundError",
    "StoreUnavailableError",
    "TaskInfo",
    "TaskStatus",
]
