"""Service layer for validated dependency operations."""

from depgraph.service.dependency_service import (
    ConflictReport,
    DependencyDetail,
    DependencyService,
    DependencySummary,
)

__all__ = ["ConflictReport", "DependencyDetail", "DependencyService", "DependencySummary"]
