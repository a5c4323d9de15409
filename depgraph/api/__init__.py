"""Request/response boundary for dependency operations."""

from depgraph.api.handlers import DependencyAPI
from depgraph.api.retry import RetryConfig, execute_with_retry
from depgraph.api.schemas import (
    ApiResponse,
    ConflictCheckView,
    CreateDependencyRequest,
    DependencySummaryView,
    DependencyView,
    ErrorBody,
)

__all__ = [
    "ApiResponse",
    "ConflictCheckView",
    "CreateDependencyRequest",
    "DependencyAPI",
    "DependencySummaryView",
    "DependencyView",
    "ErrorBody",
    "RetryConfig",
    "execute_with_retry",
]
