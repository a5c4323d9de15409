"""Request/response boundary for the dependency engine.

Transport and authentication live outside this package: an HTTP layer
resolves the requesting user and calls these handlers. Every handler returns
an ``ApiResponse``; domain errors become typed error bodies with a status
code, so callers never have to parse message text.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import ValidationError

from depgraph.api.retry import RetryConfig, execute_with_retry
from depgraph.api.schemas import (
    ApiResponse,
    ConflictCheckView,
    CreateDependencyRequest,
    DependencySummaryView,
    DependencyView,
    ErrorBody,
    FullDependencyInfoView,
)
from depgraph.config import DepgraphConfig
from depgraph.errors import DependencyError, NotFoundError, StoreUnavailableError
from depgraph.log_config import request_context
from depgraph.service.dependency_service import DependencyService

logger = structlog.get_logger(__name__)

STATUS_BY_CODE = {
    "not_found": 404,
    "invalid_operation": 400,
    "conflict": 409,
}
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204
HTTP_UNPROCESSABLE = 422
HTTP_UNAVAILABLE = 503


def error_response(error: DependencyError) -> ApiResponse:
    """Map a domain error to its response."""
    return ApiResponse(
        status_code=STATUS_BY_CODE.get(error.code, 400),
        error=ErrorBody(code=error.code, message=error.message, reason=error.reason),
    )


class DependencyAPI:
    """Handlers for the dependency endpoints.

    Reads are retried on transient collaborator failures; writes are
    attempted once.

    Example:
        >>> api = DependencyAPI(service)
        >>> response = await api.create_dependency(
        ...     "user-1", "build", {"dependsOnTaskId": "design", "lagTime": 30}
        ... )
        >>> response.status_code
        201
    """

    def __init__(self, service: DependencyService, retry: RetryConfig | None = None):
        self.service = service
        self.retry = retry or RetryConfig()

    @classmethod
    def from_config(cls, service: DependencyService, config: DepgraphConfig) -> "DependencyAPI":
        """Build handlers whose read retries follow the ``retry`` configuration section."""
        return cls(service, RetryConfig.from_settings(config.retry))

    async def _handle(
        self,
        operation: str,
        user_id: str,
        call: Callable[[], Awaitable[Any]],
        success_status: int = HTTP_OK,
        retry: bool = False,
    ) -> ApiResponse:
        with request_context(user_id=user_id, operation=operation):
            try:
                if retry:
                    data = await execute_with_retry(operation, call, self.retry)
                else:
                    data = await call()
            except DependencyError as e:
                logger.info("request_rejected", code=e.code, reason=e.reason)
                return error_response(e)
            except ValidationError as e:
                logger.info("request_invalid", error_count=e.error_count())
                return ApiResponse(
                    status_code=HTTP_UNPROCESSABLE,
                    error=ErrorBody(code="validation_error", message=str(e)),
                )
            except StoreUnavailableError as e:
                logger.error("store_unavailable", error=e.message)
                return ApiResponse(
                    status_code=HTTP_UNAVAILABLE,
                    error=ErrorBody(code="unavailable", message=e.message),
                )

        return ApiResponse(status_code=success_status, data=data)

    async def list_dependencies(self, user_id: str, task_id: str) -> ApiResponse:
        async def call() -> list[DependencyView]:
            details = await self.service.list_dependencies(user_id, task_id)
            return [DependencyView.from_detail(detail) for detail in details]

        return await self._handle("list_dependencies", user_id, call, retry=True)

    async def list_dependents(self, user_id: str, task_id: str) -> ApiResponse:
        async def call() -> list[DependencyView]:
            details = await self.service.list_dependents(user_id, task_id)
            return [DependencyView.from_detail(detail) for detail in details]

        return await self._handle("list_dependents", user_id, call, retry=True)

    async def create_dependency(
        self,
        user_id: str,
        task_id: str,
        payload: CreateDependencyRequest | dict[str, Any],
    ) -> ApiResponse:
        """Add a dependency; ``payload`` may be a parsed request or raw JSON data."""

        async def call() -> DependencyView:
            request = (
                payload
                if isinstance(payload, CreateDependencyRequest)
                else CreateDependencyRequest.model_validate(payload)
            )
            edge = await self.service.add_dependency(
                user_id,
                task_id,
                request.depends_on_task_id,
                lag_time=request.lag_time,
            )
            return DependencyView.from_detail(await self.service.get_dependency(user_id, edge.id))

        return await self._handle("create_dependency", user_id, call, success_status=HTTP_CREATED)

    async def delete_dependency(self, user_id: str, dependency_id: str) -> ApiResponse:
        async def call() -> None:
            await self.service.remove_dependency(user_id, dependency_id)

        return await self._handle(
            "delete_dependency",
            user_id,
            call,
            success_status=HTTP_NO_CONTENT,
        )

    async def check_conflicts(self, user_id: str, task_id: str) -> ApiResponse:
        async def call() -> ConflictCheckView:
            report = await self.service.check_conflicts(user_id, task_id)
            return ConflictCheckView.from_report(report)

        return await self._handle("check_conflicts", user_id, call, retry=True)

    async def batch_check_conflicts(self, user_id: str, task_ids: list[str]) -> ApiResponse:
        """Check several tasks; an inaccessible task yields an empty entry."""

        async def check_one(task_id: str) -> ConflictCheckView:
            try:
                report = await self.service.check_conflicts(user_id, task_id)
            except NotFoundError:
                logger.info("batch_conflict_check_skipped", task_id=task_id)
                return ConflictCheckView.empty(task_id, self.service.clock())
            return ConflictCheckView.from_report(report)

        async def call() -> list[ConflictCheckView]:
            return list(await asyncio.gather(*(check_one(task_id) for task_id in task_ids)))

        return await self._handle("batch_check_conflicts", user_id, call, retry=True)

    async def full_dependency_info(self, user_id: str, task_id: str) -> ApiResponse:
        """Dependencies, dependents and conflicts of a task in one response."""

        async def call() -> FullDependencyInfoView:
            dependencies, dependents, report = await asyncio.gather(
                self.service.list_dependencies(user_id, task_id),
                self.service.list_dependents(user_id, task_id),
                self.service.check_conflicts(user_id, task_id),
            )
            return FullDependencyInfoView(
                task_id=task_id,
                dependencies=[DependencyView.from_detail(d) for d in dependencies],
                dependents=[DependencyView.from_detail(d) for d in dependents],
                conflicts=ConflictCheckView.from_report(report),
                dependencies_count=len(dependencies),
                dependents_count=len(dependents),
                has_conflicts=report.has_conflicts,
            )

        return await self._handle("full_dependency_info", user_id, call, retry=True)

    async def dependency_summary(self, user_id: str) -> ApiResponse:
        async def call() -> list[DependencySummaryView]:
            summaries = await self.service.summarize_user(user_id)
            return [DependencySummaryView.from_summary(s) for s in summaries]

        return await self._handle("dependency_summary", user_id, call, retry=True)
