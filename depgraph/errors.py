"""Error taxonomy for the dependency engine.

Domain errors carry a stable ``code`` so the request boundary can map them to
responses without inspecting message text. ``StoreUnavailableError`` is not a
domain error: it signals a collaborator failure and is propagated unchanged.
"""


class DependencyError(Exception):
    """Base class for domain validation failures.

    Attributes:
        message: Human-readable description, safe to show to the requester
        code: Stable machine-readable error category
        reason: Optional finer-grained cause within the category
    """

    code = "dependency_error"

    def __init__(self, message: str, reason: str | None = None):
        """Initialize the error.

        Args:
            message: Description of the failure
            reason: Optional finer-grained cause
        """
        super().__init__(message)
        self.message = message
        self.reason = reason


class NotFoundError(DependencyError):
    """A task or edge does not exist or is not owned by the requester.

    Both cases produce the same error so other users' identifiers never leak.
    """

    code = "not_found"


class InvalidOperationError(DependencyError):
    """The request is well-formed but violates a graph invariant."""

    code = "invalid_operation"


class CircularDependencyError(InvalidOperationError):
    """Adding the edge would close a cycle.

    Attributes:
        cycle_path: Task IDs from the new edge's source back to itself, kept
            for diagnostics and not part of the message
    """

    def __init__(self, cycle_path: list[str]):
        super().__init__(
            "This would create a circular dependency",
            reason="circular_dependency",
        )
        self.cycle_path = list(cycle_path)


class ConflictError(DependencyError):
    """An identical edge already exists."""

    code = "conflict"


class StoreUnavailableError(Exception):
    """A collaborator (dependency store or task directory) failed.

    Attributes:
        message: Description of the failure
        original_error: The underlying exception, if any
    """

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


__all__ = [
    "CircularDependencyError",
    "ConflictError",
    "DependencyError",
    "InvalidOperationError",
    "NotFoundError",
    "StoreUnavailableError",
]
