"""
Exception hierarchy for the trailer generation backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class TrailerError(Exception):
    """Base exception for all trailer backend errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(TrailerError):
    """Raised when generation input fails validation, before any job exists."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class ProjectNotFoundError(TrailerError):
    """Raised when a project cannot be found."""

    def __init__(self, project_id: Any, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["project_id"] = str(project_id)
        super().__init__(f"Project not found: {project_id}", details)


class SegmentNotFoundError(TrailerError):
    """Raised when a video segment cannot be found."""

    def __init__(self, segment_id: Any, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["segment_id"] = str(segment_id)
        super().__init__(f"Segment not found: {segment_id}", details)


class ProjectBusyError(TrailerError):
    """Raised when a project already has segment jobs in flight."""

    def __init__(self, project_id: Any, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["project_id"] = str(project_id)
        super().__init__(f"Video generation already in progress for project {project_id}", details)


class InvalidTransitionError(TrailerError):
    """Raised when a job state transition is not permitted."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid job transition: {current} -> {target}",
            {"current": current, "target": target},
        )


class GatewayError(TrailerError):
    """Base exception for external AI provider errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)


class ProviderJobFailedError(GatewayError):
    """Raised when the provider reports a terminal failure for a generation."""

    pass


class ScriptGenerationError(GatewayError):
    """Raised when script generation or refinement fails."""

    pass


class GenerationTimeoutError(TrailerError):
    """Raised when the poll loop exhausts its attempt cap."""

    def __init__(self, attempts: int, handle: str | None = None) -> None:
        details: dict[str, Any] = {"attempts": attempts}
        if handle:
            details["external_handle"] = handle
        super().__init__(f"Generation timed out after {attempts} status checks", details)


class JobCancelledError(TrailerError):
    """Raised inside a poll loop when cancellation of the job was requested."""

    def __init__(self, job_id: Any) -> None:
        super().__init__(f"Job cancelled: {job_id}", {"job_id": str(job_id)})


class PersistenceError(TrailerError):
    """Raised when the job store or project store cannot be written or read."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)
