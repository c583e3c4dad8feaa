"""Domain exceptions for the orchestrator.

Every lifecycle failure is expressed as one of these exceptions. The HTTP
surface converts them to RFC 7807 Problem Details responses and the CLI maps
them to a non-zero exit code.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all orchestrator errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code used by the API surface
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested tenant or service is not found.

    Example:
        raise NotFoundError("Tenant not found", resource="tenant", resource_id=tid)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing state.

    Example:
        raise ConflictError("Route already claimed", details={"path": path})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ResourceConflictError(ConflictError):
    """Raised when a tenant id already exists in a non-Failed state."""

    message = "Tenant already exists"
    error_code = "resource_conflict"


class ValidationError(AppException):
    """Raised when onboarding input fails validation.

    No state has been mutated when this is raised.

    Example:
        raise ValidationError(
            "Invalid onboarding request",
            errors=[{"field": "admin_email", "message": "Invalid email format"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class InvalidStateError(AppException):
    """Raised when a tenant's status does not allow the requested operation."""

    message = "Invalid tenant state"
    error_code = "invalid_state"
    status_code = 409


class ProvisioningFailure(AppException):
    """Raised when a lifecycle stage fails.

    The tenant is left in Failed with the outputs of earlier stages retained.

    Attributes:
        stage: Name of the failed stage
        stage_index: 1-based position of the stage in the pipeline
        stage_count: Total number of stages in the pipeline
        applied_stages: Stages whose outputs are in place
    """

    message = "Provisioning failed"
    error_code = "provisioning_failure"
    status_code = 502

    def __init__(
        self,
        stage: str,
        stage_index: int,
        stage_count: int,
        cause: str,
        applied_stages: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        self.stage = stage
        self.stage_index = stage_index
        self.stage_count = stage_count
        self.applied_stages = list(applied_stages or [])
        details = kwargs.pop("details", {})
        details.update(
            {
                "stage": stage,
                "stage_index": stage_index,
                "applied_stages": self.applied_stages,
            }
        )
        super().__init__(
            message=f"stage {stage_index}/{stage_count} ({stage}) failed: {cause}",
            details=details,
            **kwargs,
        )


class PartialDeploymentError(AppException):
    """Reported when onboarding succeeded but some fan-out targets failed.

    The tenant is still Active; the listed services need an explicit redeploy.
    """

    message = "One or more service deployments failed"
    error_code = "partial_deployment"
    status_code = 207

    def __init__(self, failed_services: list[str], **kwargs: Any) -> None:
        self.failed_services = sorted(failed_services)
        details = kwargs.pop("details", {})
        details["failed_services"] = self.failed_services
        super().__init__(
            message=f"deployment failed for: {', '.join(self.failed_services)}",
            details=details,
            **kwargs,
        )


class ServiceUnavailableError(AppException):
    """Raised when a required collaborator (database, job queue) is unavailable."""

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503
