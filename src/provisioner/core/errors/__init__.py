"""Error taxonomy for the tenant lifecycle and its RFC 7807 rendering."""

from provisioner.core.errors.exceptions import (
    AppException,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PartialDeploymentError,
    ProvisioningFailure,
    ResourceConflictError,
    ServiceUnavailableError,
    ValidationError,
)
from provisioner.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    problem_from_exception,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "ConflictError",
    # Handlers
    "FieldError",
    "InvalidStateError",
    "NotFoundError",
    "PartialDeploymentError",
    "ProblemDetail",
    "ProvisioningFailure",
    "ResourceConflictError",
    "ServiceUnavailableError",
    "ValidationError",
    "problem_from_exception",
    "register_exception_handlers",
]
