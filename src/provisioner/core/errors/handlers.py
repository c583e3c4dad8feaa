"""RFC 7807 Problem Details rendering of lifecycle errors.

Domain exceptions and request validation errors share one body shape:
``type``/``title``/``status``/``detail`` plus ``error_code``, field-level
``errors`` for validation failures and the exception details as extension
members (``tenant_id``, ``stage``, ``failed_services``, ...).

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from provisioner.config import settings
from provisioner.core.errors.exceptions import AppException, ValidationError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()


class FieldError(BaseModel):
    """One rejected input field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 body returned by the trigger API.

    Attributes:
        type: URI of the error code's documentation
        title: Error code in title case
        status: HTTP status code
        detail: The exception message
        instance: Request path that failed
        error_code: Machine-readable code of the domain exception
        errors: Field-level errors of a validation failure
    """

    model_config = ConfigDict(extra="allow")

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    error_code: str
    errors: list[FieldError] | None = None


def problem_type(error_code: str) -> str:
    return f"{settings.api_docs_base_url}/errors/{error_code}"


def problem_from_exception(exc: AppException, instance: str | None = None) -> dict[str, Any]:
    """Render a domain exception as a Problem Details body.

    A ``ValidationError``'s field errors become the ``errors`` member; every
    other detail is added as an extension member unless it would shadow a
    standard one.
    """
    extensions = dict(exc.details)
    errors = None
    if isinstance(exc, ValidationError):
        errors = [FieldError(**e) for e in extensions.pop("errors", [])]

    problem = ProblemDetail(
        type=problem_type(exc.error_code),
        title=exc.error_code.replace("_", " ").title(),
        status=exc.status_code,
        detail=exc.message,
        instance=instance,
        error_code=exc.error_code,
        errors=errors or None,
    ).model_dump(exclude_none=True)

    for key, value in extensions.items():
        problem.setdefault(key, value)
    return problem


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "lifecycle_error",
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        tenant_id=exc.details.get("tenant_id"),
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem_from_exception(exc, instance=request.url.path),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed trigger bodies in the same shape as domain validation."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in e.get("loc", ()) if part != "body")
            or "unknown",
            message=e.get("msg", "Invalid value"),
            type=e.get("type"),
        )
        for e in exc.errors()
    ]
    logger.warning("request_rejected", path=request.url.path, error_count=len(errors))

    problem = ProblemDetail(
        type=problem_type(ValidationError.error_code),
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="Request validation failed",
        instance=request.url.path,
        error_code=ValidationError.error_code,
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=problem.model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the Problem Details handlers with the FastAPI app."""
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
