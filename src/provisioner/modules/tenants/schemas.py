"""Pydantic schemas for tenant lifecycle requests and registry views."""

from datetime import datetime
from typing import Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from provisioner.core.constants import MAX_NAME_LENGTH, MAX_TENANT_ID_LENGTH
from provisioner.core.errors import ValidationError
from provisioner.core.utils.text import tenant_slug
from provisioner.modules.tenants.models import TenantPlan, TenantStatus


def validation_error_from(exc: PydanticValidationError, message: str) -> ValidationError:
    """Convert a pydantic error into the domain ValidationError."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "unknown",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return ValidationError(message, errors=errors)


class TenantJobParams(BaseModel):
    """Typed parameters of a tenant lifecycle job.

    Validated once at the pipeline boundary and passed unchanged to every
    stage and fan-out trigger. The aliases are the trigger's named
    parameters (``TENANT_ID``, ``COMPANY_NAME``, ``ADMIN_EMAIL``, ``PLAN``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tenant_id: str = Field("", alias="TENANT_ID", max_length=MAX_TENANT_ID_LENGTH)
    company_name: str = Field(..., alias="COMPANY_NAME", max_length=MAX_NAME_LENGTH)
    admin_email: EmailStr = Field(..., alias="ADMIN_EMAIL")
    plan: TenantPlan = Field(..., alias="PLAN")

    @field_validator("company_name")
    @classmethod
    def company_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Company name must not be empty")
        return v

    @field_validator("plan", mode="before")
    @classmethod
    def normalize_plan(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def derive_tenant_id(self) -> Self:
        tenant_id = self.tenant_id.strip()
        if not tenant_id:
            tenant_id = tenant_slug(self.company_name)
            if not tenant_id:
                raise ValueError(
                    "Company name must contain at least one letter or digit"
                )
        elif tenant_slug(tenant_id) != tenant_id:
            raise ValueError(
                "Tenant id must be lower-case letters and digits only"
            )
        # Frozen model: bypass __setattr__ for the derived value
        object.__setattr__(self, "tenant_id", tenant_id)
        return self

    @classmethod
    def from_signup(
        cls,
        company_name: str,
        admin_email: str,
        plan: str | TenantPlan,
        tenant_id: str | None = None,
    ) -> Self:
        """Validate signup input.

        Raises:
            ValidationError: If any field is malformed
        """
        try:
            return cls(
                tenant_id=tenant_id or "",
                company_name=company_name,
                admin_email=admin_email,
                plan=plan,
            )
        except PydanticValidationError as e:
            raise validation_error_from(e, "Invalid onboarding request") from e

    @classmethod
    def from_trigger(cls, params: dict[str, Any]) -> Self:
        """Validate the named parameters of an onboarding trigger."""
        try:
            return cls.model_validate(params)
        except PydanticValidationError as e:
            raise validation_error_from(e, "Invalid onboarding trigger") from e

    def to_trigger(self) -> dict[str, str]:
        """Render the named trigger parameters."""
        return self.model_dump(mode="json", by_alias=True)


class OnboardRequest(BaseModel):
    """HTTP request body for the onboarding trigger."""

    company_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    admin_email: EmailStr
    plan: TenantPlan
    tenant_id: str | None = Field(None, max_length=MAX_TENANT_ID_LENGTH)


class TenantRead(BaseModel):
    """Registry view of a tenant."""

    model_config = ConfigDict(from_attributes=True)

    tenant_id: str
    company_name: str
    admin_email: str
    plan: TenantPlan
    status: TenantStatus
    completed_stages: list[str]
    failed_stage: str | None
    last_error: str | None
    created_at: datetime


class JobAccepted(BaseModel):
    """Response of an asynchronous lifecycle trigger."""

    job_id: str
    tenant_id: str
    operation: str


class JobStatusRead(BaseModel):
    """Status of a lifecycle job and, when finished, its terminal result."""

    job_id: str
    status: str
    result: dict[str, Any] | None = None
