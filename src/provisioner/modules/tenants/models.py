"""Tenant registry database models."""

import enum

from sqlalchemy import JSON, Enum, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from provisioner.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_IMAGE_LENGTH,
    MAX_JOB_ID_LENGTH,
    MAX_NAME_LENGTH,
    MAX_RESOURCE_NAME_LENGTH,
    MAX_SERVICE_NAME_LENGTH,
    MAX_TENANT_ID_LENGTH,
)
from provisioner.core.database.base import Base, TimestampMixin


class TenantPlan(enum.StrEnum):
    """Commercial tier chosen at signup."""

    POOLED = "pooled"
    SILO = "silo"


class TenantStatus(enum.StrEnum):
    """Lifecycle state of a tenant."""

    PROVISIONING = "Provisioning"
    ACTIVE = "Active"
    DEPROVISIONING = "Deprovisioning"
    DELETED = "Deleted"
    FAILED = "Failed"


class DeploymentStatus(enum.StrEnum):
    """State of one service's deployment into a tenant namespace."""

    PENDING = "Pending"
    DEPLOYED = "Deployed"
    FAILED = "Failed"


# Allowed lifecycle transitions; anything else is rejected.
TENANT_TRANSITIONS: dict[TenantStatus, frozenset[TenantStatus]] = {
    TenantStatus.PROVISIONING: frozenset({TenantStatus.ACTIVE, TenantStatus.FAILED}),
    TenantStatus.ACTIVE: frozenset({TenantStatus.DEPROVISIONING}),
    TenantStatus.FAILED: frozenset(
        {TenantStatus.PROVISIONING, TenantStatus.DEPROVISIONING}
    ),
    TenantStatus.DEPROVISIONING: frozenset({TenantStatus.DELETED, TenantStatus.FAILED}),
    TenantStatus.DELETED: frozenset(),
}


def can_transition(current: TenantStatus, target: TenantStatus) -> bool:
    """Check whether a tenant may move from ``current`` to ``target``."""
    return target in TENANT_TRANSITIONS[current]


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Tenant(Base, TimestampMixin):
    """Authoritative record of a tenant's identity and lifecycle state.

    The primary key is the derived tenant id, so inserting a second record
    for the same id fails at the database. That insert-if-absent is the
    mutual-exclusion gate for onboarding.

    Attributes:
        tenant_id: Slug derived from the company name (partition key)
        company_name: Company name as entered at signup
        admin_email: Tenant administrator's email
        plan: Pooled or silo tier
        status: Current lifecycle status
        completed_stages: Stages whose forward action is applied and
            whose compensation has not run yet, in execution order
        failed_stage: Stage that caused the last transition to Failed
        last_error: Stage-indexed message of the last failure
        last_operation: Lifecycle operation that last touched the record
    """

    __tablename__ = "tenants"

    tenant_id: Mapped[str] = mapped_column(
        String(MAX_TENANT_ID_LENGTH),
        primary_key=True,
    )
    company_name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    admin_email: Mapped[str] = mapped_column(String(MAX_EMAIL_LENGTH), nullable=False)
    plan: Mapped[TenantPlan] = mapped_column(
        _enum_column(TenantPlan, "tenant_plan"),
        nullable=False,
    )
    status: Mapped[TenantStatus] = mapped_column(
        _enum_column(TenantStatus, "tenant_status"),
        nullable=False,
        index=True,
    )

    # Saga bookkeeping
    completed_stages: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    failed_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_operation: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Tenant {self.tenant_id} status={self.status}>"


class ServiceDeploymentRecord(Base, TimestampMixin):
    """Deployment state of one downstream service in one tenant namespace."""

    __tablename__ = "service_deployments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "service_name", name="uq_deployment_tenant_service"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        String(MAX_TENANT_ID_LENGTH),
        index=True,
        nullable=False,
    )
    service_name: Mapped[str] = mapped_column(
        String(MAX_SERVICE_NAME_LENGTH),
        nullable=False,
    )
    image: Mapped[str] = mapped_column(String(MAX_IMAGE_LENGTH), nullable=False)
    status: Mapped[DeploymentStatus] = mapped_column(
        _enum_column(DeploymentStatus, "deployment_status"),
        nullable=False,
    )
    job_id: Mapped[str | None] = mapped_column(String(MAX_JOB_ID_LENGTH), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)


class TenantResource(Base, TimestampMixin):
    """Dedicated data store allocated to a tenant for a silo-tier service.

    Owned exclusively by its tenant; created during onboarding and removed
    during deprovisioning.
    """

    __tablename__ = "tenant_resources"
    __table_args__ = (
        UniqueConstraint("tenant_id", "resource_name", name="uq_resource_tenant_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        String(MAX_TENANT_ID_LENGTH),
        index=True,
        nullable=False,
    )
    service_name: Mapped[str] = mapped_column(
        String(MAX_SERVICE_NAME_LENGTH),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(MAX_SERVICE_NAME_LENGTH), nullable=False)
    resource_name: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_NAME_LENGTH),
        nullable=False,
    )
