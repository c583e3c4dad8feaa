"""tenant_registry

Revision ID: 4f1c2a9d7e01
Revises:
Create Date: 2026-10-19 00:01:00.000000

This migration adds:
- tenants: registry record and saga bookkeeping per tenant
- service_deployments: one row per (tenant, downstream service)
- tenant_resources: dedicated data stores of silo-tier services
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "4f1c2a9d7e01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "tenants",
        sa.Column("tenant_id", sa.String(63), primary_key=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("admin_email", sa.String(255), nullable=False),
        sa.Column(
            "plan",
            sa.Enum("pooled", "silo", name="tenant_plan", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "Provisioning",
                "Active",
                "Deprovisioning",
                "Deleted",
                "Failed",
                name="tenant_status",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("completed_stages", sa.JSON(), nullable=False),
        sa.Column("failed_stage", sa.String(50), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("last_operation", sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_status", "tenants", ["status"])

    op.create_table(
        "service_deployments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(63), nullable=False),
        sa.Column("service_name", sa.String(100), nullable=False),
        sa.Column("image", sa.String(512), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "Pending",
                "Deployed",
                "Failed",
                name="deployment_status",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("job_id", sa.String(128), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "tenant_id", "service_name", name="uq_deployment_tenant_service"
        ),
    )
    op.create_index(
        "ix_service_deployments_tenant_id", "service_deployments", ["tenant_id"]
    )

    op.create_table(
        "tenant_resources",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(63), nullable=False),
        sa.Column("service_name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(100), nullable=False),
        sa.Column("resource_name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "tenant_id", "resource_name", name="uq_resource_tenant_name"
        ),
    )
    op.create_index("ix_tenant_resources_tenant_id", "tenant_resources", ["tenant_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_tenant_resources_tenant_id", table_name="tenant_resources")
    op.drop_table("tenant_resources")
    op.drop_index("ix_service_deployments_tenant_id", table_name="service_deployments")
    op.drop_table("service_deployments")
    op.drop_index("ix_tenants_status", table_name="tenants")
    op.drop_table("tenants")
