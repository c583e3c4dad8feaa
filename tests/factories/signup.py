"""Factory for onboarding signups."""

from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from provisioner.modules.tenants.models import TenantPlan
from provisioner.modules.tenants.schemas import OnboardRequest


class SignupFactory(ModelFactory[OnboardRequest]):
    """Factory for generating signup data.

    Company names carry a random suffix so their slugs never collide.
    """

    __model__ = OnboardRequest

    @classmethod
    def company_name(cls) -> str:
        """Generate a company name."""
        return f"{cls.__faker__.company()} {uuid4().hex[:6]}"

    @classmethod
    def admin_email(cls) -> str:
        return f"admin-{uuid4().hex[:8]}@example.com"

    @classmethod
    def plan(cls) -> TenantPlan:
        return TenantPlan.POOLED

    @classmethod
    def tenant_id(cls) -> None:
        return None
