"""Schemas for tenant execution identities and their permission policies."""

from pydantic import BaseModel, ConfigDict, Field


class PolicyStatement(BaseModel):
    """One allow statement of a permission policy."""

    model_config = ConfigDict(frozen=True)

    actions: tuple[str, ...]
    resources: tuple[str, ...]
    effect: str = "Allow"


class PermissionPolicy(BaseModel):
    """Least-privilege permission set bound to a tenant identity."""

    model_config = ConfigDict(frozen=True)

    statements: tuple[PolicyStatement, ...] = Field(default_factory=tuple)

    def allows(self, action: str, resource: str) -> bool:
        """Check whether the policy grants ``action`` on ``resource``.

        Resource patterns support a single leading ``*`` wildcard.
        """
        for statement in self.statements:
            if action not in statement.actions:
                continue
            for pattern in statement.resources:
                if pattern == resource:
                    return True
                if pattern.startswith("*") and resource.endswith(pattern[1:]):
                    return True
        return False


class IdentityRef(BaseModel):
    """Reference to a namespace-scoped execution identity."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    tenant_id: str
    policy: PermissionPolicy
