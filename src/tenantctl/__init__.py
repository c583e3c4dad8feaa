"""tenantctl - operator CLI for the tenant lifecycle orchestrator."""

__version__ = "0.1.0"
