"""HTTP trigger surface."""

from provisioner.api.router import api_router


__all__ = ["api_router"]
