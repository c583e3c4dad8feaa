"""Application-wide constants.

This module defines constants used throughout the orchestrator
to avoid magic numbers and ensure consistency.
"""

# Tenant ids double as Kubernetes namespace names (DNS label limit)
MAX_TENANT_ID_LENGTH = 63

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_SERVICE_NAME_LENGTH = 100
MAX_RESOURCE_NAME_LENGTH = 255
MAX_IMAGE_LENGTH = 512
MAX_JOB_ID_LENGTH = 128

# Routing
MASTER_FRAGMENT_NAME = "default-primary-mergeable-ingress"
MERGEABLE_INGRESS_ANNOTATION = "nginx.org/mergeable-ingress-type"
INGRESS_CLASS_ANNOTATION = "kubernetes.io/ingress.class"
DEFAULT_BACKEND_PORT = 80

# Identity
SERVICE_ACCOUNT_SUFFIX = "service-account"
TENANT_REGISTRY_TABLE = "Tenant"

# Jobs
ONBOARD_JOB = "onboard_tenant"
DEPROVISION_JOB = "deprovision_tenant"
ROLLBACK_JOB = "rollback_tenant"
DEPLOY_JOB_SUFFIX = "TenantDeploy"
TEARDOWN_JOB_SUFFIX = "TenantTeardown"
