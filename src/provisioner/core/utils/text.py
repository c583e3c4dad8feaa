"""Text processing utilities."""

import re

from provisioner.core.constants import MAX_TENANT_ID_LENGTH


_NON_ALNUM = re.compile(r"[^a-z0-9]")


def tenant_slug(name: str, max_length: int = MAX_TENANT_ID_LENGTH) -> str:
    """Derive a tenant id from a company name.

    The result is lower-cased with every non-alphanumeric character removed,
    so it is safe as a URL path segment and a Kubernetes namespace. The
    function is idempotent: ``tenant_slug(tenant_slug(x)) == tenant_slug(x)``.

    Args:
        name: The company name as entered at signup
        max_length: Maximum length of the slug (default 63)

    Returns:
        URL-safe lowercase tenant id, possibly empty

    Examples:
        >>> tenant_slug("Acme Corp!")
        'acmecorp'
        >>> tenant_slug("Hello, World 2024")
        'helloworld2024'
    """
    return _NON_ALNUM.sub("", name.lower())[:max_length]
