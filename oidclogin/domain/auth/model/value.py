"""Constants and helpers for the auth domain."""

import re

OIDC_PROVIDER = "oidc"
"""Provider key of the configured OpenID Connect provider."""

UNUSABLE_PASSWORD = "(disallow password login)"
"""Pre-hashed password placeholder stored for signed-up users.

It is never the output of the password hasher, so password login can never
succeed for such an account.
"""

# Labels are lowercase alphanumerics/hyphens, optional punycode or underscore prefix
DOMAIN_PATTERN = re.compile(
    r"^(((?!-))(xn--|_)?[a-z0-9-]{0,61}[a-z0-9]\.)*"
    r"(xn--)?([a-z0-9][a-z0-9\-]{0,60}|[a-z0-9-]{1,30}\.[a-z]{2,})$"
)


def email_domain(email: str) -> str:
    """Return the part of an e-mail address after the last ``@``."""
    return email.rpartition("@")[2]
