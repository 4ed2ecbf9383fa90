"""
KerbAuth Transport Layer

Network and native library integration.

Components:
- dns_locator: KDC SRV discovery and host canonicalization
- gssapi_wrapper: GSSAPI integration (MIT Kerberos / Heimdal)
"""

from kerbauth.transport.dns_locator import (
    discover_kdc_servers,
    locate_realm,
    resolve_canonical_hostname,
)
from kerbauth.transport.gssapi_wrapper import (
    GSSAPIContextFactory,
    GSSAPICredentialProvider,
    GSSAPISecurityContext,
    gssapi_available,
)

__all__ = [
    # DNS
    "discover_kdc_servers",
    "locate_realm",
    "resolve_canonical_hostname",
    # GSSAPI
    "GSSAPIContextFactory",
    "GSSAPICredentialProvider",
    "GSSAPISecurityContext",
    "gssapi_available",
]
