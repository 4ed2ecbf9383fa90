"""
KerbAuth - Integrated Kerberos authentication for SQL Server clients

This package derives the service principal name (SPN) of a SQL Server
instance, qualifies it with the server's Kerberos realm, and drives the
GSSAPI security context handshake with the server.

Features:
- MSSQLSvc/host:port SPN construction, IDN (ACE) host names
- Realm discovery from krb5.conf or DNS SRV records
- Ambient identity or explicit login (ticket cache, keytab, password)
- Mutual authentication with credential delegation and integrity

Example Usage:
    from kerbauth import ConfiguredConnection, KerberosAuthentication

    connection = ConfiguredConnection.from_properties({"serverNameAsACE": "false"})
    with KerberosAuthentication(connection, "db1.example.com", 1433) as auth:
        token, done = auth.generate_client_context(b"")
        while not done:
            token, done = auth.generate_client_context(exchange(token))
"""

from kerbauth.core.types import HandshakeState, Principal, Realm, ServicePrincipalName
from kerbauth.core.identity import Identity, identity_scope
from kerbauth.core.exceptions import IntegratedAuthenticationError
from kerbauth.config import AuthConfig, LoginEntry, login_configuration
from kerbauth.connection import ConfiguredConnection
from kerbauth.spn import build_spn, enrich_spn, normalize_user_supplied_spn
from kerbauth.realm import find_realm, get_realm_validator
from kerbauth.auth import KerberosAuthentication

__version__ = "0.1.0"

__all__ = [
    # Main API
    "KerberosAuthentication",
    "ConfiguredConnection",
    "AuthConfig",
    "LoginEntry",
    "login_configuration",
    "Identity",
    "identity_scope",
    # SPN and realm
    "build_spn",
    "normalize_user_supplied_spn",
    "enrich_spn",
    "find_realm",
    "get_realm_validator",
    # Types
    "HandshakeState",
    "Principal",
    "Realm",
    "ServicePrincipalName",
    "IntegratedAuthenticationError",
    # Metadata
    "__version__",
]
