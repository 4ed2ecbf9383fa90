"""
KerbAuth Realm Module

Kerberos realm discovery for SPN enrichment.

Components:
- krb5_config: Host Kerberos profile (krb5.conf) reader
- validator: Realm validation strategies and process-wide selection
- resolver: Realm search over the DNS labels of a host name
"""

from kerbauth.realm.krb5_config import Krb5Config
from kerbauth.realm.validator import (
    DnsRealmValidator,
    NativeRealmValidator,
    RealmValidator,
    get_realm_validator,
    reset_realm_validator,
)
from kerbauth.realm.resolver import find_realm

__all__ = [
    "Krb5Config",
    "RealmValidator",
    "NativeRealmValidator",
    "DnsRealmValidator",
    "get_realm_validator",
    "reset_realm_validator",
    "find_realm",
]
