"""
KerbAuth DNS Locator

DNS-based Kerberos realm discovery and host name canonicalization.

Supports:
- KDC discovery through SRV records (_kerberos._tcp / _kerberos._udp)
- Realm validity check: a realm exists if it publishes KDC SRV records
- Canonical host name lookup (forward then reverse resolution)
"""

from __future__ import annotations

import socket
from typing import List, Tuple

import dns.exception
import dns.resolver
import structlog

from kerbauth.core.exceptions import HostResolutionError

logger = structlog.get_logger()


# =============================================================================
# DNS DISCOVERY
# =============================================================================


def discover_kdc_servers(realm: str) -> List[Tuple[str, int]]:
    """
    Discover KDC servers for a realm using DNS SRV records.

    Queries: _kerberos._tcp.<realm>
             _kerberos._udp.<realm>

    Args:
        realm: Kerberos realm name

    Returns:
        List of (hostname, port) tuples sorted by priority; empty when
        the realm publishes no records or DNS fails
    """
    servers = []

    for proto in ["_tcp", "_udp"]:
        srv_name = f"_kerberos.{proto}.{realm.lower()}"
        try:
            answers = dns.resolver.resolve(srv_name, "SRV")
            for rdata in answers:
                servers.append({
                    "host": str(rdata.target).rstrip("."),
                    "port": rdata.port,
                    "priority": rdata.priority,
                    "weight": rdata.weight,
                })
        except dns.exception.DNSException as e:
            logger.debug("dns_srv_lookup_failed", name=srv_name, error=str(e))

    # Sort by priority (lower is better), then weight (higher is better)
    servers.sort(key=lambda x: (x["priority"], -x["weight"]))

    return [(s["host"], s["port"]) for s in servers]


def locate_realm(realm: str) -> bool:
    """
    Check whether realm is a known Kerberos realm.

    A realm is valid when DNS publishes at least one KDC for it. Lookup
    failures count as "not valid" and are never raised.
    """
    if realm is None:
        return False
    if realm.startswith("."):
        realm = realm[1:]
    if len(realm) < 2:
        return False

    found = bool(discover_kdc_servers(realm))
    logger.debug("dns_realm_lookup", realm=realm, found=found)
    return found


# =============================================================================
# HOST CANONICALIZATION
# =============================================================================


def resolve_canonical_hostname(name: str) -> str:
    """
    Resolve the fully qualified name of a host.

    The name is resolved to an address which is then reverse resolved.
    An address without a PTR record canonicalizes to its textual form.

    Raises:
        HostResolutionError: If the forward lookup fails
    """
    try:
        infos = socket.getaddrinfo(name, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise HostResolutionError(name, f"Cannot resolve host {name}: {e}") from e

    address = infos[0][4][0]
    try:
        canonical, _, _ = socket.gethostbyaddr(address)
    except OSError as e:
        logger.debug("reverse_lookup_failed", address=address, error=str(e))
        return address

    logger.debug("host_canonicalized", name=name, canonical=canonical)
    return canonical
