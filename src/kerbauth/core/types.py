"""
KerbAuth Core Types

Fundamental type definitions for integrated authentication against
SQL Server.

Design Principles:
- Immutable: value types use frozen attrs
- Validated: type constraints enforced at construction
"""

from __future__ import annotations

import re
from enum import Enum, Flag, auto
from typing import Optional

import attrs
from attrs import field, validators


# Kerberos V5 GSS-API mechanism (RFC 1964)
KERBEROS_MECHANISM_OID = "1.2.840.113554.1.2.2"

SQL_SERVER_SERVICE = "MSSQLSvc"


# =============================================================================
# ENUMS
# =============================================================================


class HandshakeState(Enum):
    """
    Security context handshake state.

    NOT_STARTED -> IN_PROGRESS -> ESTABLISHED, or FAILED from any
    non-terminal state.
    """

    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    ESTABLISHED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (HandshakeState.ESTABLISHED, HandshakeState.FAILED)


class ContextFlag(Flag):
    """Requirement flags requested when creating a security context."""

    MUTUAL = auto()  # Peer must prove its identity too
    DELEG = auto()   # Allow forwarding of the caller's credential
    INTEG = auto()   # Protect exchanged data from tampering

    @classmethod
    def driver_default(cls) -> "ContextFlag":
        """Flags requested by the driver for every connection."""
        return cls.MUTUAL | cls.DELEG | cls.INTEG


class IdentityOrigin(Enum):
    """Where an identity came from."""

    AMBIENT = auto()  # Supplied by the execution context
    LOGIN = auto()    # Obtained by an explicit login


# =============================================================================
# IDENTITY TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class Realm:
    """
    Kerberos realm.

    INVARIANT: name is uppercase per convention
    """

    name: str = field(validator=validators.instance_of(str))

    def __attrs_post_init__(self) -> None:
        if self.name != self.name.upper():
            object.__setattr__(self, "name", self.name.upper())

    def __str__(self) -> str:
        return self.name


@attrs.define(frozen=True, slots=True)
class Principal:
    """
    Kerberos principal.

    Format: name@realm (e.g., user@CORP.CONTOSO.COM)

    INVARIANT: name and realm are non-empty
    """

    name: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    realm: Realm = field(validator=validators.instance_of(Realm))

    @classmethod
    def from_string(cls, principal_str: str) -> Principal:
        """
        Parse principal from string format.

        Examples:
            "user@REALM.COM" -> Principal(name="user", realm=Realm("REALM.COM"))
            "MSSQLSvc/db:1433@REALM.COM" -> Principal(name="MSSQLSvc/db:1433", ...)
        """
        if "@" not in principal_str:
            raise ValueError(f"Invalid principal format: {principal_str}")

        # Split on last @ to handle names with @ in them
        at_pos = principal_str.rfind("@")
        name = principal_str[:at_pos]
        realm = principal_str[at_pos + 1 :]

        return cls(name=name, realm=Realm(realm))

    def __str__(self) -> str:
        return f"{self.name}@{self.realm}"


# =============================================================================
# SERVICE PRINCIPAL NAME
# =============================================================================

# MSSQLSvc/<dnsName>:<portOrInstance>[@realm]
SPN_PATTERN = re.compile(r"MSSQLSvc/(.*):([^:@]+)(@.+)?", re.IGNORECASE)


@attrs.define(frozen=True, slots=True)
class ServicePrincipalName:
    """
    SQL Server service principal name.

    Format: MSSQLSvc/host:port[@REALM] where port may also be a
    named instance.
    """

    host: str
    port_or_instance: str
    realm: Optional[Realm] = None
    service: str = SQL_SERVER_SERVICE

    @classmethod
    def parse(cls, spn: str) -> Optional[ServicePrincipalName]:
        """
        Parse a SQL Server SPN.

        Returns None for anything not shaped like
        MSSQLSvc/host:port[@realm], such as custom SPNs.
        """
        match = SPN_PATTERN.fullmatch(spn)
        if match is None:
            return None
        realm = match.group(3)
        return cls(
            host=match.group(1),
            port_or_instance=match.group(2),
            realm=Realm(realm[1:]) if realm else None,
        )

    def with_realm(self, realm: Realm, host: Optional[str] = None) -> ServicePrincipalName:
        """Return a copy qualified with realm, optionally on another host."""
        return attrs.evolve(self, realm=realm, host=host or self.host)

    def __str__(self) -> str:
        spn = f"{self.service}/{self.host}:{self.port_or_instance}"
        if self.realm is not None:
            spn = f"{spn}@{self.realm}"
        return spn
