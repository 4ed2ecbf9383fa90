"""
KerbAuth Core Module

Provides foundational types and abstractions used across the package.

Components:
- types: Core type definitions (Realm, Principal, ServicePrincipalName)
- state_machine: Base state machine with invariant checking
- exceptions: Custom exception types
"""

from kerbauth.core.types import (
    KERBEROS_MECHANISM_OID,
    ContextFlag,
    HandshakeState,
    IdentityOrigin,
    Principal,
    Realm,
    ServicePrincipalName,
)
from kerbauth.core.state_machine import StateMachineBase, Transition
from kerbauth.core.exceptions import (
    KerbAuthError,
    AuthenticationError,
    IdentityAcquisitionError,
    ContextNegotiationError,
    IntegratedAuthenticationError,
    HostResolutionError,
    DisposalError,
    StateError,
    ConfigurationError,
)

__all__ = [
    # Types
    "KERBEROS_MECHANISM_OID",
    "ContextFlag",
    "HandshakeState",
    "IdentityOrigin",
    "Principal",
    "Realm",
    "ServicePrincipalName",
    # State Machine
    "StateMachineBase",
    "Transition",
    # Exceptions
    "KerbAuthError",
    "AuthenticationError",
    "IdentityAcquisitionError",
    "ContextNegotiationError",
    "IntegratedAuthenticationError",
    "HostResolutionError",
    "DisposalError",
    "StateError",
    "ConfigurationError",
]
