"""
KerbAuth Authentication Module

Integrated authentication of a SQL Server connection.

Components:
- handshake: Security context handshake state machine
- context: Authentication context driving identity acquisition,
  context negotiation and teardown
"""

from kerbauth.auth.handshake import (
    ContextCreated,
    ContextEstablished,
    HandshakeStateMachine,
    NegotiationFailed,
    TokenExchanged,
)
from kerbauth.auth.context import KerberosAuthentication

__all__ = [
    # Handshake
    "HandshakeStateMachine",
    "ContextCreated",
    "TokenExchanged",
    "ContextEstablished",
    "NegotiationFailed",
    # Orchestrator
    "KerberosAuthentication",
]
