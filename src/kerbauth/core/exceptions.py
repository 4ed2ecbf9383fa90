"""
KerbAuth Exception Types

Custom exceptions for integrated (Kerberos) authentication errors.

Fatal kinds (identity acquisition, context negotiation) end the connection
attempt. Soft kinds (realm and host resolution) only disable SPN enrichment.
Disposal errors are logged and suppressed during teardown.
"""

from typing import Optional


class KerbAuthError(Exception):
    """Base exception for all KerbAuth errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class AuthenticationError(KerbAuthError):
    """
    Authentication failed.

    Base class for the fatal error kinds surfaced to the connection.
    """

    pass


class IdentityAcquisitionError(AuthenticationError):
    """
    No usable identity could be obtained.

    Raised when there is no ambient identity and the explicit login
    (ticket cache, keytab or password) failed.
    """

    pass


class ContextNegotiationError(AuthenticationError):
    """
    Security context negotiation failed.

    Covers credential acquisition, context creation and token exchange
    failures, including a missing output token before establishment.
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        major: Optional[int] = None,
        minor: Optional[int] = None,
    ) -> None:
        super().__init__(message, code)
        self.major = major
        self.minor = minor


class IntegratedAuthenticationError(AuthenticationError):
    """
    Connection attempt terminated by an integrated authentication failure.

    This is the error a driver user sees; the underlying failure is
    available as ``__cause__``.
    """

    DEFAULT_MESSAGE = "Integrated authentication failed."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)


class ResolutionError(KerbAuthError):
    """
    Name resolution failed.

    Never surfaced by SPN enrichment, which then leaves the SPN unchanged.
    """

    pass


class HostResolutionError(ResolutionError):
    """A host name could not be resolved or canonicalized."""

    def __init__(self, host: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Cannot resolve host {host}")
        self.host = host


class DisposalError(KerbAuthError):
    """
    Releasing a credential, security context or identity failed.

    Logged and suppressed so that an earlier authentication error stays
    the one visible to the caller.
    """

    pass


class StateError(KerbAuthError):
    """
    Invalid state transition.

    An operation was attempted that is not valid in the current
    handshake state.
    """

    pass


class ConfigurationError(KerbAuthError):
    """Invalid connection property or login configuration."""

    pass
