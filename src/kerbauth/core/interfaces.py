"""
KerbAuth Collaborator Interfaces

Boundaries between the authentication core and the parts it does not
own: the connection being established, identity and credential
acquisition, and the security context engine.

Default implementations:
- AuthConnection: kerbauth.connection.ConfiguredConnection
- CredentialProvider, SecurityContextFactory: kerbauth.transport.gssapi_wrapper
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NoReturn, Optional

from kerbauth.core.identity import Identity


class AuthConnection(ABC):
    """The connection an authentication context works for."""

    @property
    @abstractmethod
    def server_name_as_ace(self) -> bool:
        """Whether host names must be ASCII-Compatible-Encoded."""
        ...

    @property
    @abstractmethod
    def server_spn(self) -> Optional[str]:
        """SPN supplied in the connection properties, if any."""
        ...

    @property
    @abstractmethod
    def login_configuration(self) -> str:
        """Login configuration used when there is no ambient identity."""
        ...

    @abstractmethod
    def report_fatal_auth_failure(
        self, reason: str, cause: Optional[BaseException] = None
    ) -> NoReturn:
        """
        Abort the connection attempt.

        Must not return: implementations terminate the connection and
        raise the error the driver user will see.
        """
        ...


class Credential(ABC):
    """Initiate-only credential for one mechanism."""

    @abstractmethod
    def dispose(self) -> None:
        ...


class SecurityContext(ABC):
    """Client side of a security context handshake."""

    @abstractmethod
    def step(self, in_token: Optional[bytes]) -> Optional[bytes]:
        """Consume the peer's token, return the token to send (or None)."""
        ...

    @abstractmethod
    def is_established(self) -> bool:
        ...

    @abstractmethod
    def dispose(self) -> None:
        ...


class CredentialProvider(ABC):
    """Identity and credential acquisition."""

    @abstractmethod
    def acquire_ambient_identity(self) -> Optional[Identity]:
        """Identity carried by the execution context, None if there is none."""
        ...

    @abstractmethod
    def login(self, config_name: str) -> Identity:
        """
        Log in with a named login configuration.

        Raises:
            IdentityAcquisitionError: If no identity can be obtained
        """
        ...

    @abstractmethod
    def logout(self, identity: Identity) -> None:
        """Release an identity obtained with login()."""
        ...

    @abstractmethod
    def acquire_credential(self, identity: Identity, mechanism: str) -> Credential:
        """
        Acquire an initiate-only credential for identity.

        Raises:
            ContextNegotiationError: If the credential cannot be acquired
        """
        ...


class SecurityContextFactory(ABC):
    """Creates client security contexts."""

    @abstractmethod
    def create_context(
        self, peer_name: str, mechanism: str, credential: Credential
    ) -> SecurityContext:
        """
        Create a context for peer_name requesting mutual authentication,
        credential delegation and integrity.

        Raises:
            ContextNegotiationError: If the context cannot be created
        """
        ...
