"""
KerbAuth Authentication Context

Integrated (Kerberos) authentication for one SQL Server connection.

Lifecycle:
    auth = KerberosAuthentication(connection, "db1.example.com", 1433)
    try:
        token, done = auth.generate_client_context(b"")
        while not done:
            server_token = send_and_receive(token)
            token, done = auth.generate_client_context(server_token)
    finally:
        auth.release_client_context()

Construction only computes the SPN. Identity acquisition and context
creation happen on the first handshake round. Any fatal error goes
through the connection's report_fatal_auth_failure(), which terminates
the connection attempt.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional, Tuple

import attrs
import structlog
from returns.result import Failure

from kerbauth.auth.handshake import (
    ContextCreated,
    ContextEstablished,
    HandshakeStateMachine,
    NegotiationFailed,
    TokenExchanged,
)
from kerbauth.core.exceptions import (
    AuthenticationError,
    ContextNegotiationError,
    IntegratedAuthenticationError,
    StateError,
)
from kerbauth.core.identity import Identity
from kerbauth.core.interfaces import (
    AuthConnection,
    Credential,
    CredentialProvider,
    SecurityContext,
    SecurityContextFactory,
)
from kerbauth.core.types import KERBEROS_MECHANISM_OID, HandshakeState
from kerbauth.spn.builder import build_spn, normalize_user_supplied_spn
from kerbauth.spn.enricher import SpnEnricher, default_enricher
from kerbauth.transport.gssapi_wrapper import GSSAPIContextFactory, GSSAPICredentialProvider

logger = structlog.get_logger()

INTEGRATED_AUTH_FAILED = IntegratedAuthenticationError.DEFAULT_MESSAGE


@attrs.define
class KerberosAuthentication:
    """
    Kerberos security context negotiation for a connection.

    Attributes:
        connection: Connection being established
        host: Server host name or address
        port: Server port
        credential_provider: Identity and credential acquisition
        context_factory: Security context creation
        enricher: SPN realm enrichment
    """

    connection: AuthConnection
    host: str
    port: int
    credential_provider: CredentialProvider = attrs.Factory(GSSAPICredentialProvider)
    context_factory: SecurityContextFactory = attrs.Factory(GSSAPIContextFactory)
    enricher: SpnEnricher = default_enricher

    spn: str = attrs.field(init=False)

    _identity: Optional[Identity] = attrs.field(init=False, default=None)
    _logged_in: bool = attrs.field(init=False, default=False)
    _credential: Optional[Credential] = attrs.field(init=False, default=None)
    _context: Optional[SecurityContext] = attrs.field(init=False, default=None)
    _released: bool = attrs.field(init=False, default=False)
    _handshake: HandshakeStateMachine = attrs.field(init=False, factory=HandshakeStateMachine)
    _logger: Any = attrs.field(init=False, factory=lambda: structlog.get_logger())

    def __attrs_post_init__(self) -> None:
        self._logger = self._logger.bind(host=self.host, port=self.port)

        ace_mode = self.connection.server_name_as_ace
        user_spn = self.connection.server_spn
        if user_spn is not None:
            spn = normalize_user_supplied_spn(user_spn, ace_mode)
        else:
            spn = build_spn(self.host, self.port, ace_mode)

        # A user supplied SPN names the exact host to trust
        self.spn = self.enricher.enrich(spn, allow_canonicalization=user_spn is None)
        if self.spn != spn:
            self._logger.debug("spn_enriched", spn=spn, enriched=self.spn)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> HandshakeState:
        return self._handshake.state

    @property
    def is_established(self) -> bool:
        return self._handshake.state is HandshakeState.ESTABLISHED

    @property
    def handshake(self) -> HandshakeStateMachine:
        return self._handshake

    # =========================================================================
    # HANDSHAKE
    # =========================================================================

    def generate_client_context(self, in_token: Optional[bytes]) -> Tuple[Optional[bytes], bool]:
        """
        Run one handshake round.

        Args:
            in_token: Token sent by the server (empty or None on the
                first round)

        Returns:
            (token to send to the server, whether the context is established)
        """
        if self._released:
            self._fail(StateError("Authentication context already released"))
        if self._handshake.state.is_terminal:
            self._fail(StateError(f"Handshake already {self._handshake.state.name.lower()}"))

        if self._context is None:
            self._init_context()
        return self._handshake_round(in_token)

    def _init_context(self) -> None:
        """Acquire identity and credential, create the security context."""
        provider = self.credential_provider
        try:
            identity = provider.acquire_ambient_identity()
            if identity is None:
                self._logger.debug("login_start", config=self.connection.login_configuration)
                identity = provider.login(self.connection.login_configuration)
                self._logged_in = True
            self._identity = identity

            self._logger.debug("getting_client_credentials")
            self._credential = provider.acquire_credential(identity, KERBEROS_MECHANISM_OID)

            self._logger.debug("creating_security_context", spn=self.spn)
            self._context = self.context_factory.create_context(
                self.spn, KERBEROS_MECHANISM_OID, self._credential
            )
        except AuthenticationError as e:
            self._logger.debug("auth_init_failed", error=str(e))
            self._fail(e)

        self._transition(ContextCreated(peer_name=self.spn))

    def _handshake_round(self, in_token: Optional[bytes]) -> Tuple[Optional[bytes], bool]:
        self._logger.debug("sending_token", in_length=len(in_token or b""))
        try:
            out_token = self._context.step(in_token)
        except AuthenticationError as e:
            self._logger.debug("security_context_step_failed", error=str(e))
            self._fail(e)

        in_length = len(in_token or b"")
        out_length = None if out_token is None else len(out_token)

        if self._context.is_established():
            self._transition(ContextEstablished(in_length=in_length, out_length=out_length))
            self._logger.debug("authentication_done", rounds=self._handshake.rounds)
            return out_token, True

        if out_token is None:
            self._logger.info("null_token_before_establishment")
            self._fail(ContextNegotiationError("Security context produced no token before establishment"))

        self._transition(TokenExchanged(in_length=in_length, out_length=out_length))
        return out_token, False

    def _transition(self, event: object) -> None:
        result = self._handshake.process_event(event)
        if isinstance(result, Failure):
            self._fail(StateError(result.failure()))

    def _fail(self, error: Exception) -> NoReturn:
        """Report a fatal failure to the connection; never returns."""
        if self._handshake.state in (HandshakeState.NOT_STARTED, HandshakeState.IN_PROGRESS):
            self._handshake.process_event(NegotiationFailed(reason=str(error)))
        self.connection.report_fatal_auth_failure(INTEGRATED_AUTH_FAILED, error)
        # The connection must not return; make sure this call does not either
        raise IntegratedAuthenticationError(INTEGRATED_AUTH_FAILED) from error

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def release_client_context(self) -> None:
        """
        Release credential, security context and login identity.

        Each release is attempted even if another one failed; failures are
        logged and suppressed so that an earlier authentication error stays
        the one the caller sees. Calling it again is a no-op.
        """
        credential, self._credential = self._credential, None
        context, self._context = self._context, None
        identity, self._identity = self._identity, None
        logged_in, self._logged_in = self._logged_in, False
        self._released = True

        if credential is not None:
            try:
                credential.dispose()
            except Exception as e:
                self._logger.warning("release_failed", resource="credential", error=str(e))

        if context is not None:
            try:
                context.dispose()
            except Exception as e:
                self._logger.warning("release_failed", resource="security_context", error=str(e))

        # An ambient identity belongs to the caller
        if identity is not None and logged_in:
            try:
                self.credential_provider.logout(identity)
            except Exception as e:
                self._logger.warning("release_failed", resource="identity", error=str(e))

    def __enter__(self) -> "KerberosAuthentication":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release_client_context()
