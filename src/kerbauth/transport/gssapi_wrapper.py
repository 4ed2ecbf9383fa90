"""
KerbAuth GSSAPI Wrapper

Default CredentialProvider and SecurityContextFactory, backed by the
python-gssapi bindings to MIT Kerberos or Heimdal.

Identities come from the execution context (identity_scope) or from a
login entry: client keytab, password, or a credential cache. Contexts are
created for the Kerberos V5 mechanism with the driver's requirement flags.

Install with the optional extra: pip install mssql-kerbauth[gssapi]
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

import attrs
import structlog

from kerbauth.config import LoginConfiguration, LoginEntry, login_configuration
from kerbauth.core.exceptions import (
    ContextNegotiationError,
    DisposalError,
    IdentityAcquisitionError,
)
from kerbauth.core.identity import Identity, current_identity
from kerbauth.core.interfaces import (
    Credential,
    CredentialProvider,
    SecurityContext,
    SecurityContextFactory,
)
from kerbauth.core.types import ContextFlag, IdentityOrigin, Principal

logger = structlog.get_logger()

# Check if GSSAPI is available
try:
    import gssapi
    from gssapi import raw as gssapi_raw
    _gssapi_available = True
    _gssapi_error = None
except ImportError as e:
    gssapi = None  # type: ignore
    gssapi_raw = None  # type: ignore
    _gssapi_available = False
    _gssapi_error = str(e)
    logger.debug("gssapi_not_available", message="Install gssapi package for native Kerberos support")
except OSError as e:
    # GSSAPI installed but underlying library not available
    gssapi = None  # type: ignore
    gssapi_raw = None  # type: ignore
    _gssapi_available = False
    _gssapi_error = str(e)
    logger.warning("gssapi_library_error", message=str(e))


def gssapi_available() -> bool:
    """True when the gssapi bindings and the Kerberos library loaded."""
    return _gssapi_available


def _unavailable_message() -> str:
    return f"GSSAPI library not available ({_gssapi_error}). Install with: pip install mssql-kerbauth[gssapi]"


def _gss_codes(e: Exception) -> Dict[str, Optional[int]]:
    return {
        "major": getattr(e, "maj_code", None),
        "minor": getattr(e, "min_code", None),
    }


def convert_flags(flags: ContextFlag) -> int:
    """Convert ContextFlag to gssapi.RequirementFlag."""
    result = 0
    if ContextFlag.DELEG in flags:
        result |= gssapi.RequirementFlag.delegate_to_peer
    if ContextFlag.MUTUAL in flags:
        result |= gssapi.RequirementFlag.mutual_authentication
    if ContextFlag.INTEG in flags:
        result |= gssapi.RequirementFlag.integrity
    return result


# =============================================================================
# CREDENTIALS
# =============================================================================


@attrs.define
class GSSAPICredential(Credential):
    """
    Initiate-only GSSAPI credential.

    A credential that borrows the handle of its identity does not release
    it; the identity's logout does.
    """

    _creds: Any = None
    _owns_handle: bool = True
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @property
    def credentials(self) -> Any:
        """gssapi.Credentials, None once disposed."""
        return self._creds

    def dispose(self) -> None:
        creds, self._creds = self._creds, None
        if creds is None or not self._owns_handle:
            return
        try:
            gssapi_raw.release_cred(creds)
        except gssapi.exceptions.GSSError as e:
            raise DisposalError(f"Cannot release credentials: {e}") from e
        self._logger.debug("gssapi_creds_released")


@attrs.define
class GSSAPICredentialProvider(CredentialProvider):
    """
    Identity and credential acquisition with GSSAPI.

    The ambient identity is the one bound with identity_scope(). Explicit
    login follows a LoginEntry from the login configuration registry:
    keytab first, then password, then the (default or named) ticket cache.
    """

    configurations: LoginConfiguration = login_configuration
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def acquire_ambient_identity(self) -> Optional[Identity]:
        return current_identity()

    def login(self, config_name: str) -> Identity:
        entry = self.configurations.get(config_name)
        if entry is None:
            raise IdentityAcquisitionError(f"No login configuration named {config_name}")
        if not _gssapi_available:
            raise IdentityAcquisitionError(_unavailable_message())

        try:
            identity = self._login(entry)
        except gssapi.exceptions.GSSError as e:
            self._logger.error("gssapi_login_failed", config=config_name, error=str(e), **_gss_codes(e))
            raise IdentityAcquisitionError(f"Kerberos login failed: {e}") from e

        self._logger.info(
            "gssapi_login",
            config=config_name,
            principal=str(identity.principal) if identity.principal else None,
        )
        return identity

    def _login(self, entry: LoginEntry) -> Identity:
        name = None
        if entry.principal:
            name = gssapi.Name(entry.principal, name_type=gssapi.NameType.user)

        if entry.keytab:
            store = {"client_keytab": entry.keytab, **_ccache_store(entry)}
            creds = gssapi.Credentials(name=name, usage="initiate", store=store)
        elif entry.password is not None:
            try:
                acquire_with_password = gssapi_raw.acquire_cred_with_password
            except AttributeError:
                raise IdentityAcquisitionError(
                    "GSSAPI password acquisition not available. "
                    "Use kinit to obtain credentials first."
                )
            # In memory only, never written to a cache
            store = {}
            creds = gssapi.Credentials(
                base=acquire_with_password(name, entry.password.encode("utf-8"), usage="initiate").creds
            )
        else:
            store = _ccache_store(entry)
            creds = gssapi.Credentials(name=name, usage="initiate", store=store or None)

        try:
            principal = _principal_of(creds)
        except gssapi.exceptions.GSSError:
            _release_quietly(creds)
            raise

        return Identity(
            principal=principal,
            store=store,
            origin=IdentityOrigin.LOGIN,
            handle=creds,
        )

    def logout(self, identity: Identity) -> None:
        handle, identity.handle = identity.handle, None
        identity.logged_out = True
        if handle is None or not _gssapi_available:
            return
        try:
            gssapi_raw.release_cred(handle)
        except gssapi.exceptions.GSSError as e:
            raise DisposalError(f"Logout failed: {e}") from e
        self._logger.debug("gssapi_logout", principal=str(identity.principal) if identity.principal else None)

    def acquire_credential(self, identity: Identity, mechanism: str) -> Credential:
        if not _gssapi_available:
            raise ContextNegotiationError(_unavailable_message())

        # Password logins live only in memory: borrow their handle
        if identity.handle is not None and not identity.store:
            return GSSAPICredential(creds=identity.handle, owns_handle=False)

        principal = str(identity.principal) if identity.principal is not None else None
        try:
            name = None
            if principal is not None:
                name = gssapi.Name(principal, name_type=gssapi.NameType.kerberos_principal)
            creds = gssapi.Credentials(
                name=name,
                usage="initiate",
                mechs=[gssapi.OID.from_int_seq(mechanism)],
                store=identity.store or None,
            )
        except gssapi.exceptions.GSSError as e:
            self._logger.error("gssapi_creds_failed", principal=principal, error=str(e), **_gss_codes(e))
            raise ContextNegotiationError(f"Cannot acquire credentials: {e}", **_gss_codes(e)) from e

        # creds.name would inquire the credential; the identity already names it
        self._logger.debug("gssapi_creds_acquired", principal=principal)
        return GSSAPICredential(creds=creds)


def _ccache_store(entry: LoginEntry) -> Dict[str, str]:
    """Credential cache part of the store for a login entry."""
    if not entry.use_ticket_cache:
        # Private cache: existing tickets are not read, new ones not shared
        return {"ccache": f"MEMORY:kerbauth-{uuid.uuid4().hex}"}
    if entry.ccache:
        return {"ccache": entry.ccache}
    return {}


def _release_quietly(creds: Any) -> None:
    try:
        gssapi_raw.release_cred(creds)
    except gssapi.exceptions.GSSError as e:
        logger.warning("release_failed", resource="credential", error=str(e))


def _principal_of(creds: Any) -> Optional[Principal]:
    name = str(creds.name) if creds.name else ""
    if "@" not in name:
        return None
    return Principal.from_string(name)


# =============================================================================
# GSSAPI CONTEXT
# =============================================================================


@attrs.define
class GSSAPISecurityContext(SecurityContext):
    """
    Client-side GSSAPI security context.

    Example:
        ctx = GSSAPIContextFactory().create_context(
            "MSSQLSvc/db1.example.com:1433@EXAMPLE.COM",
            KERBEROS_MECHANISM_OID,
            credential,
        )

        token = ctx.step(None)
        while not ctx.is_established():
            token = ctx.step(send_to_server(token))
    """

    _name: str = ""
    _gss_ctx: Any = None
    _complete: bool = False
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def step(self, in_token: Optional[bytes]) -> Optional[bytes]:
        """
        Perform one step of the GSSAPI handshake.

        Args:
            in_token: Token received from the server (None or empty for
                the first call)

        Returns:
            Token to send to the server, or None
        """
        if self._gss_ctx is None:
            raise ContextNegotiationError("Security context already disposed")

        try:
            out_token = self._gss_ctx.step(in_token or None)
        except gssapi.exceptions.GSSError as e:
            self._logger.error("gssapi_step_failed", target=self._name, error=str(e), **_gss_codes(e))
            raise ContextNegotiationError(f"GSSAPI error: {e}", **_gss_codes(e)) from e

        self._complete = bool(self._gss_ctx.complete)

        self._logger.debug(
            "gssapi_client_step",
            complete=self._complete,
            has_output=out_token is not None,
        )

        return out_token

    def is_established(self) -> bool:
        return self._complete

    def dispose(self) -> None:
        ctx, self._gss_ctx = self._gss_ctx, None
        if ctx is None:
            return
        try:
            gssapi_raw.delete_sec_context(ctx)
        except gssapi.exceptions.GSSError as e:
            raise DisposalError(f"Cannot delete security context: {e}") from e
        self._logger.debug("gssapi_context_deleted", target=self._name)


@attrs.define
class GSSAPIContextFactory(SecurityContextFactory):
    """Creates GSSAPI client contexts with the driver's requirement flags."""

    flags: ContextFlag = attrs.Factory(ContextFlag.driver_default)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def create_context(
        self, peer_name: str, mechanism: str, credential: Credential
    ) -> SecurityContext:
        if not _gssapi_available:
            raise ContextNegotiationError(_unavailable_message())

        creds = credential.credentials if isinstance(credential, GSSAPICredential) else None
        try:
            # The SPN is taken as a complete Kerberos principal name
            gss_name = gssapi.Name(peer_name, name_type=gssapi.NameType.kerberos_principal)
            gss_ctx = gssapi.SecurityContext(
                name=gss_name,
                creds=creds,
                flags=convert_flags(self.flags),
                mech=gssapi.OID.from_int_seq(mechanism),
                usage="initiate",
            )
        except gssapi.exceptions.GSSError as e:
            self._logger.error("gssapi_context_failed", target=peer_name, error=str(e), **_gss_codes(e))
            raise ContextNegotiationError(f"Cannot create security context: {e}", **_gss_codes(e)) from e

        self._logger.debug(
            "gssapi_client_context_created",
            target=peer_name,
            flags=str(self.flags),
        )
        return GSSAPISecurityContext(name=peer_name, gss_ctx=gss_ctx)
