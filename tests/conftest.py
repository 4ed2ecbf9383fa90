"""
Pytest configuration and shared fixtures for KerbAuth tests.

All collaborators are faked: no test touches DNS, a KDC or the GSSAPI
library.
"""

from typing import Callable, Dict, Iterable, List, Optional

import attrs
import pytest

from kerbauth.config import AuthConfig
from kerbauth.connection import ConfiguredConnection
from kerbauth.core.exceptions import ContextNegotiationError, HostResolutionError
from kerbauth.core.identity import Identity
from kerbauth.core.interfaces import (
    Credential,
    CredentialProvider,
    SecurityContext,
    SecurityContextFactory,
)
from kerbauth.core.types import IdentityOrigin, Principal, Realm
from kerbauth.realm.validator import RealmValidator, reset_realm_validator
from kerbauth.spn.enricher import SpnEnricher


# =============================================================================
# REALM FIXTURES
# =============================================================================


class StaticRealmValidator(RealmValidator):
    """Accepts a fixed set of realms (case-insensitive) and records queries."""

    def __init__(self, realms: Iterable[str] = ()) -> None:
        self.realms = {r.upper() for r in realms}
        self.calls: List[str] = []

    def is_realm_valid(self, realm: str) -> bool:
        self.calls.append(realm)
        return realm.upper() in self.realms


def make_canonicalizer(mapping: Dict[str, str]) -> Callable[[str], str]:
    """Host resolver answering from mapping, failing for unknown hosts."""

    def canonicalize(name: str) -> str:
        if name not in mapping:
            raise HostResolutionError(name)
        return mapping[name]

    return canonicalize


def make_enricher(
    realms: Iterable[str] = (),
    canonical: Optional[Dict[str, str]] = None,
) -> SpnEnricher:
    validator = StaticRealmValidator(realms)
    return SpnEnricher(
        validator_factory=lambda host: validator,
        canonicalize=make_canonicalizer(canonical or {}),
    )


@pytest.fixture(autouse=True)
def _fresh_realm_validator():
    """Each test starts without a selected realm validator."""
    reset_realm_validator()
    yield
    reset_realm_validator()


@pytest.fixture
def test_realm() -> Realm:
    """Test Kerberos realm."""
    return Realm("EXAMPLE.COM")


@pytest.fixture
def example_validator() -> StaticRealmValidator:
    """Validator knowing only EXAMPLE.COM."""
    return StaticRealmValidator(["EXAMPLE.COM"])


@pytest.fixture
def no_realm_enricher() -> SpnEnricher:
    """Enricher that never finds a realm."""
    return make_enricher()


# =============================================================================
# SECURITY CONTEXT FAKES
# =============================================================================


@attrs.define
class FakeCredential(Credential):
    dispose_error: Optional[Exception] = None
    disposed: int = 0

    def dispose(self) -> None:
        self.disposed += 1
        if self.dispose_error is not None:
            raise self.dispose_error


@attrs.define
class FakeSecurityContext(SecurityContext):
    """
    Security context established on round established_after.

    null_token_round / fail_round make the given round (1-based) return no
    token or raise.
    """

    peer_name: str = ""
    established_after: int = 2
    null_token_round: Optional[int] = None
    fail_round: Optional[int] = None
    dispose_error: Optional[Exception] = None
    received: List[Optional[bytes]] = attrs.Factory(list)
    disposed: int = 0

    def step(self, in_token: Optional[bytes]) -> Optional[bytes]:
        self.received.append(in_token)
        current = len(self.received)
        if current == self.fail_round:
            raise ContextNegotiationError("KDC has no support for encryption type")
        if current == self.null_token_round:
            return None
        if current >= self.established_after:
            return b"final" if current == self.established_after else None
        return f"token-{current}".encode()

    def is_established(self) -> bool:
        return len(self.received) >= self.established_after

    def dispose(self) -> None:
        self.disposed += 1
        if self.dispose_error is not None:
            raise self.dispose_error


@attrs.define
class FakeContextFactory(SecurityContextFactory):
    established_after: int = 2
    null_token_round: Optional[int] = None
    fail_round: Optional[int] = None
    create_error: Optional[Exception] = None
    dispose_error: Optional[Exception] = None
    created: List[FakeSecurityContext] = attrs.Factory(list)
    mechanisms: List[str] = attrs.Factory(list)

    def create_context(self, peer_name, mechanism, credential) -> SecurityContext:
        if self.create_error is not None:
            raise self.create_error
        ctx = FakeSecurityContext(
            peer_name=peer_name,
            established_after=self.established_after,
            null_token_round=self.null_token_round,
            fail_round=self.fail_round,
            dispose_error=self.dispose_error,
        )
        self.created.append(ctx)
        self.mechanisms.append(mechanism)
        return ctx


@attrs.define
class FakeCredentialProvider(CredentialProvider):
    ambient: Optional[Identity] = None
    login_error: Optional[Exception] = None
    logout_error: Optional[Exception] = None
    credential_error: Optional[Exception] = None
    credential_dispose_error: Optional[Exception] = None
    logins: List[str] = attrs.Factory(list)
    logouts: List[Identity] = attrs.Factory(list)
    credentials: List[FakeCredential] = attrs.Factory(list)

    def acquire_ambient_identity(self) -> Optional[Identity]:
        return self.ambient

    def login(self, config_name: str) -> Identity:
        self.logins.append(config_name)
        if self.login_error is not None:
            raise self.login_error
        return Identity(
            principal=Principal.from_string("app@EXAMPLE.COM"),
            origin=IdentityOrigin.LOGIN,
        )

    def logout(self, identity: Identity) -> None:
        self.logouts.append(identity)
        identity.logged_out = True
        if self.logout_error is not None:
            raise self.logout_error

    def acquire_credential(self, identity: Identity, mechanism: str) -> Credential:
        if self.credential_error is not None:
            raise self.credential_error
        credential = FakeCredential(dispose_error=self.credential_dispose_error)
        self.credentials.append(credential)
        return credential


# =============================================================================
# CONNECTION FIXTURES
# =============================================================================


@pytest.fixture
def connection() -> ConfiguredConnection:
    """Connection without user SPN, plain host names."""
    return ConfiguredConnection(config=AuthConfig())


@pytest.fixture
def credential_provider() -> FakeCredentialProvider:
    return FakeCredentialProvider()


@pytest.fixture
def context_factory() -> FakeContextFactory:
    return FakeContextFactory()


@pytest.fixture
def ambient_identity() -> Identity:
    return Identity(principal=Principal.from_string("jdoe@EXAMPLE.COM"))


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "native: marks tests requiring native GSSAPI"
    )
