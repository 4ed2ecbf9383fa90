"""
Authenticated identities.

An identity is either ambient, bound to the current execution context
with identity_scope(), or created by an explicit login. Only the latter
is ever logged out by the authentication context.

Example:
    identity = Identity(principal=Principal.from_string("svc_app@EXAMPLE.COM"),
                        store={"ccache": "FILE:/var/run/app.ccache"})
    with identity_scope(identity):
        connection.connect()   # authenticates as svc_app
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

import attrs

from kerbauth.core.types import IdentityOrigin, Principal


@attrs.define
class Identity:
    """
    Authenticated principal.

    Attributes:
        principal: Principal name, None when the default cache decides
        store: Credential store (ccache / client_keytab) holding its tickets
        origin: Ambient or login-created
        handle: Binding-specific object (e.g. GSSAPI credentials)
    """

    principal: Optional[Principal] = None
    store: Dict[str, str] = attrs.Factory(dict)
    origin: IdentityOrigin = IdentityOrigin.AMBIENT
    handle: Any = attrs.field(default=None, repr=False, eq=False)
    logged_out: bool = False


_current_identity: ContextVar[Optional[Identity]] = ContextVar("kerbauth_identity", default=None)


def current_identity() -> Optional[Identity]:
    """Identity bound to the current execution context."""
    return _current_identity.get()


@contextmanager
def identity_scope(identity: Identity) -> Iterator[Identity]:
    """Run the enclosed block as identity."""
    token = _current_identity.set(identity)
    try:
        yield identity
    finally:
        _current_identity.reset(token)
