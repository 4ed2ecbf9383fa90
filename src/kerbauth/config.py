"""
KerbAuth Configuration

Connection-level settings for integrated authentication and the named
login configurations used to obtain an identity when the execution
context does not carry one.

Connection properties (keys are case-insensitive):
    serverSpn               Explicit SPN, used as given (no canonicalization)
    serverNameAsACE         Encode host names with IDN ASCII-Compatible Encoding
    loginConfigurationName  Login configuration used for explicit login
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

import attrs
import structlog

from kerbauth.core.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_LOGIN_CONFIGURATION = "KerbAuthDriver"

_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


def parse_bool(name: str, value: Any) -> bool:
    """Parse a boolean connection property."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}")


# =============================================================================
# CONNECTION SETTINGS
# =============================================================================


@attrs.define
class AuthConfig:
    """
    Integrated authentication settings of one connection.

    Attributes:
        server_spn: Caller-supplied SPN (None to derive it from host/port)
        server_name_as_ace: Convert host names to their ACE form
        login_configuration: Name of the login configuration for explicit login
    """

    server_spn: Optional[str] = None
    server_name_as_ace: bool = False
    login_configuration: str = DEFAULT_LOGIN_CONFIGURATION

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "AuthConfig":
        """
        Create config from connection properties.

        Unknown properties are ignored; they belong to other layers of
        the driver.
        """
        props = {str(k).lower(): v for k, v in properties.items()}

        server_spn = props.get("serverspn")
        if server_spn is not None:
            server_spn = str(server_spn).strip() or None

        ace = props.get("servernameasace")
        login_configuration = props.get("loginconfigurationname")

        config = cls(
            server_spn=server_spn,
            server_name_as_ace=parse_bool("serverNameAsACE", ace) if ace is not None else False,
            login_configuration=str(login_configuration) if login_configuration else DEFAULT_LOGIN_CONFIGURATION,
        )
        logger.debug(
            "auth_config_loaded",
            server_spn=config.server_spn,
            server_name_as_ace=config.server_name_as_ace,
            login_configuration=config.login_configuration,
        )
        return config


# =============================================================================
# LOGIN CONFIGURATIONS
# =============================================================================


@attrs.define(frozen=True)
class LoginEntry:
    """
    How to obtain an identity for explicit login.

    Sources are tried in this order: keytab, password, credential cache.

    Attributes:
        principal: Principal to log in as (None for the cache's default)
        password: Password for password-based login
        ccache: Credential cache name (None for the default cache)
        keytab: Client keytab for keytab-based login
        use_ticket_cache: Read and store tickets in the named (or default)
            credential cache. When False, a keytab login uses a private
            in-memory cache and ccache is ignored
    """

    principal: Optional[str] = None
    password: Optional[str] = attrs.field(default=None, repr=False)
    ccache: Optional[str] = None
    keytab: Optional[str] = None
    use_ticket_cache: bool = True

    def __attrs_post_init__(self) -> None:
        if self.password is not None and self.principal is None:
            raise ConfigurationError("Password login requires a principal")
        if self.keytab is None and self.password is None and not self.use_ticket_cache:
            raise ConfigurationError(
                "Login entry has no identity source: set keytab, password or use_ticket_cache"
            )


@attrs.define
class LoginConfiguration:
    """
    Process-wide registry of named login entries.

    The driver's own entry (ticket cache only, never prompt) is installed
    on first lookup unless the application registered one under that
    name already.
    """

    _entries: Dict[str, LoginEntry] = attrs.Factory(dict)
    _lock: threading.Lock = attrs.Factory(threading.Lock)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def register(self, name: str, entry: LoginEntry) -> None:
        """Register or replace a login entry."""
        with self._lock:
            self._entries[name] = entry
        self._logger.debug("login_entry_registered", name=name)

    def unregister(self, name: str) -> None:
        """Remove a login entry if present."""
        with self._lock:
            self._entries.pop(name, None)

    def get(self, name: str) -> Optional[LoginEntry]:
        """Look up a login entry, installing the driver default on demand."""
        with self._lock:
            if name == DEFAULT_LOGIN_CONFIGURATION and name not in self._entries:
                self._entries[name] = LoginEntry(use_ticket_cache=True)
                self._logger.debug("login_entry_default_installed", name=name)
            return self._entries.get(name)


login_configuration = LoginConfiguration()
