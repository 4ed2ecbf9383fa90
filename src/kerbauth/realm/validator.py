"""
Kerberos realm validation.

Answers "is this string a known Kerberos realm?" for SPN enrichment.

Two strategies:
- NativeRealmValidator: asks the host's Kerberos profile for the KDCs
  of the realm
- DnsRealmValidator: asks DNS for KDC SRV records

The strategy is chosen once per process on first use. The native one is
only trusted after a self-test: a resolver that reports a nonsense realm
as valid would qualify every candidate and is dropped for DNS.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import attrs
import structlog

from kerbauth.realm.krb5_config import Krb5Config
from kerbauth.transport import dns_locator

logger = structlog.get_logger()

SELF_TEST_PREFIX = "this.might.not.exist."


class RealmValidator(ABC):
    """Strategy deciding whether a realm exists."""

    @abstractmethod
    def is_realm_valid(self, realm: str) -> bool:
        ...


@attrs.define
class NativeRealmValidator(RealmValidator):
    """Realm validation through the host's krb5.conf profile."""

    config: Krb5Config
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def is_realm_valid(self, realm: str) -> bool:
        try:
            return bool(self.config.get_kdc_list(realm))
        except (OSError, ValueError) as e:
            self._logger.debug("native_realm_lookup_failed", realm=realm, error=str(e))
            return False

    def passes_self_test(self, probe_hostname: str) -> bool:
        """True when the profile rejects a realm that cannot exist."""
        return not self.is_realm_valid(SELF_TEST_PREFIX + probe_hostname)


@attrs.define
class DnsRealmValidator(RealmValidator):
    """Realm validation through DNS SRV records."""

    locator: Callable[[str], bool] = attrs.Factory(lambda: dns_locator.locate_realm)

    def is_realm_valid(self, realm: str) -> bool:
        return self.locator(realm)


# =============================================================================
# PROCESS-WIDE SELECTION
# =============================================================================

_validator: Optional[RealmValidator] = None
_validator_lock = threading.Lock()


def select_realm_validator(
    probe_hostname: str,
    config_loader: Callable[[], Optional[Krb5Config]] = Krb5Config.load,
) -> RealmValidator:
    """
    Pick the realm validator for this host.

    Args:
        probe_hostname: Host name used to build the self-test realm
        config_loader: Loads the native profile, None when unavailable

    Returns:
        The native validator if available and sane, else the DNS one
    """
    config = config_loader()
    if config is None:
        logger.info(
            "realm_validator_selected",
            validator="dns",
            reason="no native Kerberos configuration",
        )
        return DnsRealmValidator()

    native = NativeRealmValidator(config=config)
    if native.passes_self_test(probe_hostname):
        logger.info("realm_validator_selected", validator="native", paths=list(config.paths))
        return native

    logger.info(
        "realm_validator_selected",
        validator="dns",
        reason="native resolver accepts nonexistent realms",
    )
    return DnsRealmValidator()


def get_realm_validator(
    probe_hostname: str,
    selector: Callable[[str], RealmValidator] = select_realm_validator,
) -> RealmValidator:
    """
    Return the process-wide realm validator, selecting it on first use.

    The selection is never re-evaluated, even if the environment changes.
    """
    global _validator
    validator = _validator
    if validator is not None:
        return validator

    with _validator_lock:
        if _validator is None:
            _validator = selector(probe_hostname)
        return _validator


def reset_realm_validator() -> None:
    """Forget the selected validator. Useful for testing."""
    global _validator
    with _validator_lock:
        _validator = None
