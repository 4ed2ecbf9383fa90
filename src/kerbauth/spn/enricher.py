"""
SPN enrichment with a Kerberos realm.

An SPN without realm makes the client library fall back to its default
realm (or domain_realm mapping), which is wrong for servers living in
another realm. The realm is looked up from the SPN host name and
appended: MSSQLSvc/db1.example.com:1433 -> MSSQLSvc/db1.example.com:1433@EXAMPLE.COM
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import attrs
import structlog

from kerbauth.core.exceptions import HostResolutionError
from kerbauth.core.types import ServicePrincipalName
from kerbauth.realm.resolver import find_realm
from kerbauth.realm.validator import RealmValidator, get_realm_validator
from kerbauth.transport.dns_locator import resolve_canonical_hostname

logger = structlog.get_logger()


@attrs.define
class SpnEnricher:
    """
    Appends @REALM to SQL Server SPNs lacking one.

    Attributes:
        validator_factory: Returns the realm validator given a probe host name
        canonicalize: Resolves the canonical name of a host
    """

    validator_factory: Callable[[str], RealmValidator] = get_realm_validator
    canonicalize: Callable[[str], str] = resolve_canonical_hostname
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def enrich(self, spn: Optional[str], allow_canonicalization: bool) -> Optional[str]:
        """
        Qualify spn with its realm when one can be found.

        Args:
            spn: SPN to enrich
            allow_canonicalization: Retry with the canonical host name when
                the given one yields no realm. Must be False for SPNs
                supplied by the user, whose host name is trusted as is.

        Returns:
            The enriched SPN, or spn unchanged when it does not look like
            a SQL Server SPN, already has a realm, or no realm was found
        """
        if spn is None:
            return None

        parsed = ServicePrincipalName.parse(spn)
        if parsed is None or parsed.realm is not None:
            return spn

        dns_name = parsed.host
        validator = self.validator_factory(dns_name)
        realm = find_realm(validator, dns_name)

        if realm is None and allow_canonicalization:
            try:
                canonical = self.canonicalize(dns_name)
            except HostResolutionError as e:
                self._logger.debug("spn_canonicalization_failed", host=dns_name, error=str(e))
            else:
                realm = find_realm(validator, canonical)
                # A match means the canonical name is the right one (the
                # server name may have been an address)
                dns_name = canonical

        if realm is None:
            self._logger.debug("spn_realm_not_found", spn=spn)
            return spn

        return str(parsed.with_realm(realm, host=dns_name))


default_enricher = SpnEnricher()


def enrich_spn(spn: Optional[str], allow_canonicalization: bool) -> Optional[str]:
    """Enrich spn with the default validator and host resolver."""
    return default_enricher.enrich(spn, allow_canonicalization)
