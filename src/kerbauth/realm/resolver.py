"""Realm lookup from the DNS labels of a host name."""

from __future__ import annotations

from typing import Optional

import structlog

from kerbauth.core.types import Realm
from kerbauth.realm.validator import RealmValidator

logger = structlog.get_logger()


def find_realm(validator: RealmValidator, hostname: Optional[str]) -> Optional[Realm]:
    """
    Try to find a realm in the different parts of a host name.

    Candidates are the host name itself and each suffix following a dot,
    longest first: db1.example.com, example.com, com. Candidates shorter
    than three characters are not tried.

    Args:
        validator: Decides whether a candidate is a valid realm
        hostname: Name to look a realm for

    Returns:
        The first accepted candidate, upper-cased, or None
    """
    if hostname is None:
        return None

    index = 0
    while index != -1 and index < len(hostname) - 2:
        candidate = hostname[index:]
        logger.debug("realm_candidate", candidate=candidate)
        if validator.is_realm_valid(candidate):
            return Realm(candidate)
        index = hostname.find(".", index + 1)
        if index != -1:
            index += 1
    return None
