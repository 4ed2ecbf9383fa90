"""
SPN construction for SQL Server.

Format is MSSQLSvc/myhost.domain.company.com:1433; Kerberos needs the
FQDN of the server for the ticket request to match the registered SPN.
"""

from __future__ import annotations

import structlog

from kerbauth.core.types import SQL_SERVER_SERVICE

logger = structlog.get_logger()


def to_ascii_hostname(host: str) -> str:
    """
    Convert a host name to its ASCII-Compatible Encoding.

    Pure ASCII labels are kept as is (case included); others are
    nameprep'ed and punycoded.

    Raises:
        UnicodeError: If a label is empty or too long
    """
    return host.encode("idna").decode("ascii")


def build_spn(host: str, port: int, ace_mode: bool) -> str:
    """
    Build the SPN of a SQL Server instance.

    Args:
        host: Server host name (FQDN expected) or address
        port: Server port; not range checked
        ace_mode: Convert host to its ASCII-Compatible Encoding first

    Returns:
        MSSQLSvc/<host>:<port>
    """
    logger.debug("spn_build", server=host, port=port)
    if ace_mode:
        host = to_ascii_hostname(host)
    spn = f"{SQL_SERVER_SERVICE}/{host}:{port}"
    logger.debug("spn_built", spn=spn)
    return spn


def normalize_user_supplied_spn(spn: str, ace_mode: bool) -> str:
    """
    Normalize an SPN given in the connection properties.

    In ACE mode everything after the first "/" is ACE-encoded, the service
    part is kept verbatim. An SPN without "/" is encoded as a whole.
    """
    if not ace_mode:
        return spn

    service, slash, rest = spn.partition("/")
    if not slash:
        logger.debug("spn_without_service_part", spn=spn)
        return to_ascii_hostname(spn)
    return f"{service}/{to_ascii_hostname(rest)}"
