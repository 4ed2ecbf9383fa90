"""
KerbAuth SPN Module

Service principal name construction and realm enrichment.

Components:
- builder: MSSQLSvc/host:port construction and ACE normalization
- enricher: @REALM qualification through realm lookup
"""

from kerbauth.spn.builder import build_spn, normalize_user_supplied_spn
from kerbauth.spn.enricher import SpnEnricher, enrich_spn

__all__ = [
    "build_spn",
    "normalize_user_supplied_spn",
    "SpnEnricher",
    "enrich_spn",
]
