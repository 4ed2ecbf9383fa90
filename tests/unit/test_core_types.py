"""
Unit tests for kerbauth.core.types module.

Tests core type definitions, validators, and invariants.
"""

import pytest

from kerbauth.core.types import (
    ContextFlag,
    Principal,
    Realm,
    ServicePrincipalName,
)


class TestRealm:
    """Tests for Realm type."""

    def test_realm_creation(self):
        """Test basic realm creation."""
        realm = Realm("EXAMPLE.COM")
        assert realm.name == "EXAMPLE.COM"

    def test_realm_uppercase_conversion(self):
        """Test realm name is auto-uppercased."""
        assert Realm("example.com").name == "EXAMPLE.COM"

    def test_realm_equality(self):
        assert Realm("example.com") == Realm("EXAMPLE.COM")

    def test_realm_str(self):
        assert str(Realm("example.com")) == "EXAMPLE.COM"

    def test_realm_immutable(self):
        realm = Realm("EXAMPLE.COM")
        with pytest.raises(AttributeError):
            realm.name = "OTHER.COM"


class TestPrincipal:
    """Tests for Principal type."""

    def test_from_string(self):
        principal = Principal.from_string("jdoe@example.com")
        assert principal.name == "jdoe"
        assert principal.realm == Realm("EXAMPLE.COM")
        assert str(principal) == "jdoe@EXAMPLE.COM"

    def test_from_string_service(self):
        principal = Principal.from_string("MSSQLSvc/db1.example.com:1433@EXAMPLE.COM")
        assert principal.name == "MSSQLSvc/db1.example.com:1433"

    def test_from_string_invalid(self):
        with pytest.raises(ValueError):
            Principal.from_string("jdoe")

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            Principal.from_string("@EXAMPLE.COM")


class TestServicePrincipalName:
    """Tests for ServicePrincipalName parsing and formatting."""

    def test_parse(self):
        spn = ServicePrincipalName.parse("MSSQLSvc/db1.example.com:1433")
        assert spn.host == "db1.example.com"
        assert spn.port_or_instance == "1433"
        assert spn.realm is None

    def test_parse_with_realm(self):
        spn = ServicePrincipalName.parse("MSSQLSvc/db1.example.com:1433@example.com")
        assert spn.realm == Realm("EXAMPLE.COM")

    def test_parse_ipv6_host(self):
        spn = ServicePrincipalName.parse("MSSQLSvc/fe80::1:1433")
        assert spn.host == "fe80::1"
        assert spn.port_or_instance == "1433"

    @pytest.mark.parametrize(
        "text",
        ["HTTP/db1:80", "MSSQLSvc/db1", "MSSQLSvc/db1:", "xMSSQLSvc/db1:1433", "MSSQLSvc/db1:1433@"],
    )
    def test_parse_rejects(self, text):
        assert ServicePrincipalName.parse(text) is None

    def test_with_realm(self):
        spn = ServicePrincipalName.parse("MSSQLSvc/10.0.0.5:SALES")
        enriched = spn.with_realm(Realm("EXAMPLE.COM"), host="db1.example.com")
        assert str(enriched) == "MSSQLSvc/db1.example.com:SALES@EXAMPLE.COM"
        assert str(spn) == "MSSQLSvc/10.0.0.5:SALES"


class TestContextFlag:
    """Tests for ContextFlag."""

    def test_driver_default(self):
        flags = ContextFlag.driver_default()
        assert ContextFlag.MUTUAL in flags
        assert ContextFlag.DELEG in flags
        assert ContextFlag.INTEG in flags
