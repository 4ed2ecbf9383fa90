"""
Unit tests for kerbauth.config and kerbauth.connection modules.
"""

import pytest

from kerbauth.config import (
    DEFAULT_LOGIN_CONFIGURATION,
    AuthConfig,
    LoginConfiguration,
    LoginEntry,
    parse_bool,
)
from kerbauth.connection import ConfiguredConnection
from kerbauth.core.exceptions import ConfigurationError, IntegratedAuthenticationError


class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize("value", [True, "true", "TRUE", " yes ", "1", "on"])
    def test_true(self, value):
        assert parse_bool("serverNameAsACE", value) is True

    @pytest.mark.parametrize("value", [False, "false", "No", "0", "off"])
    def test_false(self, value):
        assert parse_bool("serverNameAsACE", value) is False

    def test_invalid(self):
        with pytest.raises(ConfigurationError, match="serverNameAsACE"):
            parse_bool("serverNameAsACE", "maybe")


class TestAuthConfig:
    """Tests for AuthConfig."""

    def test_defaults(self):
        config = AuthConfig()
        assert config.server_spn is None
        assert config.server_name_as_ace is False
        assert config.login_configuration == DEFAULT_LOGIN_CONFIGURATION

    def test_from_properties(self):
        config = AuthConfig.from_properties({
            "serverSpn": "MSSQLSvc/db1.example.com:1433",
            "serverNameAsACE": "true",
            "loginConfigurationName": "SQLJDBCDriver",
            "encrypt": "true",
        })
        assert config.server_spn == "MSSQLSvc/db1.example.com:1433"
        assert config.server_name_as_ace is True
        assert config.login_configuration == "SQLJDBCDriver"

    def test_keys_case_insensitive(self):
        config = AuthConfig.from_properties({"SERVERSPN": "MSSQLSvc/db1:1433", "servernameasace": "on"})
        assert config.server_spn == "MSSQLSvc/db1:1433"
        assert config.server_name_as_ace is True

    def test_blank_spn_ignored(self):
        assert AuthConfig.from_properties({"serverSpn": "  "}).server_spn is None

    def test_empty_login_configuration_defaults(self):
        config = AuthConfig.from_properties({"loginConfigurationName": ""})
        assert config.login_configuration == DEFAULT_LOGIN_CONFIGURATION

    def test_invalid_boolean(self):
        with pytest.raises(ConfigurationError):
            AuthConfig.from_properties({"serverNameAsACE": "sometimes"})


class TestLoginEntry:
    """Tests for LoginEntry validation."""

    def test_default_entry(self):
        entry = LoginEntry()
        assert entry.use_ticket_cache
        assert entry.principal is None

    def test_password_requires_principal(self):
        with pytest.raises(ConfigurationError):
            LoginEntry(password="secret")

    def test_needs_identity_source(self):
        with pytest.raises(ConfigurationError):
            LoginEntry(principal="app@EXAMPLE.COM", use_ticket_cache=False)

    def test_keytab_without_cache(self):
        entry = LoginEntry(principal="app@EXAMPLE.COM", keytab="/etc/app.keytab", use_ticket_cache=False)
        assert entry.keytab == "/etc/app.keytab"

    def test_password_hidden_from_repr(self):
        entry = LoginEntry(principal="app@EXAMPLE.COM", password="secret")
        assert "secret" not in repr(entry)


class TestLoginConfiguration:
    """Tests for the login configuration registry."""

    def test_driver_default_installed(self):
        registry = LoginConfiguration()
        entry = registry.get(DEFAULT_LOGIN_CONFIGURATION)
        assert entry == LoginEntry(use_ticket_cache=True)

    def test_registered_default_kept(self):
        registry = LoginConfiguration()
        custom = LoginEntry(principal="app@EXAMPLE.COM", keytab="/etc/app.keytab")
        registry.register(DEFAULT_LOGIN_CONFIGURATION, custom)
        assert registry.get(DEFAULT_LOGIN_CONFIGURATION) is custom

    def test_unknown_name(self):
        assert LoginConfiguration().get("SQLJDBCDriver") is None

    def test_register_unregister(self):
        registry = LoginConfiguration()
        entry = LoginEntry(principal="app@EXAMPLE.COM")
        registry.register("app", entry)
        assert registry.get("app") is entry
        registry.unregister("app")
        registry.unregister("app")
        assert registry.get("app") is None


class TestConfiguredConnection:
    """Tests for ConfiguredConnection."""

    def test_properties(self):
        connection = ConfiguredConnection.from_properties({
            "serverSpn": "MSSQLSvc/db1:1433",
            "serverNameAsACE": "yes",
        })
        assert connection.server_spn == "MSSQLSvc/db1:1433"
        assert connection.server_name_as_ace is True
        assert connection.login_configuration == DEFAULT_LOGIN_CONFIGURATION

    def test_fatal_failure_terminates(self, connection):
        cause = RuntimeError("boom")
        with pytest.raises(IntegratedAuthenticationError) as exc_info:
            connection.report_fatal_auth_failure("Integrated authentication failed.", cause)
        assert exc_info.value.__cause__ is cause
        assert connection.terminated
