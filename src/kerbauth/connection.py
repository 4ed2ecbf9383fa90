"""
Connection collaborator backed by connection properties.

Drivers with their own connection object implement AuthConnection
directly; this one suits callers that only have a property mapping.
"""

from __future__ import annotations

from typing import Any, Mapping, NoReturn, Optional

import attrs
import structlog

from kerbauth.config import AuthConfig
from kerbauth.core.exceptions import IntegratedAuthenticationError
from kerbauth.core.interfaces import AuthConnection

logger = structlog.get_logger()


@attrs.define
class ConfiguredConnection(AuthConnection):
    """
    AuthConnection reading its settings from an AuthConfig.

    report_fatal_auth_failure() marks the connection terminated and raises
    IntegratedAuthenticationError chained to the cause.
    """

    config: AuthConfig = attrs.Factory(AuthConfig)
    terminated: bool = False
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "ConfiguredConnection":
        return cls(config=AuthConfig.from_properties(properties))

    @property
    def server_name_as_ace(self) -> bool:
        return self.config.server_name_as_ace

    @property
    def server_spn(self) -> Optional[str]:
        return self.config.server_spn

    @property
    def login_configuration(self) -> str:
        return self.config.login_configuration

    def report_fatal_auth_failure(
        self, reason: str, cause: Optional[BaseException] = None
    ) -> NoReturn:
        self.terminated = True
        self._logger.error(
            "connection_terminated",
            reason=reason,
            cause=str(cause) if cause is not None else None,
        )
        raise IntegratedAuthenticationError(reason) from cause
