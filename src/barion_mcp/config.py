"""
Runtime configuration for the Barion MCP server.

Credentials come from command-line flags first and environment variables
second. They are resolved once at startup and handed to each client
explicitly, so several differently-configured servers can live in one process.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, SecretStr

from barion_mcp.credentials import BARION_CREDENTIALS

Environment = Literal["test", "prod"]

BARION_BASE_URLS: dict[str, str] = {
    "test": "https://api.test.barion.com",
    "prod": "https://api.barion.com",
}

MISSING_CREDENTIALS_MESSAGE = (
    "Error: At least one credential is required. "
    "Provide BARION_POS_KEY for payment tools or BARION_API_KEY for wallet tools."
)


def base_url_for(environment: str) -> str:
    """Return the API host for an environment name."""
    return BARION_BASE_URLS["prod" if environment == "prod" else "test"]


class BarionConfig(BaseModel):
    """Resolved credentials and environment selection."""

    pos_key: SecretStr | None = None
    api_key: SecretStr | None = None
    environment: Environment = "test"

    @property
    def base_url(self) -> str:
        return base_url_for(self.environment)

    @property
    def has_credentials(self) -> bool:
        return bool(self.pos_key or self.api_key)

    @classmethod
    def resolve(
        cls,
        cli_values: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> BarionConfig:
        """
        Build a config from CLI values, falling back to environment variables.

        Args:
            cli_values: Parsed flag values keyed by ``poskey``, ``api_key`` and
                ``environment``. Missing or empty values are ignored.
            environ: Environment mapping (defaults to ``os.environ``).
        """
        cli_values = cli_values or {}
        environ = os.environ if environ is None else environ

        def _lookup(credential_name: str) -> str | None:
            spec = BARION_CREDENTIALS[credential_name]
            value = cli_values.get(spec.cli_flag) if spec.cli_flag else None
            return value or environ.get(spec.env_var) or None

        pos_key = _lookup("barion_pos_key")
        api_key = _lookup("barion_api_key")
        environment = _lookup("barion_environment") or "test"

        return cls(
            pos_key=SecretStr(pos_key) if pos_key else None,
            api_key=SecretStr(api_key) if api_key else None,
            environment=environment,
        )
