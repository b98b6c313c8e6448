"""Configuration loading and validation using Pydantic models.

Gateway behavior comes from an optional ``gateway.yaml`` in the config
directory; credentials and endpoints come from environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from vaultbridge import __version__

DEFAULT_API_BASE_URL = "https://api.bitwarden.com"
DEFAULT_IDENTITY_URL = "https://identity.bitwarden.com"


class GatewayConfig(BaseModel):
    """Gateway behavior configuration loaded from gateway.yaml."""

    cli_path: str = "bw"
    command_timeout: int = Field(default=60, ge=1, le=600)
    api_timeout: float = Field(default=30.0, gt=0, le=300)
    # Whole tool call, covering multi-step tools such as edit_item
    call_timeout: float = Field(default=150.0, gt=0, le=1800)
    audit_log_path: str = "./logs/audit.jsonl"
    user_agent: str = f"vaultbridge/{__version__}"

    @model_validator(mode="after")
    def call_covers_cli_budget(self) -> GatewayConfig:
        """edit_item runs two CLI commands inside one call."""
        if self.call_timeout < 2 * self.command_timeout:
            raise ValueError(
                f"call_timeout ({self.call_timeout}s) must be at least twice "
                f"command_timeout ({self.command_timeout}s)"
            )
        return self


class Credentials(BaseModel):
    """Credentials and endpoints read from the environment.

    The session token gates the CLI tools; the client id/secret pair
    gates the organization API tools.
    """

    session: SecretStr | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    identity_url: str = DEFAULT_IDENTITY_URL

    @field_validator("api_base_url", "identity_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so paths can be appended directly."""
        v = v.rstrip("/")
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"URL must start with http:// or https://: {v!r}")
        return v

    @property
    def cli_enabled(self) -> bool:
        """Whether a vault session is available for CLI tools."""
        return self.session is not None and bool(self.session.get_secret_value())

    @property
    def api_enabled(self) -> bool:
        """Whether client credentials are available for API tools."""
        return bool(self.client_id) and self.client_secret is not None and bool(
            self.client_secret.get_secret_value()
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file, returning an empty dict if missing."""
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_gateway_config(config_dir: str | Path) -> GatewayConfig:
    """Load gateway configuration from config_dir/gateway.yaml.

    A missing directory or file yields the defaults.

    Raises:
        pydantic.ValidationError: If the file has invalid content.
    """
    data = _load_yaml(Path(config_dir) / "gateway.yaml")
    return GatewayConfig(**data)


def load_credentials(environ: Mapping[str, str] | None = None) -> Credentials:
    """Read credentials from BW_* environment variables.

    Empty variables are treated as unset.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ

    def _get(key: str) -> str | None:
        value = env.get(key, "").strip()
        return value or None

    return Credentials(
        session=_get("BW_SESSION"),
        client_id=_get("BW_CLIENT_ID"),
        client_secret=_get("BW_CLIENT_SECRET"),
        api_base_url=_get("BW_API_BASE_URL") or DEFAULT_API_BASE_URL,
        identity_url=_get("BW_IDENTITY_URL") or DEFAULT_IDENTITY_URL,
    )
