"""CLI entry point for the vault gateway using Click."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from vaultbridge import __version__
from vaultbridge.config import Credentials, GatewayConfig, load_credentials, load_gateway_config
from vaultbridge.security.audit import AuditLogger

logger = structlog.get_logger()


def _configure_logging(log_level: str) -> None:
    """Configure structlog for console output on stderr.

    stdout is reserved for tool responses.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _build_registry(config: GatewayConfig, credentials: Credentials):
    """Build the tool registry for whichever backends have credentials.

    Returns:
        Tuple of (ToolRegistry, AuditLogger).

    Raises:
        click.ClickException: If neither backend is configured.
    """
    from vaultbridge.auth import TokenManager
    from vaultbridge.tools.api import OrganizationApiClient
    from vaultbridge.tools.cli import CliRunner
    from vaultbridge.tools.organization import register_organization_tools
    from vaultbridge.tools.registry import ToolRegistry
    from vaultbridge.tools.vault import register_vault_tools

    if not credentials.cli_enabled and not credentials.api_enabled:
        raise click.ClickException(
            "No credentials found. Set BW_SESSION for vault tools and/or "
            "BW_CLIENT_ID and BW_CLIENT_SECRET for organization tools."
        )

    audit = AuditLogger(config.audit_log_path)
    registry = ToolRegistry(audit, timeout=config.call_timeout)

    if credentials.cli_enabled:
        runner = CliRunner(
            config.cli_path,
            timeout=config.command_timeout,
            env={
                "BW_SESSION": credentials.session.get_secret_value(),
                "BW_NOINTERACTION": "true",
            },
        )
        register_vault_tools(registry, runner)
    else:
        logger.info("vault_tools_disabled", reason="BW_SESSION not set")

    if credentials.api_enabled:
        tokens = TokenManager(
            credentials.client_id,
            credentials.client_secret.get_secret_value(),
            credentials.identity_url,
            timeout=config.api_timeout,
        )
        client = OrganizationApiClient(
            credentials.api_base_url,
            tokens,
            timeout=config.api_timeout,
            user_agent=config.user_agent,
        )
        register_organization_tools(registry, client)
    else:
        logger.info("organization_tools_disabled", reason="BW_CLIENT_ID/BW_CLIENT_SECRET not set")

    return registry, audit


def _load(config_dir: str | None, log_level: str | None):
    config_path = config_dir or os.environ.get("VAULTBRIDGE_CONFIG", "./config")
    level = log_level or os.environ.get("VAULTBRIDGE_LOG_LEVEL", "INFO")
    _configure_logging(level)

    try:
        config = load_gateway_config(config_path)
        credentials = load_credentials()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    return _build_registry(config, credentials)


config_dir_option = click.option(
    "--config-dir",
    type=click.Path(file_okay=False, resolve_path=True),
    default=None,
    help="Directory holding gateway.yaml. Defaults to VAULTBRIDGE_CONFIG env or ./config/",
)
log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level. Defaults to VAULTBRIDGE_LOG_LEVEL env or INFO.",
)


@click.group()
@click.version_option(version=__version__, prog_name="vaultbridge")
def cli() -> None:
    """vaultbridge - guarded tool calls for the Bitwarden CLI and organization API."""


@cli.command()
@config_dir_option
@log_level_option
def tools(config_dir: str | None, log_level: str | None) -> None:
    """List the tools available with the current credentials."""
    from vaultbridge.tools.api import ApiTool

    registry, audit = _load(config_dir, log_level)
    audit.close()

    table = Table(title="Available tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Backend")
    table.add_column("Description")
    for name in registry.tool_names:
        tool = registry.get_tool(name)
        backend = "organization API" if isinstance(tool, ApiTool) else "vault CLI"
        table.add_row(name, backend, tool.description)
    Console().print(table)


@cli.command()
@click.argument("name")
@click.option(
    "--args",
    "args_json",
    default="{}",
    show_default=True,
    help="Tool arguments as a JSON object.",
)
@config_dir_option
@log_level_option
def call(name: str, args_json: str, config_dir: str | None, log_level: str | None) -> None:
    """Run a single tool call and print the response as JSON."""
    try:
        tool_input = json.loads(args_json)
    except ValueError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
    if not isinstance(tool_input, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    registry, audit = _load(config_dir, log_level)
    try:
        response = asyncio.run(registry.dispatch(name, tool_input))
    finally:
        audit.close()

    click.echo(json.dumps(response.to_dict(), indent=2))
    if response.is_error:
        sys.exit(1)


if __name__ == "__main__":
    cli()
