"""Tool implementations, executors and the dispatch registry."""

from __future__ import annotations

from vaultbridge.tools.api import ApiCall, ApiTool, OrganizationApiClient
from vaultbridge.tools.base import (
    ApiResult,
    BaseTool,
    CliResult,
    ToolResponse,
    normalize_api_result,
    normalize_cli_result,
)
from vaultbridge.tools.cli import CliInvocation, CliRunner, CliTool, CompositeCliTool
from vaultbridge.tools.registry import ToolRegistry

__all__ = [
    "ApiCall",
    "ApiResult",
    "ApiTool",
    "BaseTool",
    "CliInvocation",
    "CliResult",
    "CliRunner",
    "CliTool",
    "CompositeCliTool",
    "OrganizationApiClient",
    "ToolRegistry",
    "ToolResponse",
    "normalize_api_result",
    "normalize_cli_result",
]
