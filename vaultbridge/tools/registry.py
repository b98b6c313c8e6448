"""Tool registration, schema generation, and dispatch.

Central registry that tools register with. Provides the tool-listing
schemas and dispatches incoming tool calls through validation, the
security guards and the audit log to the correct tool. Every call ends
in a ToolResponse.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from pydantic import ValidationError

from vaultbridge.schemas.base import format_validation_error
from vaultbridge.security.allowlist import AllowlistDenied
from vaultbridge.security.audit import AuditLogger
from vaultbridge.security.sanitizer import SanitizationError
from vaultbridge.tools.base import BaseTool, ToolResponse

logger = structlog.get_logger()


class ToolRegistry:
    """Central registry for all gateway tools with secure dispatch."""

    def __init__(self, audit: AuditLogger, timeout: float | None = None) -> None:
        """Initialize the registry.

        Args:
            audit: Audit logger for recording all tool calls.
            timeout: Upper bound in seconds for a single tool call, on top
                of the executors' own timeouts. None disables it.
        """
        self._audit = audit
        self._timeout = timeout
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name!r}")
        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool=tool.name)

    def get_schemas(self) -> list[dict[str, Any]]:
        """Return tool-listing schemas for all registered tools."""
        return [tool.to_schema() for tool in self._tools.values()]

    def get_tool(self, name: str) -> BaseTool | None:
        """Look up a tool by name."""
        return self._tools.get(name)

    @property
    def tool_names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    async def dispatch(self, tool_name: str, tool_input: dict[str, Any] | None) -> ToolResponse:
        """Execute a tool call through the full pipeline.

        Pipeline:
        1. Validate the arguments against the tool's model
        2. Log the attempt
        3. Execute with timeout (guards run inside the executors)
        4. Log the result

        Exceptions other than validation, guard and timeout failures are
        not caught.

        Args:
            tool_name: Name of the tool to call.
            tool_input: The raw argument bag.

        Returns:
            The normalized ToolResponse.
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            return ToolResponse.error(f"Unknown tool: {tool_name!r}")

        raw = tool_input or {}

        # 1. Validate
        try:
            args = tool.args_model.model_validate(raw)
        except ValidationError as e:
            message = format_validation_error(e)
            self._audit.log_denied(tool_name, raw, reason=message)
            return ToolResponse.error(message)

        # 2. Log the attempt
        self._audit.log_attempt(tool_name, raw)

        # 3. Execute
        try:
            response = await asyncio.wait_for(tool.execute(args), timeout=self._timeout)
        except SanitizationError as e:
            self._audit.log_denied(tool_name, raw, reason=f"sanitizer: {e}")
            return ToolResponse.error(f"Input rejected: {e}")
        except AllowlistDenied as e:
            self._audit.log_denied(tool_name, raw, reason=f"allowlist: {e}")
            return ToolResponse.error(f"Operation not permitted by security policy: {e}")
        except asyncio.TimeoutError:
            self._audit.log_timeout(tool_name, raw)
            return ToolResponse.error(f"Operation timed out ({self._timeout}s)")

        # 4. Log result and return
        result = response.to_dict()
        if response.is_error:
            self._audit.log_error(tool_name, raw, error=response.content[0].text)
        else:
            self._audit.log_success(tool_name, raw, result=result)
        return response
