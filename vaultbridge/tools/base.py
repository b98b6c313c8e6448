"""Tool interface, execution results, and response normalization.

Each tool provides a name, a description, a pydantic argument model and
an async execute method. The registry validates arguments against the
model and dispatches to execute. Whatever happens inside a tool, the
caller gets back a ToolResponse.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

# Matches ANSI CSI sequences (\x1b[...letter) and OSC sequences (\x1b]...BEL)
_ANSI_RE = re.compile(r"\x1b(?:\[[0-9;]*[A-Za-z]|\][^\x07]*\x07)")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes and carriage returns from text."""
    return _ANSI_RE.sub("", text).replace("\r", "")


@dataclass(frozen=True)
class CliResult:
    """Outcome of a local CLI invocation."""

    output: str | None = None
    error_output: str | None = None


@dataclass(frozen=True)
class ApiResult:
    """Outcome of an organization API request."""

    status: int
    data: Any = None
    error_message: str | None = None


@dataclass(frozen=True)
class TextContent:
    """A single text block of a tool response."""

    text: str
    type: str = "text"


@dataclass(frozen=True)
class ToolResponse:
    """The only shape returned to callers of the registry."""

    content: tuple[TextContent, ...]
    is_error: bool = False

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> ToolResponse:
        return cls(content=(TextContent(text=text),), is_error=is_error)

    @classmethod
    def error(cls, message: str) -> ToolResponse:
        """Build an error response (validation failures, guard rejections)."""
        return cls.text(message, is_error=True)

    def to_dict(self) -> dict[str, Any]:
        """Render in the tool-call wire format."""
        return {
            "content": [{"type": block.type, "text": block.text} for block in self.content],
            "isError": self.is_error,
        }


def normalize_cli_result(result: CliResult, fallback: str = "Operation completed successfully") -> ToolResponse:
    """Convert a CLI outcome into a ToolResponse.

    The response is an error iff error output is present. The text is
    the standard output if any, else the error output, else ``fallback``.
    """
    text = result.output or result.error_output or fallback
    return ToolResponse.text(text, is_error=result.error_output is not None)


def normalize_api_result(result: ApiResult, fallback: str = "Operation completed successfully") -> ToolResponse:
    """Convert an API outcome into a ToolResponse.

    The response is an error iff an error message is present. The text is
    the error message if any, else the response data as indented JSON,
    else ``fallback``.
    """
    if result.error_message is not None:
        return ToolResponse.error(result.error_message)
    if result.data is None or result.data == "":
        return ToolResponse.text(fallback)
    return ToolResponse.text(json.dumps(result.data, indent=2, default=str))


class BaseTool(ABC):
    """Abstract base class for all gateway tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name used in schemas and dispatch."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description shown to callers."""

    @property
    @abstractmethod
    def args_model(self) -> type[BaseModel]:
        """Pydantic model the raw arguments are validated against."""

    @abstractmethod
    async def execute(self, args: BaseModel) -> ToolResponse:
        """Execute the tool with already-validated arguments.

        Args:
            args: An instance of ``args_model``.

        Returns:
            ToolResponse with the normalized outcome.
        """

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for the tool's input, generated from args_model."""
        return self.args_model.model_json_schema(by_alias=True)

    def to_schema(self) -> dict[str, Any]:
        """Generate the tool-listing schema for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                **self.parameters,
            },
        }


class DescribedTool(BaseTool):
    """A tool whose name, description and argument model are given at construction.

    The vault and organization catalogs are built from these, one instance
    per tool, instead of one class per tool.
    """

    def __init__(self, name: str, description: str, args_model: type[BaseModel]) -> None:
        self._name = name
        self._description = description
        self._args_model = args_model

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def args_model(self) -> type[BaseModel]:
        return self._args_model
